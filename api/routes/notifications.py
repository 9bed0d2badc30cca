"""
Notification API routes - inbox and push device registration.
"""
from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user, get_notification_service
from application.dtos.base import CurrentUser
from application.dtos.notifications import (
    DeviceDTO,
    DeviceSubscribeDTO,
    DeviceUnsubscribeDTO,
    NotificationDTO,
    UnreadCountDTO,
)
from application.services.notification_service import NotificationApplicationService
from core.i18n import t
from core.response import Response as ApiResponse, success_response

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", summary="Latest notifications", response_model=ApiResponse[List[NotificationDTO]])
async def list_notifications(
    user: CurrentUser = Depends(get_current_user),
    service: NotificationApplicationService = Depends(get_notification_service),
):
    items = await service.list_notifications(user.id)
    return success_response(data=items)


@router.get("/count", summary="Unread notification count", response_model=ApiResponse[UnreadCountDTO])
async def unread_count(
    user: CurrentUser = Depends(get_current_user),
    service: NotificationApplicationService = Depends(get_notification_service),
):
    return success_response(data=await service.unread_count(user.id))


@router.patch("/read-all", summary="Mark every notification read", response_model=ApiResponse[dict])
async def mark_all_read(
    user: CurrentUser = Depends(get_current_user),
    service: NotificationApplicationService = Depends(get_notification_service),
):
    updated = await service.mark_all_read(user.id)
    return success_response(data={"updated": updated})


@router.patch("/{notification_id}/read", summary="Mark a notification read", response_model=ApiResponse[None])
async def mark_read(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: NotificationApplicationService = Depends(get_notification_service),
):
    await service.mark_read(notification_id, user.id)
    return success_response(message=t("notification.read", default="Notification marked as read"))


@router.post("/subscribe", summary="Register a push device token", response_model=ApiResponse[DeviceDTO])
async def subscribe(
    data: DeviceSubscribeDTO,
    user: CurrentUser = Depends(get_current_user),
    service: NotificationApplicationService = Depends(get_notification_service),
):
    device = await service.subscribe(user.id, data)
    return success_response(data=device, message=t("notification.subscribed", default="Device registered"))


@router.delete("/unsubscribe", summary="Unregister a push device token", response_model=ApiResponse[dict])
async def unsubscribe(
    data: DeviceUnsubscribeDTO,
    user: CurrentUser = Depends(get_current_user),
    service: NotificationApplicationService = Depends(get_notification_service),
):
    removed = await service.unsubscribe(user.id, data.token)
    return success_response(data={"removed": removed})


@router.get("/devices", summary="My registered devices", response_model=ApiResponse[List[DeviceDTO]])
async def list_devices(
    user: CurrentUser = Depends(get_current_user),
    service: NotificationApplicationService = Depends(get_notification_service),
):
    return success_response(data=await service.list_devices(user.id))
