"""
QRIS API routes - merchant payload management and dynamic generation.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_current_admin, get_current_user, get_qris_service
from application.dtos.base import CurrentUser
from application.dtos.qris import (
    QrisGenerateDTO,
    QrisGeneratedDTO,
    QrisSettingDTO,
    QrisTransactionDTO,
    QrisUploadDTO,
)
from application.services.qris_service import QrisApplicationService
from core.i18n import t
from core.response import Response as ApiResponse, success_response

router = APIRouter(tags=["QRIS"])


@router.post("/admin/qris/upload", summary="Upload the static merchant QRIS", response_model=ApiResponse[QrisSettingDTO], status_code=201)
async def upload_qris(
    data: QrisUploadDTO,
    admin: CurrentUser = Depends(get_current_admin),
    service: QrisApplicationService = Depends(get_qris_service),
):
    """Replaces the active payload; merchant name and city default to the values embedded in it."""
    setting = await service.upload(data, admin.id)
    return success_response(data=setting, message=t("qris.uploaded", default="QRIS uploaded"))


@router.get("/admin/qris/current", summary="Active QRIS setting", response_model=ApiResponse[Optional[QrisSettingDTO]])
async def current_qris(
    admin: CurrentUser = Depends(get_current_admin),
    service: QrisApplicationService = Depends(get_qris_service),
):
    setting = await service.current()
    return success_response(data=setting)


@router.delete("/admin/qris/{setting_id}", summary="Delete a QRIS setting", response_model=ApiResponse[None])
async def delete_qris(
    setting_id: str,
    admin: CurrentUser = Depends(get_current_admin),
    service: QrisApplicationService = Depends(get_qris_service),
):
    await service.delete(setting_id)
    return success_response(message=t("qris.deleted", default="QRIS deleted"))


@router.post("/qris/generate", summary="Generate a dynamic QRIS for an amount", response_model=ApiResponse[QrisGeneratedDTO])
async def generate_qris(
    data: QrisGenerateDTO,
    user: CurrentUser = Depends(get_current_user),
    service: QrisApplicationService = Depends(get_qris_service),
):
    result = await service.generate(data, user.id)
    return success_response(data=result)


@router.get("/qris/transaction/{transaction_id}", summary="Generated QRIS transaction", response_model=ApiResponse[QrisTransactionDTO])
async def get_qris_transaction(
    transaction_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: QrisApplicationService = Depends(get_qris_service),
):
    transaction = await service.get_transaction(transaction_id, user.id)
    return success_response(data=transaction)
