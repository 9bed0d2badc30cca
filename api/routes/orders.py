"""
Order API routes - seller and buyer endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, Query

from api.dependencies import (
    get_cancellation_service,
    get_current_user,
    get_order_service,
)
from application.dtos.base import CurrentUser
from application.dtos.cancellations import CancellationLookupDTO, CancellationRequestDTO
from application.dtos.orders import (
    OrderCancelDTO,
    OrderCancellationResultDTO,
    OrderCreateDTO,
    OrderCreatedDTO,
    OrderDTO,
    OrderPublicDTO,
    OrderStatusUpdateDTO,
    SellerStatsDTO,
)
from application.services.cancellation_service import CancellationApplicationService
from application.services.order_service import OrderApplicationService
from core.config import settings
from core.i18n import t
from core.response import Response as ApiResponse, success_response

router = APIRouter(prefix="/orders", tags=["Orders"])
dashboard_router = APIRouter(prefix="/dashboard", tags=["Orders"])


@router.post("", summary="Create order", response_model=ApiResponse[OrderCreatedDTO], status_code=201)
async def create_order(
    data: OrderCreateDTO,
    user: CurrentUser = Depends(get_current_user),
    service: OrderApplicationService = Depends(get_order_service),
):
    """
    Create an order as the seller.

    Send either all of `product_price`, `platform_fee`, `total_amount`
    (total must equal price + fee) or only `total_amount`, in which case the
    platform fee is derived from it.
    """
    result = await service.create_order(user.id, data)
    return success_response(data=result, message=t("order.created", default="Order created"))


@router.get("", summary="List my orders", response_model=ApiResponse[List[OrderDTO]])
async def list_my_orders(
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    user: CurrentUser = Depends(get_current_user),
    service: OrderApplicationService = Depends(get_order_service),
):
    orders = await service.list_seller_orders(user.id, skip=skip, limit=limit)
    return success_response(data=orders)


@router.get(
    "/my-cancellation-requests",
    summary="List my cancellation requests",
    response_model=ApiResponse[List[CancellationRequestDTO]],
)
async def list_my_cancellation_requests(
    user: CurrentUser = Depends(get_current_user),
    service: CancellationApplicationService = Depends(get_cancellation_service),
):
    requests = await service.list_my_requests(user.id)
    return success_response(data=requests)


@router.get("/number/{order_number}", summary="Look up an order by number", response_model=ApiResponse[OrderPublicDTO])
async def get_order_by_number(
    order_number: str,
    service: OrderApplicationService = Depends(get_order_service),
):
    """Public lookup used by buyers before paying; returns a restricted projection."""
    order = await service.get_by_number(order_number)
    return success_response(data=order)


@router.get("/{order_id}", summary="Get order", response_model=ApiResponse[OrderDTO])
async def get_order(
    order_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.get_order(order_id, user)
    return success_response(data=order)


@router.patch("/{order_id}/status", summary="Update fulfillment status", response_model=ApiResponse[OrderDTO])
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdateDTO,
    user: CurrentUser = Depends(get_current_user),
    service: OrderApplicationService = Depends(get_order_service),
):
    """Seller moves a paid order to `processing` or `shipped`."""
    order = await service.update_status(order_id, user.id, data.status)
    return success_response(data=order, message=t("order.status.updated", default="Order status updated"))


@router.post("/{order_id}/cancel", summary="Cancel order", response_model=ApiResponse[OrderCancellationResultDTO])
async def cancel_order(
    order_id: str,
    data: OrderCancelDTO,
    user: CurrentUser = Depends(get_current_user),
    service: CancellationApplicationService = Depends(get_cancellation_service),
):
    """
    Cancel as the seller.

    Without any payment proof the order is cancelled at once; otherwise a
    cancellation request is queued for admin review.
    """
    result = await service.request_cancellation(order_id, user.id, data.reason)
    return success_response(data=result, message=result.message)


@router.get(
    "/{order_id}/cancellation-request",
    summary="Latest cancellation request of an order",
    response_model=ApiResponse[CancellationLookupDTO],
)
async def get_cancellation_request(
    order_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: CancellationApplicationService = Depends(get_cancellation_service),
):
    result = await service.get_request_for_order(order_id, user)
    return success_response(data=result)


@router.post("/{order_id}/confirm-received", summary="Confirm receipt", response_model=ApiResponse[OrderDTO])
async def confirm_received(
    order_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: OrderApplicationService = Depends(get_order_service),
):
    """Buyer confirms the item arrived; the order completes and a fund release is opened."""
    order = await service.confirm_received(order_id, user.id)
    return success_response(data=order, message=t("order.completed", default="Order completed"))


@dashboard_router.get("/stats", summary="Seller dashboard counters", response_model=ApiResponse[SellerStatsDTO])
async def seller_stats(
    user: CurrentUser = Depends(get_current_user),
    service: OrderApplicationService = Depends(get_order_service),
):
    stats = await service.seller_stats(user.id)
    return success_response(data=stats)
