"""
Admin API routes - verification, cancellation review, fund releases, broadcasts.

Every endpoint requires the admin role.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import (
    get_cancellation_service,
    get_current_admin,
    get_expiry_service,
    get_fund_release_service,
    get_notification_service,
    get_order_service,
    get_payment_proof_service,
    get_stats_service,
)
from application.dtos.base import CurrentUser
from application.dtos.cancellations import (
    CancellationRequestDTO,
    CancellationResolveDTO,
    CancellationResolvedDTO,
)
from application.dtos.fund_releases import (
    FundReleaseCompleteDTO,
    FundReleaseCompletedDTO,
    FundReleaseDTO,
)
from application.dtos.notifications import BroadcastDTO, BroadcastResultDTO
from application.dtos.orders import AdminStatsDTO, ExpirySweepResultDTO, OrderDTO
from application.dtos.payments import PaymentProofDTO, ProofResultDTO, ProofReviewDTO
from application.services.cancellation_service import CancellationApplicationService
from application.services.expiry_service import OrderExpiryService
from application.services.fund_release_service import FundReleaseApplicationService
from application.services.notification_service import NotificationApplicationService
from application.services.order_service import OrderApplicationService
from application.services.payment_proof_service import PaymentProofApplicationService
from application.services.stats_service import StatsApplicationService
from core.config import settings
from core.i18n import t
from core.response import Response as ApiResponse, success_response

router = APIRouter(prefix="/admin", tags=["Admin"])


def _page(
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> tuple[int, int]:
    return skip, limit


# ----------------------------------------------------------------------
# Orders
# ----------------------------------------------------------------------
@router.get("/orders", summary="List all orders", response_model=ApiResponse[List[OrderDTO]])
async def list_orders(
    status: Optional[str] = Query(None, description="Order status, or `all`"),
    page: tuple[int, int] = Depends(_page),
    admin: CurrentUser = Depends(get_current_admin),
    service: OrderApplicationService = Depends(get_order_service),
):
    orders = await service.list_orders(status, skip=page[0], limit=page[1])
    return success_response(data=orders)


@router.patch("/orders/{order_id}/deliver", summary="Mark order delivered", response_model=ApiResponse[OrderDTO])
async def mark_delivered(
    order_id: str,
    admin: CurrentUser = Depends(get_current_admin),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.mark_delivered(order_id, admin.id)
    return success_response(data=order, message=t("order.delivered", default="Order marked as delivered"))


@router.post("/orders/expire", summary="Run the payment-deadline sweep now", response_model=ApiResponse[ExpirySweepResultDTO])
async def expire_orders(
    admin: CurrentUser = Depends(get_current_admin),
    service: OrderExpiryService = Depends(get_expiry_service),
):
    result = await service.cancel_expired_orders()
    return success_response(data=result)


# ----------------------------------------------------------------------
# Payment proofs
# ----------------------------------------------------------------------
@router.get("/payment-proofs", summary="List payment proofs", response_model=ApiResponse[List[PaymentProofDTO]])
async def list_payment_proofs(
    status: Optional[str] = Query("pending", description="pending, approved, rejected or `all`"),
    page: tuple[int, int] = Depends(_page),
    admin: CurrentUser = Depends(get_current_admin),
    service: PaymentProofApplicationService = Depends(get_payment_proof_service),
):
    proofs = await service.list_proofs(status, skip=page[0], limit=page[1])
    return success_response(data=proofs)


@router.patch("/payment-proofs/{proof_id}", summary="Approve or reject a payment proof", response_model=ApiResponse[ProofResultDTO])
async def review_payment_proof(
    proof_id: str,
    data: ProofReviewDTO,
    admin: CurrentUser = Depends(get_current_admin),
    service: PaymentProofApplicationService = Depends(get_payment_proof_service),
):
    result = await service.review_proof(proof_id, data, admin.id)
    if data.action == "approve":
        message = t("payment.proof.approved", default="Payment verified")
    else:
        message = t("payment.proof.rejected", default="Payment proof rejected")
    return success_response(data=result, message=message)


# ----------------------------------------------------------------------
# Cancellation requests
# ----------------------------------------------------------------------
@router.get(
    "/cancellation-requests",
    summary="List cancellation requests",
    response_model=ApiResponse[List[CancellationRequestDTO]],
)
async def list_cancellation_requests(
    status: Optional[str] = Query("pending", description="pending, approved, rejected or `all`"),
    page: tuple[int, int] = Depends(_page),
    admin: CurrentUser = Depends(get_current_admin),
    service: CancellationApplicationService = Depends(get_cancellation_service),
):
    requests = await service.list_requests(status, skip=page[0], limit=page[1])
    return success_response(data=requests)


@router.patch(
    "/cancellation-requests/{request_id}",
    summary="Approve or reject a cancellation request",
    response_model=ApiResponse[CancellationResolvedDTO],
)
async def resolve_cancellation_request(
    request_id: str,
    data: CancellationResolveDTO,
    admin: CurrentUser = Depends(get_current_admin),
    service: CancellationApplicationService = Depends(get_cancellation_service),
):
    result = await service.resolve_request(request_id, data, admin.id)
    return success_response(data=result, message=t("cancellation.resolved", default="Cancellation request processed"))


# ----------------------------------------------------------------------
# Fund releases
# ----------------------------------------------------------------------
@router.get("/fund-releases", summary="List fund releases", response_model=ApiResponse[List[FundReleaseDTO]])
async def list_fund_releases(
    status: Optional[str] = Query("pending", description="pending, completed or `all`"),
    page: tuple[int, int] = Depends(_page),
    admin: CurrentUser = Depends(get_current_admin),
    service: FundReleaseApplicationService = Depends(get_fund_release_service),
):
    releases = await service.list_releases(status, skip=page[0], limit=page[1])
    return success_response(data=releases)


@router.patch(
    "/fund-releases/{release_id}",
    summary="Record the seller payout",
    response_model=ApiResponse[FundReleaseCompletedDTO],
)
async def complete_fund_release(
    release_id: str,
    data: FundReleaseCompleteDTO,
    admin: CurrentUser = Depends(get_current_admin),
    service: FundReleaseApplicationService = Depends(get_fund_release_service),
):
    result = await service.complete_release(release_id, data, admin.id)
    return success_response(data=result, message=t("fund_release.completed", default="Funds released"))


# ----------------------------------------------------------------------
# Stats
# ----------------------------------------------------------------------
@router.get("/stats", summary="Dashboard counters", response_model=ApiResponse[AdminStatsDTO])
async def admin_stats(
    admin: CurrentUser = Depends(get_current_admin),
    service: StatsApplicationService = Depends(get_stats_service),
):
    stats = await service.admin_stats()
    return success_response(data=stats)


# ----------------------------------------------------------------------
# Broadcast
# ----------------------------------------------------------------------
@router.post(
    "/broadcast-notification",
    summary="Notify every user with a registered device",
    response_model=ApiResponse[BroadcastResultDTO],
)
async def broadcast_notification(
    data: BroadcastDTO,
    admin: CurrentUser = Depends(get_current_admin),
    service: NotificationApplicationService = Depends(get_notification_service),
):
    result = await service.broadcast(data, admin.id)
    message = t(
        "notification.broadcast",
        default="Notification sent to {count} users",
        count=result.recipients,
    )
    return success_response(data=result, message=message)
