"""
Payment API routes - proof submission and payment lookup.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user, get_optional_user, get_payment_proof_service
from application.dtos.base import CurrentUser
from application.dtos.payments import PaymentWithProofsDTO, ProofResultDTO, ProofSubmitDTO
from application.services.payment_proof_service import PaymentProofApplicationService
from core.i18n import t
from core.response import Response as ApiResponse, success_response

router = APIRouter(tags=["Payments"])


@router.get(
    "/payments/order/{order_id}",
    summary="Payment of an order with its proofs",
    response_model=ApiResponse[PaymentWithProofsDTO],
)
async def get_payment_for_order(
    order_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: PaymentProofApplicationService = Depends(get_payment_proof_service),
):
    payment = await service.get_payment_for_order(order_id, user)
    return success_response(data=payment)


@router.post(
    "/payment-proofs",
    summary="Submit a payment proof",
    response_model=ApiResponse[ProofResultDTO],
    status_code=201,
)
async def submit_payment_proof(
    data: ProofSubmitDTO,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service: PaymentProofApplicationService = Depends(get_payment_proof_service),
):
    """
    Submit a transfer proof for an order.

    Authentication is optional; when present the caller becomes the order's
    buyer. Resubmitting while the order is under verification replaces the
    pending proof.
    """
    result = await service.submit_proof(data, user)
    return success_response(
        data=result,
        message=t("payment.proof.submitted", default="Payment proof submitted, waiting for verification"),
    )
