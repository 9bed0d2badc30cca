"""
Payment verification domain service - proof submission and admin review.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from domain.common.exceptions import (
    DomainValidationException,
    ForbiddenException,
    ResourceNotFoundException,
)
from domain.order.entity import Order, OrderStatus
from domain.order.events import PaymentApproved, PaymentRejected, ProofSubmitted
from domain.order.repository import OrderRepository
from domain.order.service import OrderNotFoundException
from shared.codes.escrow_codes import EscrowCode
from .entity import SUPERSEDED_REASON, Payment, PaymentProof
from .repository import PaymentProofRepository, PaymentRepository


REVIEW_ACTIONS = ("approve", "reject")


class PaymentNotFoundException(ResourceNotFoundException):
    def __init__(self, identifier: str):
        super().__init__("Payment", identifier, code=EscrowCode.PAYMENT_NOT_FOUND)


class ProofNotFoundException(ResourceNotFoundException):
    def __init__(self, identifier: str):
        super().__init__("Payment proof", identifier, code=EscrowCode.PROOF_NOT_FOUND)


class PaymentVerificationService:
    """
    Drives the order state machine from buyer proofs and admin decisions.

    Business rules:
    1. a proof is accepted only while the order is awaiting_payment or verification
    2. a newer proof supersedes any pending one, so one pending proof drives review
    3. approve -> order paid, payment paid; reject -> order awaiting_payment, payment rejected
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        payment_repository: PaymentRepository,
        proof_repository: PaymentProofRepository,
    ):
        self.order_repository = order_repository
        self.payment_repository = payment_repository
        self.proof_repository = proof_repository
        self.events: List = []

    async def submit_proof(
        self,
        payment_id: Optional[str],
        order_id: Optional[str],
        *,
        submitter_id: Optional[str],
        now: datetime,
        note: Optional[str] = None,
        amount: Optional[int] = None,
        proof_url: Optional[str] = None,
    ) -> tuple[PaymentProof, Order, Payment]:
        if not payment_id or not order_id:
            raise DomainValidationException(
                "payment_id and order_id are required",
                field="payment_id" if not payment_id else "order_id",
            )

        order = await self.order_repository.get_by_id(order_id, for_update=True)
        if order is None:
            raise OrderNotFoundException(order_id)
        payment = await self.payment_repository.get_by_id(payment_id, for_update=True)
        if payment is None:
            raise PaymentNotFoundException(payment_id)
        if payment.order_id != order.id:
            raise DomainValidationException(
                "Payment does not belong to this order",
                field="payment_id",
                details={"payment_id": payment_id, "order_id": order_id},
            )
        if submitter_id is not None and order.buyer_id is not None and order.buyer_id != submitter_id:
            raise ForbiddenException("Order already belongs to another buyer")

        previous_order_status = order.submit_proof(submitter_id)
        if previous_order_status == OrderStatus.VERIFICATION:
            await self.proof_repository.supersede_pending(order.id, SUPERSEDED_REASON, now)

        proof = await self.proof_repository.create(PaymentProof.new(
            payment.id,
            order.id,
            note=note,
            amount=amount,
            proof_url=proof_url,
            submitted_by=submitter_id,
        ))
        order = await self.order_repository.update(order, expected_status=previous_order_status)

        previous_payment_status = payment.mark_awaiting_verification()
        payment = await self.payment_repository.update(payment, expected_status=previous_payment_status)

        self.events.append(ProofSubmitted(
            order_id=order.id,
            order_number=order.order_number,
            seller_id=order.seller_id,
            buyer_id=order.buyer_id,
            proof_id=proof.id,
            amount=amount,
        ))
        return proof, order, payment

    async def review_proof(
        self,
        proof_id: str,
        action: str,
        *,
        reviewer_id: Optional[str],
        rejection_reason: Optional[str] = None,
    ) -> tuple[PaymentProof, Order, Payment]:
        if action not in REVIEW_ACTIONS:
            raise DomainValidationException(
                f"action must be one of {', '.join(REVIEW_ACTIONS)}",
                field="action",
            )

        proof = await self.proof_repository.get_by_id(proof_id, for_update=True)
        if proof is None:
            raise ProofNotFoundException(proof_id)
        order = await self.order_repository.get_by_id(proof.order_id, for_update=True)
        if order is None:
            raise OrderNotFoundException(proof.order_id)
        payment = await self.payment_repository.get_by_id(proof.payment_id, for_update=True)
        if payment is None:
            raise PaymentNotFoundException(proof.payment_id)

        previous_proof_status = proof.status
        if action == "approve":
            proof.approve(reviewer_id)
            previous_order_status = order.approve_payment()
            previous_payment_status = payment.mark_paid()
        else:
            proof.reject(reviewer_id, rejection_reason)
            previous_order_status = order.reject_payment()
            previous_payment_status = payment.mark_rejected()

        proof = await self.proof_repository.update(proof, expected_status=previous_proof_status)
        order = await self.order_repository.update(order, expected_status=previous_order_status)
        payment = await self.payment_repository.update(payment, expected_status=previous_payment_status)

        if action == "approve":
            self.events.append(PaymentApproved(
                order_id=order.id,
                order_number=order.order_number,
                seller_id=order.seller_id,
                buyer_id=order.buyer_id,
                proof_id=proof.id,
            ))
        else:
            self.events.append(PaymentRejected(
                order_id=order.id,
                order_number=order.order_number,
                seller_id=order.seller_id,
                buyer_id=order.buyer_id,
                proof_id=proof.id,
                reason=rejection_reason,
            ))
        return proof, order, payment

    def clear_events(self) -> None:
        self.events.clear()
