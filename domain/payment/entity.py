"""
Payment and payment-proof entities.

A Payment is created with its order and tracks whether the buyer's transfer
has been verified. PaymentProofs are the buyer-submitted evidence an admin
reviews.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException, StateConflictException
from domain.common.time import ensure_utc, utc_now
from shared.codes.escrow_codes import EscrowCode


class PaymentStatus(str, Enum):
    PENDING = "pending"
    AWAITING_VERIFICATION = "awaiting_verification"
    PAID = "paid"
    REJECTED = "rejected"


class ProofStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


SUPERSEDED_REASON = "superseded"

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.AWAITING_VERIFICATION},
    PaymentStatus.AWAITING_VERIFICATION: {
        PaymentStatus.AWAITING_VERIFICATION,
        PaymentStatus.PAID,
        PaymentStatus.REJECTED,
    },
    PaymentStatus.REJECTED: {PaymentStatus.AWAITING_VERIFICATION},
    PaymentStatus.PAID: set(),
}


@dataclass
class Payment:
    id: str
    order_id: str
    amount: int
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not isinstance(self.status, PaymentStatus):
            self.status = PaymentStatus(self.status)
        if self.amount <= 0:
            raise DomainValidationException(f"Payment amount must be positive: {self.amount}", field="amount")
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)

    @classmethod
    def new(cls, order_id: str, amount: int) -> "Payment":
        return cls(id=str(uuid.uuid4()), order_id=order_id, amount=amount)

    def _move(self, target: PaymentStatus) -> PaymentStatus:
        if target not in _PAYMENT_TRANSITIONS[self.status]:
            raise StateConflictException(
                f"Payment cannot move from {self.status.value} to {target.value}",
                details={"payment_id": self.id, "status": self.status.value},
            )
        previous = self.status
        self.status = target
        self.updated_at = utc_now()
        return previous

    def mark_awaiting_verification(self) -> PaymentStatus:
        return self._move(PaymentStatus.AWAITING_VERIFICATION)

    def mark_paid(self) -> PaymentStatus:
        return self._move(PaymentStatus.PAID)

    def mark_rejected(self) -> PaymentStatus:
        return self._move(PaymentStatus.REJECTED)


@dataclass
class PaymentProof:
    id: str
    payment_id: str
    order_id: str
    note: Optional[str] = None
    amount: Optional[int] = None
    proof_url: Optional[str] = None
    status: ProofStatus = ProofStatus.PENDING
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    submitted_by: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not isinstance(self.status, ProofStatus):
            self.status = ProofStatus(self.status)
        self.created_at = ensure_utc(self.created_at)
        self.reviewed_at = ensure_utc(self.reviewed_at)

    @classmethod
    def new(
        cls,
        payment_id: str,
        order_id: str,
        *,
        note: Optional[str] = None,
        amount: Optional[int] = None,
        proof_url: Optional[str] = None,
        submitted_by: Optional[str] = None,
    ) -> "PaymentProof":
        return cls(
            id=str(uuid.uuid4()),
            payment_id=payment_id,
            order_id=order_id,
            note=note,
            amount=amount,
            proof_url=proof_url,
            submitted_by=submitted_by,
        )

    def _ensure_pending(self) -> None:
        if self.status != ProofStatus.PENDING:
            raise StateConflictException(
                f"Payment proof already {self.status.value}",
                code=EscrowCode.PROOF_ALREADY_REVIEWED,
                details={"proof_id": self.id, "status": self.status.value},
            )

    def approve(self, reviewer_id: Optional[str]) -> None:
        self._ensure_pending()
        self.status = ProofStatus.APPROVED
        self.reviewed_by = reviewer_id
        self.reviewed_at = utc_now()

    def reject(self, reviewer_id: Optional[str], reason: Optional[str]) -> None:
        self._ensure_pending()
        self.status = ProofStatus.REJECTED
        self.rejection_reason = reason
        self.reviewed_by = reviewer_id
        self.reviewed_at = utc_now()
