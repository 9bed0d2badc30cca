"""Payment and payment-proof DTOs."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from domain.order.entity import OrderStatus
from domain.payment.entity import PaymentStatus, ProofStatus
from .base import DTOBase


class PaymentDTO(DTOBase):
    id: str
    order_id: str
    amount: int
    status: PaymentStatus
    created_at: datetime
    updated_at: datetime


class PaymentProofDTO(DTOBase):
    id: str
    payment_id: str
    order_id: str
    amount: Optional[int] = None
    proof_url: Optional[str] = None
    note: Optional[str] = None
    status: ProofStatus
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    submitted_by: Optional[str] = None
    created_at: datetime


class PaymentWithProofsDTO(PaymentDTO):
    payment_proofs: list[PaymentProofDTO] = Field(default_factory=list)


class ProofSubmitDTO(DTOBase):
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
    amount: Optional[int] = Field(None, gt=0)
    proof_url: Optional[str] = Field(None, max_length=1024)
    note: Optional[str] = None


class ProofReviewDTO(DTOBase):
    action: str = Field(..., description="approve | reject")
    rejection_reason: Optional[str] = None


class ProofResultDTO(DTOBase):
    proof: PaymentProofDTO
    order_status: OrderStatus
    payment_status: PaymentStatus
