"""
Payments and buyer-submitted payment proofs.
"""
from sqlalchemy import Column, String, BigInteger, DateTime, Text, Index, ForeignKey
from datetime import datetime, timezone

from .base import Base


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    amount = Column(BigInteger, nullable=False)
    status = Column(
        String(32),
        nullable=False,
        default="pending",
        index=True,
        comment="pending/awaiting_verification/paid/rejected",
    )
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self):
        return f"<PaymentModel(id='{self.id}', order_id='{self.order_id}', status='{self.status}')>"


class PaymentProofModel(Base):
    __tablename__ = "payment_proofs"

    id = Column(String(36), primary_key=True)
    payment_id = Column(String(36), ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(BigInteger, nullable=True)
    proof_url = Column(String(1024), nullable=True)
    note = Column(Text, nullable=True)

    status = Column(String(32), nullable=False, default="pending", comment="pending/approved/rejected")
    rejection_reason = Column(Text, nullable=True)
    reviewed_by = Column(String(64), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    submitted_by = Column(String(64), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_payment_proofs_status_created_at", "status", "created_at"),
    )

    def __repr__(self):
        return f"<PaymentProofModel(id='{self.id}', order_id='{self.order_id}', status='{self.status}')>"
