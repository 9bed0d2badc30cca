"""
Order table mapping; business rules live in domain.order.entity.Order.
"""
from sqlalchemy import Column, String, BigInteger, DateTime, Text, Index, CheckConstraint
from datetime import datetime, timezone

from .base import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True)
    order_number = Column(String(32), unique=True, nullable=False, comment="ORD-YYYYMMDD-NNNNN")
    seller_id = Column(String(64), nullable=False, index=True)
    buyer_id = Column(String(64), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # IDR, integer rupiah
    product_price = Column(BigInteger, nullable=False)
    platform_fee = Column(BigInteger, nullable=False)
    total_amount = Column(BigInteger, nullable=False)

    status = Column(
        String(32),
        nullable=False,
        default="awaiting_payment",
        index=True,
        comment="awaiting_payment/verification/paid/processing/shipped/delivered/completed/cancelled",
    )

    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(String(64), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

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

    __table_args__ = (
        Index("ix_orders_status_created_at", "status", "created_at"),
        Index("ix_orders_seller_created_at", "seller_id", "created_at"),
        CheckConstraint("total_amount = product_price + platform_fee", name="ck_orders_total_amount"),
    )

    def __repr__(self):
        return f"<OrderModel(id='{self.id}', order_number='{self.order_number}', status='{self.status}')>"
