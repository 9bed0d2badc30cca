"""
Fund release ledger table.
"""
from sqlalchemy import Column, String, BigInteger, DateTime, Text, Index, ForeignKey
from datetime import datetime, timezone

from .base import Base


class FundReleaseModel(Base):
    __tablename__ = "fund_releases"

    id = Column(String(36), primary_key=True)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        comment="one release per order",
    )
    seller_id = Column(String(64), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    status = Column(String(32), nullable=False, default="pending", comment="pending/completed")

    transferred_at = Column(DateTime(timezone=True), nullable=True)
    transferred_by = Column(String(64), nullable=True)
    transfer_proof = Column(String(1024), nullable=True)
    transfer_note = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_fund_releases_status_created_at", "status", "created_at"),
    )

    def __repr__(self):
        return f"<FundReleaseModel(id='{self.id}', order_id='{self.order_id}', status='{self.status}')>"
