"""
Cancellation request table.
"""
from sqlalchemy import Column, String, DateTime, Text, Index, ForeignKey, text
from datetime import datetime, timezone

from .base import Base


class CancellationRequestModel(Base):
    __tablename__ = "cancellation_requests"

    id = Column(String(36), primary_key=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    requested_by = Column(String(64), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, default="pending", comment="pending/approved/rejected")

    reviewed_by = Column(String(64), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    admin_notes = Column(Text, nullable=True)

    requested_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # at most one pending request per order
    __table_args__ = (
        Index(
            "uq_cancellation_requests_pending_order",
            "order_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    def __repr__(self):
        return f"<CancellationRequestModel(id='{self.id}', order_id='{self.order_id}', status='{self.status}')>"
