"""
QRIS merchant settings and generated dynamic QRIS log.
"""
from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, Text, Index
from datetime import datetime, timezone

from .base import Base


class QrisSettingModel(Base):
    __tablename__ = "qris_settings"

    id = Column(String(36), primary_key=True)
    qris_data = Column(Text, nullable=False, comment="static merchant payload")
    merchant_name = Column(String(255), nullable=True)
    merchant_city = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_by = Column(String(64), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class QrisTransactionModel(Base):
    __tablename__ = "qris_transactions"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False)
    order_id = Column(String(36), nullable=True, index=True)
    amount = Column(BigInteger, nullable=False)
    generated_qris = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, default="pending")
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_qris_transactions_user_id", "user_id"),
    )
