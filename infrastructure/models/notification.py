"""
In-app notifications and push device tokens.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON, Index
from datetime import datetime, timezone

from .base import Base


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False)
    type = Column(String(64), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    order_id = Column(String(36), nullable=True)
    order_number = Column(String(32), nullable=True)
    # "metadata" is reserved on declarative classes
    extra_metadata = Column("metadata", JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
        Index("ix_notifications_user_created_at", "user_id", "created_at"),
    )


class DeviceTokenModel(Base):
    __tablename__ = "fcm_tokens"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    token = Column(String(512), unique=True, nullable=False)
    device_type = Column(String(32), nullable=False, default="web")
    is_active = Column(Boolean, nullable=False, default=True)
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
