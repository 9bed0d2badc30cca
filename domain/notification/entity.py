"""
In-app notifications and push device tokens.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from domain.common.time import ensure_utc, utc_now


class NotificationType(str, Enum):
    ORDER_CREATED = "order_created"
    PAYMENT_PROOF_SUBMITTED = "payment_proof_submitted"
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_REJECTED = "payment_rejected"
    ORDER_STATUS_CHANGED = "order_status_changed"
    CANCELLATION_REQUESTED = "cancellation_requested"
    CANCELLATION_APPROVED = "cancellation_approved"
    CANCELLATION_REJECTED = "cancellation_rejected"
    ORDER_CANCELLED = "order_cancelled"
    ORDER_AUTO_CANCELLED = "order_auto_cancelled"
    ORDER_DELIVERED = "order_delivered"
    ORDER_COMPLETED = "order_completed"
    FUND_RELEASED = "fund_released"
    BROADCAST = "broadcast"


@dataclass
class Notification:
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    is_read: bool = False
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not isinstance(self.type, NotificationType):
            self.type = NotificationType(self.type)
        if self.metadata is None:
            self.metadata = {}
        self.created_at = ensure_utc(self.created_at)

    @classmethod
    def new(
        cls,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        *,
        order_id: Optional[str] = None,
        order_number: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> "Notification":
        return cls(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            order_id=order_id,
            order_number=order_number,
            metadata=metadata or {},
        )


@dataclass
class DeviceToken:
    id: str
    user_id: str
    token: str
    device_type: str = "web"
    is_active: bool = True
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)

    @classmethod
    def new(cls, user_id: str, token: str, device_type: str = "web") -> "DeviceToken":
        return cls(id=str(uuid.uuid4()), user_id=user_id, token=token, device_type=device_type)
