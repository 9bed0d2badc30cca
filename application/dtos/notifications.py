"""Notification DTOs."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from domain.notification.entity import NotificationType
from .base import DTOBase


class NotificationDTO(DTOBase):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    metadata: dict = Field(default_factory=dict)
    is_read: bool
    created_at: datetime


class UnreadCountDTO(DTOBase):
    count: int


class DeviceSubscribeDTO(DTOBase):
    token: str = Field(..., min_length=1, max_length=512)
    device_type: str = Field("web", max_length=32)


class DeviceUnsubscribeDTO(DTOBase):
    token: str = Field(..., min_length=1, max_length=512)


class DeviceDTO(DTOBase):
    id: str
    device_type: str
    created_at: datetime
    updated_at: datetime


class BroadcastDTO(DTOBase):
    # missing values are reported by the service as 400
    title: Optional[str] = Field(None, max_length=255)
    message: Optional[str] = None
    url: Optional[str] = None
    image: Optional[str] = None


class BroadcastResultDTO(DTOBase):
    recipients: int
    pushed: int
