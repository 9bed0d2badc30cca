"""Notification domain exports."""
from .entity import DeviceToken, Notification, NotificationType
from .repository import DeviceTokenRepository, NotificationRepository

__all__ = [
    "DeviceToken",
    "Notification",
    "NotificationType",
    "DeviceTokenRepository",
    "NotificationRepository",
]
