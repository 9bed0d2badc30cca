"""
Notification repository interfaces.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .entity import DeviceToken, Notification


class NotificationRepository(ABC):

    @abstractmethod
    async def create(self, notification: Notification) -> Notification:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str, limit: int = 50) -> List[Notification]:
        """Newest first."""
        pass

    @abstractmethod
    async def count_unread(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        """False when the notification does not exist or belongs to someone else."""
        pass

    @abstractmethod
    async def mark_all_read(self, user_id: str) -> int:
        pass


class DeviceTokenRepository(ABC):

    @abstractmethod
    async def upsert(self, token: DeviceToken) -> DeviceToken:
        """Insert or re-activate ``token`` for its user."""
        pass

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[DeviceToken]:
        pass

    @abstractmethod
    async def list_active_for_user(self, user_id: str) -> List[DeviceToken]:
        pass

    @abstractmethod
    async def deactivate(self, tokens: List[str], user_id: Optional[str] = None) -> int:
        pass

    @abstractmethod
    async def list_active_user_ids(self) -> List[str]:
        """Distinct owners of at least one active token."""
        pass
