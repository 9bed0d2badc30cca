"""
Cancellation request repository interface.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entity import CancellationRequest, CancellationStatus


class CancellationRequestRepository(ABC):

    @abstractmethod
    async def create(self, request: CancellationRequest) -> CancellationRequest:
        """Insert a pending request; a second pending request for the order is a conflict."""
        pass

    @abstractmethod
    async def get_by_id(self, request_id: str, *, for_update: bool = False) -> Optional[CancellationRequest]:
        pass

    @abstractmethod
    async def get_pending_for_order(self, order_id: str) -> Optional[CancellationRequest]:
        pass

    @abstractmethod
    async def get_latest_for_order(self, order_id: str) -> Optional[CancellationRequest]:
        pass

    @abstractmethod
    async def update(
        self,
        request: CancellationRequest,
        *,
        expected_status: CancellationStatus,
    ) -> CancellationRequest:
        pass

    @abstractmethod
    async def list_by_requester(self, user_id: str) -> List[CancellationRequest]:
        pass

    @abstractmethod
    async def list_by_status(
        self,
        status: Optional[CancellationStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[CancellationRequest]:
        pass

    @abstractmethod
    async def close_pending_for_orders(self, order_ids: List[str], admin_notes: str, now: datetime) -> int:
        """Reject every pending request of ``order_ids``; returns how many were closed."""
        pass
