"""
Order repository interface.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entity import Order, OrderStatus


class OrderRepository(ABC):
    """Order persistence; every write is conditional on the status read earlier."""

    @abstractmethod
    async def create(self, order: Order) -> Order:
        pass

    @abstractmethod
    async def get_by_id(self, order_id: str, *, for_update: bool = False) -> Optional[Order]:
        """Fetch an order; ``for_update`` locks the row for the current transaction."""
        pass

    @abstractmethod
    async def get_by_number(self, order_number: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def update(self, order: Order, *, expected_status: OrderStatus) -> Order:
        """
        Persist ``order`` only if the stored status still equals ``expected_status``.

        Raises StateConflictException when another writer got there first.
        """
        pass

    @abstractmethod
    async def list_by_seller(self, seller_id: str, skip: int = 0, limit: int = 100) -> List[Order]:
        pass

    @abstractmethod
    async def list_all(
        self,
        status: Optional[OrderStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Order]:
        pass

    @abstractmethod
    async def get_latest_created_at_by_seller(self, seller_id: str) -> Optional[datetime]:
        pass

    @abstractmethod
    async def cancel_expired(self, cutoff: datetime, reason: str, now: datetime) -> List[Order]:
        """
        Atomically cancel every awaiting_payment order created before ``cutoff``.

        Returns the orders that were cancelled by this call.
        """
        pass

    @abstractmethod
    async def count_by_status(self, seller_id: Optional[str] = None) -> dict[OrderStatus, int]:
        """Order counts per status, optionally for one seller."""
        pass

    @abstractmethod
    async def sum_total_by_status(self, status: OrderStatus, seller_id: Optional[str] = None) -> int:
        pass
