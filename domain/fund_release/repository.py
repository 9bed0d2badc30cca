"""
Fund release repository interface.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .entity import FundRelease, FundReleaseStatus


class FundReleaseRepository(ABC):

    @abstractmethod
    async def create(self, release: FundRelease) -> FundRelease:
        pass

    @abstractmethod
    async def get_by_id(self, release_id: str, *, for_update: bool = False) -> Optional[FundRelease]:
        pass

    @abstractmethod
    async def get_by_order_id(self, order_id: str) -> Optional[FundRelease]:
        pass

    @abstractmethod
    async def update(self, release: FundRelease, *, expected_status: FundReleaseStatus) -> FundRelease:
        pass

    @abstractmethod
    async def list_by_status(
        self,
        status: Optional[FundReleaseStatus] = FundReleaseStatus.PENDING,
        skip: int = 0,
        limit: int = 100,
    ) -> List[FundRelease]:
        """Oldest first."""
        pass
