"""
QRIS repository interfaces.
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import QrisSetting, QrisTransaction


class QrisSettingRepository(ABC):

    @abstractmethod
    async def create(self, setting: QrisSetting) -> QrisSetting:
        pass

    @abstractmethod
    async def get_active(self) -> Optional[QrisSetting]:
        pass

    @abstractmethod
    async def deactivate_all(self) -> int:
        """Deactivate every active setting, return the number of rows touched."""
        pass

    @abstractmethod
    async def delete(self, setting_id: str) -> bool:
        pass


class QrisTransactionRepository(ABC):

    @abstractmethod
    async def create(self, transaction: QrisTransaction) -> QrisTransaction:
        pass

    @abstractmethod
    async def get_for_user(self, transaction_id: str, user_id: str) -> Optional[QrisTransaction]:
        pass
