"""SQLAlchemy Unit of Work."""
from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.database import AsyncSessionLocal
from infrastructure.repositories.cancellation_repository import SQLAlchemyCancellationRequestRepository
from infrastructure.repositories.fund_release_repository import SQLAlchemyFundReleaseRepository
from infrastructure.repositories.notification_repository import (
    SQLAlchemyDeviceTokenRepository,
    SQLAlchemyNotificationRepository,
)
from infrastructure.repositories.order_repository import SQLAlchemyOrderRepository
from infrastructure.repositories.payment_repository import (
    SQLAlchemyPaymentProofRepository,
    SQLAlchemyPaymentRepository,
)
from infrastructure.repositories.qris_repository import (
    SQLAlchemyQrisSettingRepository,
    SQLAlchemyQrisTransactionRepository,
)

REPOSITORY_CLASSES = {
    "order_repository": SQLAlchemyOrderRepository,
    "payment_repository": SQLAlchemyPaymentRepository,
    "proof_repository": SQLAlchemyPaymentProofRepository,
    "cancellation_repository": SQLAlchemyCancellationRequestRepository,
    "fund_release_repository": SQLAlchemyFundReleaseRepository,
    "qris_setting_repository": SQLAlchemyQrisSettingRepository,
    "qris_transaction_repository": SQLAlchemyQrisTransactionRepository,
    "notification_repository": SQLAlchemyNotificationRepository,
    "device_token_repository": SQLAlchemyDeviceTokenRepository,
}


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """Every repository of the unit shares one ``AsyncSession``.

    The session autobegins on the first statement. Read-only units never
    commit; closing the session rolls back whatever they opened.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        *,
        readonly: bool = False,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        self.session = self._session_factory()
        for name, repository_cls in REPOSITORY_CLASSES.items():
            setattr(self, name, repository_cls(self.session))
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            if self.session is not None:
                await self.session.close()
                self.session = None
            self._detach_repositories()

    async def commit(self) -> None:
        if self._readonly:
            return
        await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
