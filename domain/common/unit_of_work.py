"""Abstract Unit of Work."""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.cancellation.repository import CancellationRequestRepository
from domain.fund_release.repository import FundReleaseRepository
from domain.notification.repository import DeviceTokenRepository, NotificationRepository
from domain.order.repository import OrderRepository
from domain.payment.repository import PaymentProofRepository, PaymentRepository
from domain.qris.repository import QrisSettingRepository, QrisTransactionRepository

REPOSITORY_ATTRIBUTES = (
    "order_repository",
    "payment_repository",
    "proof_repository",
    "cancellation_repository",
    "fund_release_repository",
    "qris_setting_repository",
    "qris_transaction_repository",
    "notification_repository",
    "device_token_repository",
)


class AbstractUnitOfWork(ABC):
    """One use case, one transaction.

    Leaving the ``async with`` block normally commits (unless the unit is
    read-only); leaving it with an exception rolls everything back, so a
    multi-entity transition is either fully applied or not at all.
    """

    order_repository: OrderRepository
    payment_repository: PaymentRepository
    proof_repository: PaymentProofRepository
    cancellation_repository: CancellationRequestRepository
    fund_release_repository: FundReleaseRepository
    qris_setting_repository: QrisSettingRepository
    qris_transaction_repository: QrisTransactionRepository
    notification_repository: NotificationRepository
    device_token_repository: DeviceTokenRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self._readonly = readonly
        self._committed = False
        self._detach_repositories()

    def _detach_repositories(self) -> None:
        for name in REPOSITORY_ATTRIBUTES:
            setattr(self, name, None)

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            await self.rollback()
        elif not self._readonly and not self._committed:
            await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...
