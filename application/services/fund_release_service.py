"""Fund release ledger (application/services)."""
from __future__ import annotations

from typing import Callable, List, Optional

from application.dtos.fund_releases import (
    FundReleaseCompleteDTO,
    FundReleaseCompletedDTO,
    FundReleaseDTO,
)
from application.dtos.orders import OrderDTO
from application.services.notification_service import NotificationApplicationService
from core.logging_config import get_logger
from domain.cancellation.service import close_requests_of_finished_orders
from domain.common.exceptions import DomainValidationException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.fund_release.entity import FundReleaseStatus
from domain.fund_release.service import FundReleaseDomainService


logger = get_logger(__name__)


class FundReleaseApplicationService:

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        notifications: Optional[NotificationApplicationService] = None,
    ):
        self._uow_factory = uow_factory
        self._notifications = notifications

    async def list_releases(self, status: Optional[str] = "pending", skip: int = 0, limit: int = 100) -> List[FundReleaseDTO]:
        if status is None or status == "":
            status = FundReleaseStatus.PENDING.value
        if status == "all":
            status_filter = None
        else:
            try:
                status_filter = FundReleaseStatus(status)
            except ValueError:
                raise DomainValidationException(
                    f"Invalid fund release status: {status}",
                    field="status",
                    details={"allowed": [s.value for s in FundReleaseStatus] + ["all"]},
                )
        async with self._uow_factory(readonly=True) as uow:
            releases = await uow.fund_release_repository.list_by_status(status_filter, skip=skip, limit=limit)
            return [FundReleaseDTO.model_validate(r) for r in releases]

    async def complete_release(self, release_id: str, data: FundReleaseCompleteDTO, admin_id: str) -> FundReleaseCompletedDTO:
        async with self._uow_factory() as uow:
            service = FundReleaseDomainService(uow.order_repository, uow.fund_release_repository)
            release, order = await service.complete_release(
                release_id,
                admin_id=admin_id,
                transfer_proof=data.transfer_proof,
                transfer_note=data.transfer_note,
            )
            await close_requests_of_finished_orders(uow.cancellation_repository, [order])
            events = list(service.events)

        logger.info(
            "fund_release_completed",
            release_id=release.id,
            order_id=order.id,
            seller_id=release.seller_id,
            amount=release.amount,
            admin_id=admin_id,
        )
        if self._notifications is not None and events:
            await self._notifications.dispatch(events)
        return FundReleaseCompletedDTO(
            release=FundReleaseDTO.model_validate(release),
            order=OrderDTO.model_validate(order),
        )
