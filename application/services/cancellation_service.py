"""Seller cancellation requests and admin resolution (application/services)."""
from __future__ import annotations

from typing import Callable, List, Optional

from application.dtos.base import CurrentUser
from application.dtos.cancellations import (
    CancellationLookupDTO,
    CancellationRequestDTO,
    CancellationResolveDTO,
    CancellationResolvedDTO,
)
from application.dtos.orders import OrderCancellationResultDTO, OrderDTO
from application.services.notification_service import NotificationApplicationService
from core.config import settings
from core.logging_config import get_logger
from domain.cancellation.entity import CancellationStatus
from domain.cancellation.service import CancellationDomainService
from domain.common.exceptions import DomainValidationException
from domain.common.unit_of_work import AbstractUnitOfWork


logger = get_logger(__name__)


def parse_cancellation_status_filter(value: Optional[str]) -> Optional[CancellationStatus]:
    if value is None or value == "" or value == "all":
        return None
    try:
        return CancellationStatus(value)
    except ValueError:
        raise DomainValidationException(
            f"Invalid cancellation status: {value}",
            field="status",
            details={"allowed": [s.value for s in CancellationStatus] + ["all"]},
        )


class CancellationApplicationService:

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        notifications: Optional[NotificationApplicationService] = None,
    ):
        self._uow_factory = uow_factory
        self._notifications = notifications

    @staticmethod
    def _domain_service(uow: AbstractUnitOfWork) -> CancellationDomainService:
        return CancellationDomainService(
            uow.order_repository,
            uow.proof_repository,
            uow.cancellation_repository,
            reason_min_length=settings.escrow.cancellation_reason_min_length,
        )

    async def _publish(self, events: list) -> None:
        if self._notifications is not None and events:
            await self._notifications.dispatch(events)

    async def request_cancellation(self, order_id: str, seller_id: str, reason: Optional[str]) -> OrderCancellationResultDTO:
        """Cancel at once when no proof exists, otherwise queue a request for review."""
        async with self._uow_factory() as uow:
            service = self._domain_service(uow)
            outcome = await service.request_cancellation(order_id, seller_id, reason)
            events = list(service.events)

        if outcome.cancelled_immediately:
            message = "Order cancelled"
        else:
            message = "Cancellation request submitted for admin review"
        logger.info(
            "order_cancellation_requested",
            order_id=order_id,
            seller_id=seller_id,
            cancelled_immediately=outcome.cancelled_immediately,
            request_id=outcome.request.id if outcome.request else None,
        )
        await self._publish(events)
        return OrderCancellationResultDTO(
            cancelled_immediately=outcome.cancelled_immediately,
            message=message,
            order=OrderDTO.model_validate(outcome.order),
            request_id=outcome.request.id if outcome.request else None,
        )

    async def get_request_for_order(self, order_id: str, user: CurrentUser) -> CancellationLookupDTO:
        async with self._uow_factory(readonly=True) as uow:
            request = await self._domain_service(uow).get_request_for_order(
                order_id, user.id, is_admin=user.is_admin
            )
        if request is None:
            return CancellationLookupDTO(has_request=False, request=None)
        return CancellationLookupDTO(has_request=True, request=CancellationRequestDTO.model_validate(request))

    async def list_my_requests(self, user_id: str) -> List[CancellationRequestDTO]:
        async with self._uow_factory(readonly=True) as uow:
            requests = await uow.cancellation_repository.list_by_requester(user_id)
            return [CancellationRequestDTO.model_validate(r) for r in requests]

    async def list_requests(self, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[CancellationRequestDTO]:
        status_filter = parse_cancellation_status_filter(status)
        async with self._uow_factory(readonly=True) as uow:
            requests = await uow.cancellation_repository.list_by_status(status_filter, skip=skip, limit=limit)
            return [CancellationRequestDTO.model_validate(r) for r in requests]

    async def resolve_request(self, request_id: str, data: CancellationResolveDTO, reviewer_id: str) -> CancellationResolvedDTO:
        async with self._uow_factory() as uow:
            service = self._domain_service(uow)
            request, order = await service.resolve_request(
                request_id,
                data.action,
                reviewer_id=reviewer_id,
                admin_notes=data.admin_notes,
            )
            events = list(service.events)

        logger.info(
            "cancellation_request_resolved",
            request_id=request.id,
            order_id=order.id,
            action=data.action,
            reviewer_id=reviewer_id,
        )
        await self._publish(events)
        return CancellationResolvedDTO(
            request=CancellationRequestDTO.model_validate(request),
            order=OrderDTO.model_validate(order),
        )
