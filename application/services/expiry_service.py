"""Payment-deadline sweep (application/services)."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

from application.dtos.orders import ExpirySweepResultDTO
from application.services.notification_service import NotificationApplicationService
from core.config import settings
from core.logging_config import get_logger
from domain.cancellation.service import close_requests_of_finished_orders
from domain.common.time import utc_now
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.service import OrderDomainService


logger = get_logger(__name__)


class OrderExpiryService:
    """
    Cancels awaiting_payment orders older than the payment deadline.

    The whole sweep is one conditional UPDATE, so overlapping runs (beat tick
    plus a manual trigger) cancel each order at most once.
    """

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        notifications: Optional[NotificationApplicationService] = None,
        *,
        deadline: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._uow_factory = uow_factory
        self._notifications = notifications
        self._deadline = deadline or timedelta(hours=settings.escrow.payment_deadline_hours)
        self._clock = clock

    async def cancel_expired_orders(self, now: Optional[datetime] = None) -> ExpirySweepResultDTO:
        now = now or self._clock()
        async with self._uow_factory() as uow:
            service = OrderDomainService(
                uow.order_repository,
                uow.payment_repository,
                min_product_price=settings.escrow.min_product_price,
                legacy_fee_rate=settings.escrow.legacy_fee_rate,
                cooldown_seconds=settings.escrow.order_cooldown_seconds,
            )
            cancelled = await service.cancel_expired(now, self._deadline)
            await close_requests_of_finished_orders(uow.cancellation_repository, cancelled)
            events = list(service.events)

        order_ids = [o.id for o in cancelled]
        logger.info(
            "expired_orders_cancelled",
            cancelled_count=len(order_ids),
            order_ids=order_ids,
            cutoff=(now - self._deadline).isoformat(),
        )
        if self._notifications is not None and events:
            await self._notifications.dispatch(events)
        return ExpirySweepResultDTO(cancelled_count=len(order_ids), order_ids=order_ids)
