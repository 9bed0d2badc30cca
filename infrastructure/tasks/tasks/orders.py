"""Periodic order maintenance tasks."""
from __future__ import annotations

from functools import partial

from celery import shared_task

from application.services.expiry_service import OrderExpiryService
from application.services.notification_service import NotificationApplicationService
from core.config import settings
from core.logging_config import get_logger
from infrastructure.adapters.push_notifier import CeleryPushNotifier
from infrastructure.database import isolated_session_factory
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from ..utils.base_task import BaseTask

logger = get_logger(__name__)


async def _sweep():
    async with isolated_session_factory() as session_factory:
        uow_factory = partial(SQLAlchemyUnitOfWork, session_factory)
        notifications = NotificationApplicationService(
            uow_factory,
            CeleryPushNotifier() if settings.push.enabled else None,
            list_limit=settings.escrow.notification_list_limit,
        )
        return await OrderExpiryService(uow_factory, notifications).cancel_expired_orders()


@shared_task(name="orders.cancel_expired", bind=True, base=BaseTask)
def cancel_expired_orders(self) -> dict:
    """Hourly sweep; a failed run is picked up by the next beat tick."""
    result = self.run_async(_sweep())
    logger.info(
        "order_expiry_sweep_finished",
        cancelled_count=result.cancelled_count,
        order_ids=result.order_ids,
    )
    return result.model_dump()
