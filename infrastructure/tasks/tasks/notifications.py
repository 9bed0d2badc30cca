"""Push notification delivery tasks."""
from __future__ import annotations

from functools import partial
from typing import Any, Dict, Optional

from celery import shared_task

from core.config import settings
from core.logging_config import get_logger
from infrastructure.database import isolated_session_factory
from infrastructure.external.api_clients import APIError, AuthenticationError, FcmPushClient, PushResult
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from ..utils.base_task import BaseTask

logger = get_logger(__name__)


async def deliver_push(
    uow_factory,
    client: FcmPushClient,
    user_id: str,
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None,
) -> PushResult:
    """Send to the user's active tokens and deactivate the ones FCM rejects."""
    async with uow_factory(readonly=True) as uow:
        devices = await uow.device_token_repository.list_active_for_user(user_id)
    tokens = [d.token for d in devices]
    if not tokens:
        logger.info("push_skipped_no_devices", user_id=user_id)
        return PushResult()

    result = await client.send(tokens, title, body, data)
    if result.invalid_tokens:
        async with uow_factory() as uow:
            removed = await uow.device_token_repository.deactivate(result.invalid_tokens)
        logger.info("push_tokens_deactivated", user_id=user_id, count=removed)
    return result


@shared_task(
    name="notifications.send_push",
    bind=True,
    base=BaseTask,
    autoretry_for=(APIError,),
    dont_autoretry_for=(AuthenticationError,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    retry_kwargs={"max_retries": 3},
)
def send_push(self, user_id: str, title: str, body: str, data: Optional[Dict[str, Any]] = None) -> dict:
    if not settings.push.enabled or not settings.push.server_key:
        logger.debug("push_disabled", user_id=user_id)
        return {"sent": 0, "skipped": True}

    async def _run() -> PushResult:
        async with isolated_session_factory() as session_factory:
            async with FcmPushClient(
                server_key=settings.push.server_key,
                endpoint=settings.push.endpoint,
                timeout=settings.push.timeout,
                max_retries=settings.push.max_retries,
            ) as client:
                return await deliver_push(
                    partial(SQLAlchemyUnitOfWork, session_factory),
                    client,
                    user_id,
                    title,
                    body,
                    data,
                )

    result = self.run_async(_run())
    return {"sent": result.success, "failed": result.failure, "invalid": len(result.invalid_tokens)}
