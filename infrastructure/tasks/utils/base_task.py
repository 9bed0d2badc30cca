"""Base class shared by the escrow Celery tasks."""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable

from celery import Task

from core.logging_config import get_logger

logger = get_logger(__name__)


class BaseTask(Task):
    """Runs coroutine bodies and logs task outcomes.

    Arguments are never logged since push payloads carry user-facing text.
    """

    abstract = True

    def run_async(self, coro: Awaitable[Any]) -> Any:
        """Drive ``coro`` on a fresh event loop owned by this task invocation."""
        return asyncio.run(coro)

    def on_failure(self, exc, task_id, args, kwargs, einfo):  # type: ignore[override]
        logger.error(
            "task_failed",
            task_name=self.name,
            task_id=task_id,
            retries=self.request.retries,
            error=repr(exc),
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_retry(self, exc, task_id, args, kwargs, einfo):  # type: ignore[override]
        logger.warning("task_retrying", task_name=self.name, task_id=task_id, attempt=self.request.retries + 1)
        super().on_retry(exc, task_id, args, kwargs, einfo)
