"""Small dispatching helpers to decouple Celery from callers."""
from __future__ import annotations

from typing import Any, Dict, Optional

from ..config.celery import celery_app


SEND_PUSH_TASK = "notifications.send_push"
CANCEL_EXPIRED_TASK = "orders.cancel_expired"


class TaskDispatcher:
    """Internal facade used by higher layers to schedule tasks."""

    def send_push(self, user_id: str, title: str, body: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Fire-and-forget push to every active device of ``user_id``."""
        self.enqueue(
            SEND_PUSH_TASK,
            kwargs={"user_id": user_id, "title": title, "body": body, "data": data or {}},
        )

    def cancel_expired_orders(self) -> None:
        self.enqueue(CANCEL_EXPIRED_TASK)

    def enqueue(self, task_name: str, *, args: tuple | None = None, kwargs: Dict[str, Any] | None = None) -> None:
        """Generic escape hatch for scheduling arbitrary tasks by name."""
        celery_app.send_task(task_name, args=args or (), kwargs=kwargs or {})
