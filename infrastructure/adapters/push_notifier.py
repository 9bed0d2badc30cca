"""PushNotifier backed by the Celery ``notifications.send_push`` task."""
from __future__ import annotations

from typing import Any, Optional

from kombu.exceptions import OperationalError

from application.ports.notifications import PushNotifier
from domain.common.exceptions import UpstreamServiceException
from infrastructure.tasks.utils.dispatcher import TaskDispatcher


class CeleryPushNotifier(PushNotifier):
    def __init__(self, dispatcher: Optional[TaskDispatcher] = None):
        self.dispatcher = dispatcher or TaskDispatcher()

    async def send(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        try:
            self.dispatcher.send_push(user_id, title, body, data)
        except OperationalError as exc:
            raise UpstreamServiceException("celery_broker", f"Push could not be queued: {exc}") from exc
