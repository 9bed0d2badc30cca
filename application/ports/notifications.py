"""
Push notification port.

The application only depends on this contract; the infrastructure decides
whether a push goes out inline or through the task queue.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol


class PushNotifier(Protocol):
    """Delivers a push message to every active device of a user."""

    async def send(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None: ...


class NullPushNotifier:
    """Used when push delivery is disabled."""

    async def send(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        return None
