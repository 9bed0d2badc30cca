"""Periodic schedule run by ``celery beat``."""
from __future__ import annotations

from datetime import timedelta

from core.config import settings

CELERY_BEAT_SCHEDULE = {
    "cancel-expired-orders": {
        "task": "orders.cancel_expired",
        "schedule": timedelta(seconds=settings.escrow.auto_cancel_interval_seconds),
        # a tick that waits longer than one interval is superseded by the next
        "options": {"expires": settings.escrow.auto_cancel_interval_seconds},
    },
}
