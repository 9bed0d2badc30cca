from .beat import CELERY_BEAT_SCHEDULE
from .celery import MAINTENANCE_QUEUE, PUSH_QUEUE, celery_app

__all__ = ["celery_app", "CELERY_BEAT_SCHEDULE", "PUSH_QUEUE", "MAINTENANCE_QUEUE"]
