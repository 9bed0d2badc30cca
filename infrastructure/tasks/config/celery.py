"""
Celery application for push delivery and order maintenance.

Two queues are declared: ``push`` for user-facing notifications (short,
latency sensitive) and ``maintenance`` for the periodic expiry sweep.
Redis from ``REDIS__URL`` is both broker and result backend.
"""
from __future__ import annotations

import os

from celery import Celery
from celery.signals import setup_logging, task_prerun, task_postrun
from kombu import Exchange, Queue
from structlog.contextvars import bind_contextvars, unbind_contextvars

from core.config import settings
from core.logging_config import configure_logging, get_logger
from .beat import CELERY_BEAT_SCHEDULE

TASK_PACKAGES = ("infrastructure.tasks.tasks",)

PUSH_QUEUE = "push"
MAINTENANCE_QUEUE = "maintenance"

logger = get_logger(__name__)

_broker = settings.redis.url or os.getenv("CELERY_BROKER_URL")

celery_app = Celery("rekber_escrow", broker=_broker, backend=settings.redis.url or os.getenv("CELERY_RESULT_BACKEND"))

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="Asia/Jakarta",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    # the expiry sweep is idempotent, results are only kept for inspection
    result_expires=6 * 3600,
    task_soft_time_limit=240,
    task_time_limit=300,
    task_queues=(
        Queue(PUSH_QUEUE, Exchange(PUSH_QUEUE), routing_key=PUSH_QUEUE),
        Queue(MAINTENANCE_QUEUE, Exchange(MAINTENANCE_QUEUE), routing_key=MAINTENANCE_QUEUE),
    ),
    task_default_queue=MAINTENANCE_QUEUE,
    task_routes={
        "notifications.*": {"queue": PUSH_QUEUE, "routing_key": PUSH_QUEUE},
        "orders.*": {"queue": MAINTENANCE_QUEUE, "routing_key": MAINTENANCE_QUEUE},
    },
    beat_schedule=CELERY_BEAT_SCHEDULE,
    imports=TASK_PACKAGES,
)

celery_app.autodiscover_tasks(packages=TASK_PACKAGES)


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    # replaces Celery's own handler so worker output uses the API's format
    configure_logging()


@task_prerun.connect
def _bind_task_context(task_id=None, task=None, **kwargs):
    bind_contextvars(task_id=task_id, task_name=getattr(task, "name", None))


@task_postrun.connect
def _unbind_task_context(**kwargs):
    unbind_contextvars("task_id", "task_name")


@celery_app.on_after_configure.connect
def _log_configuration(sender, **kwargs):
    logger.info(
        "celery_configured",
        broker_configured=bool(sender.conf.broker_url),
        queues=[q.name for q in sender.conf.task_queues],
        beat_entries=sorted(sender.conf.beat_schedule),
    )
