"""Celery wiring: the app, its schedule and the task modules it runs.

Start workers with ``celery -A infrastructure.tasks worker -Q push,maintenance``
and the scheduler with ``celery -A infrastructure.tasks beat``.
"""
from .config.celery import celery_app
from .utils.dispatcher import TaskDispatcher

__all__ = ["celery_app", "TaskDispatcher"]
