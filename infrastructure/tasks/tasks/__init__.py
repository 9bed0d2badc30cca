"""Task modules; importing them registers the tasks with the Celery app."""
from . import notifications  # noqa: F401
from . import orders  # noqa: F401
