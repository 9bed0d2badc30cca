"""Single-process worker with an embedded beat scheduler, for local runs.

Deployments run worker and beat as separate ``celery -A infrastructure.tasks`` processes.
"""
from __future__ import annotations

from .config.celery import MAINTENANCE_QUEUE, PUSH_QUEUE, celery_app


def main() -> None:
    celery_app.worker_main(
        argv=["worker", "--beat", "--loglevel=INFO", f"--queues={PUSH_QUEUE},{MAINTENANCE_QUEUE}"]
    )


if __name__ == "__main__":
    main()
