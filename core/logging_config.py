"""
structlog setup for the API process and the Celery workers.

Both structlog loggers and stdlib loggers (uvicorn, SQLAlchemy, Celery) are
rendered by one ``ProcessorFormatter`` so every line carries the same keys:
``timestamp``, ``level``, ``logger``, ``service``, ``environment`` plus any
context bound through ``structlog.contextvars`` (request id, task id).
"""
import json
import logging
from typing import Any, List, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, add_log_level
from structlog.stdlib import ProcessorFormatter, add_logger_name
from structlog.typing import EventDict

from core.config import settings

NOISY_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "celery.redirected")


def add_service_context(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", settings.PROJECT_NAME)
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    return event_dict


def _json_dumps(obj, default=None, **kwargs):
    # keep Indonesian text and rupiah symbols readable in the log stream
    return json.dumps(obj, ensure_ascii=False, default=default, **kwargs)


def _renderer(json_logs: bool) -> Any:
    if json_logs:
        return JSONRenderer(serializer=_json_dumps)
    return ConsoleRenderer(colors=True)


def _level(level: Optional[str]) -> int:
    name = level or settings.LOG_LEVEL
    if name:
        resolved = logging.getLevelName(name.upper())
        if isinstance(resolved, int):
            return resolved
    return logging.DEBUG if settings.DEBUG else logging.INFO


def _shared_processors() -> List[Any]:
    return [
        merge_contextvars,
        add_log_level,
        add_logger_name,
        add_service_context,
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(json_logs: Optional[bool] = None, level: Optional[str] = None) -> None:
    """Install the structlog chain on the root logger.

    ``json_logs`` defaults to JSON lines outside DEBUG; ``level`` overrides
    ``LOG_LEVEL``. Safe to call again, e.g. from a Celery worker hook.
    """
    if json_logs is None:
        json_logs = not settings.DEBUG
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[ProcessorFormatter.remove_processors_meta, _renderer(json_logs)],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level(level))

    quiet = logging.WARNING if not settings.DEBUG else logging.NOTSET
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


configure_logging()
