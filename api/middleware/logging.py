"""
Access logging with timing.

Emits ``request_started`` and ``request_finished`` (level by status class)
for every API call. Bodies are logged only when enabled, truncated to
``LOG_REQUEST_BODY_MAX_BYTES`` and with credentials, transfer proofs and
QRIS payloads masked.
"""
import json
import time
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.config import settings
from core.logging_config import get_logger

logger = get_logger(__name__)

QUIET_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})
MASKED_KEYS = frozenset({"token", "server_key", "authorization", "password", "transfer_proof", "proof_url"})
# payloads that are long and only useful as a prefix
TRUNCATED_KEYS = frozenset({"qris_data", "qris_string", "generated_qris"})
_BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def mask_payload(data: Any) -> Any:
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if lowered in MASKED_KEYS:
                masked[key] = "***"
            elif lowered in TRUNCATED_KEYS and isinstance(value, str):
                masked[key] = f"{value[:12]}...({len(value)})"
            else:
                masked[key] = mask_payload(value)
        return masked
    if isinstance(data, list):
        return [mask_payload(item) for item in data]
    return data


class LoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, *, log_bodies: bool | None = None, max_body_bytes: int | None = None):
        super().__init__(app)
        self.log_bodies = settings.LOG_REQUEST_BODY_ENABLE_BY_DEFAULT and settings.DEBUG if log_bodies is None else log_bodies
        self.max_body_bytes = max_body_bytes or settings.LOG_REQUEST_BODY_MAX_BYTES

    async def dispatch(self, request: Request, call_next):
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        context = {"query": dict(request.query_params)} if request.query_params else {}
        if request.method in _BODY_METHODS and self._wants_body(request):
            body = await self._body_snippet(request)
            if body is not None:
                context["body"] = body
        logger.info("request_started", **context)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        status = response.status_code
        log = logger.error if status >= 500 else logger.warning if status >= 400 else logger.info
        log("request_finished", status_code=status, duration_ms=duration_ms)
        response.headers["X-Process-Time"] = f"{duration_ms / 1000:.3f}"
        return response

    def _wants_body(self, request: Request) -> bool:
        # X-Log-Body overrides the configured default per request
        override = (request.headers.get("X-Log-Body") or "").lower()
        if override in {"1", "true", "yes"}:
            return True
        if override in {"0", "false", "no"}:
            return False
        return self.log_bodies

    async def _body_snippet(self, request: Request) -> Any:
        raw = await request.body()
        if not raw:
            return None
        text = raw[: self.max_body_bytes].decode("utf-8", errors="replace")
        if "application/json" not in request.headers.get("content-type", "").lower():
            return text
        try:
            return mask_payload(json.loads(text))
        except ValueError:
            return text
