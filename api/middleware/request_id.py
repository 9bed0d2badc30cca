"""
Correlation id for every request.

The id is taken from ``X-Request-ID`` when the caller (or the ingress) sent
one, generated otherwise, bound into the structlog context together with the
client address and echoed back on the response.
"""
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware


def client_address(request: Request) -> str:
    """Left-most ``X-Forwarded-For`` hop, ``X-Real-IP``, then the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    return request.headers.get("X-Real-IP") or (request.client.host if request.client else "unknown")


class RequestIDMiddleware(BaseHTTPMiddleware):
    HEADER_NAME = "X-Request-ID"
    MAX_INBOUND_LENGTH = 128

    async def dispatch(self, request: Request, call_next):
        inbound = request.headers.get(self.HEADER_NAME, "")
        request_id = inbound if 0 < len(inbound) <= self.MAX_INBOUND_LENGTH else uuid.uuid4().hex
        client_ip = client_address(request)

        request.state.request_id = request_id
        request.state.client_ip = client_ip

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            client_ip=client_ip,
            method=request.method,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()
        response.headers[self.HEADER_NAME] = request_id
        return response
