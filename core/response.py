"""
Response envelope shared by every endpoint::

    {"code": 0, "message": "...", "data": {...}, "error": null}

Errors carry ``data: null`` and an ``error`` block with the taxonomy type,
structured details, the offending field and the request id.
"""
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, field_serializer

from shared.codes import BusinessCode

T = TypeVar("T")


def to_utc_z(value: datetime) -> str:
    """ISO-8601 in UTC with a ``Z`` suffix; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class ErrorDetail(BaseModel):
    type: str
    details: Optional[dict] = None
    field: Optional[str] = None
    request_id: Optional[str] = None
    locale: Optional[str] = None
    message_key: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("timestamp")
    def _serialize_timestamp(self, timestamp: datetime) -> str:
        return to_utc_z(timestamp)


class Response(BaseModel, Generic[T]):
    code: int
    message: str
    data: Optional[T] = None
    error: Optional[ErrorDetail] = None


def success_response(data: Any = None, message: str = "Success", code: int = BusinessCode.SUCCESS) -> Response:
    return Response(code=int(code), message=message, data=data)


def error_response(
    code: int,
    message: str,
    error_type: str = "BusinessError",
    details: Optional[dict] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None,
    locale: Optional[str] = None,
    message_key: Optional[str] = None,
) -> Response:
    """Error envelope; ``message`` is expected to be already translated."""
    return Response(
        code=int(code),
        message=message,
        error=ErrorDetail(
            type=error_type,
            details=details,
            field=field,
            request_id=request_id,
            locale=locale,
            message_key=message_key,
        ),
    )
