"""Business exceptions raised by the domain, application and repository layers.

Each class declares its default business code and taxonomy name; the API
layer only renders them (``core.exceptions``), the domain never imports core.
"""
from __future__ import annotations

from typing import Optional

from shared.codes import BusinessCode


class BusinessException(Exception):
    code: int = BusinessCode.BUSINESS_ERROR
    error_type: str = "BusinessError"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[int] = None,
        error_type: Optional[str] = None,
        details: Optional[dict] = None,
        field: Optional[str] = None,
        message_key: Optional[str] = None,
        format_params: Optional[dict] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if error_type is not None:
            self.error_type = error_type
        self.details = details
        self.field = field
        self.message_key = message_key
        self.format_params = format_params

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={int(self.code)}, message={self.message!r})"


class DomainValidationException(BusinessException):
    """Missing or malformed input."""

    code = BusinessCode.PARAM_ERROR
    error_type = "ValidationError"


class ForbiddenException(BusinessException):
    """Wrong role, or not a party to the resource."""

    code = BusinessCode.FORBIDDEN
    error_type = "Forbidden"

    def __init__(self, message: str = "Forbidden", **kwargs):
        super().__init__(message, **kwargs)


class ResourceNotFoundException(BusinessException):
    code = BusinessCode.NOT_FOUND
    error_type = "NotFound"

    def __init__(self, resource: str, identifier: Optional[str] = None, *, code: Optional[int] = None):
        details = {"resource": resource}
        if identifier is not None:
            details["id"] = identifier
        super().__init__(f"{resource} not found", code=code, details=details)


class StateConflictException(BusinessException):
    """A transition guard failed or a concurrent writer got there first."""

    code = BusinessCode.STATE_CONFLICT
    error_type = "StateConflict"


class UpstreamServiceException(BusinessException):
    """Message broker or third-party provider failure."""

    code = BusinessCode.UPSTREAM_ERROR
    error_type = "UpstreamError"

    def __init__(self, service: str, message: str = "Upstream service failure"):
        super().__init__(message, details={"service": service})
