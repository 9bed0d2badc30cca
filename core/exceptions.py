"""
HTTP-facing exceptions and the global exception handlers.

Every failure leaves the API in the same envelope (see ``core.response``);
the HTTP status comes from the business code itself.
"""
import traceback
import uuid
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.i18n import get_locale, t
from core.logging_config import get_logger
from core.response import error_response
from domain.common.exceptions import BusinessException
from shared.codes import BusinessCode, http_status_for

logger = get_logger(__name__)


class UnauthorizedException(BusinessException):
    """Missing or invalid bearer token."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            code=BusinessCode.UNAUTHORIZED,
            message=message,
            error_type="Unauthorized",
            message_key="auth.unauthorized",
        )


class TokenExpiredException(BusinessException):
    def __init__(self):
        super().__init__(
            code=BusinessCode.TOKEN_EXPIRED,
            message="Token expired",
            error_type="TokenExpired",
            message_key="auth.token.expired",
        )


class RateLimitException(BusinessException):
    """Too many requests; ``retry_after`` is in seconds."""

    def __init__(
        self,
        retry_after: Optional[int] = None,
        message: str = "Too many requests, please try again later",
        *,
        code: int = BusinessCode.TOO_MANY_REQUESTS,
    ):
        super().__init__(
            code=code,
            message=message,
            error_type="RateLimit",
            details={"retry_after": retry_after} if retry_after is not None else None,
            message_key="rate.limited",
        )
        self.retry_after = retry_after


# Starlette/FastAPI HTTPException status -> business code
_CODE_BY_HTTP_STATUS = {
    401: BusinessCode.UNAUTHORIZED,
    403: BusinessCode.FORBIDDEN,
    404: BusinessCode.NOT_FOUND,
    405: BusinessCode.PARAM_ERROR,
    409: BusinessCode.STATE_CONFLICT,
    429: BusinessCode.TOO_MANY_REQUESTS,
    503: BusinessCode.SERVICE_UNAVAILABLE,
}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _envelope(
    request: Request,
    status_code: int,
    *,
    code: int,
    message: str,
    error_type: str,
    details: Optional[dict] = None,
    field: Optional[str] = None,
    message_key: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    body = error_response(
        code=code,
        message=message,
        error_type=error_type,
        details=details,
        field=field,
        request_id=_request_id(request),
        locale=get_locale(),
        message_key=message_key,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


def _business_headers(exc: BusinessException, status_code: int) -> Optional[dict]:
    if status_code == 401:
        return {"WWW-Authenticate": "Bearer"}
    retry_after = getattr(exc, "retry_after", None)
    if status_code == 429 and retry_after:
        return {"Retry-After": str(retry_after)}
    return None


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        status_code = http_status_for(exc.code)
        params = exc.format_params if isinstance(exc.format_params, dict) else (exc.details or {})
        message = t(exc.message_key, default=exc.message, **params) if exc.message_key else exc.message

        log = logger.error if status_code >= 500 else logger.info
        log(
            "business_exception",
            request_id=_request_id(request),
            code=int(exc.code),
            error_type=exc.error_type,
            status_code=status_code,
            error=exc.message,
        )
        return _envelope(
            request,
            status_code,
            code=exc.code,
            message=message,
            error_type=exc.error_type,
            details=exc.details,
            field=exc.field,
            message_key=exc.message_key,
            headers=_business_headers(exc, status_code),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        # drop the leading "body"/"query" segment
        field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
        return _envelope(
            request,
            422,
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=t("validation.failed", default="Validation failed: {reason}", reason=first.get("msg", "unknown")),
            error_type="ValidationError",
            details={"errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors
            ]},
            field=field,
            message_key="validation.failed",
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return _envelope(
            request,
            exc.status_code,
            code=_CODE_BY_HTTP_STATUS.get(exc.status_code, BusinessCode.SYSTEM_ERROR),
            message=str(exc.detail),
            error_type="HTTPError",
            details={"status_code": exc.status_code},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("unhandled_exception", request_id=_request_id(request), error=str(exc), exc_info=True)
        details = {"exception": str(exc), "traceback": traceback.format_exc()} if app.debug else None
        return _envelope(
            request,
            500,
            code=BusinessCode.SYSTEM_ERROR,
            message=t("error.internal", default="Internal server error"),
            error_type="SystemError",
            details=details,
            message_key="error.internal",
        )
