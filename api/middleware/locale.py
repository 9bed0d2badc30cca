"""
Response language selection: ``?lang=`` > ``X-Lang`` > ``Accept-Language`` > ``en``.
"""
from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from core.i18n import DEFAULT_LOCALE, SUPPORTED_LOCALES, set_locale


def preferred_language(header: str) -> str | None:
    """Highest weighted tag of an ``Accept-Language`` header; ties keep header order.

    >>> preferred_language("en-US;q=0.8, id-ID, id;q=0.9")
    'id-ID'
    """
    best, best_q = None, -1.0
    for part in header.split(","):
        tag, _, params = part.strip().partition(";")
        if not tag.strip():
            continue
        q = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                q = float(params[2:])
            except ValueError:
                q = 0.0
        if q > best_q:
            best, best_q = tag.strip(), q
    return best


def normalize_locale(tag: str | None) -> str:
    primary = (tag or "").replace("_", "-").split("-", 1)[0].lower()
    return primary if primary in SUPPORTED_LOCALES else DEFAULT_LOCALE


class LocaleMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        tag = request.query_params.get("lang") or request.headers.get("X-Lang")
        if not tag:
            tag = preferred_language(request.headers.get("Accept-Language", ""))
        locale = normalize_locale(tag)
        set_locale(locale)
        request.state.locale = locale
        return await call_next(request)
