"""
Business codes returned in the ``code`` field of every response envelope.

Each member carries the HTTP status it is served with, so the API layer never
keeps a separate lookup table. Generic codes live here; escrow specific ones
in :mod:`shared.codes.escrow_codes`.
"""
from enum import IntEnum


class StatusCode(IntEnum):
    """IntEnum whose members are declared as ``(code, http_status)``."""

    def __new__(cls, value: int, http_status: int = 400):
        member = int.__new__(cls, value)
        member._value_ = value
        member.http_status = http_status
        return member


class BusinessCode(StatusCode):
    SUCCESS = 0, 200

    # request input (1xxxx)
    PARAM_ERROR = 10000, 400
    PARAM_VALIDATION_ERROR = 10003, 422

    # business rules (2xxxx)
    BUSINESS_ERROR = 20000, 400
    NOT_FOUND = 20006, 404
    STATE_CONFLICT = 20007, 409

    # identity (3xxxx)
    UNAUTHORIZED = 30001, 401
    FORBIDDEN = 30002, 403
    TOKEN_INVALID = 30003, 401
    TOKEN_EXPIRED = 30004, 401

    # platform (4xxxx)
    SYSTEM_ERROR = 40000, 500
    SERVICE_UNAVAILABLE = 40003, 503
    UPSTREAM_ERROR = 40004, 502

    TOO_MANY_REQUESTS = 50001, 429


def http_status_for(code: int) -> int:
    """HTTP status of ``code``; plain ints are resolved against the known enums."""
    status = getattr(code, "http_status", None)
    if status is not None:
        return status
    from shared.codes.escrow_codes import EscrowCode

    for enum in (BusinessCode, EscrowCode):
        try:
            return enum(int(code)).http_status
        except ValueError:
            continue
    return 400


__all__ = ["BusinessCode", "StatusCode", "http_status_for"]
