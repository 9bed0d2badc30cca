from .locale import LocaleMiddleware
from .logging import LoggingMiddleware, mask_payload
from .request_id import RequestIDMiddleware, client_address

__all__ = ["RequestIDMiddleware", "LoggingMiddleware", "LocaleMiddleware", "client_address", "mask_payload"]
