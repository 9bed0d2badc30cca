from .base import APIError, APIResponse, AuthenticationError, BaseAPIClient, RateLimitedError, ServerError
from .fcm import FcmPushClient, PushResult

__all__ = [
    "BaseAPIClient",
    "APIResponse",
    "APIError",
    "AuthenticationError",
    "ServerError",
    "RateLimitedError",
    "FcmPushClient",
    "PushResult",
]
