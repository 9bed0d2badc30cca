"""
Base class for outbound REST clients.

``_request`` sends one JSON call through a lazily created
``httpx.AsyncClient`` and retries transient failures (timeouts, connection
errors, 429 and 5xx) with exponential backoff via tenacity. Any other error
status is raised immediately as the matching :class:`APIError` subclass.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.logging_config import get_logger

logger = get_logger(__name__)
# tenacity's before_sleep hook expects a stdlib logger
_retry_logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass
class APIResponse:
    status_code: int
    headers: Dict[str, str]
    content: bytes
    elapsed_ms: float

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400

    def json(self) -> Any:
        if not self.content:
            return None
        try:
            return json.loads(self.content)
        except ValueError:
            return None


class APIError(Exception):
    """Outbound call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[APIResponse] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    def __str__(self):
        if self.status_code:
            return f"{self.message} (status {self.status_code})"
        return self.message


class AuthenticationError(APIError):
    """401/403: the credential is wrong; retrying will not help."""


class ServerError(APIError):
    """5xx that persisted through every retry."""


class RateLimitedError(APIError):
    """429 that persisted through every retry."""


class _Transient(Exception):
    def __init__(self, response: APIResponse):
        super().__init__(f"transient status {response.status_code}")
        self.response = response


def _error_for(response: APIResponse) -> APIError:
    body = response.json()
    message = f"API request failed with status {response.status_code}"
    if isinstance(body, dict):
        message = str(body.get("message") or body.get("error") or message)
    if response.status_code in (401, 403):
        cls = AuthenticationError
    elif response.status_code == 429:
        cls = RateLimitedError
    elif response.status_code >= 500:
        cls = ServerError
    else:
        cls = APIError
    return cls(message, status_code=response.status_code, response=response)


class BaseAPIClient:
    """Subclasses add typed calls on top of :meth:`post`."""

    user_agent = "rekber-escrow/1.0"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.headers = {"Accept": "application/json", "User-Agent": self.user_agent, **(headers or {})}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=self.headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_delay, max=self.retry_delay * 8),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError, _Transient)),
            before_sleep=before_sleep_log(_retry_logger, logging.WARNING),
        )

    async def _send(self, method: str, path: str, **kwargs) -> APIResponse:
        started = time.perf_counter()
        raw = await self._http().request(method, path, **kwargs)
        response = APIResponse(
            status_code=raw.status_code,
            headers=dict(raw.headers),
            content=raw.content,
            elapsed_ms=(time.perf_counter() - started) * 1000,
        )
        logger.debug("api_call", method=method, path=path, status_code=response.status_code, elapsed_ms=round(response.elapsed_ms, 1))
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise _Transient(response)
        if response.is_error:
            raise _error_for(response)
        return response

    async def _request(self, method: str, path: str, **kwargs) -> APIResponse:
        try:
            async for attempt in self._retrying():
                with attempt:
                    return await self._send(method, path, **kwargs)
        except RetryError as exc:
            last = exc.last_attempt.exception()
            if isinstance(last, _Transient):
                raise _error_for(last.response) from last
            if isinstance(last, httpx.TimeoutException):
                raise APIError(f"Request timed out after {self.timeout}s") from last
            raise APIError(f"Network error: {last}") from last

    async def post(self, path: str, json_data: Optional[Dict[str, Any]] = None) -> APIResponse:
        return await self._request("POST", path, json=json_data)
