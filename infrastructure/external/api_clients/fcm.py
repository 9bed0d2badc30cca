"""
Firebase Cloud Messaging client (legacy HTTP API).

``POST {endpoint}/fcm/send`` with ``Authorization: key=<server key>`` and a
``registration_ids`` multicast body. Per-token results come back in the same
order as the request; tokens reported as unknown are returned so the caller
can deactivate them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from core.logging_config import get_logger
from .base import BaseAPIClient


logger = get_logger(__name__)

INVALID_TOKEN_ERRORS = frozenset({"InvalidRegistration", "NotRegistered"})
MAX_TOKENS_PER_REQUEST = 1000


@dataclass
class PushResult:
    success: int = 0
    failure: int = 0
    invalid_tokens: List[str] = field(default_factory=list)


class FcmPushClient(BaseAPIClient):

    def __init__(
        self,
        server_key: str,
        endpoint: str = "https://fcm.googleapis.com",
        timeout: float = 10.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url=endpoint,
            timeout=timeout,
            max_retries=max_retries,
            headers={"Authorization": f"key={server_key}"},
            transport=transport,
        )

    async def send(
        self,
        tokens: List[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> PushResult:
        result = PushResult()
        # data payload values must be strings
        payload_data = {k: "" if v is None else str(v) for k, v in (data or {}).items()}
        notification = {"title": title, "body": body}
        if payload_data.get("image"):
            notification["image"] = payload_data["image"]

        for start in range(0, len(tokens), MAX_TOKENS_PER_REQUEST):
            batch = tokens[start:start + MAX_TOKENS_PER_REQUEST]
            response = await self.post(
                "/fcm/send",
                json_data={
                    "registration_ids": batch,
                    "notification": notification,
                    "data": payload_data,
                },
            )
            body_json = response.json() or {}
            result.success += int(body_json.get("success", 0))
            result.failure += int(body_json.get("failure", 0))
            for token, item in zip(batch, body_json.get("results") or []):
                if isinstance(item, dict) and item.get("error") in INVALID_TOKEN_ERRORS:
                    result.invalid_tokens.append(token)

        logger.info(
            "fcm_push_sent",
            token_count=len(tokens),
            success=result.success,
            failure=result.failure,
            invalid=len(result.invalid_tokens),
        )
        return result
