import json

import httpx
import pytest

from application.dtos.notifications import DeviceSubscribeDTO
from infrastructure.external.api_clients import APIError, FcmPushClient
from infrastructure.external.api_clients.base import AuthenticationError, ServerError
from infrastructure.tasks.tasks.notifications import deliver_push


def _client(handler, **kwargs) -> FcmPushClient:
    client = FcmPushClient(
        server_key="server-key",
        endpoint="https://fcm.test",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )
    client.retry_delay = 0
    return client


@pytest.mark.asyncio
async def test_send_reports_invalid_tokens():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        assert body["registration_ids"] == ["tok-ok", "tok-gone", "tok-bad"]
        assert body["notification"] == {"title": "Payment verified", "body": "Ship it"}
        assert body["data"] == {"order_id": "o-1", "amount": "110000", "note": ""}
        return httpx.Response(200, json={
            "success": 1,
            "failure": 2,
            "results": [
                {"message_id": "m1"},
                {"error": "NotRegistered"},
                {"error": "InvalidRegistration"},
            ],
        })

    async with _client(handler) as client:
        result = await client.send(
            ["tok-ok", "tok-gone", "tok-bad"],
            "Payment verified",
            "Ship it",
            {"order_id": "o-1", "amount": 110000, "note": None},
        )

    assert result.success == 1
    assert result.failure == 2
    assert result.invalid_tokens == ["tok-gone", "tok-bad"]
    assert str(seen[0].url) == "https://fcm.test/fcm/send"
    assert seen[0].headers["authorization"] == "key=server-key"


@pytest.mark.asyncio
async def test_send_moves_image_into_notification():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": 1, "failure": 0, "results": [{"message_id": "m"}]})

    async with _client(handler) as client:
        await client.send(["tok"], "Promo", "Free shipping", {"type": "broadcast", "image": "https://cdn.test/p.png"})

    assert bodies[0]["notification"] == {"title": "Promo", "body": "Free shipping", "image": "https://cdn.test/p.png"}
    assert bodies[0]["data"]["type"] == "broadcast"


@pytest.mark.asyncio
async def test_send_batches_large_token_lists():
    batches = []

    def handler(request: httpx.Request) -> httpx.Response:
        ids = json.loads(request.content)["registration_ids"]
        batches.append(len(ids))
        return httpx.Response(200, json={"success": len(ids), "failure": 0, "results": []})

    async with _client(handler) as client:
        result = await client.send([f"t{i}" for i in range(1500)], "t", "b")

    assert batches == [1000, 500]
    assert result.success == 1500


@pytest.mark.asyncio
async def test_transient_errors_are_retried():
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(503, json={"error": "Unavailable"})
        return httpx.Response(200, json={"success": 1, "failure": 0, "results": [{"message_id": "m"}]})

    async with _client(handler, max_retries=2) as client:
        result = await client.send(["tok"], "t", "b")

    assert calls["n"] == 2
    assert result.success == 1


@pytest.mark.asyncio
async def test_exhausted_retries_raise_server_error():
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(502, json={"error": "Bad gateway"})

    async with _client(handler, max_retries=1) as client:
        with pytest.raises(ServerError) as exc_info:
            await client.send(["tok"], "t", "b")

    assert calls["n"] == 2
    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "Bad gateway"


@pytest.mark.asyncio
async def test_auth_failure_is_not_retried():
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(401, json={"error": "Unauthorized"})

    async with _client(handler, max_retries=3) as client:
        with pytest.raises(AuthenticationError) as exc_info:
            await client.send(["tok"], "t", "b")

    assert calls["n"] == 1
    assert isinstance(exc_info.value, APIError)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_deliver_push_deactivates_rejected_tokens(uow_factory, notifications):
    await notifications.subscribe("buyer-1", DeviceSubscribeDTO(token="tok-live"))
    await notifications.subscribe("buyer-1", DeviceSubscribeDTO(token="tok-dead", device_type="android"))

    def handler(request: httpx.Request) -> httpx.Response:
        ids = json.loads(request.content)["registration_ids"]
        results = [{"error": "NotRegistered"} if t == "tok-dead" else {"message_id": "m"} for t in ids]
        return httpx.Response(200, json={"success": 1, "failure": 1, "results": results})

    async with _client(handler) as client:
        result = await deliver_push(uow_factory, client, "buyer-1", "Order delivered", "Please confirm")

    assert result.invalid_tokens == ["tok-dead"]
    devices = await notifications.list_devices("buyer-1")
    assert [d.device_type for d in devices] == ["web"]


@pytest.mark.asyncio
async def test_deliver_push_without_devices_skips_http(uow_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with _client(handler) as client:
        result = await deliver_push(uow_factory, client, "nobody", "t", "b")

    assert result.success == 0
    assert result.invalid_tokens == []
