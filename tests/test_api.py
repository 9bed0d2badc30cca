from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_push_notifier, get_uow_factory
from core.config import settings
from main import app
from shared.codes import BusinessCode
from shared.codes.escrow_codes import EscrowCode
from tests.fakes import InMemoryUoWFactory, RecordingPushNotifier, build_static_qris


def _token(sub: str, role: str = "user", **extra) -> str:
    payload = {
        "sub": sub,
        settings.auth.role_claim: role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        **extra,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _auth(sub: str, role: str = "user") -> dict:
    return {"Authorization": f"Bearer {_token(sub, role)}"}


SELLER = _auth("seller-1")
BUYER = _auth("buyer-1")
ADMIN = _auth("admin-1", settings.auth.admin_role)


@pytest.fixture
def factory():
    return InMemoryUoWFactory()


@pytest.fixture
def push():
    return RecordingPushNotifier()


@pytest.fixture
def client(factory, push):
    app.dependency_overrides[get_uow_factory] = lambda: factory
    app.dependency_overrides[get_push_notifier] = lambda: push
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _create_order(client) -> dict:
    resp = client.post(
        "/api/v1/orders",
        json={"title": "Sneakers", "product_price": 100000, "platform_fee": 10000, "total_amount": 110000},
        headers=SELLER,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}
    assert resp.headers.get("X-Request-ID")


def test_auth_required(client):
    resp = client.get("/api/v1/orders")
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"

    resp = client.get("/api/v1/orders", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_expired_token_rejected(client):
    expired = jwt.encode(
        {"sub": "seller-1", "exp": datetime.now(timezone.utc) - timedelta(minutes=5)},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    resp = client.get("/api/v1/orders", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401


def test_admin_routes_need_admin_role(client):
    assert client.get("/api/v1/admin/orders", headers=SELLER).status_code == 403
    assert client.get("/api/v1/admin/orders", headers=ADMIN).status_code == 200


def test_escrow_flow_over_http(client, factory, push):
    created = _create_order(client)
    order = created["order"]
    assert order["status"] == "awaiting_payment"
    assert order["created_at"].endswith("Z")

    lookup = client.get(f"/api/v1/orders/number/{order['order_number']}")
    assert lookup.status_code == 200
    assert lookup.json()["data"]["order_id"] == order["id"]

    submitted = client.post(
        "/api/v1/payment-proofs",
        json={"payment_id": created["payment"]["id"], "order_id": order["id"], "amount": 110000},
        headers=BUYER,
    )
    assert submitted.status_code == 201, submitted.text
    proof_id = submitted.json()["data"]["proof"]["id"]
    assert submitted.json()["data"]["order_status"] == "verification"

    pending = client.get("/api/v1/admin/payment-proofs", headers=ADMIN).json()["data"]
    assert [p["id"] for p in pending] == [proof_id]

    reviewed = client.patch(f"/api/v1/admin/payment-proofs/{proof_id}", json={"action": "approve"}, headers=ADMIN)
    assert reviewed.status_code == 200
    assert reviewed.json()["data"]["order_status"] == "paid"

    payment = client.get(f"/api/v1/payments/order/{order['id']}", headers=BUYER).json()["data"]
    assert payment["status"] == "paid"
    assert len(payment["payment_proofs"]) == 1

    shipped = client.patch(f"/api/v1/orders/{order['id']}/status", json={"status": "shipped"}, headers=SELLER)
    assert shipped.json()["data"]["status"] == "shipped"

    confirmed = client.post(f"/api/v1/orders/{order['id']}/confirm-received", headers=BUYER)
    assert confirmed.json()["data"]["status"] == "completed"

    releases = client.get("/api/v1/admin/fund-releases", headers=ADMIN).json()["data"]
    assert len(releases) == 1
    release_id = releases[0]["id"]

    paid_out = client.patch(
        f"/api/v1/admin/fund-releases/{release_id}",
        json={"transfer_proof": "TRX-1"},
        headers=ADMIN,
    )
    assert paid_out.status_code == 200
    assert paid_out.json()["data"]["release"]["status"] == "completed"

    again = client.patch(f"/api/v1/admin/fund-releases/{release_id}", json={}, headers=ADMIN)
    assert again.status_code == 409
    assert again.json()["code"] == EscrowCode.FUND_RELEASE_ALREADY_COMPLETED

    count = client.get("/api/v1/notifications/count", headers=SELLER).json()["data"]["count"]
    assert count >= 4
    assert client.patch("/api/v1/notifications/read-all", headers=SELLER).status_code == 200
    assert client.get("/api/v1/notifications/count", headers=SELLER).json()["data"]["count"] == 0

    stats = client.get("/api/v1/dashboard/stats", headers=SELLER).json()["data"]
    assert stats["completed"] == 1
    assert stats["total_revenue"] == 110000
    assert push.sent


def test_strangers_cannot_read_orders(client):
    order = _create_order(client)["order"]
    resp = client.get(f"/api/v1/orders/{order['id']}", headers=_auth("stranger"))
    assert resp.status_code == 403
    assert client.get("/api/v1/orders/does-not-exist", headers=SELLER).status_code == 404


def test_cooldown_returns_429_with_retry_after(client):
    _create_order(client)
    resp = client.post("/api/v1/orders", json={"title": "Again", "total_amount": 50000}, headers=SELLER)
    assert resp.status_code == 429
    assert int(resp.headers["Retry-After"]) > 0


def test_cancel_flow_over_http(client):
    created = _create_order(client)
    order_id = created["order"]["id"]
    client.post(
        "/api/v1/payment-proofs",
        json={"payment_id": created["payment"]["id"], "order_id": order_id},
    )

    resp = client.post(f"/api/v1/orders/{order_id}/cancel", json={"reason": "Buyer asked to cancel"}, headers=SELLER)
    body = resp.json()["data"]
    assert body["cancelled_immediately"] is False

    dup = client.post(f"/api/v1/orders/{order_id}/cancel", json={"reason": "Buyer asked to cancel"}, headers=SELLER)
    assert dup.status_code == 409

    lookup = client.get(f"/api/v1/orders/{order_id}/cancellation-request", headers=SELLER).json()["data"]
    assert lookup["has_request"] is True

    resolved = client.patch(
        f"/api/v1/admin/cancellation-requests/{body['request_id']}",
        json={"action": "approve"},
        headers=ADMIN,
    )
    assert resolved.json()["data"]["order"]["status"] == "cancelled"

    mine = client.get("/api/v1/orders/my-cancellation-requests", headers=SELLER).json()["data"]
    assert [r["status"] for r in mine] == ["approved"]


def test_qris_upload_and_generate(client):
    assert client.post("/api/v1/qris/generate", json={"amount": 1000}, headers=BUYER).status_code == 404

    bad = client.post("/api/v1/admin/qris/upload", json={"qris_data": "nope"}, headers=ADMIN)
    assert bad.status_code == 400

    uploaded = client.post("/api/v1/admin/qris/upload", json={"qris_data": build_static_qris()}, headers=ADMIN)
    assert uploaded.status_code == 201
    assert uploaded.json()["data"]["merchant_name"] == "TOKO REKBER"

    generated = client.post("/api/v1/qris/generate", json={"amount": 110000}, headers=BUYER)
    assert generated.status_code == 200
    data = generated.json()["data"]
    assert "5406110000" in data["qris_string"]

    txn = client.get(f"/api/v1/qris/transaction/{data['transaction_id']}", headers=BUYER)
    assert txn.status_code == 200
    assert client.get(f"/api/v1/qris/transaction/{data['transaction_id']}", headers=SELLER).status_code == 404

    invalid = client.post("/api/v1/qris/generate", json={"amount": 0}, headers=BUYER)
    assert invalid.status_code == 400
    assert invalid.json()["code"] == EscrowCode.QRIS_INVALID_INPUT

    oversized = client.post("/api/v1/qris/generate", json={"amount": 2 ** 63}, headers=BUYER)
    assert oversized.status_code == 422


def test_device_subscription(client):
    resp = client.post("/api/v1/notifications/subscribe", json={"token": "fcm-token-1"}, headers=BUYER)
    assert resp.status_code == 200
    devices = client.get("/api/v1/notifications/devices", headers=BUYER).json()["data"]
    assert len(devices) == 1

    resp = client.request("DELETE", "/api/v1/notifications/unsubscribe", json={"token": "fcm-token-1"}, headers=BUYER)
    assert resp.status_code == 200
    assert client.get("/api/v1/notifications/devices", headers=BUYER).json()["data"] == []


def test_broadcast_notification(client, factory, push):
    client.post("/api/v1/notifications/subscribe", json={"token": "tok-buyer"}, headers=BUYER)
    client.post("/api/v1/notifications/subscribe", json={"token": "tok-seller"}, headers=SELLER)

    assert client.post(
        "/api/v1/admin/broadcast-notification", json={"title": "Promo", "message": "Hi"}, headers=SELLER
    ).status_code == 403

    missing = client.post("/api/v1/admin/broadcast-notification", json={"title": "Promo"}, headers=ADMIN)
    assert missing.status_code == 400
    assert missing.json()["code"] == BusinessCode.PARAM_ERROR

    resp = client.post(
        "/api/v1/admin/broadcast-notification",
        json={"title": "Maintenance", "message": "Back at 02:00 WIB", "image": "https://cdn.example.com/m.png"},
        headers=ADMIN,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"] == {"recipients": 2, "pushed": 2}
    assert sorted(user_id for user_id, *_ in push.sent) == ["buyer-1", "seller-1"]

    inbox = client.get("/api/v1/notifications", headers=BUYER).json()["data"]
    assert inbox[0]["type"] == "broadcast"
    assert inbox[0]["metadata"] == {"url": "/home", "image": "https://cdn.example.com/m.png"}
