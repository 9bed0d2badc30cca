"""In-memory Unit of Work and doubles used by the domain and application tests.

Repositories store copies of entities so a domain object mutated in memory is
only visible to other readers after ``update`` succeeds, and ``update`` keeps
the expected-status guard of the SQL implementation.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from domain.cancellation.entity import CancellationRequest, CancellationStatus
from domain.cancellation.repository import CancellationRequestRepository
from domain.cancellation.service import CancellationAlreadyPending
from domain.common.exceptions import StateConflictException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.fund_release.entity import FundRelease, FundReleaseStatus
from domain.fund_release.repository import FundReleaseRepository
from domain.notification.entity import DeviceToken, Notification
from domain.notification.repository import DeviceTokenRepository, NotificationRepository
from domain.order.entity import Order, OrderStatus
from domain.order.repository import OrderRepository
from domain.payment.entity import Payment, PaymentProof, PaymentStatus, ProofStatus
from domain.payment.repository import PaymentProofRepository, PaymentRepository
from domain.qris.codec import crc16
from domain.qris.entity import QrisSetting, QrisTransaction
from domain.qris.repository import QrisSettingRepository, QrisTransactionRepository
from domain.qris.tlv import encode_field
from shared.codes.escrow_codes import EscrowCode


@dataclass
class InMemoryStore:
    orders: Dict[str, Order] = field(default_factory=dict)
    payments: Dict[str, Payment] = field(default_factory=dict)
    proofs: Dict[str, PaymentProof] = field(default_factory=dict)
    cancellations: Dict[str, CancellationRequest] = field(default_factory=dict)
    releases: Dict[str, FundRelease] = field(default_factory=dict)
    qris_settings: Dict[str, QrisSetting] = field(default_factory=dict)
    qris_transactions: Dict[str, QrisTransaction] = field(default_factory=dict)
    notifications: Dict[str, Notification] = field(default_factory=dict)
    devices: Dict[str, DeviceToken] = field(default_factory=dict)

    def snapshot(self) -> "InMemoryStore":
        return copy.deepcopy(self)

    def restore(self, other: "InMemoryStore") -> None:
        self.__dict__.update(copy.deepcopy(other).__dict__)


def _cas(table: dict, entity, expected, conflict: StateConflictException) -> None:
    current = table.get(entity.id)
    if current is None or current.status != expected:
        raise conflict
    table[entity.id] = copy.deepcopy(entity)


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, order: Order) -> Order:
        self.store.orders[order.id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    async def get_by_id(self, order_id: str, *, for_update: bool = False) -> Optional[Order]:
        order = self.store.orders.get(order_id)
        return copy.deepcopy(order) if order else None

    async def get_by_number(self, order_number: str) -> Optional[Order]:
        for order in self.store.orders.values():
            if order.order_number == order_number:
                return copy.deepcopy(order)
        return None

    async def update(self, order: Order, *, expected_status: OrderStatus) -> Order:
        _cas(self.store.orders, order, expected_status, StateConflictException(
            "Order was modified concurrently", code=EscrowCode.ORDER_STATE_CONFLICT,
        ))
        return order

    async def list_by_seller(self, seller_id: str, skip: int = 0, limit: int = 100) -> List[Order]:
        items = sorted(
            (o for o in self.store.orders.values() if o.seller_id == seller_id),
            key=lambda o: o.created_at,
            reverse=True,
        )
        return [copy.deepcopy(o) for o in items[skip:skip + limit]]

    async def list_all(self, status: Optional[OrderStatus] = None, skip: int = 0, limit: int = 100) -> List[Order]:
        items = sorted(
            (o for o in self.store.orders.values() if status is None or o.status == status),
            key=lambda o: o.created_at,
            reverse=True,
        )
        return [copy.deepcopy(o) for o in items[skip:skip + limit]]

    async def get_latest_created_at_by_seller(self, seller_id: str) -> Optional[datetime]:
        times = [o.created_at for o in self.store.orders.values() if o.seller_id == seller_id]
        return max(times) if times else None

    async def cancel_expired(self, cutoff: datetime, reason: str, now: datetime) -> List[Order]:
        cancelled = []
        for order in self.store.orders.values():
            if order.status == OrderStatus.AWAITING_PAYMENT and order.created_at < cutoff:
                order.status = OrderStatus.CANCELLED
                order.cancelled_at = now
                order.cancellation_reason = reason
                order.cancelled_by = None
                order.updated_at = now
                cancelled.append(copy.deepcopy(order))
        return cancelled

    async def count_by_status(self, seller_id: Optional[str] = None) -> dict:
        counts: dict = {}
        for order in self.store.orders.values():
            if seller_id is None or order.seller_id == seller_id:
                counts[order.status] = counts.get(order.status, 0) + 1
        return counts

    async def sum_total_by_status(self, status: OrderStatus, seller_id: Optional[str] = None) -> int:
        return sum(
            o.total_amount for o in self.store.orders.values()
            if o.status == status and (seller_id is None or o.seller_id == seller_id)
        )


class InMemoryPaymentRepository(PaymentRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, payment: Payment) -> Payment:
        self.store.payments[payment.id] = copy.deepcopy(payment)
        return copy.deepcopy(payment)

    async def get_by_id(self, payment_id: str, *, for_update: bool = False) -> Optional[Payment]:
        payment = self.store.payments.get(payment_id)
        return copy.deepcopy(payment) if payment else None

    async def get_by_order_id(self, order_id: str) -> Optional[Payment]:
        for payment in self.store.payments.values():
            if payment.order_id == order_id:
                return copy.deepcopy(payment)
        return None

    async def update(self, payment: Payment, *, expected_status: PaymentStatus) -> Payment:
        _cas(self.store.payments, payment, expected_status, StateConflictException("Payment was modified concurrently"))
        return payment


class InMemoryPaymentProofRepository(PaymentProofRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, proof: PaymentProof) -> PaymentProof:
        self.store.proofs[proof.id] = copy.deepcopy(proof)
        return copy.deepcopy(proof)

    async def get_by_id(self, proof_id: str, *, for_update: bool = False) -> Optional[PaymentProof]:
        proof = self.store.proofs.get(proof_id)
        return copy.deepcopy(proof) if proof else None

    async def update(self, proof: PaymentProof, *, expected_status: ProofStatus) -> PaymentProof:
        _cas(self.store.proofs, proof, expected_status, StateConflictException(
            "Payment proof already reviewed", code=EscrowCode.PROOF_ALREADY_REVIEWED,
        ))
        return proof

    async def list_by_order(self, order_id: str) -> List[PaymentProof]:
        items = [p for p in self.store.proofs.values() if p.order_id == order_id]
        return [copy.deepcopy(p) for p in sorted(items, key=lambda p: p.created_at, reverse=True)]

    async def list_by_status(self, status: Optional[ProofStatus] = None, skip: int = 0, limit: int = 100) -> List[PaymentProof]:
        items = [p for p in self.store.proofs.values() if status is None or p.status == status]
        items.sort(key=lambda p: p.created_at, reverse=True)
        return [copy.deepcopy(p) for p in items[skip:skip + limit]]

    async def exists_for_order(self, order_id: str) -> bool:
        return any(p.order_id == order_id for p in self.store.proofs.values())

    async def supersede_pending(self, order_id: str, reason: str, now: datetime) -> int:
        count = 0
        for proof in self.store.proofs.values():
            if proof.order_id == order_id and proof.status == ProofStatus.PENDING:
                proof.status = ProofStatus.REJECTED
                proof.rejection_reason = reason
                proof.reviewed_at = now
                count += 1
        return count

    async def count_by_status(self, status: ProofStatus) -> int:
        return sum(1 for p in self.store.proofs.values() if p.status == status)


class InMemoryCancellationRepository(CancellationRequestRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, request: CancellationRequest) -> CancellationRequest:
        pending = await self.get_pending_for_order(request.order_id)
        if pending is not None:
            raise CancellationAlreadyPending(request.order_id, pending.id)
        self.store.cancellations[request.id] = copy.deepcopy(request)
        return copy.deepcopy(request)

    async def get_by_id(self, request_id: str, *, for_update: bool = False) -> Optional[CancellationRequest]:
        request = self.store.cancellations.get(request_id)
        return copy.deepcopy(request) if request else None

    async def get_pending_for_order(self, order_id: str) -> Optional[CancellationRequest]:
        for request in self.store.cancellations.values():
            if request.order_id == order_id and request.status == CancellationStatus.PENDING:
                return copy.deepcopy(request)
        return None

    async def get_latest_for_order(self, order_id: str) -> Optional[CancellationRequest]:
        items = [r for r in self.store.cancellations.values() if r.order_id == order_id]
        if not items:
            return None
        return copy.deepcopy(max(items, key=lambda r: r.requested_at))

    async def update(self, request: CancellationRequest, *, expected_status: CancellationStatus) -> CancellationRequest:
        _cas(self.store.cancellations, request, expected_status, StateConflictException(
            "Cancellation request already processed", code=EscrowCode.CANCELLATION_ALREADY_PROCESSED,
        ))
        return request

    async def list_by_requester(self, user_id: str) -> List[CancellationRequest]:
        items = [r for r in self.store.cancellations.values() if r.requested_by == user_id]
        return [copy.deepcopy(r) for r in sorted(items, key=lambda r: r.requested_at, reverse=True)]

    async def list_by_status(self, status: Optional[CancellationStatus] = None, skip: int = 0, limit: int = 100) -> List[CancellationRequest]:
        items = [r for r in self.store.cancellations.values() if status is None or r.status == status]
        items.sort(key=lambda r: r.requested_at, reverse=True)
        return [copy.deepcopy(r) for r in items[skip:skip + limit]]

    async def close_pending_for_orders(self, order_ids: List[str], admin_notes: str, now: datetime) -> int:
        count = 0
        for request in self.store.cancellations.values():
            if request.order_id in order_ids and request.status == CancellationStatus.PENDING:
                request.status = CancellationStatus.REJECTED
                request.reviewed_at = now
                request.admin_notes = admin_notes
                count += 1
        return count


class InMemoryFundReleaseRepository(FundReleaseRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, release: FundRelease) -> FundRelease:
        if await self.get_by_order_id(release.order_id) is not None:
            raise StateConflictException("Fund release already exists for this order")
        self.store.releases[release.id] = copy.deepcopy(release)
        return copy.deepcopy(release)

    async def get_by_id(self, release_id: str, *, for_update: bool = False) -> Optional[FundRelease]:
        release = self.store.releases.get(release_id)
        return copy.deepcopy(release) if release else None

    async def get_by_order_id(self, order_id: str) -> Optional[FundRelease]:
        for release in self.store.releases.values():
            if release.order_id == order_id:
                return copy.deepcopy(release)
        return None

    async def update(self, release: FundRelease, *, expected_status: FundReleaseStatus) -> FundRelease:
        _cas(self.store.releases, release, expected_status, StateConflictException(
            "Fund release already completed", code=EscrowCode.FUND_RELEASE_ALREADY_COMPLETED,
        ))
        return release

    async def list_by_status(self, status: Optional[FundReleaseStatus] = FundReleaseStatus.PENDING, skip: int = 0, limit: int = 100) -> List[FundRelease]:
        items = [r for r in self.store.releases.values() if status is None or r.status == status]
        items.sort(key=lambda r: r.created_at)
        return [copy.deepcopy(r) for r in items[skip:skip + limit]]


class InMemoryQrisSettingRepository(QrisSettingRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, setting: QrisSetting) -> QrisSetting:
        self.store.qris_settings[setting.id] = copy.deepcopy(setting)
        return copy.deepcopy(setting)

    async def get_active(self) -> Optional[QrisSetting]:
        active = [s for s in self.store.qris_settings.values() if s.is_active]
        if not active:
            return None
        return copy.deepcopy(max(active, key=lambda s: s.created_at))

    async def deactivate_all(self) -> int:
        count = 0
        for setting in self.store.qris_settings.values():
            if setting.is_active:
                setting.is_active = False
                count += 1
        return count

    async def delete(self, setting_id: str) -> bool:
        return self.store.qris_settings.pop(setting_id, None) is not None


class InMemoryQrisTransactionRepository(QrisTransactionRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, transaction: QrisTransaction) -> QrisTransaction:
        self.store.qris_transactions[transaction.id] = copy.deepcopy(transaction)
        return copy.deepcopy(transaction)

    async def get_for_user(self, transaction_id: str, user_id: str) -> Optional[QrisTransaction]:
        transaction = self.store.qris_transactions.get(transaction_id)
        if transaction is None or transaction.user_id != user_id:
            return None
        return copy.deepcopy(transaction)


class InMemoryNotificationRepository(NotificationRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, notification: Notification) -> Notification:
        self.store.notifications[notification.id] = copy.deepcopy(notification)
        return copy.deepcopy(notification)

    async def list_for_user(self, user_id: str, limit: int = 50) -> List[Notification]:
        items = [n for n in self.store.notifications.values() if n.user_id == user_id]
        items.sort(key=lambda n: n.created_at, reverse=True)
        return [copy.deepcopy(n) for n in items[:limit]]

    async def count_unread(self, user_id: str) -> int:
        return sum(1 for n in self.store.notifications.values() if n.user_id == user_id and not n.is_read)

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        notification = self.store.notifications.get(notification_id)
        if notification is None or notification.user_id != user_id:
            return False
        notification.is_read = True
        return True

    async def mark_all_read(self, user_id: str) -> int:
        count = 0
        for notification in self.store.notifications.values():
            if notification.user_id == user_id and not notification.is_read:
                notification.is_read = True
                count += 1
        return count


class InMemoryDeviceTokenRepository(DeviceTokenRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def upsert(self, token: DeviceToken) -> DeviceToken:
        existing = self.store.devices.get(token.token)
        if existing is not None:
            existing.user_id = token.user_id
            existing.device_type = token.device_type
            existing.is_active = True
            return copy.deepcopy(existing)
        self.store.devices[token.token] = copy.deepcopy(token)
        return copy.deepcopy(token)

    async def get_by_token(self, token: str) -> Optional[DeviceToken]:
        device = self.store.devices.get(token)
        return copy.deepcopy(device) if device else None

    async def list_active_for_user(self, user_id: str) -> List[DeviceToken]:
        return [copy.deepcopy(d) for d in self.store.devices.values() if d.user_id == user_id and d.is_active]

    async def list_active_user_ids(self) -> List[str]:
        return sorted({d.user_id for d in self.store.devices.values() if d.is_active})

    async def deactivate(self, tokens: List[str], user_id: Optional[str] = None) -> int:
        count = 0
        for token in tokens:
            device = self.store.devices.get(token)
            if device and device.is_active and (user_id is None or device.user_id == user_id):
                device.is_active = False
                count += 1
        return count


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """Snapshot on enter, restore on rollback."""

    def __init__(self, store: InMemoryStore, *, readonly: bool = False):
        super().__init__(readonly=readonly)
        self.store = store
        self.commits = 0

    async def __aenter__(self) -> "InMemoryUnitOfWork":
        self._snapshot = self.store.snapshot()
        self.order_repository = InMemoryOrderRepository(self.store)
        self.payment_repository = InMemoryPaymentRepository(self.store)
        self.proof_repository = InMemoryPaymentProofRepository(self.store)
        self.cancellation_repository = InMemoryCancellationRepository(self.store)
        self.fund_release_repository = InMemoryFundReleaseRepository(self.store)
        self.qris_setting_repository = InMemoryQrisSettingRepository(self.store)
        self.qris_transaction_repository = InMemoryQrisTransactionRepository(self.store)
        self.notification_repository = InMemoryNotificationRepository(self.store)
        self.device_token_repository = InMemoryDeviceTokenRepository(self.store)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            self._detach_repositories()

    async def commit(self) -> None:
        self._committed = True
        self.commits += 1

    async def rollback(self) -> None:
        self.store.restore(self._snapshot)


class InMemoryUoWFactory:
    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store or InMemoryStore()

    def __call__(self, *, readonly: bool = False) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(self.store, readonly=readonly)


class RecordingPushNotifier:
    def __init__(self, fail: bool = False):
        self.sent: list[tuple[str, str, str, dict]] = []
        self.fail = fail

    async def send(self, user_id, title, body, data=None) -> None:
        if self.fail:
            raise RuntimeError("push backend down")
        self.sent.append((user_id, title, body, data or {}))


class FrozenClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def build_static_qris(name: str = "TOKO REKBER", city: str = "JAKARTA") -> str:
    """A structurally valid static merchant payload with a correct checksum."""
    body = (
        encode_field("00", "01")
        + encode_field("01", "11")
        + encode_field("26", encode_field("00", "ID.CO.QRIS.WWW") + encode_field("01", "936009153022591481"))
        + encode_field("51", encode_field("00", "ID.CO.QRIS.WWW") + encode_field("02", "ID1020017611473"))
        + encode_field("52", "5812")
        + encode_field("53", "360")
        + "5802ID"
        + encode_field("59", name)
        + encode_field("60", city)
        + encode_field("61", "12340")
        + "6304"
    )
    return body + crc16(body)
