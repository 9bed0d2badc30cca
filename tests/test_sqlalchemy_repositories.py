from datetime import timedelta
from functools import partial

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

from domain.cancellation.entity import CancellationRequest, CancellationStatus
from domain.cancellation.service import CancellationAlreadyPending
from domain.common.exceptions import StateConflictException
from domain.common.time import utc_now
from domain.fund_release.entity import FundRelease, FundReleaseStatus
from domain.notification.entity import DeviceToken, Notification, NotificationType
from domain.order.entity import PAYMENT_DEADLINE_REASON, Order, OrderStatus
from domain.payment.entity import Payment, PaymentProof, ProofStatus
from domain.qris.entity import QrisSetting
from infrastructure.database import build_engine, create_tables
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from shared.codes.escrow_codes import EscrowCode


@pytest_asyncio.fixture
async def uow_factory(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'rekber.db'}")
    await create_tables(engine)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    yield partial(SQLAlchemyUnitOfWork, session_factory)
    await engine.dispose()


def _order(seller_id="seller-1") -> Order:
    return Order.new(
        seller_id=seller_id,
        title="Vintage camera",
        product_price=200000,
        platform_fee=5000,
        total_amount=205000,
    )


async def _persist(uow_factory, order: Order) -> Payment:
    async with uow_factory() as uow:
        await uow.order_repository.create(order)
        return await uow.payment_repository.create(Payment.new(order.id, order.total_amount))


@pytest.mark.asyncio
async def test_order_round_trip(uow_factory):
    order = _order()
    payment = await _persist(uow_factory, order)

    async with uow_factory(readonly=True) as uow:
        loaded = await uow.order_repository.get_by_id(order.id)
        by_number = await uow.order_repository.get_by_number(order.order_number)
        loaded_payment = await uow.payment_repository.get_by_order_id(order.id)
        latest = await uow.order_repository.get_latest_created_at_by_seller("seller-1")

    assert loaded.status is OrderStatus.AWAITING_PAYMENT
    assert loaded.total_amount == 205000
    assert loaded.created_at.tzinfo is not None
    assert by_number.id == order.id
    assert loaded_payment.id == payment.id
    assert latest is not None and latest.tzinfo is not None


@pytest.mark.asyncio
async def test_order_update_is_compare_and_set(uow_factory):
    order = _order()
    await _persist(uow_factory, order)

    async with uow_factory() as uow:
        current = await uow.order_repository.get_by_id(order.id, for_update=True)
        previous = current.submit_proof("buyer-1")
        await uow.order_repository.update(current, expected_status=previous)

    # a second writer still holding the stale status loses
    stale = _order()
    stale.id = order.id
    with pytest.raises(StateConflictException) as exc_info:
        async with uow_factory() as uow:
            stale.cancel("Seller changed their mind", "seller-1")
            await uow.order_repository.update(stale, expected_status=OrderStatus.AWAITING_PAYMENT)
    assert exc_info.value.code == EscrowCode.ORDER_STATE_CONFLICT

    async with uow_factory(readonly=True) as uow:
        reloaded = await uow.order_repository.get_by_id(order.id)
    assert reloaded.status is OrderStatus.VERIFICATION
    assert reloaded.buyer_id == "buyer-1"


@pytest.mark.asyncio
async def test_cancel_expired_only_touches_stale_unpaid_orders(uow_factory):
    stale = _order("seller-a")
    stale.created_at = utc_now() - timedelta(hours=30)
    fresh = _order("seller-b")
    paying = _order("seller-c")
    paying.created_at = utc_now() - timedelta(hours=30)
    paying.status = OrderStatus.VERIFICATION
    for order in (stale, fresh, paying):
        await _persist(uow_factory, order)

    now = utc_now()
    async with uow_factory() as uow:
        cancelled = await uow.order_repository.cancel_expired(now - timedelta(hours=24), PAYMENT_DEADLINE_REASON, now)
    assert [o.id for o in cancelled] == [stale.id]
    assert cancelled[0].status is OrderStatus.CANCELLED
    assert cancelled[0].cancellation_reason == PAYMENT_DEADLINE_REASON

    async with uow_factory() as uow:
        again = await uow.order_repository.cancel_expired(now - timedelta(hours=24), PAYMENT_DEADLINE_REASON, now)
        counts = await uow.order_repository.count_by_status()
    assert again == []
    assert counts == {
        OrderStatus.CANCELLED: 1,
        OrderStatus.AWAITING_PAYMENT: 1,
        OrderStatus.VERIFICATION: 1,
    }


@pytest.mark.asyncio
async def test_one_pending_cancellation_per_order(uow_factory):
    order = _order()
    await _persist(uow_factory, order)

    async with uow_factory() as uow:
        first = await uow.cancellation_repository.create(
            CancellationRequest.new(order.id, "seller-1", "Buyer asked to cancel")
        )

    with pytest.raises(CancellationAlreadyPending):
        async with uow_factory() as uow:
            await uow.cancellation_repository.create(
                CancellationRequest.new(order.id, "seller-1", "Asking again for this")
            )

    async with uow_factory() as uow:
        request = await uow.cancellation_repository.get_by_id(first.id, for_update=True)
        request.resolve(False, "admin-1", None)
        await uow.cancellation_repository.update(request, expected_status=CancellationStatus.PENDING)

    # a resolved request no longer blocks a new one
    async with uow_factory() as uow:
        await uow.cancellation_repository.create(
            CancellationRequest.new(order.id, "seller-1", "Third time, new reason")
        )
        latest = await uow.cancellation_repository.get_latest_for_order(order.id)
    assert latest.reason == "Third time, new reason"


@pytest.mark.asyncio
async def test_close_pending_requests_of_orders(uow_factory):
    closing, untouched = _order(), _order("seller-2")
    await _persist(uow_factory, closing)
    await _persist(uow_factory, untouched)

    async with uow_factory() as uow:
        target = await uow.cancellation_repository.create(
            CancellationRequest.new(closing.id, "seller-1", "Buyer went silent on me")
        )
        other = await uow.cancellation_repository.create(
            CancellationRequest.new(untouched.id, "seller-2", "Out of stock for now")
        )

    async with uow_factory() as uow:
        closed = await uow.cancellation_repository.close_pending_for_orders(
            [closing.id], "Closed automatically: order is completed", utc_now()
        )
        assert closed == 1
        assert await uow.cancellation_repository.close_pending_for_orders([], "unused", utc_now()) == 0

    async with uow_factory(readonly=True) as uow:
        target = await uow.cancellation_repository.get_by_id(target.id)
        other = await uow.cancellation_repository.get_by_id(other.id)
    assert target.status is CancellationStatus.REJECTED
    assert target.admin_notes == "Closed automatically: order is completed"
    assert target.reviewed_at is not None
    assert other.status is CancellationStatus.PENDING


@pytest.mark.asyncio
async def test_fund_release_unique_per_order_and_completed_once(uow_factory):
    order = _order()
    await _persist(uow_factory, order)

    async with uow_factory() as uow:
        release = await uow.fund_release_repository.create(FundRelease.new(order.id, order.seller_id, order.total_amount))

    with pytest.raises(StateConflictException):
        async with uow_factory() as uow:
            await uow.fund_release_repository.create(FundRelease.new(order.id, order.seller_id, order.total_amount))

    async with uow_factory() as uow:
        loaded = await uow.fund_release_repository.get_by_id(release.id, for_update=True)
        loaded.complete("admin-1", "TRX-1")
        await uow.fund_release_repository.update(loaded, expected_status=FundReleaseStatus.PENDING)

    with pytest.raises(StateConflictException) as exc_info:
        async with uow_factory() as uow:
            await uow.fund_release_repository.update(loaded, expected_status=FundReleaseStatus.PENDING)
    assert exc_info.value.code == EscrowCode.FUND_RELEASE_ALREADY_COMPLETED

    async with uow_factory(readonly=True) as uow:
        pending = await uow.fund_release_repository.list_by_status(FundReleaseStatus.PENDING)
        everything = await uow.fund_release_repository.list_by_status(None)
    assert pending == []
    assert [r.transfer_proof for r in everything] == ["TRX-1"]


@pytest.mark.asyncio
async def test_supersede_pending_proofs(uow_factory):
    order = _order()
    payment = await _persist(uow_factory, order)
    now = utc_now()

    async with uow_factory() as uow:
        await uow.proof_repository.create(PaymentProof.new(payment.id, order.id, amount=205000))
        superseded = await uow.proof_repository.supersede_pending(order.id, "superseded", now)
        await uow.proof_repository.create(PaymentProof.new(payment.id, order.id, amount=205000))

    async with uow_factory(readonly=True) as uow:
        proofs = await uow.proof_repository.list_by_order(order.id)
        pending = await uow.proof_repository.count_by_status(ProofStatus.PENDING)
        exists = await uow.proof_repository.exists_for_order(order.id)
    assert superseded == 1
    assert sorted(p.status.value for p in proofs) == ["pending", "rejected"]
    assert pending == 1
    assert exists


@pytest.mark.asyncio
async def test_single_active_qris_setting(uow_factory):
    async with uow_factory() as uow:
        await uow.qris_setting_repository.create(QrisSetting.new("A" * 120, "Old", "Bandung", "admin-1"))
    async with uow_factory() as uow:
        replaced = await uow.qris_setting_repository.deactivate_all()
        newest = await uow.qris_setting_repository.create(QrisSetting.new("B" * 120, "New", "Jakarta", "admin-1"))

    async with uow_factory(readonly=True) as uow:
        active = await uow.qris_setting_repository.get_active()
    assert replaced == 1
    assert active.id == newest.id


@pytest.mark.asyncio
async def test_notifications_and_devices(uow_factory):
    async with uow_factory() as uow:
        for i in range(3):
            await uow.notification_repository.create(Notification.new(
                "user-1", NotificationType.ORDER_CREATED, f"n{i}", "msg", metadata={"i": i}
            ))
        await uow.device_token_repository.upsert(DeviceToken.new("user-1", "tok-1"))

    async with uow_factory() as uow:
        items = await uow.notification_repository.list_for_user("user-1", limit=2)
        assert len(items) == 2
        assert await uow.notification_repository.mark_read(items[0].id, "user-1")
        assert not await uow.notification_repository.mark_read(items[0].id, "someone-else")
        assert await uow.notification_repository.count_unread("user-1") == 2
        assert await uow.notification_repository.mark_all_read("user-1") == 2

    # the same token re-registered by another user moves to that user
    async with uow_factory() as uow:
        await uow.device_token_repository.upsert(DeviceToken.new("user-2", "tok-1", "ios"))
        assert await uow.device_token_repository.list_active_for_user("user-1") == []
        moved = await uow.device_token_repository.list_active_for_user("user-2")
        assert [d.device_type for d in moved] == ["ios"]
        assert await uow.device_token_repository.deactivate(["tok-1"], user_id="user-2") == 1


@pytest.mark.asyncio
async def test_active_device_owners(uow_factory):
    async with uow_factory() as uow:
        await uow.device_token_repository.upsert(DeviceToken.new("user-b", "tok-1"))
        await uow.device_token_repository.upsert(DeviceToken.new("user-b", "tok-2", "android"))
        await uow.device_token_repository.upsert(DeviceToken.new("user-a", "tok-3"))
        await uow.device_token_repository.upsert(DeviceToken.new("user-c", "tok-4"))
        await uow.device_token_repository.deactivate(["tok-4"])

    async with uow_factory(readonly=True) as uow:
        assert await uow.device_token_repository.list_active_user_ids() == ["user-a", "user-b"]
