import pytest

from domain.common.exceptions import DomainValidationException, StateConflictException
from domain.order.entity import (
    ORDER_TRANSITIONS,
    Order,
    OrderStatus,
    can_transition,
    compute_amounts,
    generate_order_number,
    parse_status,
)
from domain.payment.entity import Payment, PaymentProof, PaymentStatus, ProofStatus
from shared.codes.escrow_codes import EscrowCode


def _order(status=OrderStatus.AWAITING_PAYMENT, buyer_id=None) -> Order:
    order = Order.new(
        seller_id="seller-1",
        title="Mechanical keyboard",
        product_price=100000,
        platform_fee=10000,
        total_amount=110000,
    )
    order.status = status
    order.buyer_id = buyer_id
    return order


def test_compute_amounts_explicit_triple():
    assert compute_amounts(100000, 10000, 110000, 0.025) == (100000, 10000, 110000)


def test_compute_amounts_rejects_inconsistent_triple():
    with pytest.raises(DomainValidationException) as exc_info:
        compute_amounts(100000, 10000, 100000, 0.025)
    assert exc_info.value.field == "total_amount"


def test_compute_amounts_derives_legacy_fee_with_ceiling():
    assert compute_amounts(None, None, 100000, 0.025) == (97500, 2500, 100000)
    # 10001 * 0.025 = 250.025 -> 251
    assert compute_amounts(None, None, 10001, 0.025) == (9750, 251, 10001)


def test_compute_amounts_requires_total():
    with pytest.raises(DomainValidationException):
        compute_amounts(None, None, None, 0.025)
    with pytest.raises(DomainValidationException):
        compute_amounts(100000, None, 110000, 0.025)


def test_order_number_format():
    number = generate_order_number()
    prefix, day, suffix = number.split("-")
    assert prefix == "ORD"
    assert len(day) == 8 and day.isdigit()
    assert len(suffix) == 5 and suffix.isdigit()


def test_terminal_states_have_no_exits():
    assert ORDER_TRANSITIONS[OrderStatus.COMPLETED] == frozenset()
    assert ORDER_TRANSITIONS[OrderStatus.CANCELLED] == frozenset()
    for status in OrderStatus:
        assert not can_transition(OrderStatus.CANCELLED, status)


def test_parse_status_rejects_unknown_value():
    assert parse_status("shipped") is OrderStatus.SHIPPED
    with pytest.raises(DomainValidationException):
        parse_status("lost")


def test_submit_proof_binds_buyer_and_allows_resubmission():
    order = _order()
    assert order.submit_proof("buyer-1") is OrderStatus.AWAITING_PAYMENT
    assert order.status is OrderStatus.VERIFICATION
    assert order.buyer_id == "buyer-1"

    assert order.submit_proof(None) is OrderStatus.VERIFICATION
    assert order.buyer_id == "buyer-1"


def test_submit_proof_rejected_once_paid():
    order = _order(OrderStatus.PAID)
    with pytest.raises(StateConflictException) as exc_info:
        order.submit_proof("buyer-1")
    assert exc_info.value.code == EscrowCode.ORDER_STATE_CONFLICT


def test_review_requires_verification():
    order = _order()
    with pytest.raises(StateConflictException):
        order.approve_payment()
    order.submit_proof("buyer-1")
    order.reject_payment()
    assert order.status is OrderStatus.AWAITING_PAYMENT


def test_seller_can_only_set_fulfillment_states():
    order = _order(OrderStatus.PAID)
    order.set_fulfillment_status(OrderStatus.PROCESSING)
    order.set_fulfillment_status(OrderStatus.SHIPPED)
    assert order.status is OrderStatus.SHIPPED

    for target in (OrderStatus.PAID, OrderStatus.COMPLETED, OrderStatus.DELIVERED, OrderStatus.CANCELLED):
        with pytest.raises(StateConflictException):
            _order(OrderStatus.PAID).set_fulfillment_status(target)

    with pytest.raises(StateConflictException):
        _order(OrderStatus.AWAITING_PAYMENT).set_fulfillment_status(OrderStatus.PROCESSING)


def test_mark_delivered_stamps_delivery_time():
    order = _order(OrderStatus.SHIPPED)
    order.mark_delivered()
    assert order.status is OrderStatus.DELIVERED
    assert order.delivered_at == order.updated_at

    with pytest.raises(StateConflictException):
        _order(OrderStatus.PROCESSING).mark_delivered()


def test_confirm_received_paths():
    for status in (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED):
        order = _order(status, buyer_id="buyer-1")
        order.confirm_received()
        assert order.status is OrderStatus.COMPLETED
    with pytest.raises(StateConflictException):
        _order(OrderStatus.VERIFICATION).confirm_received()


def test_complete_is_idempotent():
    order = _order(OrderStatus.DELIVERED)
    assert order.complete() is OrderStatus.DELIVERED
    assert order.complete() is None


def test_cancel_records_reason_and_actor():
    order = _order()
    order.cancel("Buyer stopped responding", "seller-1")
    assert order.status is OrderStatus.CANCELLED
    assert order.cancelled_at is not None
    assert order.cancellation_reason == "Buyer stopped responding"
    assert order.cancelled_by == "seller-1"


@pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.COMPLETED, OrderStatus.CANCELLED])
def test_cancel_refused_late_in_lifecycle(status):
    with pytest.raises(StateConflictException):
        _order(status).cancel("Too late to cancel now", "seller-1")


def test_order_rejects_inconsistent_amounts():
    with pytest.raises(DomainValidationException):
        Order(
            id="o1",
            order_number="ORD-20240101-00001",
            seller_id="s1",
            title="x",
            product_price=100,
            platform_fee=10,
            total_amount=100,
        )


def test_payment_transitions():
    payment = Payment.new("order-1", 110000)
    assert payment.status is PaymentStatus.PENDING
    payment.mark_awaiting_verification()
    payment.mark_rejected()
    payment.mark_awaiting_verification()
    payment.mark_paid()
    with pytest.raises(StateConflictException):
        payment.mark_rejected()


def test_proof_is_reviewed_once():
    proof = PaymentProof.new("payment-1", "order-1", amount=110000)
    proof.approve("admin-1")
    assert proof.status is ProofStatus.APPROVED
    assert proof.reviewed_by == "admin-1"
    with pytest.raises(StateConflictException) as exc_info:
        proof.reject("admin-2", "late")
    assert exc_info.value.code == EscrowCode.PROOF_ALREADY_REVIEWED
