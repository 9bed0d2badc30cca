"""
Order aggregate and its state machine.

The transition table is the single source of truth for which status changes
are legal; every mutating method on ``Order`` goes through ``transition_to``.
"""
from __future__ import annotations

import math
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException, StateConflictException
from domain.common.time import ensure_utc, utc_now
from shared.codes.escrow_codes import EscrowCode


class OrderStatus(str, Enum):
    AWAITING_PAYMENT = "awaiting_payment"
    VERIFICATION = "verification"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.AWAITING_PAYMENT: frozenset({OrderStatus.VERIFICATION, OrderStatus.CANCELLED}),
    # verification -> verification is a proof resubmission
    OrderStatus.VERIFICATION: frozenset({
        OrderStatus.VERIFICATION,
        OrderStatus.PAID,
        OrderStatus.AWAITING_PAYMENT,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PAID: frozenset({
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PROCESSING: frozenset({
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

# fulfillment states a seller may set directly through the status endpoint
SELLER_SETTABLE_STATUSES = frozenset({OrderStatus.PROCESSING, OrderStatus.SHIPPED})

PROOF_ACCEPTING_STATUSES = frozenset({OrderStatus.AWAITING_PAYMENT, OrderStatus.VERIFICATION})
CONFIRMABLE_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED})
DELIVERABLE_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.SHIPPED})
NON_CANCELLABLE_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.DELIVERED, OrderStatus.CANCELLED})

PAYMENT_DEADLINE_REASON = "Payment deadline exceeded"


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_TRANSITIONS.get(current, frozenset())


def parse_status(value) -> OrderStatus:
    """Coerce user input to ``OrderStatus``; unknown values are a 400."""
    try:
        return OrderStatus(value)
    except ValueError:
        raise DomainValidationException(
            f"Invalid order status: {value}",
            field="status",
            details={"allowed": [s.value for s in OrderStatus]},
        )


def generate_order_number(now: Optional[datetime] = None) -> str:
    """``ORD-YYYYMMDD-NNNNN`` with five random digits."""
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{random.randint(0, 99999):05d}"


def compute_amounts(
    product_price: Optional[int],
    platform_fee: Optional[int],
    total_amount: Optional[int],
    legacy_fee_rate: float,
) -> tuple[int, int, int]:
    """
    Resolve ``(product_price, platform_fee, total_amount)``.

    Either all three are given and must satisfy ``total = price + fee``, or
    only ``total_amount`` is given and the fee is derived as
    ``ceil(total * legacy_fee_rate)``.
    """
    if product_price is not None and platform_fee is not None and total_amount is not None:
        if product_price + platform_fee != total_amount:
            raise DomainValidationException(
                "total_amount must equal product_price + platform_fee",
                field="total_amount",
                details={
                    "product_price": product_price,
                    "platform_fee": platform_fee,
                    "total_amount": total_amount,
                },
            )
        return product_price, platform_fee, total_amount

    if total_amount is None:
        raise DomainValidationException("total_amount is required", field="total_amount")
    if product_price is not None or platform_fee is not None:
        raise DomainValidationException(
            "product_price, platform_fee and total_amount must be given together",
            field="product_price",
        )

    fee = math.ceil(total_amount * legacy_fee_rate)
    return total_amount - fee, fee, total_amount


class OrderStateConflict(StateConflictException):
    def __init__(self, order_id: str, current: OrderStatus, target: Optional[OrderStatus] = None, message: Optional[str] = None):
        details = {"order_id": order_id, "status": current.value}
        if target is not None:
            details["target"] = target.value
        super().__init__(
            message or f"Order cannot move from {current.value} to {target.value if target else 'requested state'}",
            code=EscrowCode.ORDER_STATE_CONFLICT,
            details=details,
        )


@dataclass
class Order:
    """Escrow order aggregate root."""

    id: str
    order_number: str
    seller_id: str
    title: str
    product_price: int
    platform_fee: int
    total_amount: int
    status: OrderStatus = OrderStatus.AWAITING_PAYMENT
    buyer_id: Optional[str] = None
    description: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not isinstance(self.status, OrderStatus):
            self.status = OrderStatus(self.status)
        if self.product_price + self.platform_fee != self.total_amount:
            raise DomainValidationException(
                "total_amount must equal product_price + platform_fee",
                field="total_amount",
            )
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)
        self.cancelled_at = ensure_utc(self.cancelled_at)
        self.delivered_at = ensure_utc(self.delivered_at)

    @classmethod
    def new(
        cls,
        seller_id: str,
        title: str,
        product_price: int,
        platform_fee: int,
        total_amount: int,
        description: Optional[str] = None,
    ) -> "Order":
        now = utc_now()
        return cls(
            id=str(uuid.uuid4()),
            order_number=generate_order_number(now),
            seller_id=seller_id,
            title=title,
            description=description,
            product_price=product_price,
            platform_fee=platform_fee,
            total_amount=total_amount,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition_to(self, target: OrderStatus) -> OrderStatus:
        """Apply ``target`` if the table allows it; returns the previous status."""
        if not can_transition(self.status, target):
            raise OrderStateConflict(self.id, self.status, target)
        previous = self.status
        self.status = target
        self.updated_at = utc_now()
        return previous

    def submit_proof(self, buyer_id: Optional[str]) -> OrderStatus:
        if self.status not in PROOF_ACCEPTING_STATUSES:
            raise OrderStateConflict(
                self.id, self.status, OrderStatus.VERIFICATION,
                message=f"Order in status {self.status.value} does not accept payment proofs",
            )
        if buyer_id is not None:
            self.buyer_id = buyer_id
        return self.transition_to(OrderStatus.VERIFICATION)

    def approve_payment(self) -> OrderStatus:
        return self._require_verification(OrderStatus.PAID)

    def reject_payment(self) -> OrderStatus:
        return self._require_verification(OrderStatus.AWAITING_PAYMENT)

    def _require_verification(self, target: OrderStatus) -> OrderStatus:
        if self.status != OrderStatus.VERIFICATION:
            raise OrderStateConflict(
                self.id, self.status, target,
                message=f"Order is not awaiting verification (status {self.status.value})",
            )
        return self.transition_to(target)

    def set_fulfillment_status(self, target: OrderStatus) -> OrderStatus:
        """Seller-driven move to processing/shipped."""
        if target not in SELLER_SETTABLE_STATUSES:
            raise OrderStateConflict(
                self.id, self.status, target,
                message=f"Status {target.value} can only be set through its dedicated operation",
            )
        return self.transition_to(target)

    def mark_delivered(self) -> OrderStatus:
        if self.status not in DELIVERABLE_STATUSES:
            raise OrderStateConflict(self.id, self.status, OrderStatus.DELIVERED)
        previous = self.transition_to(OrderStatus.DELIVERED)
        self.delivered_at = self.updated_at
        return previous

    def confirm_received(self) -> OrderStatus:
        if self.status not in CONFIRMABLE_STATUSES:
            raise OrderStateConflict(self.id, self.status, OrderStatus.COMPLETED)
        return self.transition_to(OrderStatus.COMPLETED)

    def complete(self) -> Optional[OrderStatus]:
        """Move to completed; no-op (returns None) when already completed."""
        if self.status == OrderStatus.COMPLETED:
            return None
        return self.transition_to(OrderStatus.COMPLETED)

    def ensure_cancellable(self) -> None:
        if self.status in NON_CANCELLABLE_STATUSES:
            raise OrderStateConflict(
                self.id, self.status, OrderStatus.CANCELLED,
                message=f"Order in status {self.status.value} cannot be cancelled",
            )

    def cancel(self, reason: str, cancelled_by: Optional[str]) -> OrderStatus:
        self.ensure_cancellable()
        previous = self.transition_to(OrderStatus.CANCELLED)
        self.cancelled_at = self.updated_at
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        return previous

    def is_party(self, user_id: Optional[str]) -> bool:
        return user_id is not None and user_id in (self.seller_id, self.buyer_id)
