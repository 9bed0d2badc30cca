"""
Order domain service - creation rules, guarded transitions and expiry.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from domain.common.exceptions import (
    DomainValidationException,
    ForbiddenException,
    ResourceNotFoundException,
)
from domain.payment.entity import Payment
from domain.payment.repository import PaymentRepository
from shared.codes.escrow_codes import EscrowCode
from .entity import (
    PAYMENT_DEADLINE_REASON,
    Order,
    OrderStatus,
    compute_amounts,
)
from .events import (
    OrderCancelled,
    OrderCompleted,
    OrderCreated,
    OrderDelivered,
    OrderStatusChanged,
)
from .repository import OrderRepository


class OrderNotFoundException(ResourceNotFoundException):
    def __init__(self, identifier: str):
        super().__init__("Order", identifier, code=EscrowCode.ORDER_NOT_FOUND)


class OrderCooldownActive(Exception):
    """Raised with the remaining seconds; mapped to a rate-limit error by the application."""

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"retry after {retry_after}s")


class OrderDomainService:
    """
    Order rules that need repositories:

    1. seller cooldown between order creations
    2. order + pending payment written together
    3. ownership checks for seller/buyer operations
    4. the expiry sweep
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        payment_repository: PaymentRepository,
        *,
        min_product_price: int,
        legacy_fee_rate: float,
        cooldown_seconds: int,
    ):
        self.order_repository = order_repository
        self.payment_repository = payment_repository
        self.min_product_price = min_product_price
        self.legacy_fee_rate = legacy_fee_rate
        self.cooldown_seconds = cooldown_seconds
        self.events: List = []

    async def create_order(
        self,
        seller_id: str,
        title: str,
        *,
        product_price: Optional[int],
        platform_fee: Optional[int],
        total_amount: Optional[int],
        description: Optional[str],
        now: datetime,
    ) -> tuple[Order, Payment]:
        if not title or not title.strip():
            raise DomainValidationException("title is required", field="title")

        price, fee, total = compute_amounts(product_price, platform_fee, total_amount, self.legacy_fee_rate)
        if price < self.min_product_price:
            raise DomainValidationException(
                f"Minimum product price is {self.min_product_price}",
                field="product_price",
                details={"min_product_price": self.min_product_price},
            )

        last_created = await self.order_repository.get_latest_created_at_by_seller(seller_id)
        if last_created is not None:
            elapsed = (now - last_created).total_seconds()
            if elapsed < self.cooldown_seconds:
                raise OrderCooldownActive(int(self.cooldown_seconds - elapsed) + 1)

        order = Order.new(
            seller_id=seller_id,
            title=title.strip(),
            description=description,
            product_price=price,
            platform_fee=fee,
            total_amount=total,
        )
        order = await self.order_repository.create(order)
        payment = await self.payment_repository.create(Payment.new(order.id, order.total_amount))

        self.events.append(OrderCreated(
            order_id=order.id,
            order_number=order.order_number,
            seller_id=order.seller_id,
            total_amount=order.total_amount,
        ))
        return order, payment

    async def get_order(self, order_id: str, *, for_update: bool = False) -> Order:
        order = await self.order_repository.get_by_id(order_id, for_update=for_update)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    async def set_status(self, order_id: str, seller_id: str, target: OrderStatus) -> Order:
        order = await self.get_order(order_id, for_update=True)
        if order.seller_id != seller_id:
            raise ForbiddenException("Only the seller can update this order")
        previous = order.set_fulfillment_status(target)
        order = await self.order_repository.update(order, expected_status=previous)
        self.events.append(OrderStatusChanged(
            order_id=order.id,
            order_number=order.order_number,
            seller_id=order.seller_id,
            buyer_id=order.buyer_id,
            previous=previous.value,
            current=order.status.value,
        ))
        return order

    async def mark_delivered(self, order_id: str) -> Order:
        order = await self.get_order(order_id, for_update=True)
        previous = order.mark_delivered()
        order = await self.order_repository.update(order, expected_status=previous)
        self.events.append(OrderDelivered(
            order_id=order.id,
            order_number=order.order_number,
            seller_id=order.seller_id,
            buyer_id=order.buyer_id,
        ))
        return order

    async def confirm_received(self, order_id: str, buyer_id: str) -> Order:
        order = await self.get_order(order_id, for_update=True)
        if order.buyer_id is None or order.buyer_id != buyer_id:
            raise ForbiddenException("Only the buyer can confirm receipt")
        previous = order.confirm_received()
        order = await self.order_repository.update(order, expected_status=previous)
        self.events.append(OrderCompleted(
            order_id=order.id,
            order_number=order.order_number,
            seller_id=order.seller_id,
            buyer_id=order.buyer_id,
        ))
        return order

    async def cancel_expired(self, now: datetime, deadline: timedelta) -> List[Order]:
        cancelled = await self.order_repository.cancel_expired(now - deadline, PAYMENT_DEADLINE_REASON, now)
        for order in cancelled:
            self.events.append(OrderCancelled(
                order_id=order.id,
                order_number=order.order_number,
                seller_id=order.seller_id,
                buyer_id=order.buyer_id,
                reason=PAYMENT_DEADLINE_REASON,
                automatic=True,
            ))
        return cancelled

    def clear_events(self) -> None:
        self.events.clear()
