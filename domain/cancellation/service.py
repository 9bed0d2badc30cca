"""
Cancellation domain service.

A seller cancel is decided with the order row locked: with no payment proof
on record the order is cancelled on the spot, otherwise a pending request is
queued for an admin.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from domain.common.exceptions import (
    DomainValidationException,
    ForbiddenException,
    ResourceNotFoundException,
    StateConflictException,
)
from domain.common.time import utc_now
from domain.order.entity import Order
from domain.order.events import CancellationRequested, CancellationResolved, OrderCancelled
from domain.order.repository import OrderRepository
from domain.order.service import OrderNotFoundException
from domain.payment.repository import PaymentProofRepository
from shared.codes.escrow_codes import EscrowCode
from .entity import CancellationRequest
from .repository import CancellationRequestRepository


RESOLVE_ACTIONS = ("approve", "reject")
CLOSED_BY_ORDER_NOTES = "Closed automatically: order is {status}"


class CancellationNotFoundException(ResourceNotFoundException):
    def __init__(self, identifier: str):
        super().__init__("Cancellation request", identifier, code=EscrowCode.CANCELLATION_NOT_FOUND)


class CancellationAlreadyPending(StateConflictException):
    def __init__(self, order_id: str, request_id: str):
        super().__init__(
            "A cancellation request for this order is already pending",
            code=EscrowCode.CANCELLATION_ALREADY_PENDING,
            details={"order_id": order_id, "request_id": request_id},
        )


@dataclass
class CancellationOutcome:
    order: Order
    cancelled_immediately: bool
    request: Optional[CancellationRequest] = None


class CancellationDomainService:

    def __init__(
        self,
        order_repository: OrderRepository,
        proof_repository: PaymentProofRepository,
        cancellation_repository: CancellationRequestRepository,
        *,
        reason_min_length: int,
    ):
        self.order_repository = order_repository
        self.proof_repository = proof_repository
        self.cancellation_repository = cancellation_repository
        self.reason_min_length = reason_min_length
        self.events: List = []

    async def request_cancellation(self, order_id: str, seller_id: str, reason: Optional[str]) -> CancellationOutcome:
        reason = (reason or "").strip()
        if len(reason) < self.reason_min_length:
            raise DomainValidationException(
                f"Cancellation reason must be at least {self.reason_min_length} characters",
                field="reason",
                details={"min_length": self.reason_min_length},
            )

        order = await self.order_repository.get_by_id(order_id, for_update=True)
        if order is None:
            raise OrderNotFoundException(order_id)
        if order.seller_id != seller_id:
            raise ForbiddenException("Only the seller can cancel this order")
        order.ensure_cancellable()

        pending = await self.cancellation_repository.get_pending_for_order(order.id)
        if pending is not None:
            raise CancellationAlreadyPending(order.id, pending.id)

        if not await self.proof_repository.exists_for_order(order.id):
            previous = order.cancel(reason, seller_id)
            order = await self.order_repository.update(order, expected_status=previous)
            self.events.append(OrderCancelled(
                order_id=order.id,
                order_number=order.order_number,
                seller_id=order.seller_id,
                buyer_id=order.buyer_id,
                reason=reason,
                cancelled_by=seller_id,
            ))
            return CancellationOutcome(order=order, cancelled_immediately=True)

        request = await self.cancellation_repository.create(CancellationRequest.new(order.id, seller_id, reason))
        self.events.append(CancellationRequested(
            order_id=order.id,
            order_number=order.order_number,
            seller_id=order.seller_id,
            buyer_id=order.buyer_id,
            request_id=request.id,
            reason=reason,
        ))
        return CancellationOutcome(order=order, cancelled_immediately=False, request=request)

    async def get_request_for_order(self, order_id: str, user_id: str, *, is_admin: bool = False) -> Optional[CancellationRequest]:
        order = await self.order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        if not is_admin and not order.is_party(user_id):
            raise ForbiddenException("Not a party to this order")
        return await self.cancellation_repository.get_latest_for_order(order.id)

    async def resolve_request(
        self,
        request_id: str,
        action: str,
        *,
        reviewer_id: Optional[str],
        admin_notes: Optional[str] = None,
    ) -> tuple[CancellationRequest, Order]:
        if action not in RESOLVE_ACTIONS:
            raise DomainValidationException(
                f"action must be one of {', '.join(RESOLVE_ACTIONS)}",
                field="action",
            )

        request = await self.cancellation_repository.get_by_id(request_id, for_update=True)
        if request is None:
            raise CancellationNotFoundException(request_id)
        order = await self.order_repository.get_by_id(request.order_id, for_update=True)
        if order is None:
            raise OrderNotFoundException(request.order_id)

        approve = action == "approve"
        previous_request_status = request.status
        request.resolve(approve, reviewer_id, admin_notes)

        if approve:
            # raises before anything is written when the order is already terminal
            previous_order_status = order.cancel(request.reason, request.requested_by)
            order = await self.order_repository.update(order, expected_status=previous_order_status)

        request = await self.cancellation_repository.update(request, expected_status=previous_request_status)

        self.events.append(CancellationResolved(
            order_id=order.id,
            order_number=order.order_number,
            seller_id=order.seller_id,
            buyer_id=order.buyer_id,
            request_id=request.id,
            approved=approve,
            admin_notes=admin_notes,
        ))
        if approve:
            self.events.append(OrderCancelled(
                order_id=order.id,
                order_number=order.order_number,
                seller_id=order.seller_id,
                buyer_id=order.buyer_id,
                reason=request.reason,
                cancelled_by=request.requested_by,
            ))
        return request, order

    def clear_events(self) -> None:
        self.events.clear()


async def close_requests_of_finished_orders(
    repository: CancellationRequestRepository,
    orders: Iterable[Order],
) -> int:
    """Reject pending requests whose order reached a terminal status."""
    by_status: Dict[str, List[str]] = {}
    for order in orders:
        if order.is_terminal:
            by_status.setdefault(order.status.value, []).append(order.id)
    closed = 0
    now = utc_now()
    for status, order_ids in by_status.items():
        closed += await repository.close_pending_for_orders(
            order_ids, CLOSED_BY_ORDER_NOTES.format(status=status), now
        )
    return closed
