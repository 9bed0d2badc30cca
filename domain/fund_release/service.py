"""
Fund release domain service.
"""
from __future__ import annotations

from typing import List, Optional

from domain.common.exceptions import ResourceNotFoundException
from domain.order.entity import Order
from domain.order.events import FundReleased, OrderCompleted
from domain.order.repository import OrderRepository
from domain.order.service import OrderNotFoundException
from shared.codes.escrow_codes import EscrowCode
from .entity import FundRelease
from .repository import FundReleaseRepository


class FundReleaseNotFoundException(ResourceNotFoundException):
    def __init__(self, identifier: str):
        super().__init__("Fund release", identifier, code=EscrowCode.FUND_RELEASE_NOT_FOUND)


class FundReleaseDomainService:
    """
    Business rules:
    1. one release per order; opening it again returns the existing row
    2. a release is completed exactly once
    3. completing a release completes the order
    """

    def __init__(self, order_repository: OrderRepository, release_repository: FundReleaseRepository):
        self.order_repository = order_repository
        self.release_repository = release_repository
        self.events: List = []

    async def open_for_order(self, order: Order) -> FundRelease:
        existing = await self.release_repository.get_by_order_id(order.id)
        if existing is not None:
            return existing
        return await self.release_repository.create(
            FundRelease.new(order.id, order.seller_id, order.total_amount)
        )

    async def complete_release(
        self,
        release_id: str,
        *,
        admin_id: Optional[str],
        transfer_proof: Optional[str] = None,
        transfer_note: Optional[str] = None,
    ) -> tuple[FundRelease, Order]:
        release = await self.release_repository.get_by_id(release_id, for_update=True)
        if release is None:
            raise FundReleaseNotFoundException(release_id)
        order = await self.order_repository.get_by_id(release.order_id, for_update=True)
        if order is None:
            raise OrderNotFoundException(release.order_id)

        previous_release_status = release.status
        release.complete(admin_id, transfer_proof, transfer_note)

        previous_order_status = order.complete()
        release = await self.release_repository.update(release, expected_status=previous_release_status)
        if previous_order_status is not None:
            order = await self.order_repository.update(order, expected_status=previous_order_status)
            self.events.append(OrderCompleted(
                order_id=order.id,
                order_number=order.order_number,
                seller_id=order.seller_id,
                buyer_id=order.buyer_id,
            ))

        self.events.append(FundReleased(
            order_id=order.id,
            order_number=order.order_number,
            seller_id=order.seller_id,
            buyer_id=order.buyer_id,
            release_id=release.id,
            amount=release.amount,
        ))
        return release, order

    def clear_events(self) -> None:
        self.events.clear()
