"""Admin dashboard counters (application/services)."""
from __future__ import annotations

from typing import Callable

from application.dtos.orders import AdminStatsDTO
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import OrderStatus
from domain.payment.entity import ProofStatus


VERIFIED_STATUSES = (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.COMPLETED)
ACTIVE_STATUSES = (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED)


class StatsApplicationService:

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]):
        self._uow_factory = uow_factory

    async def admin_stats(self) -> AdminStatsDTO:
        async with self._uow_factory(readonly=True) as uow:
            counts = await uow.order_repository.count_by_status()
            pending_proofs = await uow.proof_repository.count_by_status(ProofStatus.PENDING)
            revenue = await uow.order_repository.sum_total_by_status(OrderStatus.COMPLETED)

        return AdminStatsDTO(
            total_orders=sum(counts.values()),
            pending_payments=pending_proofs,
            verified_payments=sum(counts.get(s, 0) for s in VERIFIED_STATUSES),
            total_revenue=revenue,
            awaiting_payment=counts.get(OrderStatus.AWAITING_PAYMENT, 0),
            in_verification=counts.get(OrderStatus.VERIFICATION, 0),
            active_orders=sum(counts.get(s, 0) for s in ACTIVE_STATUSES),
        )
