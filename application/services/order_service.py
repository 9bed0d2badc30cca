"""Order use cases (application/services)."""
from __future__ import annotations

from typing import Callable, List, Optional

from application.dtos.base import CurrentUser
from application.dtos.orders import (
    OrderCreateDTO,
    OrderCreatedDTO,
    OrderDTO,
    OrderPublicDTO,
    SellerStatsDTO,
)
from application.dtos.payments import PaymentDTO
from application.services.notification_service import NotificationApplicationService
from core.config import settings
from core.exceptions import RateLimitException
from core.logging_config import get_logger
from domain.cancellation.service import close_requests_of_finished_orders
from domain.common.exceptions import ForbiddenException
from domain.common.time import utc_now
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.fund_release.service import FundReleaseDomainService
from domain.order.entity import Order, OrderStatus, parse_status
from domain.order.service import OrderCooldownActive, OrderDomainService, OrderNotFoundException
from shared.codes.escrow_codes import EscrowCode


logger = get_logger(__name__)

PAID_LIKE_STATUSES = (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED)


def parse_status_filter(value: Optional[str]) -> Optional[OrderStatus]:
    """``None``/empty/``all`` mean no filter."""
    if value is None or value == "" or value == "all":
        return None
    return parse_status(value)


class OrderApplicationService:
    """Seller, buyer and admin order workflows."""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        notifications: Optional[NotificationApplicationService] = None,
        *,
        clock: Callable = utc_now,
    ):
        self._uow_factory = uow_factory
        self._notifications = notifications
        self._clock = clock

    def _domain_service(self, uow: AbstractUnitOfWork) -> OrderDomainService:
        return OrderDomainService(
            uow.order_repository,
            uow.payment_repository,
            min_product_price=settings.escrow.min_product_price,
            legacy_fee_rate=settings.escrow.legacy_fee_rate,
            cooldown_seconds=settings.escrow.order_cooldown_seconds,
        )

    async def _publish(self, events: list) -> None:
        if self._notifications is not None and events:
            await self._notifications.dispatch(events)

    @staticmethod
    def _ensure_can_view(order: Order, user: CurrentUser) -> None:
        if not user.is_admin and not order.is_party(user.id):
            raise ForbiddenException("Not a party to this order")

    # ------------------------------------------------------------------
    # Seller
    # ------------------------------------------------------------------
    async def create_order(self, seller_id: str, data: OrderCreateDTO) -> OrderCreatedDTO:
        async with self._uow_factory() as uow:
            service = self._domain_service(uow)
            try:
                order, payment = await service.create_order(
                    seller_id,
                    data.title or "",
                    product_price=data.product_price,
                    platform_fee=data.platform_fee,
                    total_amount=data.total_amount,
                    description=data.description,
                    now=self._clock(),
                )
            except OrderCooldownActive as exc:
                raise RateLimitException(
                    retry_after=exc.retry_after,
                    message=f"Please wait {exc.retry_after} seconds before creating another order",
                    code=EscrowCode.ORDER_COOLDOWN,
                ) from exc
            result = OrderCreatedDTO(
                order=OrderDTO.model_validate(order),
                payment=PaymentDTO.model_validate(payment),
            )
            events = list(service.events)

        logger.info(
            "order_create_completed",
            order_id=order.id,
            order_number=order.order_number,
            seller_id=seller_id,
            total_amount=order.total_amount,
        )
        await self._publish(events)
        return result

    async def list_seller_orders(self, seller_id: str, skip: int = 0, limit: int = 100) -> List[OrderDTO]:
        async with self._uow_factory(readonly=True) as uow:
            orders = await uow.order_repository.list_by_seller(seller_id, skip=skip, limit=limit)
            return [OrderDTO.model_validate(o) for o in orders]

    async def update_status(self, order_id: str, seller_id: str, status: Optional[str]) -> OrderDTO:
        target = parse_status(status)
        async with self._uow_factory() as uow:
            service = self._domain_service(uow)
            order = await service.set_status(order_id, seller_id, target)
            events = list(service.events)
        await self._publish(events)
        return OrderDTO.model_validate(order)

    async def seller_stats(self, seller_id: str) -> SellerStatsDTO:
        async with self._uow_factory(readonly=True) as uow:
            counts = await uow.order_repository.count_by_status(seller_id=seller_id)
            revenue = await uow.order_repository.sum_total_by_status(OrderStatus.COMPLETED, seller_id=seller_id)
        return SellerStatsDTO(
            total_orders=sum(counts.values()),
            awaiting_payment=counts.get(OrderStatus.AWAITING_PAYMENT, 0),
            paid=sum(counts.get(s, 0) for s in PAID_LIKE_STATUSES),
            completed=counts.get(OrderStatus.COMPLETED, 0),
            total_revenue=revenue,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    async def get_order(self, order_id: str, user: CurrentUser) -> OrderDTO:
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.order_repository.get_by_id(order_id)
            if order is None:
                raise OrderNotFoundException(order_id)
            self._ensure_can_view(order, user)
            return OrderDTO.model_validate(order)

    async def get_by_number(self, order_number: str) -> OrderPublicDTO:
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.order_repository.get_by_number(order_number)
            if order is None:
                raise OrderNotFoundException(order_number)
            return OrderPublicDTO(
                order_id=order.id,
                order_number=order.order_number,
                title=order.title,
                description=order.description,
                total_amount=order.total_amount,
                status=order.status,
                buyer_id=order.buyer_id,
                seller_id=order.seller_id,
            )

    async def list_orders(self, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[OrderDTO]:
        status_filter = parse_status_filter(status)
        async with self._uow_factory(readonly=True) as uow:
            orders = await uow.order_repository.list_all(status=status_filter, skip=skip, limit=limit)
            return [OrderDTO.model_validate(o) for o in orders]

    # ------------------------------------------------------------------
    # Completion paths; both open the order's fund release
    # ------------------------------------------------------------------
    async def confirm_received(self, order_id: str, buyer_id: str) -> OrderDTO:
        async with self._uow_factory() as uow:
            service = self._domain_service(uow)
            order = await service.confirm_received(order_id, buyer_id)
            release = await FundReleaseDomainService(
                uow.order_repository, uow.fund_release_repository
            ).open_for_order(order)
            await close_requests_of_finished_orders(uow.cancellation_repository, [order])
            events = list(service.events)

        logger.info("order_confirmed_received", order_id=order.id, buyer_id=buyer_id, release_id=release.id)
        await self._publish(events)
        return OrderDTO.model_validate(order)

    async def mark_delivered(self, order_id: str, admin_id: Optional[str] = None) -> OrderDTO:
        async with self._uow_factory() as uow:
            service = self._domain_service(uow)
            order = await service.mark_delivered(order_id)
            release = await FundReleaseDomainService(
                uow.order_repository, uow.fund_release_repository
            ).open_for_order(order)
            events = list(service.events)

        logger.info("order_marked_delivered", order_id=order.id, admin_id=admin_id, release_id=release.id)
        await self._publish(events)
        return OrderDTO.model_validate(order)

