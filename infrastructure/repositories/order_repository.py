"""
SQLAlchemy implementation of OrderRepository.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select, update

from domain.common.exceptions import StateConflictException
from domain.common.time import ensure_utc
from domain.order.entity import Order, OrderStatus
from domain.order.repository import OrderRepository
from infrastructure.models.order import OrderModel
from shared.codes.escrow_codes import EscrowCode
from core.logging_config import get_logger
from .base import SQLAlchemyRepository


logger = get_logger(__name__)


class SQLAlchemyOrderRepository(SQLAlchemyRepository, OrderRepository):

    def _to_entity(self, model: OrderModel) -> Order:
        return Order(
            id=model.id,
            order_number=model.order_number,
            seller_id=model.seller_id,
            buyer_id=model.buyer_id,
            title=model.title,
            description=model.description,
            product_price=model.product_price,
            platform_fee=model.platform_fee,
            total_amount=model.total_amount,
            status=OrderStatus(model.status),
            cancelled_at=model.cancelled_at,
            cancellation_reason=model.cancellation_reason,
            cancelled_by=model.cancelled_by,
            delivered_at=model.delivered_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Order) -> OrderModel:
        return OrderModel(**self._values(entity), id=entity.id, created_at=entity.created_at)

    @staticmethod
    def _values(entity: Order) -> dict:
        return {
            "order_number": entity.order_number,
            "seller_id": entity.seller_id,
            "buyer_id": entity.buyer_id,
            "title": entity.title,
            "description": entity.description,
            "product_price": entity.product_price,
            "platform_fee": entity.platform_fee,
            "total_amount": entity.total_amount,
            "status": entity.status.value,
            "cancelled_at": entity.cancelled_at,
            "cancellation_reason": entity.cancellation_reason,
            "cancelled_by": entity.cancelled_by,
            "delivered_at": entity.delivered_at,
            "updated_at": entity.updated_at,
        }

    async def create(self, order: Order) -> Order:
        db_order = self._to_model(order)
        self.session.add(db_order)
        await self.session.flush()
        await self.session.refresh(db_order)
        logger.info(
            "order_created",
            order_id=db_order.id,
            order_number=db_order.order_number,
            seller_id=db_order.seller_id,
            total_amount=db_order.total_amount,
        )
        return self._to_entity(db_order)

    async def get_by_id(self, order_id: str, *, for_update: bool = False) -> Optional[Order]:
        query = select(OrderModel).where(OrderModel.id == order_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def get_by_number(self, order_number: str) -> Optional[Order]:
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.order_number == order_number)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def update(self, order: Order, *, expected_status: OrderStatus) -> Order:
        values = self._values(order)
        values.pop("order_number")
        await self._compare_and_set(
            OrderModel,
            order.id,
            expected_status.value,
            values,
            lambda: StateConflictException(
                "Order was modified concurrently",
                code=EscrowCode.ORDER_STATE_CONFLICT,
                details={"order_id": order.id, "expected_status": expected_status.value},
            ),
        )
        logger.info(
            "order_updated",
            order_id=order.id,
            previous_status=expected_status.value,
            status=order.status.value,
        )
        return order

    async def list_by_seller(self, seller_id: str, skip: int = 0, limit: int = 100) -> List[Order]:
        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.seller_id == seller_id)
            .order_by(OrderModel.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return [self._to_entity(o) for o in result.scalars().all()]

    async def list_all(
        self,
        status: Optional[OrderStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Order]:
        query = select(OrderModel)
        if status:
            query = query.where(OrderModel.status == status.value)
        query = query.order_by(OrderModel.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return [self._to_entity(o) for o in result.scalars().all()]

    async def get_latest_created_at_by_seller(self, seller_id: str) -> Optional[datetime]:
        result = await self.session.execute(
            select(func.max(OrderModel.created_at)).where(OrderModel.seller_id == seller_id)
        )
        latest = result.scalar_one_or_none()
        return ensure_utc(latest)

    async def cancel_expired(self, cutoff: datetime, reason: str, now: datetime) -> List[Order]:
        stmt = (
            update(OrderModel)
            .where(
                OrderModel.status == OrderStatus.AWAITING_PAYMENT.value,
                OrderModel.created_at < cutoff,
            )
            .values(
                status=OrderStatus.CANCELLED.value,
                cancelled_at=now,
                cancellation_reason=reason,
                cancelled_by=None,
                updated_at=now,
            )
            .returning(OrderModel)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        cancelled = [self._to_entity(o) for o in result.scalars().all()]
        logger.info(
            "orders_expired",
            cutoff=cutoff.isoformat(),
            cancelled_count=len(cancelled),
        )
        return cancelled

    async def count_by_status(self, seller_id: Optional[str] = None) -> dict[OrderStatus, int]:
        query = select(OrderModel.status, func.count(OrderModel.id))
        if seller_id is not None:
            query = query.where(OrderModel.seller_id == seller_id)
        result = await self.session.execute(query.group_by(OrderModel.status))
        return {OrderStatus(status): count for status, count in result.all()}

    async def sum_total_by_status(self, status: OrderStatus, seller_id: Optional[str] = None) -> int:
        query = select(func.coalesce(func.sum(OrderModel.total_amount), 0)).where(OrderModel.status == status.value)
        if seller_id is not None:
            query = query.where(OrderModel.seller_id == seller_id)
        result = await self.session.execute(query)
        return int(result.scalar_one())
