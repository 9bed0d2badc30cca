"""Order DTOs."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from domain.order.entity import OrderStatus
from .base import DTOBase
from .payments import PaymentDTO


class OrderCreateDTO(DTOBase):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    product_price: Optional[int] = Field(None, ge=0)
    platform_fee: Optional[int] = Field(None, ge=0)
    total_amount: Optional[int] = Field(None, ge=0)


class OrderStatusUpdateDTO(DTOBase):
    status: str


class OrderCancelDTO(DTOBase):
    reason: Optional[str] = None


class OrderDTO(DTOBase):
    id: str
    order_number: str
    seller_id: str
    buyer_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    product_price: int
    platform_fee: int
    total_amount: int
    status: OrderStatus
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class OrderPublicDTO(DTOBase):
    """Projection served to anonymous buyers looking up an order number."""

    order_id: str
    order_number: str
    title: str
    description: Optional[str] = None
    total_amount: int
    status: OrderStatus
    buyer_id: Optional[str] = None
    seller_id: str


class OrderCreatedDTO(DTOBase):
    order: OrderDTO
    payment: PaymentDTO


class OrderCancellationResultDTO(DTOBase):
    cancelled_immediately: bool
    message: str
    order: OrderDTO
    request_id: Optional[str] = None


class ExpirySweepResultDTO(DTOBase):
    cancelled_count: int
    order_ids: list[str]


class AdminStatsDTO(DTOBase):
    total_orders: int
    pending_payments: int
    verified_payments: int
    total_revenue: int
    awaiting_payment: int
    in_verification: int
    active_orders: int


class SellerStatsDTO(DTOBase):
    total_orders: int
    awaiting_payment: int
    paid: int
    completed: int
    total_revenue: int
