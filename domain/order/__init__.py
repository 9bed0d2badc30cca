"""Order domain exports."""
from .entity import (
    ORDER_TRANSITIONS,
    SELLER_SETTABLE_STATUSES,
    TERMINAL_STATUSES,
    Order,
    OrderStateConflict,
    OrderStatus,
    can_transition,
    compute_amounts,
    generate_order_number,
    parse_status,
)
from .repository import OrderRepository

__all__ = [
    "ORDER_TRANSITIONS",
    "SELLER_SETTABLE_STATUSES",
    "TERMINAL_STATUSES",
    "Order",
    "OrderStateConflict",
    "OrderStatus",
    "OrderRepository",
    "can_transition",
    "compute_amounts",
    "generate_order_number",
    "parse_status",
]
