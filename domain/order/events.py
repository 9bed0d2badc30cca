"""
Order domain events.

Plain dataclasses recorded by domain services and drained by the application
layer after commit to drive notifications.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class OrderEvent:
    order_id: str
    order_number: str
    seller_id: str
    buyer_id: Optional[str] = None
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class OrderCreated(OrderEvent):
    total_amount: int = 0


@dataclass
class ProofSubmitted(OrderEvent):
    proof_id: str = ""
    amount: Optional[int] = None


@dataclass
class PaymentApproved(OrderEvent):
    proof_id: str = ""


@dataclass
class PaymentRejected(OrderEvent):
    proof_id: str = ""
    reason: Optional[str] = None


@dataclass
class OrderCancelled(OrderEvent):
    reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    automatic: bool = False


@dataclass
class CancellationRequested(OrderEvent):
    request_id: str = ""
    reason: str = ""


@dataclass
class CancellationResolved(OrderEvent):
    request_id: str = ""
    approved: bool = False
    admin_notes: Optional[str] = None


@dataclass
class OrderStatusChanged(OrderEvent):
    previous: str = ""
    current: str = ""


@dataclass
class OrderDelivered(OrderEvent):
    pass


@dataclass
class OrderCompleted(OrderEvent):
    pass


@dataclass
class FundReleased(OrderEvent):
    release_id: str = ""
    amount: int = 0
