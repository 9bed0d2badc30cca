"""Cancellation request DTOs."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from domain.cancellation.entity import CancellationStatus
from .base import DTOBase
from .orders import OrderDTO


class CancellationRequestDTO(DTOBase):
    id: str
    order_id: str
    requested_by: str
    reason: str
    status: CancellationStatus
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    requested_at: datetime


class CancellationLookupDTO(DTOBase):
    has_request: bool
    request: Optional[CancellationRequestDTO] = None


class CancellationResolveDTO(DTOBase):
    action: str
    admin_notes: Optional[str] = None


class CancellationResolvedDTO(DTOBase):
    request: CancellationRequestDTO
    order: OrderDTO
