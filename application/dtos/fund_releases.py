"""Fund release DTOs."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from domain.fund_release.entity import FundReleaseStatus
from .base import DTOBase
from .orders import OrderDTO


class FundReleaseDTO(DTOBase):
    id: str
    order_id: str
    seller_id: str
    amount: int
    status: FundReleaseStatus
    transferred_at: Optional[datetime] = None
    transferred_by: Optional[str] = None
    transfer_proof: Optional[str] = None
    transfer_note: Optional[str] = None
    created_at: datetime


class FundReleaseCompleteDTO(DTOBase):
    transfer_proof: Optional[str] = Field(None, max_length=1024)
    transfer_note: Optional[str] = None


class FundReleaseCompletedDTO(DTOBase):
    release: FundReleaseDTO
    order: OrderDTO
