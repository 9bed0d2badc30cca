"""QRIS DTOs."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, StrictInt

from .base import DTOBase

# qris_transactions.amount is a BIGINT
MAX_QRIS_AMOUNT = 2 ** 63 - 1


class QrisUploadDTO(DTOBase):
    qris_data: Optional[str] = None
    merchant_name: Optional[str] = None
    merchant_city: Optional[str] = None


class QrisSettingDTO(DTOBase):
    id: str
    qris_data: str
    merchant_name: Optional[str] = None
    merchant_city: Optional[str] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: datetime


class QrisGenerateDTO(DTOBase):
    # the codec rejects missing or non-positive amounts as InvalidInput
    amount: Optional[StrictInt] = Field(None, le=MAX_QRIS_AMOUNT)
    order_id: Optional[str] = None


class QrisGeneratedDTO(DTOBase):
    qris_string: str
    amount: int
    merchant_name: Optional[str] = None
    merchant_city: Optional[str] = None
    transaction_id: str
    expires_at: datetime


class QrisTransactionDTO(DTOBase):
    id: str
    user_id: str
    order_id: Optional[str] = None
    amount: int
    generated_qris: str
    status: str
    expires_at: Optional[datetime] = None
    created_at: datetime
