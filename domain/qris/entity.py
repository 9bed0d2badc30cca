"""
QRIS settings and generated-transaction entities.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from domain.common.time import ensure_utc, utc_now


@dataclass
class QrisSetting:
    """Merchant static QRIS payload; exactly one row is active at a time."""

    id: str
    qris_data: str
    merchant_name: Optional[str]
    merchant_city: Optional[str]
    created_by: Optional[str]
    is_active: bool = True
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.created_at = ensure_utc(self.created_at)

    @classmethod
    def new(
        cls,
        qris_data: str,
        merchant_name: Optional[str],
        merchant_city: Optional[str],
        created_by: Optional[str],
    ) -> "QrisSetting":
        return cls(
            id=str(uuid.uuid4()),
            qris_data=qris_data,
            merchant_name=merchant_name,
            merchant_city=merchant_city,
            created_by=created_by,
        )


@dataclass
class QrisTransaction:
    id: str
    user_id: str
    order_id: Optional[str]
    amount: int
    generated_qris: str
    status: str = "pending"
    expires_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.created_at = ensure_utc(self.created_at)
        self.expires_at = ensure_utc(self.expires_at)

    @classmethod
    def new(
        cls,
        user_id: str,
        order_id: Optional[str],
        amount: int,
        generated_qris: str,
        ttl: timedelta,
    ) -> "QrisTransaction":
        now = datetime.now(timezone.utc)
        return cls(
            id=str(uuid.uuid4()),
            user_id=user_id,
            order_id=order_id,
            amount=amount,
            generated_qris=generated_qris,
            expires_at=now + ttl,
            created_at=now,
        )
