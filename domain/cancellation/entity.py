"""
Seller cancellation request entity.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from domain.common.exceptions import StateConflictException
from domain.common.time import ensure_utc, utc_now
from shared.codes.escrow_codes import EscrowCode


class CancellationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class CancellationRequest:
    id: str
    order_id: str
    requested_by: str
    reason: str
    status: CancellationStatus = CancellationStatus.PENDING
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    requested_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not isinstance(self.status, CancellationStatus):
            self.status = CancellationStatus(self.status)
        self.requested_at = ensure_utc(self.requested_at)
        self.reviewed_at = ensure_utc(self.reviewed_at)

    @classmethod
    def new(cls, order_id: str, requested_by: str, reason: str) -> "CancellationRequest":
        return cls(id=str(uuid.uuid4()), order_id=order_id, requested_by=requested_by, reason=reason)

    def resolve(self, approve: bool, reviewer_id: Optional[str], admin_notes: Optional[str]) -> None:
        if self.status != CancellationStatus.PENDING:
            raise StateConflictException(
                f"Cancellation request already {self.status.value}",
                code=EscrowCode.CANCELLATION_ALREADY_PROCESSED,
                details={"request_id": self.id, "status": self.status.value},
            )
        self.status = CancellationStatus.APPROVED if approve else CancellationStatus.REJECTED
        self.reviewed_by = reviewer_id
        self.reviewed_at = utc_now()
        self.admin_notes = admin_notes
