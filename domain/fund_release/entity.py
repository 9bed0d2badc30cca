"""
Fund release ledger entry - the platform's obligation to pay the seller.
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


class FundReleaseStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass
class FundRelease:
    id: str
    order_id: str
    seller_id: str
    amount: int
    status: FundReleaseStatus = FundReleaseStatus.PENDING
    transferred_at: Optional[datetime] = None
    transferred_by: Optional[str] = None
    transfer_proof: Optional[str] = None
    transfer_note: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not isinstance(self.status, FundReleaseStatus):
            self.status = FundReleaseStatus(self.status)
        self.created_at = ensure_utc(self.created_at)
        self.transferred_at = ensure_utc(self.transferred_at)

    @classmethod
    def new(cls, order_id: str, seller_id: str, amount: int) -> "FundRelease":
        return cls(id=str(uuid.uuid4()), order_id=order_id, seller_id=seller_id, amount=amount)

    def complete(
        self,
        admin_id: Optional[str],
        transfer_proof: Optional[str] = None,
        transfer_note: Optional[str] = None,
    ) -> None:
        """Record the payout; a release is paid out at most once."""
        if self.status != FundReleaseStatus.PENDING:
            raise StateConflictException(
                "Fund release already completed",
                code=EscrowCode.FUND_RELEASE_ALREADY_COMPLETED,
                details={"release_id": self.id},
            )
        self.status = FundReleaseStatus.COMPLETED
        self.transferred_at = utc_now()
        self.transferred_by = admin_id
        self.transfer_proof = transfer_proof
        self.transfer_note = transfer_note
