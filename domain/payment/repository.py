"""
Payment repository interfaces.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entity import Payment, PaymentProof, PaymentStatus, ProofStatus


class PaymentRepository(ABC):

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def get_by_id(self, payment_id: str, *, for_update: bool = False) -> Optional[Payment]:
        pass

    @abstractmethod
    async def get_by_order_id(self, order_id: str) -> Optional[Payment]:
        pass

    @abstractmethod
    async def update(self, payment: Payment, *, expected_status: PaymentStatus) -> Payment:
        """Conditional update; raises StateConflictException on a lost race."""
        pass


class PaymentProofRepository(ABC):

    @abstractmethod
    async def create(self, proof: PaymentProof) -> PaymentProof:
        pass

    @abstractmethod
    async def get_by_id(self, proof_id: str, *, for_update: bool = False) -> Optional[PaymentProof]:
        pass

    @abstractmethod
    async def update(self, proof: PaymentProof, *, expected_status: ProofStatus) -> PaymentProof:
        pass

    @abstractmethod
    async def list_by_order(self, order_id: str) -> List[PaymentProof]:
        pass

    @abstractmethod
    async def list_by_status(
        self,
        status: Optional[ProofStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[PaymentProof]:
        """Newest first; ``status=None`` lists every proof."""
        pass

    @abstractmethod
    async def exists_for_order(self, order_id: str) -> bool:
        """True if any proof (of any status) was ever submitted for the order."""
        pass

    @abstractmethod
    async def supersede_pending(self, order_id: str, reason: str, now: datetime) -> int:
        """Reject every pending proof of the order; returns the count."""
        pass

    @abstractmethod
    async def count_by_status(self, status: ProofStatus) -> int:
        pass
