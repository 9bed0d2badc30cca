"""
SQLAlchemy repositories for payments and payment proofs.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select, update

from domain.common.exceptions import StateConflictException
from domain.payment.entity import Payment, PaymentProof, PaymentStatus, ProofStatus
from domain.payment.repository import PaymentProofRepository, PaymentRepository
from infrastructure.models.payment import PaymentModel, PaymentProofModel
from shared.codes.escrow_codes import EscrowCode
from core.logging_config import get_logger
from .base import SQLAlchemyRepository


logger = get_logger(__name__)


class SQLAlchemyPaymentRepository(SQLAlchemyRepository, PaymentRepository):

    def _to_entity(self, model: PaymentModel) -> Payment:
        return Payment(
            id=model.id,
            order_id=model.order_id,
            amount=model.amount,
            status=PaymentStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Payment) -> PaymentModel:
        return PaymentModel(
            id=entity.id,
            order_id=entity.order_id,
            amount=entity.amount,
            status=entity.status.value,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def create(self, payment: Payment) -> Payment:
        db_payment = self._to_model(payment)
        self.session.add(db_payment)
        await self.session.flush()
        await self.session.refresh(db_payment)
        logger.info("payment_created", payment_id=db_payment.id, order_id=db_payment.order_id)
        return self._to_entity(db_payment)

    async def get_by_id(self, payment_id: str, *, for_update: bool = False) -> Optional[Payment]:
        query = select(PaymentModel).where(PaymentModel.id == payment_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        db_payment = result.scalar_one_or_none()
        return self._to_entity(db_payment) if db_payment else None

    async def get_by_order_id(self, order_id: str) -> Optional[Payment]:
        result = await self.session.execute(
            select(PaymentModel).where(PaymentModel.order_id == order_id)
        )
        db_payment = result.scalar_one_or_none()
        return self._to_entity(db_payment) if db_payment else None

    async def update(self, payment: Payment, *, expected_status: PaymentStatus) -> Payment:
        await self._compare_and_set(
            PaymentModel,
            payment.id,
            expected_status.value,
            {"status": payment.status.value, "updated_at": payment.updated_at},
            lambda: StateConflictException(
                "Payment was modified concurrently",
                details={"payment_id": payment.id, "expected_status": expected_status.value},
            ),
        )
        logger.info(
            "payment_updated",
            payment_id=payment.id,
            order_id=payment.order_id,
            status=payment.status.value,
        )
        return payment


class SQLAlchemyPaymentProofRepository(SQLAlchemyRepository, PaymentProofRepository):

    def _to_entity(self, model: PaymentProofModel) -> PaymentProof:
        return PaymentProof(
            id=model.id,
            payment_id=model.payment_id,
            order_id=model.order_id,
            amount=model.amount,
            proof_url=model.proof_url,
            note=model.note,
            status=ProofStatus(model.status),
            rejection_reason=model.rejection_reason,
            reviewed_by=model.reviewed_by,
            reviewed_at=model.reviewed_at,
            submitted_by=model.submitted_by,
            created_at=model.created_at,
        )

    def _to_model(self, entity: PaymentProof) -> PaymentProofModel:
        return PaymentProofModel(
            id=entity.id,
            payment_id=entity.payment_id,
            order_id=entity.order_id,
            amount=entity.amount,
            proof_url=entity.proof_url,
            note=entity.note,
            status=entity.status.value,
            rejection_reason=entity.rejection_reason,
            reviewed_by=entity.reviewed_by,
            reviewed_at=entity.reviewed_at,
            submitted_by=entity.submitted_by,
            created_at=entity.created_at,
        )

    async def create(self, proof: PaymentProof) -> PaymentProof:
        db_proof = self._to_model(proof)
        self.session.add(db_proof)
        await self.session.flush()
        await self.session.refresh(db_proof)
        logger.info(
            "payment_proof_created",
            proof_id=db_proof.id,
            order_id=db_proof.order_id,
            submitted_by=db_proof.submitted_by,
        )
        return self._to_entity(db_proof)

    async def get_by_id(self, proof_id: str, *, for_update: bool = False) -> Optional[PaymentProof]:
        query = select(PaymentProofModel).where(PaymentProofModel.id == proof_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        db_proof = result.scalar_one_or_none()
        return self._to_entity(db_proof) if db_proof else None

    async def update(self, proof: PaymentProof, *, expected_status: ProofStatus) -> PaymentProof:
        await self._compare_and_set(
            PaymentProofModel,
            proof.id,
            expected_status.value,
            {
                "status": proof.status.value,
                "rejection_reason": proof.rejection_reason,
                "reviewed_by": proof.reviewed_by,
                "reviewed_at": proof.reviewed_at,
            },
            lambda: StateConflictException(
                "Payment proof already reviewed",
                code=EscrowCode.PROOF_ALREADY_REVIEWED,
                details={"proof_id": proof.id},
            ),
        )
        logger.info("payment_proof_reviewed", proof_id=proof.id, status=proof.status.value)
        return proof

    async def list_by_order(self, order_id: str) -> List[PaymentProof]:
        result = await self.session.execute(
            select(PaymentProofModel)
            .where(PaymentProofModel.order_id == order_id)
            .order_by(PaymentProofModel.created_at.desc())
        )
        return [self._to_entity(p) for p in result.scalars().all()]

    async def list_by_status(
        self,
        status: Optional[ProofStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[PaymentProof]:
        query = select(PaymentProofModel)
        if status:
            query = query.where(PaymentProofModel.status == status.value)
        query = query.order_by(PaymentProofModel.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return [self._to_entity(p) for p in result.scalars().all()]

    async def exists_for_order(self, order_id: str) -> bool:
        result = await self.session.execute(
            select(func.count(PaymentProofModel.id)).where(PaymentProofModel.order_id == order_id)
        )
        return result.scalar_one() > 0

    async def supersede_pending(self, order_id: str, reason: str, now: datetime) -> int:
        result = await self.session.execute(
            update(PaymentProofModel)
            .where(
                PaymentProofModel.order_id == order_id,
                PaymentProofModel.status == ProofStatus.PENDING.value,
            )
            .values(status=ProofStatus.REJECTED.value, rejection_reason=reason, reviewed_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info("payment_proofs_superseded", order_id=order_id, count=result.rowcount)
        return result.rowcount

    async def count_by_status(self, status: ProofStatus) -> int:
        result = await self.session.execute(
            select(func.count(PaymentProofModel.id)).where(PaymentProofModel.status == status.value)
        )
        return result.scalar_one()
