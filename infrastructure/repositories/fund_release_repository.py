"""
SQLAlchemy implementation of FundReleaseRepository.
"""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from domain.common.exceptions import StateConflictException
from domain.fund_release.entity import FundRelease, FundReleaseStatus
from domain.fund_release.repository import FundReleaseRepository
from infrastructure.models.fund_release import FundReleaseModel
from shared.codes.escrow_codes import EscrowCode
from core.logging_config import get_logger
from .base import SQLAlchemyRepository


logger = get_logger(__name__)


class SQLAlchemyFundReleaseRepository(SQLAlchemyRepository, FundReleaseRepository):

    def _to_entity(self, model: FundReleaseModel) -> FundRelease:
        return FundRelease(
            id=model.id,
            order_id=model.order_id,
            seller_id=model.seller_id,
            amount=model.amount,
            status=FundReleaseStatus(model.status),
            transferred_at=model.transferred_at,
            transferred_by=model.transferred_by,
            transfer_proof=model.transfer_proof,
            transfer_note=model.transfer_note,
            created_at=model.created_at,
        )

    def _to_model(self, entity: FundRelease) -> FundReleaseModel:
        return FundReleaseModel(
            id=entity.id,
            order_id=entity.order_id,
            seller_id=entity.seller_id,
            amount=entity.amount,
            status=entity.status.value,
            transferred_at=entity.transferred_at,
            transferred_by=entity.transferred_by,
            transfer_proof=entity.transfer_proof,
            transfer_note=entity.transfer_note,
            created_at=entity.created_at,
        )

    async def create(self, release: FundRelease) -> FundRelease:
        db_release = self._to_model(release)
        self.session.add(db_release)
        try:
            await self.session.flush()
        except IntegrityError:
            logger.warning("fund_release_conflict", order_id=release.order_id)
            raise StateConflictException(
                "Fund release already exists for this order",
                details={"order_id": release.order_id},
            )
        await self.session.refresh(db_release)
        logger.info(
            "fund_release_created",
            release_id=db_release.id,
            order_id=db_release.order_id,
            amount=db_release.amount,
        )
        return self._to_entity(db_release)

    async def get_by_id(self, release_id: str, *, for_update: bool = False) -> Optional[FundRelease]:
        query = select(FundReleaseModel).where(FundReleaseModel.id == release_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        db_release = result.scalar_one_or_none()
        return self._to_entity(db_release) if db_release else None

    async def get_by_order_id(self, order_id: str) -> Optional[FundRelease]:
        result = await self.session.execute(
            select(FundReleaseModel).where(FundReleaseModel.order_id == order_id)
        )
        db_release = result.scalar_one_or_none()
        return self._to_entity(db_release) if db_release else None

    async def update(self, release: FundRelease, *, expected_status: FundReleaseStatus) -> FundRelease:
        await self._compare_and_set(
            FundReleaseModel,
            release.id,
            expected_status.value,
            {
                "status": release.status.value,
                "transferred_at": release.transferred_at,
                "transferred_by": release.transferred_by,
                "transfer_proof": release.transfer_proof,
                "transfer_note": release.transfer_note,
            },
            lambda: StateConflictException(
                "Fund release already completed",
                code=EscrowCode.FUND_RELEASE_ALREADY_COMPLETED,
                details={"release_id": release.id},
            ),
        )
        logger.info(
            "fund_release_completed",
            release_id=release.id,
            order_id=release.order_id,
            amount=release.amount,
            transferred_by=release.transferred_by,
        )
        return release

    async def list_by_status(
        self,
        status: Optional[FundReleaseStatus] = FundReleaseStatus.PENDING,
        skip: int = 0,
        limit: int = 100,
    ) -> List[FundRelease]:
        query = select(FundReleaseModel)
        if status:
            query = query.where(FundReleaseModel.status == status.value)
        query = query.order_by(FundReleaseModel.created_at.asc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return [self._to_entity(r) for r in result.scalars().all()]
