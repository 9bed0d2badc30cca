"""
SQLAlchemy implementation of CancellationRequestRepository.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from domain.cancellation.entity import CancellationRequest, CancellationStatus
from domain.cancellation.repository import CancellationRequestRepository
from domain.cancellation.service import CancellationAlreadyPending
from domain.common.exceptions import StateConflictException
from infrastructure.models.cancellation import CancellationRequestModel
from shared.codes.escrow_codes import EscrowCode
from core.logging_config import get_logger
from .base import SQLAlchemyRepository


logger = get_logger(__name__)


class SQLAlchemyCancellationRequestRepository(SQLAlchemyRepository, CancellationRequestRepository):

    def _to_entity(self, model: CancellationRequestModel) -> CancellationRequest:
        return CancellationRequest(
            id=model.id,
            order_id=model.order_id,
            requested_by=model.requested_by,
            reason=model.reason,
            status=CancellationStatus(model.status),
            reviewed_by=model.reviewed_by,
            reviewed_at=model.reviewed_at,
            admin_notes=model.admin_notes,
            requested_at=model.requested_at,
        )

    def _to_model(self, entity: CancellationRequest) -> CancellationRequestModel:
        return CancellationRequestModel(
            id=entity.id,
            order_id=entity.order_id,
            requested_by=entity.requested_by,
            reason=entity.reason,
            status=entity.status.value,
            reviewed_by=entity.reviewed_by,
            reviewed_at=entity.reviewed_at,
            admin_notes=entity.admin_notes,
            requested_at=entity.requested_at,
        )

    async def create(self, request: CancellationRequest) -> CancellationRequest:
        db_request = self._to_model(request)
        self.session.add(db_request)
        try:
            await self.session.flush()
        except IntegrityError:
            # partial unique index on (order_id) where status = 'pending'
            logger.warning("cancellation_request_conflict", order_id=request.order_id)
            raise CancellationAlreadyPending(request.order_id, request.id)
        await self.session.refresh(db_request)
        logger.info(
            "cancellation_request_created",
            request_id=db_request.id,
            order_id=db_request.order_id,
            requested_by=db_request.requested_by,
        )
        return self._to_entity(db_request)

    async def get_by_id(self, request_id: str, *, for_update: bool = False) -> Optional[CancellationRequest]:
        query = select(CancellationRequestModel).where(CancellationRequestModel.id == request_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        db_request = result.scalar_one_or_none()
        return self._to_entity(db_request) if db_request else None

    async def get_pending_for_order(self, order_id: str) -> Optional[CancellationRequest]:
        result = await self.session.execute(
            select(CancellationRequestModel).where(
                CancellationRequestModel.order_id == order_id,
                CancellationRequestModel.status == CancellationStatus.PENDING.value,
            )
        )
        db_request = result.scalar_one_or_none()
        return self._to_entity(db_request) if db_request else None

    async def get_latest_for_order(self, order_id: str) -> Optional[CancellationRequest]:
        result = await self.session.execute(
            select(CancellationRequestModel)
            .where(CancellationRequestModel.order_id == order_id)
            .order_by(CancellationRequestModel.requested_at.desc())
            .limit(1)
        )
        db_request = result.scalars().first()
        return self._to_entity(db_request) if db_request else None

    async def update(
        self,
        request: CancellationRequest,
        *,
        expected_status: CancellationStatus,
    ) -> CancellationRequest:
        await self._compare_and_set(
            CancellationRequestModel,
            request.id,
            expected_status.value,
            {
                "status": request.status.value,
                "reviewed_by": request.reviewed_by,
                "reviewed_at": request.reviewed_at,
                "admin_notes": request.admin_notes,
            },
            lambda: StateConflictException(
                "Cancellation request already processed",
                code=EscrowCode.CANCELLATION_ALREADY_PROCESSED,
                details={"request_id": request.id},
            ),
        )
        logger.info("cancellation_request_resolved", request_id=request.id, status=request.status.value)
        return request

    async def list_by_requester(self, user_id: str) -> List[CancellationRequest]:
        result = await self.session.execute(
            select(CancellationRequestModel)
            .where(CancellationRequestModel.requested_by == user_id)
            .order_by(CancellationRequestModel.requested_at.desc())
        )
        return [self._to_entity(r) for r in result.scalars().all()]

    async def list_by_status(
        self,
        status: Optional[CancellationStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[CancellationRequest]:
        query = select(CancellationRequestModel)
        if status:
            query = query.where(CancellationRequestModel.status == status.value)
        query = query.order_by(CancellationRequestModel.requested_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return [self._to_entity(r) for r in result.scalars().all()]

    async def close_pending_for_orders(self, order_ids: List[str], admin_notes: str, now: datetime) -> int:
        if not order_ids:
            return 0
        result = await self.session.execute(
            update(CancellationRequestModel)
            .where(
                CancellationRequestModel.order_id.in_(order_ids),
                CancellationRequestModel.status == CancellationStatus.PENDING.value,
            )
            .values(
                status=CancellationStatus.REJECTED.value,
                reviewed_at=now,
                admin_notes=admin_notes,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info("cancellation_requests_closed", count=result.rowcount, order_ids=order_ids)
        return result.rowcount
