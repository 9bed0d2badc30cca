"""Payment proof submission and admin verification (application/services)."""
from __future__ import annotations

from typing import Callable, List, Optional

from application.dtos.base import CurrentUser
from application.dtos.payments import (
    PaymentProofDTO,
    PaymentWithProofsDTO,
    ProofResultDTO,
    ProofReviewDTO,
    ProofSubmitDTO,
)
from application.services.notification_service import NotificationApplicationService
from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException, ForbiddenException
from domain.common.time import utc_now
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.service import OrderNotFoundException
from domain.payment.entity import ProofStatus
from domain.payment.service import PaymentNotFoundException, PaymentVerificationService


logger = get_logger(__name__)


def parse_proof_status_filter(value: Optional[str]) -> Optional[ProofStatus]:
    if value is None or value == "" or value == "all":
        return None
    try:
        return ProofStatus(value)
    except ValueError:
        raise DomainValidationException(
            f"Invalid proof status: {value}",
            field="status",
            details={"allowed": [s.value for s in ProofStatus] + ["all"]},
        )


class PaymentProofApplicationService:

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        notifications: Optional[NotificationApplicationService] = None,
        *,
        clock: Callable = utc_now,
    ):
        self._uow_factory = uow_factory
        self._notifications = notifications
        self._clock = clock

    @staticmethod
    def _domain_service(uow: AbstractUnitOfWork) -> PaymentVerificationService:
        return PaymentVerificationService(uow.order_repository, uow.payment_repository, uow.proof_repository)

    async def _publish(self, events: list) -> None:
        if self._notifications is not None and events:
            await self._notifications.dispatch(events)

    async def submit_proof(self, data: ProofSubmitDTO, submitter: Optional[CurrentUser] = None) -> ProofResultDTO:
        submitter_id = submitter.id if submitter is not None else None
        async with self._uow_factory() as uow:
            service = self._domain_service(uow)
            proof, order, payment = await service.submit_proof(
                data.payment_id,
                data.order_id,
                submitter_id=submitter_id,
                now=self._clock(),
                note=data.note,
                amount=data.amount,
                proof_url=data.proof_url,
            )
            events = list(service.events)

        logger.info(
            "payment_proof_submitted",
            proof_id=proof.id,
            order_id=order.id,
            payment_id=payment.id,
            submitted_by=submitter_id,
        )
        await self._publish(events)
        return ProofResultDTO(
            proof=PaymentProofDTO.model_validate(proof),
            order_status=order.status,
            payment_status=payment.status,
        )

    async def review_proof(self, proof_id: str, data: ProofReviewDTO, reviewer_id: str) -> ProofResultDTO:
        async with self._uow_factory() as uow:
            service = self._domain_service(uow)
            proof, order, payment = await service.review_proof(
                proof_id,
                data.action,
                reviewer_id=reviewer_id,
                rejection_reason=data.rejection_reason,
            )
            events = list(service.events)

        logger.info(
            "payment_proof_reviewed",
            proof_id=proof.id,
            order_id=order.id,
            action=data.action,
            reviewer_id=reviewer_id,
            order_status=order.status.value,
        )
        await self._publish(events)
        return ProofResultDTO(
            proof=PaymentProofDTO.model_validate(proof),
            order_status=order.status,
            payment_status=payment.status,
        )

    async def list_proofs(self, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[PaymentProofDTO]:
        status_filter = parse_proof_status_filter(status)
        async with self._uow_factory(readonly=True) as uow:
            proofs = await uow.proof_repository.list_by_status(status_filter, skip=skip, limit=limit)
            return [PaymentProofDTO.model_validate(p) for p in proofs]

    async def get_payment_for_order(self, order_id: str, user: CurrentUser) -> PaymentWithProofsDTO:
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.order_repository.get_by_id(order_id)
            if order is None:
                raise OrderNotFoundException(order_id)
            if not user.is_admin and not order.is_party(user.id):
                raise ForbiddenException("Not a party to this order")
            payment = await uow.payment_repository.get_by_order_id(order.id)
            if payment is None:
                raise PaymentNotFoundException(order.id)
            proofs = await uow.proof_repository.list_by_order(order.id)

            dto = PaymentWithProofsDTO.model_validate(payment)
            dto.payment_proofs = [PaymentProofDTO.model_validate(p) for p in proofs]
            return dto
