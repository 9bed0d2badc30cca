"""QRIS merchant settings and dynamic payload generation (application/services)."""
from __future__ import annotations

from datetime import timedelta
from typing import Callable, Optional

from application.dtos.qris import (
    QrisGenerateDTO,
    QrisGeneratedDTO,
    QrisSettingDTO,
    QrisTransactionDTO,
    QrisUploadDTO,
)
from core.config import settings
from core.logging_config import get_logger
from domain.common.exceptions import ResourceNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.qris import (
    InvalidQRISError,
    QrisSetting,
    QrisTransaction,
    extract_merchant_info,
    generate_dynamic,
    validate_format,
)
from shared.codes.escrow_codes import EscrowCode


logger = get_logger(__name__)


class QrisNotConfiguredException(ResourceNotFoundException):
    def __init__(self):
        super().__init__("Active QRIS setting", code=EscrowCode.QRIS_NOT_CONFIGURED)
        self.message = "QRIS is not configured"


class QrisApplicationService:

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork], *, ttl: Optional[timedelta] = None):
        self._uow_factory = uow_factory
        self._ttl = ttl or timedelta(minutes=settings.escrow.qris_expiry_minutes)

    async def upload(self, data: QrisUploadDTO, admin_id: str) -> QrisSettingDTO:
        """Replace the active merchant payload; the previous one is deactivated."""
        qris_data = (data.qris_data or "").strip()
        if not validate_format(qris_data):
            raise InvalidQRISError("Invalid QRIS format")
        # a payload that cannot be converted must not replace the active one
        generate_dynamic(qris_data, 1)

        extracted = extract_merchant_info(qris_data)
        merchant_name = data.merchant_name or extracted.merchant_name or settings.escrow.default_merchant_name
        merchant_city = data.merchant_city or extracted.merchant_city or settings.escrow.default_merchant_city

        async with self._uow_factory() as uow:
            replaced = await uow.qris_setting_repository.deactivate_all()
            setting = await uow.qris_setting_repository.create(
                QrisSetting.new(qris_data, merchant_name, merchant_city, admin_id)
            )

        logger.info(
            "qris_setting_uploaded",
            setting_id=setting.id,
            merchant_name=merchant_name,
            replaced=replaced,
            admin_id=admin_id,
        )
        return QrisSettingDTO.model_validate(setting)

    async def current(self) -> Optional[QrisSettingDTO]:
        async with self._uow_factory(readonly=True) as uow:
            setting = await uow.qris_setting_repository.get_active()
            return QrisSettingDTO.model_validate(setting) if setting else None

    async def delete(self, setting_id: str) -> None:
        async with self._uow_factory() as uow:
            deleted = await uow.qris_setting_repository.delete(setting_id)
            if not deleted:
                raise ResourceNotFoundException("QRIS setting", setting_id)
        logger.info("qris_setting_deleted", setting_id=setting_id)

    async def generate(self, data: QrisGenerateDTO, user_id: str) -> QrisGeneratedDTO:
        async with self._uow_factory() as uow:
            setting = await uow.qris_setting_repository.get_active()
            if setting is None:
                raise QrisNotConfiguredException()

            payload = generate_dynamic(setting.qris_data, data.amount)
            transaction = await uow.qris_transaction_repository.create(QrisTransaction.new(
                user_id,
                data.order_id,
                data.amount,
                payload,
                self._ttl,
            ))

        logger.info(
            "qris_generated",
            transaction_id=transaction.id,
            user_id=user_id,
            order_id=data.order_id,
            amount=data.amount,
        )
        return QrisGeneratedDTO(
            qris_string=payload,
            amount=transaction.amount,
            merchant_name=setting.merchant_name,
            merchant_city=setting.merchant_city,
            transaction_id=transaction.id,
            expires_at=transaction.expires_at,
        )

    async def get_transaction(self, transaction_id: str, user_id: str) -> QrisTransactionDTO:
        async with self._uow_factory(readonly=True) as uow:
            transaction = await uow.qris_transaction_repository.get_for_user(transaction_id, user_id)
            if transaction is None:
                raise ResourceNotFoundException(
                    "QRIS transaction", transaction_id, code=EscrowCode.QRIS_TRANSACTION_NOT_FOUND
                )
            return QrisTransactionDTO.model_validate(transaction)
