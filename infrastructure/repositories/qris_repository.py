"""
SQLAlchemy repositories for QRIS settings and generated transactions.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, select, update

from domain.qris.entity import QrisSetting, QrisTransaction
from domain.qris.repository import QrisSettingRepository, QrisTransactionRepository
from infrastructure.models.qris import QrisSettingModel, QrisTransactionModel
from core.logging_config import get_logger
from .base import SQLAlchemyRepository


logger = get_logger(__name__)


class SQLAlchemyQrisSettingRepository(SQLAlchemyRepository, QrisSettingRepository):

    def _to_entity(self, model: QrisSettingModel) -> QrisSetting:
        return QrisSetting(
            id=model.id,
            qris_data=model.qris_data,
            merchant_name=model.merchant_name,
            merchant_city=model.merchant_city,
            created_by=model.created_by,
            is_active=model.is_active,
            created_at=model.created_at,
        )

    async def create(self, setting: QrisSetting) -> QrisSetting:
        db_setting = QrisSettingModel(
            id=setting.id,
            qris_data=setting.qris_data,
            merchant_name=setting.merchant_name,
            merchant_city=setting.merchant_city,
            created_by=setting.created_by,
            is_active=setting.is_active,
            created_at=setting.created_at,
        )
        self.session.add(db_setting)
        await self.session.flush()
        await self.session.refresh(db_setting)
        logger.info("qris_setting_created", setting_id=db_setting.id, created_by=db_setting.created_by)
        return self._to_entity(db_setting)

    async def get_active(self) -> Optional[QrisSetting]:
        result = await self.session.execute(
            select(QrisSettingModel)
            .where(QrisSettingModel.is_active.is_(True))
            .order_by(QrisSettingModel.created_at.desc())
            .limit(1)
        )
        db_setting = result.scalars().first()
        return self._to_entity(db_setting) if db_setting else None

    async def deactivate_all(self) -> int:
        result = await self.session.execute(
            update(QrisSettingModel)
            .where(QrisSettingModel.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete(self, setting_id: str) -> bool:
        result = await self.session.execute(
            delete(QrisSettingModel)
            .where(QrisSettingModel.id == setting_id)
            .execution_options(synchronize_session=False)
        )
        deleted = result.rowcount > 0
        if deleted:
            logger.info("qris_setting_deleted", setting_id=setting_id)
        return deleted


class SQLAlchemyQrisTransactionRepository(SQLAlchemyRepository, QrisTransactionRepository):

    def _to_entity(self, model: QrisTransactionModel) -> QrisTransaction:
        return QrisTransaction(
            id=model.id,
            user_id=model.user_id,
            order_id=model.order_id,
            amount=model.amount,
            generated_qris=model.generated_qris,
            status=model.status,
            expires_at=model.expires_at,
            created_at=model.created_at,
        )

    async def create(self, transaction: QrisTransaction) -> QrisTransaction:
        db_tx = QrisTransactionModel(
            id=transaction.id,
            user_id=transaction.user_id,
            order_id=transaction.order_id,
            amount=transaction.amount,
            generated_qris=transaction.generated_qris,
            status=transaction.status,
            expires_at=transaction.expires_at,
            created_at=transaction.created_at,
        )
        self.session.add(db_tx)
        await self.session.flush()
        await self.session.refresh(db_tx)
        logger.info("qris_transaction_created", transaction_id=db_tx.id, user_id=db_tx.user_id, amount=db_tx.amount)
        return self._to_entity(db_tx)

    async def get_for_user(self, transaction_id: str, user_id: str) -> Optional[QrisTransaction]:
        result = await self.session.execute(
            select(QrisTransactionModel).where(
                QrisTransactionModel.id == transaction_id,
                QrisTransactionModel.user_id == user_id,
            )
        )
        db_tx = result.scalar_one_or_none()
        return self._to_entity(db_tx) if db_tx else None
