"""
SQLAlchemy repositories for notifications and device tokens.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import distinct, func, select, update

from domain.notification.entity import DeviceToken, Notification, NotificationType
from domain.notification.repository import DeviceTokenRepository, NotificationRepository
from infrastructure.models.notification import DeviceTokenModel, NotificationModel
from core.logging_config import get_logger
from .base import SQLAlchemyRepository


logger = get_logger(__name__)


class SQLAlchemyNotificationRepository(SQLAlchemyRepository, NotificationRepository):

    def _to_entity(self, model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            order_id=model.order_id,
            order_number=model.order_number,
            metadata=model.extra_metadata or {},
            is_read=model.is_read,
            created_at=model.created_at,
        )

    async def create(self, notification: Notification) -> Notification:
        db_notification = NotificationModel(
            id=notification.id,
            user_id=notification.user_id,
            type=notification.type.value,
            title=notification.title,
            message=notification.message,
            order_id=notification.order_id,
            order_number=notification.order_number,
            extra_metadata=notification.metadata,
            is_read=notification.is_read,
            created_at=notification.created_at,
        )
        self.session.add(db_notification)
        await self.session.flush()
        return notification

    async def list_for_user(self, user_id: str, limit: int = 50) -> List[Notification]:
        result = await self.session.execute(
            select(NotificationModel)
            .where(NotificationModel.user_id == user_id)
            .order_by(NotificationModel.created_at.desc())
            .limit(limit)
        )
        return [self._to_entity(n) for n in result.scalars().all()]

    async def count_unread(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count(NotificationModel.id)).where(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
        )
        return result.scalar_one()

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        result = await self.session.execute(
            update(NotificationModel)
            .where(NotificationModel.id == notification_id, NotificationModel.user_id == user_id)
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.session.execute(
            update(NotificationModel)
            .where(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class SQLAlchemyDeviceTokenRepository(SQLAlchemyRepository, DeviceTokenRepository):

    def _to_entity(self, model: DeviceTokenModel) -> DeviceToken:
        return DeviceToken(
            id=model.id,
            user_id=model.user_id,
            token=model.token,
            device_type=model.device_type,
            is_active=model.is_active,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def upsert(self, token: DeviceToken) -> DeviceToken:
        result = await self.session.execute(
            select(DeviceTokenModel).where(DeviceTokenModel.token == token.token)
        )
        db_token = result.scalar_one_or_none()
        if db_token is None:
            db_token = DeviceTokenModel(
                id=token.id,
                user_id=token.user_id,
                token=token.token,
                device_type=token.device_type,
                is_active=True,
                created_at=token.created_at,
                updated_at=token.updated_at,
            )
            self.session.add(db_token)
        else:
            # a device that changed hands now belongs to the new user
            db_token.user_id = token.user_id
            db_token.device_type = token.device_type
            db_token.is_active = True
            db_token.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        await self.session.refresh(db_token)
        logger.info("device_token_registered", user_id=db_token.user_id, device_type=db_token.device_type)
        return self._to_entity(db_token)

    async def get_by_token(self, token: str) -> Optional[DeviceToken]:
        result = await self.session.execute(
            select(DeviceTokenModel).where(DeviceTokenModel.token == token)
        )
        db_token = result.scalar_one_or_none()
        return self._to_entity(db_token) if db_token else None

    async def list_active_for_user(self, user_id: str) -> List[DeviceToken]:
        result = await self.session.execute(
            select(DeviceTokenModel).where(
                DeviceTokenModel.user_id == user_id,
                DeviceTokenModel.is_active.is_(True),
            )
        )
        return [self._to_entity(t) for t in result.scalars().all()]

    async def list_active_user_ids(self) -> List[str]:
        result = await self.session.execute(
            select(distinct(DeviceTokenModel.user_id))
            .where(DeviceTokenModel.is_active.is_(True))
            .order_by(DeviceTokenModel.user_id)
        )
        return list(result.scalars().all())

    async def deactivate(self, tokens: List[str], user_id: Optional[str] = None) -> int:
        if not tokens:
            return 0
        stmt = update(DeviceTokenModel).where(DeviceTokenModel.token.in_(tokens))
        if user_id is not None:
            stmt = stmt.where(DeviceTokenModel.user_id == user_id)
        result = await self.session.execute(
            stmt.values(is_active=False, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info("device_tokens_deactivated", count=result.rowcount)
        return result.rowcount
