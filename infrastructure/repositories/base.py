"""
Shared helpers for the SQLAlchemy repositories.
"""
from __future__ import annotations

from typing import Any, Callable

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.exceptions import StateConflictException
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyRepository:
    """Base class holding the session and the compare-and-set update."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _compare_and_set(
        self,
        model: Any,
        entity_id: str,
        expected_status: str,
        values: dict,
        conflict: Callable[[], StateConflictException],
    ) -> None:
        """
        ``UPDATE model SET values WHERE id = :id AND status = :expected``.

        Zero affected rows means another transaction moved the row first.
        """
        stmt = (
            update(model)
            .where(model.id == entity_id, model.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            logger.warning(
                "conditional_update_conflict",
                table=model.__tablename__,
                id=entity_id,
                expected_status=expected_status,
            )
            raise conflict()
