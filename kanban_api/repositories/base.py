from __future__ import annotations

import logging
from typing import Any, Optional, Type, TypeVar

from sqlalchemy import Executable, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.core.exceptions import StoreError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class BaseRepository:
    """
    Base class for repositories providing the store capabilities they compose:
    find by id, find by unique field, insert, delete and commit-as-a-unit.

    Note:
      A repository holds the session handed to it and nothing else. The caller
      owns the session's lifetime (one session per logical operation).
      Store failures roll the transaction back and surface as StoreError.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _fail(self, operation: str, exc: SQLAlchemyError) -> StoreError:
        logger.error("Store failure during %s, rolling back: %s", operation, exc)
        await self.session.rollback()
        return StoreError(operation, exc)

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        try:
            return await self.session.execute(statement, params or {})
        except SQLAlchemyError as exc:
            raise await self._fail("execute", exc) from exc

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def get(self, model: Type[ModelT], entity_id: int) -> Optional[ModelT]:
        """Find an entity by primary key; None when absent."""
        try:
            return await self.session.get(model, entity_id)
        except SQLAlchemyError as exc:
            raise await self._fail("get", exc) from exc

    async def find_unique(self, model: Type[ModelT], field: str, value: Any) -> Optional[ModelT]:
        """Find the entity whose unique `field` equals `value`; None when absent."""
        stmt = select(model).where(getattr(model, field) == value)
        return await self.scalar_one_or_none(stmt)

    async def insert(self, entity: Any) -> int:
        """Add an entity and flush it so the store assigns its identifier."""
        self.session.add(entity)
        await self.flush("insert")
        return entity.id

    async def remove(self, entity: Any) -> None:
        """Mark an entity for deletion in the current transaction."""
        try:
            await self.session.delete(entity)
        except SQLAlchemyError as exc:
            raise await self._fail("remove", exc) from exc

    async def flush(self, operation: str = "flush") -> None:
        """Push pending changes to the store without committing."""
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            raise await self._fail(operation, exc) from exc

    async def commit(self, operation: str = "commit") -> None:
        """Commit current transaction."""
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail(operation, exc) from exc
