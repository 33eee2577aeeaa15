from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from kanban_api.core.exceptions import StoreError
from kanban_api.core.lifecycle import Response
from kanban_api.db.models import User, WorkItem
from kanban_api.schemas.users import UserCreate, UserRead, UserUpdate
from .base import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository):
    """Repository for users; emails are unique."""

    async def create(self, payload: UserCreate) -> Tuple[Response, int]:
        """
        Create a user.

        Returns (Created, new_id), or (Conflict, existing_id) when the email is
        already in use (including a lost race on the unique constraint).
        """
        existing = await self.find_unique(User, "email", payload.email)
        if existing is not None:
            logger.debug("Email %r already used by user id=%s", payload.email, existing.id)
            return Response.CONFLICT, existing.id

        try:
            user_id = await self.insert(User(name=payload.name, email=payload.email))
            await self.commit("create user")
        except StoreError as exc:
            if not isinstance(exc.cause, IntegrityError):
                raise
            winner = await self.find_unique(User, "email", payload.email)
            if winner is None:
                raise
            return Response.CONFLICT, winner.id

        logger.info("Created user id=%s", user_id)
        return Response.CREATED, user_id

    async def find(self, user_id: int) -> Optional[UserRead]:
        user = await self.get(User, user_id)
        return UserRead.model_validate(user) if user is not None else None

    async def read(self) -> List[UserRead]:
        res = await self.scalars(select(User).order_by(User.id))
        return [UserRead.model_validate(u) for u in res]

    async def update(self, payload: UserUpdate) -> Response:
        """Write the name and/or email when they differ from the stored values."""
        user = await self.get(User, payload.id)
        if user is None:
            return Response.NOT_FOUND

        if user.email != payload.email:
            clash = await self.find_unique(User, "email", payload.email)
            if clash is not None:
                logger.debug("Email change for user id=%s clashes with id=%s", user.id, clash.id)
                return Response.CONFLICT
            user.email = payload.email
        if user.name != payload.name:
            user.name = payload.name

        try:
            await self.commit("update user")
        except StoreError as exc:
            if isinstance(exc.cause, IntegrityError):
                return Response.CONFLICT
            raise
        logger.info("Updated user id=%s", user.id)
        return Response.UPDATED

    async def count_assigned(self, user_id: int) -> int:
        stmt = select(func.count(WorkItem.id)).where(WorkItem.assigned_to_id == user_id)
        result = await self.execute(stmt)
        return int(result.scalar_one())

    async def delete(self, user_id: int, force: bool = False) -> Response:
        """
        Delete a user.

        A user with assigned work items is only removed when `force` is set; the
        work items are kept and become unassigned.
        """
        user = await self.get(User, user_id)
        if user is None:
            return Response.NOT_FOUND

        if await self.count_assigned(user_id) > 0:
            if not force:
                logger.debug("Refusing to delete user id=%s: has assigned work items", user_id)
                return Response.CONFLICT
            stmt = select(WorkItem).where(WorkItem.assigned_to_id == user_id)
            for item in await self.scalars(stmt):
                item.assigned_to = None

        await self.remove(user)
        await self.commit("delete user")
        logger.info("Deleted user id=%s (force=%s)", user_id, force)
        return Response.DELETED
