from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from kanban_api.core.exceptions import StoreError
from kanban_api.core.lifecycle import Response
from kanban_api.db.models import Tag, WorkItem, work_item_tags
from kanban_api.schemas.tags import TagCreate, TagRead, TagUpdate
from .base import BaseRepository

logger = logging.getLogger(__name__)


class TagRepository(BaseRepository):
    """Repository for tags; names are unique."""

    async def create(self, payload: TagCreate) -> Tuple[Response, int]:
        """
        Create a tag.

        Returns (Created, new_id), or (Conflict, existing_id) when a tag with the
        same name already exists. The unique constraint on tags.name is the
        authoritative guard; losing a race past the pre-check is reported the
        same way.
        """
        existing = await self.find_unique(Tag, "name", payload.name)
        if existing is not None:
            logger.debug("Tag %r already exists as id=%s", payload.name, existing.id)
            return Response.CONFLICT, existing.id

        try:
            tag_id = await self.insert(Tag(name=payload.name))
            await self.commit("create tag")
        except StoreError as exc:
            if not isinstance(exc.cause, IntegrityError):
                raise
            winner = await self.find_unique(Tag, "name", payload.name)
            if winner is None:
                raise
            return Response.CONFLICT, winner.id

        logger.info("Created tag id=%s name=%r", tag_id, payload.name)
        return Response.CREATED, tag_id

    async def find(self, tag_id: int) -> Optional[TagRead]:
        tag = await self.get(Tag, tag_id)
        return TagRead.model_validate(tag) if tag is not None else None

    async def read(self) -> List[TagRead]:
        res = await self.scalars(select(Tag).order_by(Tag.id))
        return [TagRead.model_validate(t) for t in res]

    async def update(self, payload: TagUpdate) -> Response:
        """Rename a tag. Conflict when another tag already carries the new name."""
        tag = await self.get(Tag, payload.id)
        if tag is None:
            return Response.NOT_FOUND

        clash = await self.find_unique(Tag, "name", payload.name)
        if clash is not None and clash.id != tag.id:
            logger.debug("Rename of tag id=%s to %r clashes with id=%s", tag.id, payload.name, clash.id)
            return Response.CONFLICT

        tag.name = payload.name
        try:
            await self.commit("update tag")
        except StoreError as exc:
            if isinstance(exc.cause, IntegrityError):
                return Response.CONFLICT
            raise
        logger.info("Updated tag id=%s", tag.id)
        return Response.UPDATED

    async def count_attachments(self, tag_id: int) -> int:
        stmt = select(func.count()).select_from(work_item_tags).where(work_item_tags.c.tag_id == tag_id)
        result = await self.execute(stmt)
        return int(result.scalar_one())

    async def delete(self, tag_id: int, force: bool = False) -> Response:
        """
        Delete a tag.

        A tag still attached to work items is only removed when `force` is set;
        the work items themselves are kept and simply lose the tag.
        """
        tag = await self.get(Tag, tag_id)
        if tag is None:
            return Response.NOT_FOUND

        if await self.count_attachments(tag_id) > 0:
            if not force:
                logger.debug("Refusing to delete tag id=%s: still attached", tag_id)
                return Response.CONFLICT
            stmt = select(WorkItem).where(WorkItem.tags.any(Tag.id == tag_id))
            for item in await self.scalars(stmt):
                item.tags.discard(tag)

        await self.remove(tag)
        await self.commit("delete tag")
        logger.info("Deleted tag id=%s (force=%s)", tag_id, force)
        return Response.DELETED
