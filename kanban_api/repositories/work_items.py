from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, List, Optional, Set, Tuple, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError

from kanban_api.core.exceptions import StoreError
from kanban_api.core.lifecycle import Response, State, deletion_outcome
from kanban_api.db.base import utcnow
from kanban_api.db.models import Tag, User, WorkItem
from kanban_api.schemas.work_items import (
    WorkItemCreate,
    WorkItemDetails,
    WorkItemRead,
    WorkItemUpdate,
)
from .base import BaseRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _tag_names(item: WorkItem) -> List[str]:
    return sorted(t.name for t in item.tags)


def _assignee_name(item: WorkItem) -> str:
    return item.assigned_to.name if item.assigned_to is not None else ""


def _to_read(item: WorkItem) -> WorkItemRead:
    return WorkItemRead(
        id=item.id,
        title=item.title,
        assigned_to_name=_assignee_name(item),
        tags=_tag_names(item),
        state=item.state,
    )


def _to_details(item: WorkItem) -> WorkItemDetails:
    return WorkItemDetails(
        id=item.id,
        title=item.title,
        description=item.description or "",
        created=item.created,
        state_updated=item.state_updated,
        assigned_to_name=_assignee_name(item),
        tags=_tag_names(item),
        state=item.state,
    )


class WorkItemRepository(BaseRepository):
    """
    Repository for work items.

    Owns the deletion policy of the work item lifecycle, assignee validation and
    find-or-create resolution of tag names. Each mutating call commits once, so
    tags created while resolving names are only persisted together with the
    work item write that needed them.
    """

    async def _resolve_tags(self, names: Iterable[str]) -> Set[Tag]:
        """Map tag names to Tag rows, creating the ones that do not exist yet."""
        tags: Set[Tag] = set()
        for name in dict.fromkeys(names):
            tag = await self.find_unique(Tag, "name", name)
            if tag is None:
                tag = Tag(name=name)
                self.session.add(tag)
                logger.debug("Tag %r will be created", name)
            tags.add(tag)
        return tags

    async def _retry_on_tag_race(self, operation: str, write: Callable[[], Awaitable[T]]) -> T:
        """
        Run `write` once more when it lost a race on a tag name.

        The failed attempt is already rolled back, so the second run resolves
        the names again and picks up the tag the other writer committed.
        """
        try:
            return await write()
        except StoreError as exc:
            if not isinstance(exc.cause, IntegrityError):
                raise
            logger.info("Unique constraint hit during %s, resolving tags again", operation)
            return await write()

    # PUBLIC_INTERFACE
    async def create(self, payload: WorkItemCreate) -> Tuple[Response, int]:
        """
        Create a work item in state New.

        Returns:
            (Created, new_id), or (BadRequest, -1) when `assigned_to_id` does not
            name an existing user; nothing is written in that case.
        """
        return await self._retry_on_tag_race("create work item", lambda: self._create(payload))

    async def _create(self, payload: WorkItemCreate) -> Tuple[Response, int]:
        assignee: Optional[User] = None
        if payload.assigned_to_id is not None:
            assignee = await self.get(User, payload.assigned_to_id)
            if assignee is None:
                logger.debug("Unknown assignee id=%s on create", payload.assigned_to_id)
                return Response.BAD_REQUEST, -1

        tags = await self._resolve_tags(payload.tags)
        now = utcnow()
        item = WorkItem(
            title=payload.title,
            description=payload.description,
            assigned_to=assignee,
            state=State.NEW,
            created=now,
            state_updated=now,
            tags=tags,
        )
        item_id = await self.insert(item)
        await self.commit("create work item")
        logger.info("Created work item id=%s with %d tag(s)", item_id, len(tags))
        return Response.CREATED, item_id

    async def find(self, item_id: int) -> Optional[WorkItemDetails]:
        item = await self.get(WorkItem, item_id)
        return _to_details(item) if item is not None else None

    async def _list(self, stmt: Select) -> List[WorkItemRead]:
        res = await self.scalars(stmt.order_by(WorkItem.id))
        return [_to_read(i) for i in res]

    async def read(self) -> List[WorkItemRead]:
        return await self._list(select(WorkItem))

    async def read_by_state(self, state: State) -> List[WorkItemRead]:
        return await self._list(select(WorkItem).where(WorkItem.state == state))

    async def read_by_tag(self, tag_name: str) -> List[WorkItemRead]:
        """Work items whose tag set contains a tag named exactly `tag_name`."""
        return await self._list(select(WorkItem).where(WorkItem.tags.any(Tag.name == tag_name)))

    async def read_by_user(self, user_id: int) -> List[WorkItemRead]:
        """Work items assigned to `user_id`; empty when the user does not exist."""
        if await self.get(User, user_id) is None:
            return []
        return await self._list(select(WorkItem).where(WorkItem.assigned_to_id == user_id))

    async def read_removed(self) -> List[WorkItemRead]:
        return await self.read_by_state(State.REMOVED)

    # PUBLIC_INTERFACE
    async def update(self, payload: WorkItemUpdate) -> Response:
        """
        Overwrite title, assignee, description, tags and state of a work item.

        An `assigned_to_id` that names no user clears the assignee. Any state may
        be written; `state_updated` moves only when the state actually changes.
        """
        return await self._retry_on_tag_race("update work item", lambda: self._update(payload))

    async def _update(self, payload: WorkItemUpdate) -> Response:
        item = await self.get(WorkItem, payload.id)
        if item is None:
            return Response.NOT_FOUND

        item.title = payload.title
        item.assigned_to = (
            await self.get(User, payload.assigned_to_id)
            if payload.assigned_to_id is not None
            else None
        )
        item.description = payload.description
        item.tags = await self._resolve_tags(payload.tags)

        if item.state != payload.state:
            logger.info("Work item id=%s: %s -> %s", item.id, item.state.value, payload.state.value)
            item.state = payload.state
            item.state_updated = utcnow()

        await self.commit("update work item")
        return Response.UPDATED

    # PUBLIC_INTERFACE
    async def delete(self, item_id: int) -> Response:
        """
        Delete a work item according to its state.

        - New: the row is removed (Deleted)
        - Active: state becomes Removed, the row is kept (Updated)
        - Resolved/Closed/Removed: nothing changes (Conflict)
        """
        item = await self.get(WorkItem, item_id)
        if item is None:
            return Response.NOT_FOUND

        outcome = deletion_outcome(item.state)
        if outcome == Response.CONFLICT:
            logger.debug("Work item id=%s in state %s cannot be deleted", item_id, item.state.value)
            return outcome

        if outcome == Response.UPDATED:
            item.state = State.REMOVED
            item.state_updated = utcnow()
            await self.commit("remove work item")
            logger.info("Work item id=%s soft-deleted", item_id)
        else:
            await self.remove(item)
            await self.commit("delete work item")
            logger.info("Work item id=%s deleted", item_id)
        return outcome
