"""FastAPI dependencies handing each request its own session-scoped repositories."""
from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.db.session import get_async_session
from kanban_api.repositories import TagRepository, UserRepository, WorkItemRepository


# PUBLIC_INTERFACE
def get_tag_repository(session: AsyncSession = Depends(get_async_session)) -> TagRepository:
    return TagRepository(session)


# PUBLIC_INTERFACE
def get_user_repository(session: AsyncSession = Depends(get_async_session)) -> UserRepository:
    return UserRepository(session)


# PUBLIC_INTERFACE
def get_work_item_repository(session: AsyncSession = Depends(get_async_session)) -> WorkItemRepository:
    return WorkItemRepository(session)
