"""
Shared fixtures: a fresh in-memory SQLite database per test.

The StaticPool keeps the single in-memory connection alive for every session
created from the same engine.
"""
from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from kanban_api.core.lifecycle import State
from kanban_api.db.base import utcnow
from kanban_api.db.models import Tag, User, WorkItem
from kanban_api.db.session import build_engine, build_session_maker, create_all


@pytest_asyncio.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def add_user(session):
    """Insert a user directly through the ORM."""
    async def _add(name="Alice", email="alice@example.com"):
        user = User(name=name, email=email)
        session.add(user)
        await session.commit()
        return user

    return _add


@pytest.fixture
def add_tag(session):
    """Insert a tag directly through the ORM."""
    async def _add(name):
        tag = Tag(name=name)
        session.add(tag)
        await session.commit()
        return tag

    return _add


@pytest.fixture
def add_item(session):
    """
    Insert a work item directly through the ORM, bypassing the repository.

    Timestamps default to an hour ago so refreshes are easy to detect.
    """
    async def _add(title="task", state=State.NEW, tags=(), assignee=None, description=None):
        then = utcnow() - timedelta(hours=1)
        item = WorkItem(
            title=title,
            state=state,
            description=description,
            assigned_to=assignee,
            tags=set(tags),
            created=then,
            state_updated=then,
        )
        session.add(item)
        await session.commit()
        return item

    return _add
