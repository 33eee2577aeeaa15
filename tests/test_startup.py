"""
Application startup: the opt-in schema preparation steps run inside the
lifespan and leave a usable database behind.
"""
import pytest
from sqlalchemy import inspect

from kanban_api.api import main as app_main
from kanban_api.core.lifecycle import Response
from kanban_api.db.session import build_engine, dispose_engine, session_scope
from kanban_api.repositories import WorkItemRepository
from kanban_api.schemas.work_items import WorkItemCreate


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    url = f"sqlite+aiosqlite:///{tmp_path / 'kanban.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    return url


async def _table_names(url):
    engine = build_engine(url)
    try:
        async with engine.connect() as conn:
            return await conn.run_sync(lambda c: inspect(c).get_table_names())
    finally:
        await engine.dispose()


async def test_migrations_on_startup_create_schema(database_url, monkeypatch):
    monkeypatch.setattr(app_main.settings, "RUN_MIGRATIONS_ON_STARTUP", True)
    monkeypatch.setattr(app_main.settings, "CREATE_SCHEMA_ON_STARTUP", False)
    await dispose_engine()

    async with app_main.app.router.lifespan_context(app_main.app):
        async with session_scope() as session:
            result = await WorkItemRepository(session).create(
                WorkItemCreate(title="first", tags=["setup"])
            )
            assert result == (Response.CREATED, 1)

    tables = await _table_names(database_url)
    assert {"users", "tags", "work_items", "work_item_tags", "alembic_version"} <= set(tables)


async def test_create_schema_on_startup(database_url, monkeypatch):
    monkeypatch.setattr(app_main.settings, "RUN_MIGRATIONS_ON_STARTUP", False)
    monkeypatch.setattr(app_main.settings, "CREATE_SCHEMA_ON_STARTUP", True)
    await dispose_engine()

    async with app_main.app.router.lifespan_context(app_main.app):
        pass

    tables = await _table_names(database_url)
    assert {"users", "tags", "work_items", "work_item_tags"} <= set(tables)
    assert "alembic_version" not in tables
