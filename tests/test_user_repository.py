"""
Tests for UserRepository: email uniqueness, partial updates and protected deletes.
"""
from sqlalchemy import func, select

from kanban_api.core.lifecycle import Response
from kanban_api.db.models import User, WorkItem
from kanban_api.repositories import UserRepository
from kanban_api.schemas.users import UserCreate, UserRead, UserUpdate


async def test_create_returns_created(session):
    repo = UserRepository(session)

    response, user_id = await repo.create(UserCreate(name="Bob", email="bob@example.com"))

    assert response == Response.CREATED
    assert await repo.find(user_id) == UserRead(id=user_id, name="Bob", email="bob@example.com")


async def test_create_existing_email_returns_conflict(session, add_user):
    user = await add_user(email="taken@example.com")
    user_id = user.id
    repo = UserRepository(session)

    result = await repo.create(UserCreate(name="Other", email="taken@example.com"))

    assert result == (Response.CONFLICT, user_id)
    count = (await session.execute(select(func.count(User.id)))).scalar_one()
    assert count == 1


async def test_find_missing_returns_none(session):
    assert await UserRepository(session).find(99) is None


async def test_read_returns_all_users(session, add_user):
    await add_user(name="A", email="a@example.com")
    await add_user(name="B", email="b@example.com")

    emails = [u.email for u in await UserRepository(session).read()]

    assert sorted(emails) == ["a@example.com", "b@example.com"]


async def test_update_missing_returns_not_found(session):
    payload = UserUpdate(id=5, name="x", email="x@example.com")

    assert await UserRepository(session).update(payload) == Response.NOT_FOUND


async def test_update_changes_name_and_email(session, add_user):
    user = await add_user()
    repo = UserRepository(session)

    result = await repo.update(UserUpdate(id=user.id, name="Alicia", email="alicia@example.com"))

    assert result == Response.UPDATED
    assert await repo.find(user.id) == UserRead(id=user.id, name="Alicia", email="alicia@example.com")


async def test_update_to_email_of_other_user_is_conflict(session, add_user):
    first = await add_user(name="A", email="a@example.com")
    await add_user(name="B", email="b@example.com")
    repo = UserRepository(session)

    result = await repo.update(UserUpdate(id=first.id, name="A", email="b@example.com"))

    assert result == Response.CONFLICT
    assert (await repo.find(first.id)).email == "a@example.com"


async def test_delete_missing_returns_not_found(session):
    assert await UserRepository(session).delete(1) == Response.NOT_FOUND


async def test_delete_user_without_work_items(session, add_user):
    user = await add_user()
    user_id = user.id
    repo = UserRepository(session)

    assert await repo.delete(user_id) == Response.DELETED
    assert await repo.find(user_id) is None


async def test_delete_assigned_user_without_force_is_conflict(session, session_maker, add_user, add_item):
    user = await add_user()
    item = await add_item(assignee=user)
    user_id, item_id = user.id, item.id

    assert await UserRepository(session).delete(user_id) == Response.CONFLICT

    async with session_maker() as fresh:
        assert (await fresh.get(WorkItem, item_id)).assigned_to_id == user_id


async def test_force_delete_unassigns_and_keeps_work_items(session, session_maker, add_user, add_item):
    user = await add_user()
    first = await add_item(title="one", assignee=user)
    second = await add_item(title="two", assignee=user)
    user_id, ids = user.id, [first.id, second.id]

    assert await UserRepository(session).delete(user_id, force=True) == Response.DELETED

    async with session_maker() as fresh:
        assert await fresh.get(User, user_id) is None
        for item_id in ids:
            stored = await fresh.get(WorkItem, item_id)
            assert stored is not None
            assert stored.assigned_to_id is None
