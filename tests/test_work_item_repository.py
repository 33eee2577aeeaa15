"""
Tests for WorkItemRepository: creation rules, tag find-or-create, projections,
updates and the state-dependent delete policy.
"""
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from kanban_api.core.lifecycle import Response, State
from kanban_api.db.base import utcnow
from kanban_api.db.models import Tag, WorkItem
from kanban_api.repositories import WorkItemRepository
from kanban_api.schemas.work_items import WorkItemCreate, WorkItemUpdate

TOLERANCE = timedelta(seconds=5)


async def _count(session, model) -> int:
    return (await session.execute(select(func.count(model.id)))).scalar_one()


def _update(item_id, state, **overrides):
    fields = {"title": "updated", "assigned_to_id": None, "description": None, "tags": []}
    fields.update(overrides)
    return WorkItemUpdate(id=item_id, state=state, **fields)


# Create

async def test_create_with_unknown_assignee_is_bad_request(session):
    repo = WorkItemRepository(session)

    result = await repo.create(WorkItemCreate(title="task", assigned_to_id=-1, tags=["x"]))

    assert result == (Response.BAD_REQUEST, -1)
    assert await _count(session, WorkItem) == 0
    assert await _count(session, Tag) == 0


async def test_create_plain_item_starts_new(session):
    repo = WorkItemRepository(session)

    response, item_id = await repo.create(WorkItemCreate(title="task"))

    assert response == Response.CREATED
    details = await repo.find(item_id)
    assert details.state == State.NEW
    assert details.tags == []
    assert details.created == details.state_updated
    assert abs(details.created - utcnow()) < TOLERANCE


async def test_create_with_assignee_shows_name(session, add_user):
    user = await add_user(name="Alice")
    repo = WorkItemRepository(session)

    _, item_id = await repo.create(WorkItemCreate(title="task", assigned_to_id=user.id, description="do it"))

    details = await repo.find(item_id)
    assert details.assigned_to_name == "Alice"
    assert details.description == "do it"


async def test_create_resolves_tags_by_name(session):
    repo = WorkItemRepository(session)

    _, first_id = await repo.create(WorkItemCreate(title="first", tags=["a", "b"]))
    _, second_id = await repo.create(WorkItemCreate(title="second", tags=["a"]))

    assert set((await repo.find(first_id)).tags) == {"a", "b"}
    assert (await repo.find(second_id)).tags == ["a"]
    rows = (await session.execute(select(Tag).where(Tag.name == "a"))).scalars().all()
    assert len(rows) == 1
    first = await session.get(WorkItem, first_id)
    second = await session.get(WorkItem, second_id)
    assert {t.id for t in first.tags if t.name == "a"} == {t.id for t in second.tags}


async def test_create_reuses_existing_tag(session, add_tag):
    tag = await add_tag("existing")
    tag_id = tag.id
    repo = WorkItemRepository(session)

    _, item_id = await repo.create(WorkItemCreate(title="task", tags=["existing"]))

    item = await session.get(WorkItem, item_id)
    assert [t.id for t in item.tags] == [tag_id]
    assert await _count(session, Tag) == 1


async def test_create_collapses_duplicate_tag_names(session):
    repo = WorkItemRepository(session)

    _, item_id = await repo.create(WorkItemCreate(title="task", tags=["dup", "dup"]))

    assert (await repo.find(item_id)).tags == ["dup"]
    assert await _count(session, Tag) == 1


def test_create_rejects_blank_title():
    with pytest.raises(ValueError):
        WorkItemCreate(title="   ")


# Find / read

async def test_find_missing_returns_none(session):
    assert await WorkItemRepository(session).find(1) is None


async def test_find_fills_defaults_for_unset_fields(session, add_item):
    item = await add_item(title="tester")

    details = await WorkItemRepository(session).find(item.id)

    assert details.title == "tester"
    assert details.description == ""
    assert details.assigned_to_name == ""
    assert details.tags == []
    assert details.state == State.NEW


async def test_read_returns_all_items(session, add_item):
    await add_item(title="one")
    await add_item(title="two", state=State.CLOSED)

    titles = [i.title for i in await WorkItemRepository(session).read()]

    assert sorted(titles) == ["one", "two"]


async def test_read_by_tag_matches_exact_tag_membership(session, add_tag, add_item):
    x = await add_tag("x")
    y = await add_tag("y")
    only_x = await add_item(title="x", tags=[x])
    both = await add_item(title="xy", tags=[x, y])
    await add_item(title="y", tags=[y])
    await add_tag("xx")

    found = await WorkItemRepository(session).read_by_tag("x")

    assert {i.id for i in found} == {only_x.id, both.id}


async def test_read_by_tag_unknown_name_is_empty(session, add_item):
    await add_item()

    assert await WorkItemRepository(session).read_by_tag("nope") == []


async def test_read_by_state(session, add_item):
    active = await add_item(state=State.ACTIVE)
    await add_item(state=State.NEW)

    found = await WorkItemRepository(session).read_by_state(State.ACTIVE)

    assert [i.id for i in found] == [active.id]


async def test_read_by_user_returns_only_their_items(session, add_user, add_item):
    alice = await add_user(name="Alice", email="alice@example.com")
    bob = await add_user(name="Bob", email="bob@example.com")
    mine = await add_item(title="mine", assignee=alice)
    await add_item(title="theirs", assignee=bob)
    await add_item(title="nobody's")

    found = await WorkItemRepository(session).read_by_user(alice.id)

    assert [(i.id, i.assigned_to_name) for i in found] == [(mine.id, "Alice")]


async def test_read_by_unknown_user_is_empty(session, add_item):
    await add_item()

    assert await WorkItemRepository(session).read_by_user(404) == []


async def test_read_removed(session, add_item):
    removed = await add_item(state=State.REMOVED)
    await add_item(state=State.ACTIVE)

    found = await WorkItemRepository(session).read_removed()

    assert [i.id for i in found] == [removed.id]


# Update

async def test_update_missing_returns_not_found(session):
    assert await WorkItemRepository(session).update(_update(9, State.NEW)) == Response.NOT_FOUND


async def test_update_state_change_refreshes_state_updated(session, add_item):
    item = await add_item()
    before = item.state_updated
    repo = WorkItemRepository(session)

    assert await repo.update(_update(item.id, State.ACTIVE)) == Response.UPDATED

    details = await repo.find(item.id)
    assert details.state == State.ACTIVE
    assert details.state_updated > before
    assert abs(details.state_updated - utcnow()) < TOLERANCE


async def test_update_same_state_keeps_state_updated(session, add_item):
    item = await add_item(state=State.ACTIVE)
    before = item.state_updated
    repo = WorkItemRepository(session)

    assert await repo.update(_update(item.id, State.ACTIVE, title="renamed")) == Response.UPDATED

    details = await repo.find(item.id)
    assert details.title == "renamed"
    assert details.state_updated == before


async def test_update_replaces_tag_set(session, add_tag, add_item):
    old = await add_tag("old")
    item = await add_item(tags=[old])
    repo = WorkItemRepository(session)

    await repo.update(_update(item.id, State.NEW, tags=["test", "tester"]))

    assert set((await repo.find(item.id)).tags) == {"test", "tester"}
    assert await _count(session, Tag) == 3


async def test_update_reuses_existing_tags(session, add_tag, add_item):
    kept = await add_tag("kept")
    other = await add_tag("other")
    dropped = await add_tag("dropped")
    expected_ids = {kept.id, other.id}
    item = await add_item(tags=[kept, dropped])
    item_id = item.id
    repo = WorkItemRepository(session)

    result = await repo.update(_update(item_id, State.NEW, tags=["kept", "other", "kept"]))

    assert result == Response.UPDATED
    assert await _count(session, Tag) == 3
    stored = await session.get(WorkItem, item_id)
    assert {t.id for t in stored.tags} == expected_ids


async def test_create_reuses_tag_inserted_by_concurrent_writer(session, add_tag, monkeypatch):
    existing = await add_tag("bug")
    existing_id = existing.id
    repo = WorkItemRepository(session)
    real_find_unique = repo.find_unique
    calls = []

    async def stale_first_lookup(model, field, value):
        # The first lookup misses, as if another writer inserted right after it.
        calls.append(value)
        if len(calls) == 1:
            return None
        return await real_find_unique(model, field, value)

    monkeypatch.setattr(repo, "find_unique", stale_first_lookup)

    status, item_id = await repo.create(WorkItemCreate(title="fix", tags=["bug"]))

    assert status == Response.CREATED
    assert await _count(session, Tag) == 1
    stored = await session.get(WorkItem, item_id)
    assert {t.id for t in stored.tags} == {existing_id}


async def test_update_reuses_tag_inserted_by_concurrent_writer(session, add_tag, add_item, monkeypatch):
    existing = await add_tag("bug")
    existing_id = existing.id
    item = await add_item()
    item_id = item.id
    repo = WorkItemRepository(session)
    real_find_unique = repo.find_unique
    calls = []

    async def stale_first_lookup(model, field, value):
        calls.append(value)
        if len(calls) == 1:
            return None
        return await real_find_unique(model, field, value)

    monkeypatch.setattr(repo, "find_unique", stale_first_lookup)

    assert await repo.update(_update(item_id, State.ACTIVE, tags=["bug"])) == Response.UPDATED

    assert await _count(session, Tag) == 1
    details = await repo.find(item_id)
    assert details.tags == ["bug"]
    assert details.state == State.ACTIVE
    stored = await session.get(WorkItem, item_id)
    assert {t.id for t in stored.tags} == {existing_id}


async def test_update_overwrites_assignee_and_description(session, add_user, add_item):
    user = await add_user(name="Carol", email="carol@example.com")
    item = await add_item(description="before")
    repo = WorkItemRepository(session)

    await repo.update(_update(item.id, State.NEW, assigned_to_id=user.id, description="after"))

    details = await repo.find(item.id)
    assert details.assigned_to_name == "Carol"
    assert details.description == "after"


async def test_update_with_unknown_assignee_clears_it(session, add_user, add_item):
    user = await add_user()
    item = await add_item(assignee=user)
    repo = WorkItemRepository(session)

    assert await repo.update(_update(item.id, State.NEW, assigned_to_id=12345)) == Response.UPDATED

    assert (await repo.find(item.id)).assigned_to_name == ""


async def test_update_may_write_any_state(session, add_item):
    item = await add_item(state=State.CLOSED)
    repo = WorkItemRepository(session)

    assert await repo.update(_update(item.id, State.NEW)) == Response.UPDATED
    assert (await repo.find(item.id)).state == State.NEW


# Delete

async def test_delete_missing_returns_not_found(session):
    assert await WorkItemRepository(session).delete(77) == Response.NOT_FOUND


async def test_delete_new_item_removes_row(session, session_maker, add_tag, add_item):
    tag = await add_tag("t")
    item = await add_item(state=State.NEW, tags=[tag])
    item_id, tag_id = item.id, tag.id

    assert await WorkItemRepository(session).delete(item_id) == Response.DELETED

    async with session_maker() as fresh:
        assert await fresh.get(WorkItem, item_id) is None
        assert await fresh.get(Tag, tag_id) is not None


async def test_delete_active_item_soft_deletes(session, session_maker, add_item):
    item = await add_item(state=State.ACTIVE)
    item_id, before = item.id, item.state_updated

    assert await WorkItemRepository(session).delete(item_id) == Response.UPDATED

    async with session_maker() as fresh:
        stored = await fresh.get(WorkItem, item_id)
        assert stored is not None
        assert stored.state == State.REMOVED
        assert stored.state_updated > before
        assert abs(stored.state_updated - utcnow()) < TOLERANCE


@pytest.mark.parametrize("state", [State.RESOLVED, State.CLOSED, State.REMOVED])
async def test_delete_protected_state_is_conflict(session, session_maker, add_item, state):
    item = await add_item(state=state)
    item_id, before = item.id, item.state_updated

    assert await WorkItemRepository(session).delete(item_id) == Response.CONFLICT

    async with session_maker() as fresh:
        stored = await fresh.get(WorkItem, item_id)
        assert stored.state == state
        assert stored.state_updated == before
