import asyncio

import pytest
from sqlalchemy.pool import StaticPool

from common.records import TaskInsert, TaskUpdate
from common.store import SqlTaskStore, TaskStoreError


def _run_with_store(scenario):
    async def _run():
        store = SqlTaskStore.from_url(
            "sqlite+aiosqlite:///:memory:",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        await store.create_schema()
        try:
            return await scenario(store)
        finally:
            await store.aclose()

    return asyncio.run(_run())


def test_description_round_trips_unchanged():
    async def _scenario(store):
        created = await store.create_task(TaskInsert(user_identifier="alice", title="Buy milk", description="a\nb"))
        listed = await store.list_tasks("alice")
        return created, listed

    created, listed = _run_with_store(_scenario)
    assert created.id
    assert created.completed is False
    assert [t.id for t in listed] == [created.id]
    assert listed[0].description == "a\nb"


def test_list_is_scoped_to_identifier_and_newest_first():
    async def _scenario(store):
        first = await store.create_task(TaskInsert(user_identifier="alice", title="first"))
        await asyncio.sleep(0.01)
        second = await store.create_task(TaskInsert(user_identifier="alice", title="second"))
        await store.create_task(TaskInsert(user_identifier="bob", title="other"))
        return first, second, await store.list_tasks("alice")

    first, second, listed = _run_with_store(_scenario)
    assert [t.id for t in listed] == [second.id, first.id]


def test_partial_update_leaves_other_fields():
    async def _scenario(store):
        created = await store.create_task(TaskInsert(user_identifier="alice", title="Buy milk", description="2%"))
        updated = await store.update_task(created.id, TaskUpdate(completed=True))
        return created, updated

    created, updated = _run_with_store(_scenario)
    assert updated.id == created.id
    assert updated.completed is True
    assert updated.title == "Buy milk"
    assert updated.description == "2%"


def test_update_missing_row_fails():
    async def _scenario(store):
        await store.update_task("missing", TaskUpdate(completed=True))

    with pytest.raises(TaskStoreError, match="Task not found"):
        _run_with_store(_scenario)


def test_delete_removes_row():
    async def _scenario(store):
        keep = await store.create_task(TaskInsert(user_identifier="alice", title="keep"))
        drop = await store.create_task(TaskInsert(user_identifier="alice", title="drop"))
        assert await store.delete_task(drop.id) is True
        return keep, await store.list_tasks("alice")

    keep, listed = _run_with_store(_scenario)
    assert [t.id for t in listed] == [keep.id]


def test_empty_identifier_rejected():
    async def _scenario(store):
        await store.create_task(TaskInsert(user_identifier="", title="x"))

    with pytest.raises(TaskStoreError, match="User identifier is required"):
        _run_with_store(_scenario)
