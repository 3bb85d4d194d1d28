import asyncio
from unittest.mock import AsyncMock

from common.records import TaskInsert, TaskUpdate
from common.store import TaskStoreError
from common.task_state import MISSING_STORE_MESSAGE, TaskListState


def test_blank_identifier_clears_list_without_store_access(make_task):
    store = AsyncMock()
    state = TaskListState(store)
    state.tasks = [make_task()]

    for identifier in ("", "   "):
        asyncio.run(state.fetch_tasks(identifier))
        assert state.tasks == []

    store.list_tasks.assert_not_awaited()


def test_fetch_replaces_list_and_clears_loading(make_task):
    newer, older = make_task(title="newer"), make_task(title="older")
    seen_loading = []

    async def _list(identifier):
        seen_loading.append(state.loading)
        return [newer, older]

    store = AsyncMock()
    store.list_tasks = AsyncMock(side_effect=_list)
    state = TaskListState(store)
    state.error = "stale"

    asyncio.run(state.fetch_tasks("alice"))

    assert seen_loading == [True]
    assert state.loading is False
    assert state.error is None
    assert state.tasks == [newer, older]
    store.list_tasks.assert_awaited_once_with("alice")


def test_fetch_with_no_rows_gives_empty_list():
    store = AsyncMock()
    store.list_tasks = AsyncMock(return_value=None)
    state = TaskListState(store)
    asyncio.run(state.fetch_tasks("alice"))
    assert state.tasks == []


def test_fetch_failure_records_error_and_keeps_list(make_task):
    existing = make_task()
    store = AsyncMock()
    store.list_tasks = AsyncMock(side_effect=TaskStoreError("network down"))
    state = TaskListState(store)
    state.tasks = [existing]

    asyncio.run(state.fetch_tasks("alice"))

    assert state.error == "network down"
    assert state.loading is False
    assert state.tasks == [existing]


def test_create_prepends_exactly_once(make_task):
    a, b = make_task(), make_task()
    created = make_task(title="new")
    store = AsyncMock()
    store.create_task = AsyncMock(return_value=created)
    state = TaskListState(store)
    state.tasks = [b, a]

    result = asyncio.run(state.create_task(TaskInsert(user_identifier="alice", title="new")))

    assert result == created
    assert state.tasks[0] == created
    assert [t.id for t in state.tasks].count(created.id) == 1
    assert len(state.tasks) == 3


def test_create_failure_returns_none():
    store = AsyncMock()
    store.create_task = AsyncMock(side_effect=TaskStoreError(""))
    state = TaskListState(store)

    assert asyncio.run(state.create_task(TaskInsert(user_identifier="alice", title="x"))) is None
    assert state.error == "Failed to create task"
    assert state.tasks == []


def test_update_completed_keeps_order_and_other_fields(make_task):
    first, target, last = make_task(), make_task(title="target", description="d"), make_task()
    updated = target.model_copy(update={"completed": True})
    store = AsyncMock()
    store.update_task = AsyncMock(return_value=updated)
    state = TaskListState(store)
    state.tasks = [first, target, last]

    result = asyncio.run(state.update_task(target.id, TaskUpdate(completed=True)))

    assert result == updated
    assert [t.id for t in state.tasks] == [first.id, target.id, last.id]
    assert state.tasks[1].completed is True
    assert state.tasks[1].title == "target"
    assert state.tasks[1].description == "d"
    assert state.tasks[0] == first and state.tasks[2] == last


def test_update_failure_returns_none(make_task):
    task = make_task()
    store = AsyncMock()
    store.update_task = AsyncMock(side_effect=TaskStoreError("Task not found"))
    state = TaskListState(store)
    state.tasks = [task]

    assert asyncio.run(state.update_task(task.id, TaskUpdate(completed=True))) is None
    assert state.error == "Task not found"
    assert state.tasks == [task]


def test_delete_removes_entry(make_task):
    a, b, c = make_task(), make_task(), make_task()
    store = AsyncMock()
    store.delete_task = AsyncMock(return_value=True)
    state = TaskListState(store)
    state.tasks = [c, b, a]

    assert asyncio.run(state.delete_task(b.id)) is True
    assert len(state.tasks) == 2
    assert all(t.id != b.id for t in state.tasks)


def test_delete_failure_returns_false(make_task):
    task = make_task()
    store = AsyncMock()
    store.delete_task = AsyncMock(side_effect=TaskStoreError("permission denied"))
    state = TaskListState(store)
    state.tasks = [task]

    assert asyncio.run(state.delete_task(task.id)) is False
    assert state.error == "permission denied"
    assert state.tasks == [task]


def test_missing_store_is_reported_as_error():
    state = TaskListState(None)
    asyncio.run(state.fetch_tasks("alice"))
    assert state.error == MISSING_STORE_MESSAGE
    assert state.loading is False
    assert asyncio.run(state.delete_task("x")) is False
