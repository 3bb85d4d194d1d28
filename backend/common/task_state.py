"""In-memory task list for one view, kept in step with a TaskStore.

Operations are not serialized: when calls overlap, whichever response lands
last decides the list contents. A fetch started for a previous identifier is
not cancelled when the identifier changes.
"""
import logging
from typing import List, Optional

from common.records import TaskInsert, TaskRecord, TaskUpdate
from common.store import TaskStore, TaskStoreError

logger = logging.getLogger(__name__)

MISSING_STORE_MESSAGE = (
    "Missing task store configuration. Please set TASK_STORE_URL and TASK_STORE_ANON_KEY."
)


class TaskListState:
    def __init__(self, store: Optional[TaskStore]):
        self._store = store
        self.tasks: List[TaskRecord] = []
        self.loading: bool = False
        self.error: Optional[str] = None

    def _require_store(self) -> TaskStore:
        if self._store is None:
            raise TaskStoreError(MISSING_STORE_MESSAGE)
        return self._store

    def _record_error(self, e: TaskStoreError, fallback: str) -> None:
        self.error = str(e) or fallback
        logger.error("%s: %s", fallback, self.error)

    async def fetch_tasks(self, user_identifier: str) -> None:
        if not (user_identifier or "").strip():
            self.tasks = []
            return

        self.loading = True
        self.error = None
        try:
            rows = await self._require_store().list_tasks(user_identifier)
            self.tasks = list(rows or [])
        except TaskStoreError as e:
            self._record_error(e, "Failed to fetch tasks")
        finally:
            self.loading = False

    async def create_task(self, payload: TaskInsert) -> Optional[TaskRecord]:
        self.error = None
        try:
            created = await self._require_store().create_task(payload)
        except TaskStoreError as e:
            self._record_error(e, "Failed to create task")
            return None
        self.tasks = [created] + self.tasks
        return created

    async def update_task(self, task_id: str, updates: TaskUpdate) -> Optional[TaskRecord]:
        self.error = None
        try:
            updated = await self._require_store().update_task(task_id, updates)
        except TaskStoreError as e:
            self._record_error(e, "Failed to update task")
            return None
        self.tasks = [updated if task.id == task_id else task for task in self.tasks]
        return updated

    async def delete_task(self, task_id: str) -> bool:
        self.error = None
        try:
            await self._require_store().delete_task(task_id)
        except TaskStoreError as e:
            self._record_error(e, "Failed to delete task")
            return False
        self.tasks = [task for task in self.tasks if task.id != task_id]
        return True
