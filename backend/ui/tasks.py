from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple

from common.records import TaskInsert, TaskRecord, TaskUpdate
from common.task_state import TaskListState


@dataclass
class TaskFormData:
    title: str
    description: Optional[str] = None


class TaskForm:
    """Create/update form. Update mode when built with ``initial``."""

    def __init__(
        self,
        on_submit: Callable[[TaskFormData], Awaitable[None]],
        on_cancel: Optional[Callable[[], None]] = None,
        initial: Optional[TaskRecord] = None,
        submit_label: str = "Add Task",
    ):
        self._on_submit = on_submit
        self._on_cancel = on_cancel
        self.initial = initial
        self.submit_label = submit_label
        self.title = initial.title if initial else ""
        self.description = (initial.description or "") if initial else ""
        self.is_submitting = False

    @property
    def mode(self) -> str:
        return "update" if self.initial is not None else "create"

    def can_submit(self) -> bool:
        return not self.is_submitting and bool(self.title.strip())

    async def submit(self) -> bool:
        if not self.title.strip():
            return False
        self.is_submitting = True
        try:
            await self._on_submit(TaskFormData(
                title=self.title.strip(),
                description=self.description.strip() or None,
            ))
            if self.initial is None:
                self.title = ""
                self.description = ""
        finally:
            self.is_submitting = False
        return True

    def cancel(self) -> None:
        if self._on_cancel:
            self._on_cancel()


class TaskItem:
    def __init__(
        self,
        task: TaskRecord,
        on_toggle: Callable[[str, bool], Awaitable[None]],
        on_edit: Callable[[TaskRecord], None],
        on_delete: Callable[[str], Awaitable[None]],
    ):
        self.task = task
        self._on_toggle = on_toggle
        self._on_edit = on_edit
        self._on_delete = on_delete
        self.is_toggling = False
        self.is_deleting = False

    async def toggle(self) -> None:
        self.is_toggling = True
        try:
            await self._on_toggle(self.task.id, not self.task.completed)
        finally:
            self.is_toggling = False

    def edit(self) -> None:
        self._on_edit(self.task)

    async def delete(self, confirmed: bool = True) -> None:
        if not confirmed:
            return
        self.is_deleting = True
        try:
            await self._on_delete(self.task.id)
        finally:
            self.is_deleting = False


class TaskListPanel:
    """
    Task list view over a TaskListState.

    At most one task is edited at a time; the form switches between create
    and update mode accordingly.
    """

    def __init__(self, state: TaskListState):
        self.state = state
        self.user_identifier = ""
        self.editing_task: Optional[TaskRecord] = None
        self.form = self._create_form()
        self._synced_key: Optional[Tuple[str, int]] = None

    def _create_form(self) -> TaskForm:
        return TaskForm(on_submit=self._handle_create)

    @property
    def is_active(self) -> bool:
        return bool(self.user_identifier.strip())

    async def sync(self, user_identifier: str, refresh_key: int) -> None:
        """Re-fetch when the identifier or refresh key changed since the last sync."""
        key = (user_identifier, refresh_key)
        if key == self._synced_key:
            return
        self._synced_key = key
        self.user_identifier = user_identifier
        if user_identifier.strip():
            await self.state.fetch_tasks(user_identifier)

    async def _handle_create(self, data: TaskFormData) -> None:
        await self.state.create_task(TaskInsert(
            user_identifier=self.user_identifier,
            title=data.title,
            description=data.description,
        ))

    async def update_task(self, task_id: str, updates: TaskUpdate) -> None:
        await self.state.update_task(task_id, updates)
        if self.editing_task is not None and self.editing_task.id == task_id:
            self.cancel_edit()

    async def toggle_task(self, task_id: str, completed: bool) -> None:
        await self.state.update_task(task_id, TaskUpdate(completed=completed))

    async def delete_task(self, task_id: str) -> None:
        await self.state.delete_task(task_id)

    def start_edit(self, task: TaskRecord) -> None:
        self.editing_task = task
        self.form = TaskForm(
            on_submit=self._handle_edit_submit,
            on_cancel=self.cancel_edit,
            initial=task,
            submit_label="Update Task",
        )

    def cancel_edit(self) -> None:
        self.editing_task = None
        self.form = self._create_form()

    async def _handle_edit_submit(self, data: TaskFormData) -> None:
        if self.editing_task is not None:
            await self.update_task(
                self.editing_task.id,
                TaskUpdate(title=data.title, description=data.description),
            )

    def items(self) -> List[TaskItem]:
        return [
            TaskItem(task, on_toggle=self.toggle_task, on_edit=self.start_edit, on_delete=self.delete_task)
            for task in self.state.tasks
        ]


def render_task_item(task: TaskRecord) -> str:
    mark = "[x]" if task.completed else "[ ]"
    lines = [f"{mark} {task.title}"]
    if task.description:
        lines.extend(f"    {line}" for line in task.description.splitlines())
    lines.append(f"    Created: {task.created_at:%Y-%m-%d}")
    return "\n".join(lines)


def render_task_list(panel: TaskListPanel) -> str:
    if not panel.is_active:
        return "Please enter a user identifier to view tasks"
    header = "Edit task" if panel.form.mode == "update" else "New task"
    lines = [f"{header} ({panel.form.submit_label})"]
    if panel.state.error:
        lines.append(f"Error: {panel.state.error}")
    if panel.state.loading:
        lines.append("Loading tasks...")
    elif not panel.state.tasks:
        lines.append("No tasks yet. Create your first task above!")
    else:
        lines.extend(render_task_item(task) for task in panel.state.tasks)
    return "\n".join(lines)
