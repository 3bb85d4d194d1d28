from typing import Callable, Optional

from common.config import Settings
from common.store import TaskStore, build_task_store
from common.task_state import TaskListState
from ui.api_client import TodoApiClient
from ui.chat import ChatPanel, render_chat
from ui.tasks import TaskListPanel, render_task_list


class UserProfile:
    def __init__(self, on_change: Callable[[str], None]):
        self._on_change = on_change
        self.value = ""

    def change(self, value: str) -> None:
        self.value = value
        self._on_change(value)


class Page:
    """
    Top-level view. The user identifier and the refresh counter are the only
    state shared between components.
    """

    def __init__(self, api: TodoApiClient, store: Optional[TaskStore]):
        self._api = api
        self._store = store
        self.user_identifier = ""
        self.refresh_key = 0
        self.profile = UserProfile(on_change=self.set_user_identifier)
        self.chat = ChatPanel(api, on_task_created=self.handle_task_created)
        self.task_list = TaskListPanel(TaskListState(store))

    @classmethod
    def from_settings(cls, cfg: Settings) -> "Page":
        return cls(TodoApiClient(cfg.API_BASE_URL), build_task_store(cfg, server=False))

    def set_user_identifier(self, value: str) -> None:
        self.user_identifier = value

    def handle_task_created(self) -> None:
        self.refresh_key += 1

    async def refresh(self) -> None:
        await self.task_list.sync(self.user_identifier, self.refresh_key)

    async def send_chat(self, text: str) -> None:
        self.chat.input = text
        await self.chat.send(self.user_identifier)
        await self.refresh()

    def render(self) -> str:
        return "\n\n".join([
            "To-Do List",
            f"User Identifier: {self.user_identifier or '(not set)'}",
            render_chat(self.chat, self.user_identifier),
            render_task_list(self.task_list),
        ])

    async def aclose(self) -> None:
        await self._api.aclose()
        if self._store is not None:
            await self._store.aclose()
