import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional

import httpx

from ui.api_client import ApiRequestError, TodoApiClient

logger = logging.getLogger(__name__)

GREETING = (
    'Hello! I can help you create tasks. Use #to-do list in your message to create a task. '
    'For example: "I need to #to-do list buy groceries"'
)
THINKING_PLACEHOLDER = "Thinking..."
NO_REPLY_FALLBACK = "Sorry, I encountered an error."
SEND_FAILED_REPLY = "Sorry, I encountered an error. Please try again."
SAVE_FAILED_REPLY = "Task was processed, but I had trouble saving it. Please check your task list."


@dataclass
class ChatMessage:
    role: str  # "user" | "assistant"
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


class ChatPanel:
    """Chat transcript plus the input box state."""

    def __init__(self, api: TodoApiClient, on_task_created: Optional[Callable[[], None]] = None):
        self._api = api
        self._on_task_created = on_task_created
        self.messages: List[ChatMessage] = [ChatMessage(role="assistant", content=GREETING)]
        self.input: str = ""
        self.is_loading: bool = False

    def is_disabled(self, user_identifier: str) -> bool:
        return not (user_identifier or "").strip() or self.is_loading

    def visible_messages(self) -> List[ChatMessage]:
        if self.is_loading:
            return self.messages + [ChatMessage(role="assistant", content=THINKING_PLACEHOLDER)]
        return list(self.messages)

    def _append(self, role: str, content: str) -> None:
        self.messages.append(ChatMessage(role=role, content=content))

    async def send(self, user_identifier: str) -> None:
        text = self.input.strip()
        if not text or self.is_loading or not (user_identifier or "").strip():
            return

        self._append("user", text)
        self.input = ""
        self.is_loading = True
        try:
            data = await self._api.send_chat(text, user_identifier)
            self._append("assistant", data.get("reply") or NO_REPLY_FALLBACK)
            if data.get("taskCreated") and data.get("enhanced_title"):
                await self._create_task_from_chat(user_identifier, data["enhanced_title"], data.get("steps"))
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Chat error: %s", e)
            self._append("assistant", SEND_FAILED_REPLY)
        finally:
            self.is_loading = False

    async def _create_task_from_chat(self, user_identifier: str, title: str, steps: Optional[List[Any]]) -> None:
        description = "\n".join(str(step) for step in steps) if steps else None
        try:
            await self._api.create_task(user_identifier, title, description=description, completed=False)
        except (ApiRequestError, httpx.HTTPError, ValueError) as e:
            logger.error("Error creating task from chat: %s", e)
            self._append("assistant", SAVE_FAILED_REPLY)
            return
        if self._on_task_created:
            self._on_task_created()


def render_chat(panel: ChatPanel, user_identifier: str) -> str:
    lines = ["Chat Assistant", ""]
    if not (user_identifier or "").strip():
        lines.append("Please enter a user identifier above to use the chat.")
        lines.append("")
    for message in panel.visible_messages():
        speaker = "You" if message.role == "user" else "Assistant"
        lines.append(f"[{message.timestamp:%H:%M:%S}] {speaker}: {message.content}")
    return "\n".join(lines)
