import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class ApiRequestError(Exception):
    def __init__(self, status_code: int, body: str):
        super().__init__(f"API request failed with status {status_code}")
        self.status_code = status_code
        self.body = body


class TodoApiClient:
    """HTTP client the UI uses for the chat and task-creation endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def send_chat(self, message: str, user_identifier: str) -> Dict[str, Any]:
        """
        Posts a chat message. The body is returned for any status, since the
        endpoint carries a displayable ``reply`` on failures too.
        """
        resp = await self._client.post(
            "/api/chat", json={"message": message, "user_identifier": user_identifier}
        )
        data = resp.json()
        return data if isinstance(data, dict) else {}

    async def create_task(
        self,
        user_identifier: str,
        title: str,
        description: Optional[str] = None,
        completed: bool = False,
    ) -> Dict[str, Any]:
        resp = await self._client.post(
            "/api/tasks",
            json={
                "user_identifier": user_identifier,
                "title": title,
                "description": description,
                "completed": completed,
            },
        )
        if not resp.is_success:
            raise ApiRequestError(resp.status_code, resp.text)
        return resp.json()

    async def aclose(self) -> None:
        await self._client.aclose()
