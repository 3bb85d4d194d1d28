import logging
from typing import Any, Optional

import httpx

from common.config import Settings

logger = logging.getLogger(__name__)

TRIGGER_PHRASES = ("#to-do list", "#todo list", "#todolist")


def has_trigger_phrase(message: str) -> bool:
    lowered = (message or "").lower()
    return any(phrase in lowered for phrase in TRIGGER_PHRASES)


class AutomationResponseError(Exception):
    """The automation webhook answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Automation webhook returned status {status_code}")
        self.status_code = status_code
        self.body = body


class AutomationClient:
    """Forwards triggered chat messages to the external automation webhook."""

    def __init__(
        self,
        webhook_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)

    async def submit(self, message: str, user_identifier: str) -> Any:
        """
        Posts the message and returns the decoded JSON body.

        Raises AutomationResponseError on non-2xx; transport and decode errors
        propagate unchanged.
        """
        resp = await self._client.post(
            self.webhook_url,
            json={"message": message, "user_identifier": user_identifier},
            headers={"Content-Type": "application/json"},
        )
        if not resp.is_success:
            raise AutomationResponseError(resp.status_code, resp.text)
        return resp.json()

    async def aclose(self) -> None:
        await self._client.aclose()


def build_automation_client(cfg: Settings) -> Optional[AutomationClient]:
    url = cfg.automation_webhook_url
    if not url:
        logger.warning("Automation webhook URL not configured.")
        return None
    return AutomationClient(url, timeout=cfg.AUTOMATION_TIMEOUT_SECONDS)
