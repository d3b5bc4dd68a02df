"""Best-effort delivery of messages to a slash command's ``response_url``."""

from __future__ import annotations

import logging
import os
from typing import Optional

import httpx

from app.schemas import SlackMessage

_LOGGER = logging.getLogger(__name__)


class SlackResponder:
    """Posts follow-up messages to Slack; failures are logged and dropped."""

    def __init__(self, *, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None) -> None:
        self.timeout = timeout or float(os.getenv("SLACK_RESPONSE_TIMEOUT", "5"))
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def respond(self, response_url: Optional[str], text: str, response_type: str = "in_channel") -> bool:
        """POST ``text`` to ``response_url``; returns whether Slack accepted it."""

        if not response_url:
            return False
        message = SlackMessage(response_type=response_type, text=text)
        try:
            response = await self._get_client().post(response_url, json=message.model_dump())
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            _LOGGER.warning("Unable to send response to slack: %s", exc)
            return False
        return True

    async def in_channel(self, response_url: Optional[str], text: str) -> bool:
        return await self.respond(response_url, text, "in_channel")

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


_responder: Optional[SlackResponder] = None


def get_slack_responder() -> SlackResponder:
    """Return the process-wide responder (shares one connection pool)."""

    global _responder
    if _responder is None:
        _responder = SlackResponder()
    return _responder


__all__ = ["SlackResponder", "get_slack_responder"]
