"""LINE Messaging API client: loading indicator, content fetch and replies.

Every call opens its own httpx.AsyncClient with TLS verification and an
explicit timeout. Nothing is retried: a reply token is single-use.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from src.models import ReplyMessage

logger = logging.getLogger(__name__)

_LINE_API_BASE = "https://api.line.me"
_LINE_DATA_API_BASE = "https://api-data.line.me"

# LINE reply API limits
MAX_REPLY_MESSAGES = 5
MAX_TEXT_LENGTH = 5000


class MediaFetchError(Exception):
    """Raised when message content cannot be downloaded from LINE."""

    def __init__(self, message_id: str, reason: str) -> None:
        self.message_id = message_id
        self.reason = reason
        super().__init__(f"Failed to fetch content for message {message_id}: {reason}")


class ReplyDeliveryError(Exception):
    """Raised when the reply request never reaches LINE."""


class LineMessagingClient:
    """Authenticated calls to the LINE Messaging API."""

    def __init__(
        self,
        channel_access_token: str,
        api_base: str = _LINE_API_BASE,
        data_api_base: str = _LINE_DATA_API_BASE,
        timeout: float = 30.0,
        loading_seconds: int | None = None,
    ) -> None:
        self._channel_access_token = channel_access_token
        self._api_base = api_base.rstrip("/")
        self._data_api_base = data_api_base.rstrip("/")
        self._timeout = timeout
        self._loading_seconds = loading_seconds

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._channel_access_token}"}

    async def start_loading(self, chat_id: str) -> bool:
        """Show the loading animation in a one-to-one chat.

        Best-effort: failures are logged and reported as False, never raised.
        """
        url = f"{self._api_base}/v2/bot/chat/loading/start"
        payload: dict[str, Any] = {"chatId": chat_id}
        if self._loading_seconds is not None:
            payload["loadingSeconds"] = self._loading_seconds

        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.post(
                    url, json=payload, headers=self._headers(), timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            logger.warning("Loading indicator request failed: %s", exc)
            return False

        if resp.status_code >= 400:
            logger.warning("Loading indicator rejected with status %s", resp.status_code)
            return False
        return True

    async def get_message_content(self, message_id: str) -> bytes:
        """Download the binary content of an audio/video message."""
        url = f"{self._data_api_base}/v2/bot/message/{message_id}/content"
        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.get(url, headers=self._headers(), timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise MediaFetchError(message_id, type(exc).__name__) from exc

        if resp.status_code >= 400:
            raise MediaFetchError(message_id, f"HTTP {resp.status_code}")
        return resp.content

    async def reply(
        self, reply_token: str, messages: Sequence[ReplyMessage],
    ) -> httpx.Response:
        """Send reply messages for a reply token.

        Returns the raw LINE response; callers decide what a non-2xx means.
        """
        if not 1 <= len(messages) <= MAX_REPLY_MESSAGES:
            raise ValueError(
                f"A reply carries 1 to {MAX_REPLY_MESSAGES} messages, got {len(messages)}",
            )
        url = f"{self._api_base}/v2/bot/message/reply"
        payload = {
            "replyToken": reply_token,
            "messages": [m.model_dump() for m in messages],
        }
        try:
            async with httpx.AsyncClient(verify=True) as client:
                return await client.post(
                    url, json=payload, headers=self._headers(), timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise ReplyDeliveryError(f"Reply request failed: {type(exc).__name__}") from exc


def build_text_messages(text: str) -> list[ReplyMessage]:
    """Split ``text`` into reply messages within LINE's size limits.

    Chunks of at most MAX_TEXT_LENGTH characters, at most MAX_REPLY_MESSAGES
    of them; anything beyond is cut and the last message ends with an ellipsis.
    """
    if not text:
        raise ValueError("Reply text must not be empty")

    chunks = [text[i:i + MAX_TEXT_LENGTH] for i in range(0, len(text), MAX_TEXT_LENGTH)]
    if len(chunks) > MAX_REPLY_MESSAGES:
        logger.warning(
            "Reply text of %d characters truncated to %d messages",
            len(text), MAX_REPLY_MESSAGES,
        )
        chunks = chunks[:MAX_REPLY_MESSAGES]
        chunks[-1] = chunks[-1][:MAX_TEXT_LENGTH - 1] + "…"
    return [ReplyMessage(text=chunk) for chunk in chunks]
