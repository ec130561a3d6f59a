"""Per-event transcription pipeline.

Stages for one webhook event:
1. Reject anything that is not an audio/video message with a fixed reply
2. Start the chat loading indicator (best-effort)
3. Download the media from LINE
4. Transcribe it with Scribe
5. Reply once with "[<language>]: <transcript>"

Any failure while processing media becomes a user-visible reply. The reply token
is used for exactly one reply attempt, never retried.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from src.line.client import MediaFetchError, ReplyDeliveryError, build_text_messages
from src.line.events import LineEvent, MediaMessageEvent
from src.models import EventOutcome, OutcomeStatus, ReplyMessage
from src.transcription.client import TranscriptionError

if TYPE_CHECKING:
    from src.line.client import LineMessagingClient
    from src.transcription.client import ScribeClient

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE_REPLY = "Please send an audio or video message."
MEDIA_FETCH_FAILED_REPLY = "Could not download the media. Please try sending it again."
TRANSCRIPTION_FAILED_REPLY = "Transcription failed: {detail}"
PROCESSING_FAILED_REPLY = "Something went wrong while processing the media. Please try again later."

_MEDIA_FILENAMES = {"audio": "audio.m4a", "video": "video.mp4"}


class TranscriptionPipeline:
    """Turns one LINE event into reply messages and delivers them."""

    def __init__(
        self,
        line_client: LineMessagingClient,
        scribe_client: ScribeClient,
    ) -> None:
        self._line = line_client
        self._scribe = scribe_client

    async def build_replies(self, event: LineEvent) -> list[ReplyMessage]:
        if not isinstance(event, MediaMessageEvent):
            return [ReplyMessage(text=UNSUPPORTED_MESSAGE_REPLY)]

        try:
            return await self._transcribe_media(event)
        except Exception:
            # Reply token is still unused here
            logger.exception("Processing message %s failed", event.message_id)
            return [ReplyMessage(text=PROCESSING_FAILED_REPLY)]

    async def _transcribe_media(self, event: MediaMessageEvent) -> list[ReplyMessage]:
        # Loading animation only exists for one-to-one chats
        if event.user_id:
            await self._line.start_loading(event.user_id)

        try:
            media = await self._line.get_message_content(event.message_id)
        except MediaFetchError as exc:
            logger.warning("%s", exc)
            return [ReplyMessage(text=MEDIA_FETCH_FAILED_REPLY)]

        try:
            result = await self._scribe.transcribe(
                media, filename=_MEDIA_FILENAMES[event.kind],
            )
        except TranscriptionError as exc:
            return [ReplyMessage(text=TRANSCRIPTION_FAILED_REPLY.format(detail=exc.detail))]
        except httpx.HTTPError as exc:
            logger.warning("Transcription request failed: %s", type(exc).__name__)
            return [ReplyMessage(
                text=TRANSCRIPTION_FAILED_REPLY.format(detail="service unavailable"),
            )]

        return build_text_messages(result.as_reply_text())

    async def handle(self, event: LineEvent, index: int = 0) -> EventOutcome:
        """Build replies for ``event`` and send them with its reply token."""
        if event.reply_token is None:
            logger.info("Event %d (%s) has no reply token; skipping", index, event.kind)
            return EventOutcome(index=index, status=OutcomeStatus.SKIPPED, detail="no reply token")

        if event.is_redelivery:
            # Redeliveries are not de-duplicated; the token may already be spent
            logger.warning(
                "Event %d is a redelivery (webhookEventId=%s)", index, event.webhook_event_id,
            )

        messages = await self.build_replies(event)

        try:
            resp = await self._line.reply(event.reply_token, messages)
        except ReplyDeliveryError as exc:
            logger.warning("Reply for event %d not delivered: %s", index, exc)
            return EventOutcome(index=index, status=OutcomeStatus.REPLY_FAILED, detail=str(exc))

        if resp.status_code >= 400:
            logger.warning("Reply for event %d rejected with status %s", index, resp.status_code)
            return EventOutcome(
                index=index,
                status=OutcomeStatus.REPLY_FAILED,
                detail=f"HTTP {resp.status_code}",
            )
        return EventOutcome(index=index, status=OutcomeStatus.REPLIED)
