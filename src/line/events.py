"""Parsing of LINE webhook envelopes into typed events.

Each raw event becomes either a ``MediaMessageEvent`` (audio/video message
that can be transcribed) or an ``UnsupportedEvent``. Parsing fails closed:
malformed input yields ``UnsupportedEvent`` and never raises.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

MEDIA_MESSAGE_TYPES = frozenset({"audio", "video"})


class MediaMessageEvent(BaseModel):
    """An audio or video message event."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["audio", "video"]
    message_id: str
    reply_token: str | None = None
    user_id: str | None = None
    is_redelivery: bool = False
    webhook_event_id: str | None = None


class UnsupportedEvent(BaseModel):
    """Any event that is not a transcribable media message."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unsupported"] = "unsupported"
    event_type: str = "unknown"
    reply_token: str | None = None
    user_id: str | None = None
    is_redelivery: bool = False
    webhook_event_id: str | None = None


LineEvent = MediaMessageEvent | UnsupportedEvent


class WebhookEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    destination: str | None = None
    events: tuple[LineEvent, ...] = ()


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def parse_event(raw: Any) -> LineEvent:
    """Classify one raw webhook event."""
    if not isinstance(raw, dict):
        return UnsupportedEvent()

    source = raw.get("source")
    delivery = raw.get("deliveryContext")
    common: dict[str, Any] = {
        "reply_token": _str_or_none(raw.get("replyToken")),
        "user_id": _str_or_none(source.get("userId")) if isinstance(source, dict) else None,
        "is_redelivery": (
            delivery.get("isRedelivery") is True if isinstance(delivery, dict) else False
        ),
        "webhook_event_id": _str_or_none(raw.get("webhookEventId")),
    }

    message = raw.get("message")
    if isinstance(message, dict):
        message_type = message.get("type")
        message_id = message.get("id")
        if message_type in MEDIA_MESSAGE_TYPES and isinstance(message_id, str) and message_id:
            return MediaMessageEvent(kind=message_type, message_id=message_id, **common)

    event_type = raw.get("type")
    return UnsupportedEvent(
        event_type=event_type if isinstance(event_type, str) else "unknown",
        **common,
    )


def parse_envelope(body: bytes) -> WebhookEnvelope:
    """Parse a verified request body.

    A missing ``events`` key yields no events. A body that is not a JSON
    object is logged and also yields no events.
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Webhook body is not valid JSON; acknowledging without events")
        return WebhookEnvelope()

    if not isinstance(payload, dict):
        logger.warning("Webhook body is not a JSON object; acknowledging without events")
        return WebhookEnvelope()

    raw_events = payload.get("events")
    if raw_events is None:
        raw_events = []
    elif not isinstance(raw_events, list):
        logger.warning("Webhook 'events' is not a list; acknowledging without events")
        raw_events = []

    return WebhookEnvelope(
        destination=_str_or_none(payload.get("destination")),
        events=tuple(parse_event(raw) for raw in raw_events),
    )
