"""Shared test fixtures for line-transcriber."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.audit.logger import AuditLogger
from src.config import Credentials
from src.line.client import LineMessagingClient
from src.models import AuditEvent, AuditEventType, RiskLevel, TranscriptionResult
from src.transcription.client import ScribeClient

CHANNEL_SECRET = "test-channel-secret"
ACCESS_TOKEN = "test-access-token"
TRANSCRIPTION_KEY = "test-transcription-key"


@pytest.fixture
def credentials() -> Credentials:
    return make_credentials()


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def mock_line_client() -> AsyncMock:
    """LINE client whose calls all succeed."""
    client = AsyncMock(spec=LineMessagingClient)
    client.start_loading.return_value = True
    client.get_message_content.return_value = b"media-bytes"
    client.reply.return_value = MagicMock(status_code=200)
    return client


@pytest.fixture
def mock_scribe_client() -> AsyncMock:
    client = AsyncMock(spec=ScribeClient)
    client.transcribe.return_value = TranscriptionResult(text="hello", language_code="en")
    return client


# --- Factory functions for test data ---


def make_credentials(**kwargs: Any) -> Credentials:
    defaults: dict[str, Any] = {
        "channel_secret": CHANNEL_SECRET,
        "channel_access_token": ACCESS_TOKEN,
        "transcription_api_key": TRANSCRIPTION_KEY,
    }
    defaults.update(kwargs)
    return Credentials(**defaults)


def make_line_event(
    message_type: str | None = "audio",
    message_id: str = "325708",
    reply_token: str | None = "reply-token-1",
    user_id: str | None = "U4af4980629",
    **kwargs: Any,
) -> dict[str, Any]:
    """Raw LINE webhook event as the platform sends it."""
    event: dict[str, Any] = {
        "type": "message",
        "mode": "active",
        "timestamp": 1462629479859,
        "source": {"type": "user"},
        "webhookEventId": "01FZ74A0TDDPYRVKNK77XKC3ZR",
        "deliveryContext": {"isRedelivery": False},
    }
    if user_id is not None:
        event["source"]["userId"] = user_id
    if reply_token is not None:
        event["replyToken"] = reply_token
    if message_type is not None:
        event["message"] = {"type": message_type, "id": message_id}
    event.update(kwargs)
    return event


def make_envelope(*events: dict[str, Any]) -> dict[str, Any]:
    return {"destination": "Uxxxxxxxxxxxxxx", "events": list(events)}


def make_audit_event(**kwargs: Any) -> AuditEvent:
    """Factory for AuditEvent with sensible defaults."""
    defaults: dict[str, object] = {
        "event_type": AuditEventType.WEBHOOK_AUTH_FAILURE,
        "action": "POST /webhook",
        "result": "failure",
        "risk_level": RiskLevel.HIGH,
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)  # type: ignore[arg-type]
