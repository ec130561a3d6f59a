"""Shared Pydantic data models for line-transcriber."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class AuditEventType(str, Enum):
    WEBHOOK_AUTH_FAILURE = "webhook_auth_failure"
    WEBHOOK_RECEIVED = "webhook_received"
    EVENT_HANDLED = "event_handled"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class OutcomeStatus(str, Enum):
    REPLIED = "replied"
    REPLY_FAILED = "reply_failed"
    SKIPPED = "skipped"
    ERROR = "error"


# --- Transcription Models ---

NO_TRANSCRIPT_PLACEHOLDER = "Could not transcribe the message."
UNKNOWN_LANGUAGE = "unknown"


class TranscriptionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = NO_TRANSCRIPT_PLACEHOLDER
    language_code: str = UNKNOWN_LANGUAGE

    def as_reply_text(self) -> str:
        return f"[{self.language_code}]: {self.text}"


# --- Reply Models ---


class ReplyMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str = Field(min_length=1)


class EventOutcome(BaseModel):
    """Settled result of handling one webhook event."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    status: OutcomeStatus
    detail: str | None = None


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    source_ip: str | None = None
    user_id: str | None = None
    action: str
    result: str  # "success" | "failure" | "skipped"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
