"""ElevenLabs Scribe speech-to-text client."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from src.models import NO_TRANSCRIPT_PLACEHOLDER, UNKNOWN_LANGUAGE, TranscriptionResult

logger = logging.getLogger(__name__)

_TRANSCRIPTION_API_BASE = "https://api.elevenlabs.io"
_DEFAULT_MODEL_ID = "scribe_v1"
_MAX_ERROR_DETAIL = 200


class TranscriptionError(Exception):
    """Raised when the transcription service returns a non-success response."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Transcription failed with status {status_code}: {detail}")


def extract_error_detail(resp: httpx.Response) -> str:
    """Return a short, single-line description of an error response.

    Uses ``detail.message`` or ``detail`` from a JSON body when present,
    otherwise the raw body text. Whitespace is collapsed and the result is
    capped at _MAX_ERROR_DETAIL characters since it is shown to end users.
    """
    text = resp.text
    try:
        body: Any = json.loads(text)
    except json.JSONDecodeError:
        body = None

    if isinstance(body, dict):
        detail = body.get("detail")
        if isinstance(detail, dict) and isinstance(detail.get("message"), str):
            text = detail["message"]
        elif isinstance(detail, str):
            text = detail

    detail_text = " ".join(text.split())
    if len(detail_text) > _MAX_ERROR_DETAIL:
        detail_text = detail_text[:_MAX_ERROR_DETAIL - 1] + "…"
    return detail_text or f"HTTP {resp.status_code}"


class ScribeClient:
    """Submits media to ElevenLabs Scribe and returns the transcript."""

    def __init__(
        self,
        api_key: str,
        api_base: str = _TRANSCRIPTION_API_BASE,
        model_id: str = _DEFAULT_MODEL_ID,
        timeout: float = 120.0,
    ) -> None:
        self._api_key = api_key
        self._api_base = api_base.rstrip("/")
        self._model_id = model_id
        self._timeout = timeout

    async def transcribe(self, media: bytes, filename: str = "media") -> TranscriptionResult:
        """Transcribe ``media``.

        Raises TranscriptionError on a non-2xx response. Transport errors
        (httpx.HTTPError) propagate unchanged.
        """
        url = f"{self._api_base}/v1/speech-to-text"
        data = {"model_id": self._model_id, "tag_audio_events": "false"}
        files = {"file": (filename, media, "application/octet-stream")}
        headers = {"xi-api-key": self._api_key}

        async with httpx.AsyncClient(verify=True) as client:
            resp = await client.post(
                url, data=data, files=files, headers=headers, timeout=self._timeout,
            )

        if resp.status_code >= 400:
            detail = extract_error_detail(resp)
            logger.warning("Transcription rejected with status %s: %s", resp.status_code, detail)
            raise TranscriptionError(resp.status_code, detail)

        try:
            body = resp.json()
        except ValueError as exc:
            # JSONDecodeError and UnicodeDecodeError both subclass ValueError
            raise TranscriptionError(resp.status_code, "invalid response from service") from exc
        if not isinstance(body, dict):
            raise TranscriptionError(resp.status_code, "invalid response from service")

        text = body.get("text")
        language_code = body.get("language_code")
        return TranscriptionResult(
            text=text.strip() if isinstance(text, str) and text.strip() else NO_TRANSCRIPT_PLACEHOLDER,
            language_code=language_code if isinstance(language_code, str) and language_code else UNKNOWN_LANGUAGE,
        )
