"""FastAPI application receiving LINE webhooks."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from src.audit.logger import AuditLogger, record
from src.config import Credentials, Settings
from src.line.client import LineMessagingClient
from src.line.events import parse_envelope
from src.line.signature import SIGNATURE_HEADER, verify_signature
from src.models import AuditEvent, AuditEventType, RiskLevel
from src.transcription.client import ScribeClient
from src.webhook.dispatcher import EventDispatcher
from src.webhook.pipeline import TranscriptionPipeline

logger = logging.getLogger(__name__)


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    credentials = Credentials.from_env()
    settings = Settings.from_env()
    audit_logger = (
        AuditLogger.from_env(settings.audit_log_path) if settings.audit_log_path else None
    )
    return create_app(credentials, settings, audit_logger=audit_logger)


def create_app(
    credentials: Credentials,
    settings: Settings | None = None,
    audit_logger: AuditLogger | None = None,
    line_client: LineMessagingClient | None = None,
    scribe_client: ScribeClient | None = None,
) -> FastAPI:
    """Create the webhook app. Clients default to ones built from the settings."""
    settings = settings or Settings()
    if line_client is None:
        line_client = LineMessagingClient(
            credentials.channel_access_token.get_secret_value(),
            api_base=settings.line_api_base,
            data_api_base=settings.line_data_api_base,
            timeout=settings.http_timeout_seconds,
            loading_seconds=settings.loading_seconds,
        )
    if scribe_client is None:
        scribe_client = ScribeClient(
            credentials.transcription_api_key.get_secret_value(),
            api_base=settings.transcription_api_base,
            model_id=settings.transcription_model_id,
            timeout=settings.transcription_timeout_seconds,
        )

    pipeline = TranscriptionPipeline(line_client, scribe_client)
    dispatcher = EventDispatcher(pipeline.handle, audit_logger=audit_logger)
    channel_secret = credentials.channel_secret.get_secret_value()

    app = FastAPI(docs_url=None, redoc_url=None)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(settings.webhook_path)
    async def webhook(request: Request) -> PlainTextResponse:
        body = await request.body()
        signature = request.headers.get(SIGNATURE_HEADER)

        # Nothing past this point may touch the body until it is authenticated
        if not verify_signature(channel_secret, body, signature):
            logger.warning("Rejected webhook with invalid signature")
            record(audit_logger, AuditEvent(
                event_type=AuditEventType.WEBHOOK_AUTH_FAILURE,
                source_ip=request.client.host if request.client else None,
                action=f"POST {settings.webhook_path}",
                result="failure",
                risk_level=RiskLevel.HIGH,
                details={"reason": "missing_signature" if not signature else "mismatch"},
            ))
            return PlainTextResponse("Invalid signature", status_code=401)

        envelope = parse_envelope(body)
        record(audit_logger, AuditEvent(
            event_type=AuditEventType.WEBHOOK_RECEIVED,
            source_ip=request.client.host if request.client else None,
            action=f"POST {settings.webhook_path}",
            result="success",
            risk_level=RiskLevel.INFO,
            details={"events": len(envelope.events), "destination": envelope.destination},
        ))

        outcomes = await dispatcher.dispatch(envelope.events)
        logger.info(
            "Webhook handled: %d events, %s",
            len(outcomes), [o.status.value for o in outcomes],
        )
        return PlainTextResponse("OK")

    return app
