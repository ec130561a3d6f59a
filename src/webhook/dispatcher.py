"""Concurrent fan-out of webhook events with settle-all semantics."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from src.audit.logger import AuditLogger, record
from src.line.events import LineEvent
from src.models import AuditEvent, AuditEventType, EventOutcome, OutcomeStatus, RiskLevel

logger = logging.getLogger(__name__)

EventHandler = Callable[[LineEvent, int], Awaitable[EventOutcome]]

_OUTCOME_RISK = {
    OutcomeStatus.REPLIED: RiskLevel.INFO,
    OutcomeStatus.SKIPPED: RiskLevel.INFO,
    OutcomeStatus.REPLY_FAILED: RiskLevel.MEDIUM,
    OutcomeStatus.ERROR: RiskLevel.MEDIUM,
}


class EventDispatcher:
    """Runs the handler for every event concurrently and waits for all of them.

    A handler that raises produces an ERROR outcome; it never cancels or
    affects its siblings.
    """

    def __init__(
        self,
        handler: EventHandler,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._handler = handler
        self._audit = audit_logger

    async def dispatch(self, events: Sequence[LineEvent]) -> list[EventOutcome]:
        results = await asyncio.gather(
            *(self._handler(event, index) for index, event in enumerate(events)),
            return_exceptions=True,
        )

        outcomes: list[EventOutcome] = []
        for index, (event, result) in enumerate(zip(events, results, strict=True)):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error("Handling event %d failed", index, exc_info=result)
                outcome = EventOutcome(
                    index=index,
                    status=OutcomeStatus.ERROR,
                    detail=type(result).__name__,
                )
            else:
                outcome = result
            logger.info("Event %d (%s): %s", index, event.kind, outcome.status.value)
            self._record(event, outcome)
            outcomes.append(outcome)
        return outcomes

    def _record(self, event: LineEvent, outcome: EventOutcome) -> None:
        record(self._audit, AuditEvent(
            event_type=AuditEventType.EVENT_HANDLED,
            user_id=event.user_id,
            action=f"handle_{event.kind}",
            result=outcome.status.value,
            risk_level=_OUTCOME_RISK[outcome.status],
            details={
                "index": outcome.index,
                "webhook_event_id": event.webhook_event_id,
                "is_redelivery": event.is_redelivery,
                "detail": outcome.detail,
            },
        ))
