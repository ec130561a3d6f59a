"""Audit logger: append-only JSON Lines record of webhook handling."""

from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path

from src.config import ConfigError
from src.models import AuditEvent

logger = logging.getLogger(__name__)


def _int_from_env(variable: str, default: int) -> int:
    value = os.environ.get(variable)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(variable, "is not an integer") from exc


class AuditLogger:
    """Writes one JSON line per AuditEvent, rotating by size."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count

    @classmethod
    def from_env(cls, log_path: str) -> AuditLogger:
        """Create AuditLogger with rotation limits from environment variables."""
        max_bytes = _int_from_env("AUDIT_LOG_MAX_BYTES", 10_485_760)
        backup_count = _int_from_env("AUDIT_LOG_BACKUP_COUNT", 5)
        return cls(log_path=log_path, max_bytes=max_bytes, backup_count=backup_count)

    def _backup(self, n: int) -> Path:
        return self.log_path.parent / f"{self.log_path.name}.{n}"

    def _maybe_rotate(self) -> None:
        if not self.log_path.exists() or self.log_path.stat().st_size < self._max_bytes:
            return
        if self._backup_count < 1:
            self.log_path.unlink()
            return

        self._backup(self._backup_count).unlink(missing_ok=True)
        for n in range(self._backup_count - 1, 0, -1):
            if self._backup(n).exists():
                self._backup(n).rename(self._backup(n + 1))
        self.log_path.rename(self._backup(1))

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        line = event.model_dump_json()

        # Lock file serializes rotation and append across worker processes
        lock_file = self.log_path.parent / f".{self.log_path.name}.lock"
        with open(lock_file, "w") as lf:
            fcntl.flock(lf, fcntl.LOCK_EX)
            try:
                self._maybe_rotate()
                with open(self.log_path, "a") as f:
                    f.write(line + "\n")
            finally:
                fcntl.flock(lf, fcntl.LOCK_UN)


def record(audit_logger: AuditLogger | None, event: AuditEvent) -> None:
    """Write ``event`` if auditing is enabled; a failed write is logged, not raised."""
    if audit_logger is None:
        return
    try:
        audit_logger.log(event)
    except OSError:
        logger.exception("Audit write failed for %s", event.event_type.value)
