"""
Error Reporting.

Telemetry sink for failures the core recovers from (corrupt saves,
quota errors, refused writes). Errors are logged through loguru and the
most recent ones are kept in memory for the presentation layer.
"""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from loguru import logger


@dataclass
class ErrorRecord:
    """A single reported failure."""

    error_type: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class ErrorReporter:
    """
    Collects recoverable errors.

    Args:
        max_errors: How many records to retain (oldest dropped first)
    """

    def __init__(self, max_errors: int = 50):
        self._errors: deque[ErrorRecord] = deque(maxlen=max_errors)

    def report(self, error: BaseException | str, context: dict[str, Any] | None = None) -> ErrorRecord:
        """
        Record and log an error.

        Args:
            error: Exception instance or message
            context: Where it happened (operation, storage key, ...)

        Returns:
            The stored ErrorRecord
        """
        if isinstance(error, BaseException):
            record = ErrorRecord(type(error).__name__, str(error), dict(context or {}))
        else:
            record = ErrorRecord("Error", error, dict(context or {}))

        self._errors.append(record)
        logger.error(f"{record.error_type}: {record.message} {record.context or ''}".rstrip())
        return record

    @property
    def recent_errors(self) -> list[ErrorRecord]:
        """Retained errors, oldest first."""
        return list(self._errors)

    @property
    def error_count(self) -> int:
        return len(self._errors)

    def clear(self) -> None:
        self._errors.clear()
