"""
Progress Event Bus.

Named notifications produced by the learning core. Presentation code
subscribes; the core never knows who is listening.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from enum import Enum
from typing import Any

from loguru import logger

from src.core.telemetry import ErrorReporter

Payload = dict[str, Any]
Handler = Callable[[Payload], None]


class ProgressEvent(str, Enum):
    """Events emitted by the core."""

    SAVED = "progress:saved"
    RESET = "progress:reset"
    IMPORTED = "progress:imported"
    LETTER_MASTERED = "letter:mastered"
    WORD_MASTERED = "word:mastered"
    ACHIEVEMENT_UNLOCKED = "achievement:unlocked"
    BADGE_UNLOCKED = "badge:unlocked"
    GAME_RECORDED = "game:recorded"


class EventBus:
    """
    Synchronous publish/subscribe channel.

    Handlers run in subscription order on the emitting thread. A handler
    that raises is logged, or sent to the reporter when one is given, and
    skipped so one broken subscriber cannot interrupt a profile mutation.
    """

    def __init__(self, debug: bool = False, reporter: ErrorReporter | None = None):
        self.debug = debug
        self.reporter = reporter
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def on(self, event: ProgressEvent | str, handler: Handler) -> None:
        """Subscribe a handler to an event."""
        name = _event_name(event)
        self._handlers[name].append(handler)
        if self.debug:
            logger.debug(f"EventBus listening to {name}")

    def off(self, event: ProgressEvent | str, handler: Handler) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if the handler was subscribed
        """
        handlers = self._handlers.get(_event_name(event), [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def remove_all(self, event: ProgressEvent | str | None = None) -> None:
        """Drop every handler for one event, or for all events."""
        if event is None:
            self._handlers.clear()
        else:
            self._handlers.pop(_event_name(event), None)

    def emit(self, event: ProgressEvent | str, payload: Payload | None = None) -> int:
        """
        Deliver an event to its subscribers.

        Args:
            event: Event to emit
            payload: Small dict of ids and counts

        Returns:
            Number of handlers that completed
        """
        name = _event_name(event)
        payload = payload or {}
        if self.debug:
            logger.debug(f"EventBus emitting {name}: {payload}")

        delivered = 0
        for handler in list(self._handlers.get(name, [])):
            try:
                handler(payload)
                delivered += 1
            except Exception as e:
                if self.reporter is None:
                    logger.exception(f"Handler {handler!r} failed for {name}")
                else:
                    self.reporter.report(e, {"event": name, "handler": repr(handler)})
        return delivered

    def listener_count(self, event: ProgressEvent | str) -> int:
        return len(self._handlers.get(_event_name(event), []))


def _event_name(event: ProgressEvent | str) -> str:
    return event.value if isinstance(event, ProgressEvent) else event
