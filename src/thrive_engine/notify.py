# src/thrive_engine/notify.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from .core.ports import NotificationSink
from .tasks.task_models import CompletionEvent, EntryKind

logger = logging.getLogger(__name__)


def describe_event(event: CompletionEvent) -> str:
    if event.kind == EntryKind.CHALLENGE:
        return f"Challenge complete: {event.identity} (+{event.xp} XP bonus)"
    ctx = event.context_ref
    if ctx is not None and ctx.step_index is not None:
        return f"Step {ctx.step_index + 1} done: {event.identity} (+{event.xp} XP)"
    return f"Task complete: {event.identity} (+{event.xp} XP)"


class LoggingNotifier:
    """Writes every completion event into the log."""

    def notify(self, event: CompletionEvent) -> None:
        logger.info("%s", describe_event(event))


class CallbackNotifier:
    """Renders events as text and hands them to a callback (console printer, etc.)."""

    def __init__(self, emit: Callable[[str], None]) -> None:
        self._emit = emit

    def notify(self, event: CompletionEvent) -> None:
        self._emit(describe_event(event))


class FanOutNotifier:
    """Delivers each event to several sinks; one failing sink does not starve the others."""

    def __init__(self, sinks: Iterable[NotificationSink]) -> None:
        self._sinks = list(sinks)

    def notify(self, event: CompletionEvent) -> None:
        for sink in self._sinks:
            try:
                sink.notify(event)
            except Exception:
                logger.exception("Notification sink %s failed", type(sink).__name__)
