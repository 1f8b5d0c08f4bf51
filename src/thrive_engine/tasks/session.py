# src/thrive_engine/tasks/session.py

from __future__ import annotations

"""
Active task session.

Owns the single RunningTask slot and drives it through:

    Idle --start--> Running --tick/pause/resume--> ... --complete|auto--> Completed --> Idle
                                                   \\--dismiss--> Idle

Completed is transient: the ledger write, the notification and the completion
listeners (challenge sequencer) all happen inside the transition, then the slot
is empty again. Calls that make no sense in the current state are no-ops.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from ..core.ports import CompletionRepo, NotificationSink
from .duration import DEFAULT_FALLBACK_SECONDS
from .instantiator import instantiate
from .rewards import xp_for
from .task_models import (
    CompletionEvent,
    ContextRef,
    EntryKind,
    LedgerEntry,
    ReplacedPrevious,
    RunningTask,
    SessionStatus,
    Started,
    StartResult,
    TaskDefinition,
    TaskSnapshot,
)

logger = logging.getLogger(__name__)

CompletionListener = Callable[[CompletionEvent], None]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def notify_safely(notifier: NotificationSink | None, event: CompletionEvent) -> None:
    if notifier is None:
        return
    try:
        notifier.notify(event)
    except Exception:
        logger.exception("Notification sink failed kind=%s identity=%s", event.kind.value, event.identity)


class ActiveTaskSession:
    def __init__(
        self,
        ledger: CompletionRepo,
        notifier: NotificationSink | None = None,
        *,
        fallback_seconds: int = DEFAULT_FALLBACK_SECONDS,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._ledger = ledger
        self._notifier = notifier
        self._fallback_seconds = int(fallback_seconds)
        self._now = now
        self._task: RunningTask | None = None
        self._listeners: list[CompletionListener] = []

    # ---- read side ----

    @property
    def is_idle(self) -> bool:
        return self._task is None

    @property
    def status(self) -> SessionStatus | None:
        return self._task.status if self._task is not None else None

    def snapshot(self) -> TaskSnapshot | None:
        return TaskSnapshot.of(self._task) if self._task is not None else None

    def add_completion_listener(self, listener: CompletionListener) -> None:
        self._listeners.append(listener)

    # ---- transitions ----

    def start(self, definition: TaskDefinition, context_ref: ContextRef | None = None) -> StartResult:
        """Instantiate definition into the slot; an unfinished task is abandoned and reported."""
        if not definition.name or not definition.name.strip():
            raise ValueError("task name is required")
        previous = self.snapshot()
        self._task = instantiate(definition, context_ref, fallback_seconds=self._fallback_seconds)
        current = TaskSnapshot.of(self._task)

        if previous is None:
            logger.info("Task started name=%s total=%ss", definition.name, current.total_duration_seconds)
            return Started(task=current)

        logger.info(
            "Task started name=%s total=%ss (replaced %s at %s/%ss)",
            definition.name,
            current.total_duration_seconds,
            previous.name,
            previous.elapsed_seconds,
            previous.total_duration_seconds,
        )
        return ReplacedPrevious(task=current, previous=previous)

    def restore(self, task: RunningTask) -> StartResult:
        """
        Put a previously saved task back into the slot.

        It always comes back paused: time that passed while nobody was ticking is not credited.
        """
        if not task.source.name or not task.source.name.strip():
            raise ValueError("task name is required")
        previous = self.snapshot()
        elapsed = max(0, min(int(task.elapsed_seconds), int(task.total_duration_seconds)))
        self._task = replace(task, elapsed_seconds=elapsed, status=SessionStatus.PAUSED)
        current = TaskSnapshot.of(self._task)
        logger.info("Task restored name=%s elapsed=%s/%ss", current.name, elapsed, current.total_duration_seconds)
        if previous is None:
            return Started(task=current)
        return ReplacedPrevious(task=current, previous=previous)

    def tick(self) -> CompletionEvent | None:
        """
        One second of session time.

        Dropped unless Running. Returns the completion event when this tick finishes the task.
        """
        task = self._task
        if task is None or task.status != SessionStatus.RUNNING:
            return None

        task.elapsed_seconds = min(task.elapsed_seconds + 1, task.total_duration_seconds)
        logger.debug("Tick %s %s/%ss", task.source.name, task.elapsed_seconds, task.total_duration_seconds)

        if task.elapsed_seconds >= task.total_duration_seconds:
            logger.info("Task timer finished name=%s", task.source.name)
            return self._finish(task)
        return None

    def pause(self) -> bool:
        task = self._task
        if task is None or task.status == SessionStatus.PAUSED:
            return False
        task.status = SessionStatus.PAUSED
        logger.info("Task paused name=%s at %ss", task.source.name, task.elapsed_seconds)
        return True

    def resume(self) -> bool:
        task = self._task
        if task is None or task.status == SessionStatus.RUNNING:
            return False
        task.status = SessionStatus.RUNNING
        logger.info("Task resumed name=%s at %ss", task.source.name, task.elapsed_seconds)
        return True

    def complete(self) -> CompletionEvent | None:
        """Explicit completion; finishing early is allowed and counts the same as the timer running out."""
        task = self._task
        if task is None:
            return None
        logger.info(
            "Task completed by user name=%s at %s/%ss",
            task.source.name,
            task.elapsed_seconds,
            task.total_duration_seconds,
        )
        return self._finish(task)

    def dismiss(self) -> TaskSnapshot | None:
        """Abandon the task. Never touches the ledger. Returns what was dismissed."""
        task = self._task
        if task is None:
            return None
        snap = TaskSnapshot.of(task)
        self._task = None
        logger.info("Task dismissed name=%s at %s/%ss", snap.name, snap.elapsed_seconds, snap.total_duration_seconds)
        return snap

    # ---- internals ----

    def _finish(self, task: RunningTask) -> CompletionEvent:
        # Completed is transient: free the slot first so listeners may start the next task.
        self._task = None

        ts = self._now()
        xp = xp_for(task.source.difficulty)
        self._ledger.record(
            LedgerEntry(
                kind=EntryKind.TASK,
                identity=task.source.name,
                completed_at=ts,
                context_ref=task.context_ref,
                xp=xp,
            )
        )
        event = CompletionEvent(
            kind=EntryKind.TASK,
            identity=task.source.name,
            context_ref=task.context_ref,
            xp=xp,
            completed_at=ts,
        )
        notify_safely(self._notifier, event)

        for listener in list(self._listeners):
            listener(event)
        return event
