# src/thrive_engine/tasks/instantiator.py

from __future__ import annotations

from .duration import DEFAULT_FALLBACK_SECONDS, parse_duration
from .task_models import ContextRef, RunningTask, SessionStatus, TaskDefinition


def instantiate(
    definition: TaskDefinition,
    context_ref: ContextRef | None = None,
    *,
    fallback_seconds: int = DEFAULT_FALLBACK_SECONDS,
) -> RunningTask:
    """
    Turn a TaskDefinition (routine item, challenge step or quick-start) into a runnable task.

    Pure: the definition is only read. Replacing the live session slot is the session's job.
    """
    return RunningTask(
        source=definition,
        total_duration_seconds=parse_duration(definition.duration_text, fallback_seconds=fallback_seconds),
        elapsed_seconds=0,
        status=SessionStatus.RUNNING,
        context_ref=context_ref,
    )
