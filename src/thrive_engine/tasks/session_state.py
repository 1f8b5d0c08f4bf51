# src/thrive_engine/tasks/session_state.py

from __future__ import annotations

"""
Session state (de)serialization.

Shape of the saved document:

    {
      "version": 1,
      "task": {"definition": {...}, "total": 900, "elapsed": 120, "context": {...}} | null,
      "active_challenge": "pushup-ladder" | null,
      "challenges": [{"definition": {...}, "current_step_index": 1, "completed_step_ids": [0]}]
    }

Definitions are stored in full, so a restore does not depend on the catalog still containing them.
"""

import logging
from typing import Any

from .challenge import ChallengeSequencer
from .session import ActiveTaskSession
from .task_models import (
    Category,
    ChallengeDefinition,
    ChallengeProgress,
    ContextRef,
    Difficulty,
    RunningTask,
    SessionStatus,
    TaskDefinition,
)

logger = logging.getLogger(__name__)

STATE_VERSION = 1


def _definition_to_dict(d: TaskDefinition) -> dict[str, Any]:
    return {
        "name": d.name,
        "duration_text": d.duration_text,
        "category": d.category.value,
        "difficulty": d.difficulty.value,
        "steps": list(d.steps),
    }


def _definition_from_dict(raw: dict[str, Any]) -> TaskDefinition:
    return TaskDefinition(
        name=str(raw.get("name") or ""),
        duration_text=str(raw.get("duration_text") or ""),
        category=Category.parse(raw.get("category")),
        difficulty=Difficulty.parse(raw.get("difficulty")),
        steps=tuple(str(s) for s in raw.get("steps") or []),
    )


def dump_session_state(session: ActiveTaskSession, sequencer: ChallengeSequencer) -> dict[str, Any]:
    task_doc: dict[str, Any] | None = None
    snap = session.snapshot()
    if snap is not None:
        task_doc = {
            "definition": {
                "name": snap.name,
                "duration_text": snap.duration_text,
                "category": snap.category.value,
                "difficulty": snap.difficulty.value,
                "steps": list(snap.steps),
            },
            "total": snap.total_duration_seconds,
            "elapsed": snap.elapsed_seconds,
            "context": snap.context_ref.to_dict() if snap.context_ref else None,
        }

    challenges: list[dict[str, Any]] = []
    for definition, progress in sequencer.in_progress():
        challenges.append(
            {
                "definition": {
                    "id": definition.id,
                    "title": definition.title,
                    "tasks": [_definition_to_dict(t) for t in definition.tasks],
                },
                "current_step_index": progress.current_step_index,
                "completed_step_ids": sorted(progress.completed_step_ids),
            }
        )

    return {
        "version": STATE_VERSION,
        "task": task_doc,
        "active_challenge": sequencer.active_challenge_id,
        "challenges": challenges,
    }


def restore_session_state(
    data: Any,
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
) -> bool:
    """
    Load a document produced by dump_session_state().

    Best-effort: malformed parts are skipped and logged. Returns True if a task was restored.
    """
    if not isinstance(data, dict):
        return False

    active_id = data.get("active_challenge")
    for item in data.get("challenges") or []:
        if not isinstance(item, dict) or not isinstance(item.get("definition"), dict):
            continue
        raw_def = item["definition"]
        definition = ChallengeDefinition(
            id=str(raw_def.get("id") or ""),
            title=str(raw_def.get("title") or ""),
            tasks=tuple(_definition_from_dict(t) for t in raw_def.get("tasks") or [] if isinstance(t, dict)),
        )
        progress = ChallengeProgress(
            challenge_id=definition.id,
            current_step_index=int(item.get("current_step_index") or 0),
            completed_step_ids={int(i) for i in item.get("completed_step_ids") or []},
        )
        try:
            sequencer.restore_progress(definition, progress, active=(definition.id == active_id))
        except ValueError as e:
            logger.warning("Saved challenge %r dropped: %s", definition.id, e)

    task_doc = data.get("task")
    if not isinstance(task_doc, dict) or not isinstance(task_doc.get("definition"), dict):
        return False

    total = int(task_doc.get("total") or 0)
    if total <= 0:
        logger.warning("Saved task has no duration; dropped")
        return False

    definition = _definition_from_dict(task_doc["definition"])
    if not definition.name.strip():
        return False
    session.restore(
        RunningTask(
            source=definition,
            total_duration_seconds=total,
            elapsed_seconds=int(task_doc.get("elapsed") or 0),
            status=SessionStatus.PAUSED,
            context_ref=ContextRef.from_dict(task_doc.get("context")),
        )
    )
    return True
