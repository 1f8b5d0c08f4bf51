# src/thrive_engine/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class Category(StrEnum):
    """
    Content category of a task.

    Only the presentation layer cares about it; the engine stores it as-is.
    Unknown raw values collapse to OTHER.
    """

    MOVEMENT = "movement"
    WELLNESS = "wellness"
    NUTRITION = "nutrition"
    PLANNING = "planning"
    MINDSET = "mindset"
    HABIT = "habit"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str | None) -> Category:
        if not raw:
            return cls.OTHER
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.OTHER


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, raw: str | None) -> Difficulty:
        if not raw:
            return cls.EASY
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.EASY


class SessionStatus(StrEnum):
    """Status of the live RunningTask. Idle/Completed are represented by "no task"."""

    RUNNING = "running"
    PAUSED = "paused"


class EntryKind(StrEnum):
    TASK = "task"
    CHALLENGE = "challenge"


class ContextKind(StrEnum):
    ROUTINE = "routine"
    CHALLENGE = "challenge"
    CUSTOM = "custom"


@dataclass(slots=True, frozen=True)
class TaskDefinition:
    name: str
    duration_text: str
    category: Category = Category.OTHER
    difficulty: Difficulty = Difficulty.EASY
    steps: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ChallengeDefinition:
    id: str
    title: str
    tasks: tuple[TaskDefinition, ...]


@dataclass(slots=True, frozen=True)
class ContextRef:
    """
    Where a running task came from.

    Only used to tag completion records; timing never looks at it.
    For challenge steps, step_index is the position inside the challenge.
    """

    kind: ContextKind
    id: str
    step_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "id": self.id, "step_index": self.step_index}

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> ContextRef | None:
        if not raw:
            return None
        try:
            kind = ContextKind(str(raw.get("kind")))
        except ValueError:
            return None
        step = raw.get("step_index")
        return cls(kind=kind, id=str(raw.get("id") or ""), step_index=int(step) if step is not None else None)


@dataclass(slots=True)
class RunningTask:
    source: TaskDefinition
    total_duration_seconds: int
    elapsed_seconds: int = 0
    status: SessionStatus = SessionStatus.RUNNING
    context_ref: ContextRef | None = None

    @property
    def progress_percent(self) -> float:
        if self.total_duration_seconds <= 0:
            return 100.0
        pct = self.elapsed_seconds / self.total_duration_seconds * 100.0
        return max(0.0, min(100.0, pct))


@dataclass(slots=True, frozen=True)
class TaskSnapshot:
    """Read-only projection of the RunningTask handed to the presentation layer."""

    name: str
    duration_text: str
    category: Category
    difficulty: Difficulty
    steps: tuple[str, ...]
    elapsed_seconds: int
    total_duration_seconds: int
    progress_percent: float
    status: SessionStatus
    context_ref: ContextRef | None

    @classmethod
    def of(cls, task: RunningTask) -> TaskSnapshot:
        return cls(
            name=task.source.name,
            duration_text=task.source.duration_text,
            category=task.source.category,
            difficulty=task.source.difficulty,
            steps=task.source.steps,
            elapsed_seconds=task.elapsed_seconds,
            total_duration_seconds=task.total_duration_seconds,
            progress_percent=task.progress_percent,
            status=task.status,
            context_ref=task.context_ref,
        )


@dataclass(slots=True)
class ChallengeProgress:
    challenge_id: str
    current_step_index: int = 0
    completed_step_ids: set[int] = field(default_factory=set)
    is_challenge_complete: bool = False


@dataclass(slots=True, frozen=True)
class ChallengeSnapshot:
    challenge_id: str
    title: str
    current_step_index: int
    total_steps: int
    completed_step_ids: frozenset[int]
    is_challenge_complete: bool


@dataclass(slots=True, frozen=True)
class LedgerEntry:
    kind: EntryKind
    identity: str
    completed_at: datetime
    context_ref: ContextRef | None = None
    xp: int = 0


@dataclass(slots=True, frozen=True)
class CompletionEvent:
    """Fired to the notification sink exactly once per ledger write."""

    kind: EntryKind
    identity: str
    context_ref: ContextRef | None
    xp: int
    completed_at: datetime


# ---- tagged results ----


@dataclass(slots=True, frozen=True)
class Started:
    task: TaskSnapshot


@dataclass(slots=True, frozen=True)
class ReplacedPrevious:
    task: TaskSnapshot
    previous: TaskSnapshot

    @property
    def previous_id(self) -> str:
        return self.previous.name


StartResult = Started | ReplacedPrevious


@dataclass(slots=True, frozen=True)
class ChallengeStarted:
    progress: ChallengeSnapshot
    start: StartResult


@dataclass(slots=True, frozen=True)
class ChallengeResumed:
    progress: ChallengeSnapshot
    start: StartResult


@dataclass(slots=True, frozen=True)
class AlreadyCompleted:
    challenge_id: str
    completed_at: datetime | None = None


ChallengeStartResult = ChallengeStarted | ChallengeResumed | AlreadyCompleted
