# src/thrive_engine/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the engine.

The engine depends on Protocols instead of concrete implementations.
This keeps storage/notification/content providers swappable and makes testing easier.
"""

from collections.abc import Iterator, Sequence
from typing import Protocol

from ..tasks.task_models import (
    ChallengeDefinition,
    CompletionEvent,
    EntryKind,
    LedgerEntry,
    TaskDefinition,
)


class CompletionRepo(Protocol):
    """Append-only completion ledger (in-memory or durable mirror)."""

    def record(self, entry: LedgerEntry) -> None: ...
    def is_completed(self, kind: EntryKind, identity: str) -> bool: ...
    def last_completion(self, kind: EntryKind, identity: str) -> LedgerEntry | None: ...
    def history(self) -> Iterator[LedgerEntry]: ...
    def count_entries(self) -> int: ...


class NotificationSink(Protocol):
    """
    Receives completion/achievement events for display.

    The sink decides how to render them (log line, console banner, push, ...).
    """

    def notify(self, event: CompletionEvent) -> None: ...


class ContentCatalog(Protocol):
    """Read-only source of task and challenge definitions."""

    def routine_names(self) -> Sequence[str]: ...
    def routine(self, name: str) -> Sequence[TaskDefinition]: ...
    def challenges(self) -> Sequence[ChallengeDefinition]: ...
    def challenge(self, challenge_id: str) -> ChallengeDefinition | None: ...
