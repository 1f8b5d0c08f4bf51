# src/thrive_engine/tasks/ledger.py

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator

from ..core.ports import CompletionRepo
from .task_models import EntryKind, LedgerEntry

logger = logging.getLogger(__name__)


class InMemoryLedger:
    """
    Append-only completion ledger kept in process memory.

    - record() only ever appends; duplicates for the same (kind, identity) are kept.
    - history() iterates in insertion order over a point-in-time view, so readers
      never see a half-written list while the single writer appends.
    - an optional mirror (e.g. SqliteLedger) receives every appended entry.
    - a blank identity is rejected before anything is appended, the same rule SqliteLedger applies.
    """

    def __init__(self, entries: Iterable[LedgerEntry] = (), *, mirror: CompletionRepo | None = None) -> None:
        self._entries: list[LedgerEntry] = list(entries)
        self._index: dict[tuple[EntryKind, str], LedgerEntry] = {}
        for e in self._entries:
            self._index[(e.kind, e.identity)] = e
        self._lock = threading.Lock()
        self._mirror = mirror

    def record(self, entry: LedgerEntry) -> None:
        if not entry.identity or not entry.identity.strip():
            raise ValueError("identity is required")
        with self._lock:
            self._entries.append(entry)
            self._index[(entry.kind, entry.identity)] = entry
            count = len(self._entries)
        logger.debug("Ledger append kind=%s identity=%s total=%s", entry.kind.value, entry.identity, count)

        if self._mirror is None:
            return
        try:
            self._mirror.record(entry)
        except Exception:
            logger.exception("Ledger mirror write failed kind=%s identity=%s", entry.kind.value, entry.identity)

    def is_completed(self, kind: EntryKind, identity: str) -> bool:
        return (kind, identity) in self._index

    def last_completion(self, kind: EntryKind, identity: str) -> LedgerEntry | None:
        return self._index.get((kind, identity))

    def history(self) -> Iterator[LedgerEntry]:
        # The view is fixed when history() is called, not when iteration starts.
        with self._lock:
            view = self._entries[:]
        return iter(view)

    def count_entries(self) -> int:
        return len(self._entries)
