# src/thrive_engine/tasks/ledger_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .task_models import ContextRef, EntryKind, LedgerEntry

logger = logging.getLogger(__name__)


class SqliteLedger:
    """
    SQLite completion ledger (durable mirror of the in-memory ledger).

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    The table is append-only: there is no UPDATE or DELETE path.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "ledger.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_entries()
        except Exception:
            total = -1
        logger.info("SqliteLedger ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS completions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    kind TEXT NOT NULL,
                    identity TEXT NOT NULL,
                    completed_at REAL NOT NULL
                )
                """
            )

            cur.execute("PRAGMA table_info(completions)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE completions ADD COLUMN {name} {decl}")
                logger.info("SqliteLedger migration: added column %s", name)

            add_col("context", "TEXT")
            add_col("xp", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_completions_kind_identity ON completions(kind, identity)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _context_to_str(ctx: ContextRef | None) -> str | None:
        if ctx is None:
            return None
        return json.dumps(ctx.to_dict(), ensure_ascii=False)

    @staticmethod
    def _str_to_context(s: str | None) -> ContextRef | None:
        if not s:
            return None
        try:
            val: Any = json.loads(s)
        except ValueError:
            return None
        return ContextRef.from_dict(val) if isinstance(val, dict) else None

    def _row_to_entry(self, row: sqlite3.Row) -> LedgerEntry:
        try:
            kind = EntryKind(row["kind"])
        except ValueError:
            kind = EntryKind.TASK
        return LedgerEntry(
            kind=kind,
            identity=str(row["identity"] or ""),
            completed_at=datetime.fromtimestamp(float(row["completed_at"] or 0.0), tz=timezone.utc),
            context_ref=self._str_to_context(row["context"]),
            xp=int(row["xp"] or 0),
        )

    # ---- public API ----

    def count_entries(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM completions")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def record(self, entry: LedgerEntry) -> None:
        if not entry.identity or not entry.identity.strip():
            raise ValueError("identity is required")

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO completions(kind, identity, completed_at, context, xp)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    entry.kind.value,
                    entry.identity,
                    entry.completed_at.timestamp(),
                    self._context_to_str(entry.context_ref),
                    int(entry.xp),
                ),
            )
            conn.commit()
            logger.debug("Completion stored kind=%s identity=%s", entry.kind.value, entry.identity)
        finally:
            conn.close()

    def is_completed(self, kind: EntryKind, identity: str) -> bool:
        return self.last_completion(kind, identity) is not None

    def last_completion(self, kind: EntryKind, identity: str) -> LedgerEntry | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT *
                FROM completions
                WHERE kind = ? AND identity = ?
                ORDER BY id DESC
                    LIMIT 1
                """,
                (kind.value, identity),
            )
            row = cur.fetchone()
            return self._row_to_entry(row) if row else None
        finally:
            conn.close()

    def history(self) -> Iterator[LedgerEntry]:
        """Lazily yield every entry in insertion order."""
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM completions ORDER BY id ASC")
            for row in cur:
                yield self._row_to_entry(row)
        finally:
            conn.close()
