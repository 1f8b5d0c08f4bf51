# src/thrive_engine/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires catalog/ledger/session/sequencer/notifier into AppState,
- persists the live session (task + challenge progress) as JSON between runs.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

from ..config import get_settings
from ..core.ports import NotificationSink
from ..core.state import AppState
from ..notify import LoggingNotifier
from ..tasks.catalog import Catalog, default_catalog, load_catalog
from ..tasks.challenge import ChallengeSequencer
from ..tasks.ledger import InMemoryLedger
from ..tasks.ledger_store import SqliteLedger
from ..tasks.session import ActiveTaskSession
from ..tasks.session_state import dump_session_state, restore_session_state

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.ledger_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.session_state_path.parent.mkdir(parents=True, exist_ok=True)


def _load_catalog(settings) -> Catalog:
    path = getattr(settings, "catalog_path", None)
    if not path:
        return default_catalog()
    return load_catalog(path)


def create_initial_state(*, settings=None, notifier: NotificationSink | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    durable = SqliteLedger(settings.ledger_db_path)
    ledger = InMemoryLedger(durable.history(), mirror=durable)

    if notifier is None:
        notifier = LoggingNotifier()

    session = ActiveTaskSession(
        ledger,
        notifier,
        fallback_seconds=settings.fallback_duration_seconds,
    )
    sequencer = ChallengeSequencer(session, ledger, notifier)

    return AppState(
        settings=settings,
        catalog=_load_catalog(settings),
        ledger=ledger,
        session=session,
        sequencer=sequencer,
        notifier=notifier,
    )


def load_session_state(state: AppState) -> bool:
    if not getattr(state.settings, "persist_session", False):
        return False
    raw_path = getattr(state.settings, "session_state_path", None)
    if not raw_path:
        return False
    path = Path(raw_path)
    if not path.exists():
        return False
    try:
        data = json.loads(path.read_text("utf-8"))
        with state.lock:
            restored = restore_session_state(data, state.session, state.sequencer)
        logger.info("Loaded session state from %s (task restored=%s)", path, restored)
        return restored
    except Exception:
        logger.exception("Failed to load session state from %s", path)
        return False


def save_session_state(state: AppState) -> None:
    if not getattr(state.settings, "persist_session", False):
        return
    raw_path = getattr(state.settings, "session_state_path", None)
    if not raw_path:
        return
    path = Path(raw_path)
    try:
        with state.lock:
            doc = dump_session_state(state.session, state.sequencer)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(doc, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, path)
        with contextlib.suppress(OSError):
            os.chmod(path, 0o600)
        logger.info("Saved session state to %s", path)
    except Exception:
        logger.exception("Failed to save session state to %s", path)
