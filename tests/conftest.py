# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from thrive_engine.core.state import AppState
from thrive_engine.tasks.catalog import default_catalog
from thrive_engine.tasks.challenge import ChallengeSequencer
from thrive_engine.tasks.ledger import InMemoryLedger
from thrive_engine.tasks.session import ActiveTaskSession
from thrive_engine.tasks.task_models import ChallengeDefinition, Difficulty, TaskDefinition

from .fakes import FakeClock, RecordingNotifier


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="thrive-test",
        log_level="DEBUG",
        tick_seconds=0.01,
        fallback_duration_seconds=60,
        console_enabled=False,
        clock_enabled=False,
        persist_session=True,
        data_dir=tmp_path,
        ledger_db_path=tmp_path / "ledger.sqlite3",
        session_state_path=tmp_path / "session_state.json",
        catalog_path=None,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture()
def session(ledger: InMemoryLedger, notifier: RecordingNotifier, clock: FakeClock) -> ActiveTaskSession:
    return ActiveTaskSession(ledger, notifier, now=clock)


@pytest.fixture()
def sequencer(
    session: ActiveTaskSession,
    ledger: InMemoryLedger,
    notifier: RecordingNotifier,
    clock: FakeClock,
) -> ChallengeSequencer:
    return ChallengeSequencer(session, ledger, notifier, now=clock)


@pytest.fixture()
def three_step() -> ChallengeDefinition:
    return ChallengeDefinition(
        id="ladder",
        title="Ladder",
        tasks=(
            TaskDefinition(name="Warm up", duration_text="1 minute", difficulty=Difficulty.EASY),
            TaskDefinition(name="Climb", duration_text="2 minutes", difficulty=Difficulty.MEDIUM),
            TaskDefinition(name="Cool down", duration_text="1 minute", difficulty=Difficulty.HARD),
        ),
    )


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    ledger: InMemoryLedger,
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
    notifier: RecordingNotifier,
) -> AppState:
    """
    AppState wired with deterministic fakes and the built-in catalog.
    """
    return AppState(
        settings=settings,
        catalog=default_catalog(),
        ledger=ledger,
        session=session,
        sequencer=sequencer,
        notifier=notifier,
    )
