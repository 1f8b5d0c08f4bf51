# tests/test_session.py

from __future__ import annotations

import pytest

from thrive_engine.tasks.instantiator import instantiate
from thrive_engine.tasks.ledger import InMemoryLedger
from thrive_engine.tasks.session import ActiveTaskSession
from thrive_engine.tasks.task_models import (
    Difficulty,
    EntryKind,
    ReplacedPrevious,
    SessionStatus,
    Started,
    TaskDefinition,
)

from .fakes import ExplodingNotifier, RecordingNotifier

TWO_MIN = TaskDefinition(name="Two", duration_text="2 minutes")
ONE_MIN = TaskDefinition(name="One", duration_text="1 minute")


def test_start_from_idle_reports_started(session: ActiveTaskSession) -> None:
    assert session.is_idle
    result = session.start(TWO_MIN)

    assert isinstance(result, Started)
    assert result.task.name == "Two"
    assert session.status == SessionStatus.RUNNING


def test_start_replaces_previous_and_keeps_single_slot(
    session: ActiveTaskSession, ledger: InMemoryLedger
) -> None:
    session.start(TWO_MIN)
    for _ in range(10):
        session.tick()

    result = session.start(ONE_MIN)

    assert isinstance(result, ReplacedPrevious)
    assert result.previous_id == "Two"
    assert result.previous.elapsed_seconds == 10
    snap = session.snapshot()
    assert snap is not None
    assert snap.name == "One"
    assert snap.elapsed_seconds == 0
    # Replacing is an abandon, never a completion.
    assert ledger.count_entries() == 0


def test_auto_completes_exactly_on_last_tick(
    session: ActiveTaskSession, ledger: InMemoryLedger, notifier: RecordingNotifier
) -> None:
    session.start(ONE_MIN)

    for _ in range(59):
        assert session.tick() is None
    assert session.status == SessionStatus.RUNNING
    assert ledger.count_entries() == 0

    event = session.tick()

    assert event is not None
    assert event.kind == EntryKind.TASK
    assert event.identity == "One"
    assert session.is_idle
    assert ledger.is_completed(EntryKind.TASK, "One")
    assert len(notifier.events) == 1


def test_progress_is_monotonic_and_frozen_while_paused(session: ActiveTaskSession) -> None:
    session.start(TWO_MIN)
    seen: list[float] = []
    for _ in range(30):
        session.tick()
        snap = session.snapshot()
        assert snap is not None
        seen.append(snap.progress_percent)
    assert seen == sorted(seen)
    assert seen[-1] == 25.0

    session.pause()
    for _ in range(100):
        assert session.tick() is None
    snap = session.snapshot()
    assert snap is not None
    assert snap.elapsed_seconds == 30
    assert snap.progress_percent == 25.0


def test_pause_resume_scenario_completes_after_consumed_ticks(session: ActiveTaskSession) -> None:
    session.start(TWO_MIN)
    completed_at: int | None = None

    for delivered in range(1, 200):
        if delivered == 51:
            session.pause()
        if delivered == 81:
            session.resume()
        if session.tick() is not None:
            completed_at = delivered
            break

    # 50 consumed, 30 dropped while paused, 70 more consumed.
    assert completed_at == 150
    assert session.is_idle


def test_pause_and_resume_are_idempotent(session: ActiveTaskSession) -> None:
    session.start(TWO_MIN)
    session.tick()

    assert session.pause() is True
    once = session.snapshot()
    assert session.pause() is False
    assert session.snapshot() == once

    assert session.resume() is True
    again = session.snapshot()
    assert session.resume() is False
    assert session.snapshot() == again
    assert session.status == SessionStatus.RUNNING


def test_idle_transitions_are_noops(session: ActiveTaskSession, ledger: InMemoryLedger) -> None:
    assert session.pause() is False
    assert session.resume() is False
    assert session.complete() is None
    assert session.dismiss() is None
    assert session.tick() is None
    assert ledger.count_entries() == 0


def test_early_complete_counts_like_auto_completion(
    session: ActiveTaskSession, ledger: InMemoryLedger, notifier: RecordingNotifier
) -> None:
    session.start(TaskDefinition(name="Hard one", duration_text="30 minutes", difficulty=Difficulty.HARD))
    session.tick()
    session.pause()

    event = session.complete()

    assert event is not None
    assert event.identity == "Hard one"
    assert session.is_idle
    assert ledger.count_entries() == 1
    assert notifier.events == [event]


def test_dismiss_never_writes_ledger(
    session: ActiveTaskSession, ledger: InMemoryLedger, notifier: RecordingNotifier
) -> None:
    session.start(ONE_MIN)
    for _ in range(20):
        session.tick()

    dismissed = session.dismiss()

    assert dismissed is not None
    assert dismissed.name == "One"
    assert dismissed.elapsed_seconds == 20
    assert session.is_idle
    assert ledger.count_entries() == 0
    assert notifier.events == []


def test_failing_notifier_does_not_break_completion() -> None:
    ledger = InMemoryLedger()
    sink = ExplodingNotifier()
    session = ActiveTaskSession(ledger, sink)
    session.start(ONE_MIN)

    event = session.complete()

    assert event is not None
    assert sink.calls == 1
    assert ledger.count_entries() == 1
    assert session.is_idle


def test_completion_listener_sees_idle_slot(session: ActiveTaskSession) -> None:
    observed: list[bool] = []
    session.add_completion_listener(lambda _event: observed.append(session.is_idle))
    session.start(ONE_MIN)
    session.complete()
    assert observed == [True]


@pytest.mark.parametrize("name", ["", "  "])
def test_blank_task_name_is_rejected_without_touching_slot(
    session: ActiveTaskSession, ledger: InMemoryLedger, name: str
) -> None:
    session.start(ONE_MIN)
    blank = TaskDefinition(name=name, duration_text="1 minute")

    with pytest.raises(ValueError):
        session.start(blank)
    with pytest.raises(ValueError):
        session.restore(instantiate(blank))

    snap = session.snapshot()
    assert snap is not None and snap.name == "One"
    assert ledger.count_entries() == 0
