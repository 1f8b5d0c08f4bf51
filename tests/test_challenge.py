# tests/test_challenge.py

from __future__ import annotations

from dataclasses import replace

import pytest

from thrive_engine.errors import EmptyChallengeError
from thrive_engine.tasks.challenge import ChallengeSequencer
from thrive_engine.tasks.ledger import InMemoryLedger
from thrive_engine.tasks.session import ActiveTaskSession
from thrive_engine.tasks.task_models import (
    AlreadyCompleted,
    ChallengeDefinition,
    ChallengeProgress,
    ChallengeResumed,
    ChallengeStarted,
    ContextKind,
    EntryKind,
    ReplacedPrevious,
    Started,
    TaskDefinition,
)

from .fakes import RecordingNotifier


def _kinds(ledger: InMemoryLedger) -> list[EntryKind]:
    return [e.kind for e in ledger.history()]


def test_three_step_challenge_runs_to_one_challenge_entry(
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
    ledger: InMemoryLedger,
    notifier: RecordingNotifier,
    three_step: ChallengeDefinition,
) -> None:
    result = sequencer.start_challenge(three_step)

    assert isinstance(result, ChallengeStarted)
    assert result.progress.current_step_index == 0
    snap = session.snapshot()
    assert snap is not None and snap.name == "Warm up"
    assert snap.context_ref is not None
    assert snap.context_ref.kind == ContextKind.CHALLENGE
    assert snap.context_ref.step_index == 0

    # Step 0 finishes by timer; step 1 starts on its own.
    for _ in range(60):
        session.tick()
    snap = session.snapshot()
    assert snap is not None and snap.name == "Climb"
    progress = sequencer.snapshot()
    assert progress is not None
    assert progress.current_step_index == 1
    assert progress.completed_step_ids == {0}

    session.complete()
    snap = session.snapshot()
    assert snap is not None and snap.name == "Cool down"

    session.complete()

    assert session.is_idle
    assert sequencer.snapshot() is None
    assert sequencer.active_challenge_id is None
    finished = sequencer.last_finished
    assert finished is not None
    assert finished.is_challenge_complete
    assert finished.completed_step_ids == {0, 1, 2}
    assert _kinds(ledger) == [EntryKind.TASK, EntryKind.TASK, EntryKind.TASK, EntryKind.CHALLENGE]
    assert ledger.is_completed(EntryKind.CHALLENGE, "ladder")
    assert notifier.kinds().count(EntryKind.CHALLENGE) == 1
    challenge_event = notifier.events[-1]
    assert challenge_event.xp == 10 + 20 + 30


def test_retreat_uncompletes_and_advance_restores(
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
    three_step: ChallengeDefinition,
) -> None:
    sequencer.start_challenge(three_step)
    session.complete()
    before = sequencer.snapshot()
    assert before is not None
    assert before.current_step_index == 1
    assert before.completed_step_ids == {0}

    result = sequencer.retreat()
    assert isinstance(result, ReplacedPrevious)
    assert result.previous_id == "Climb"
    during = sequencer.snapshot()
    assert during is not None
    assert during.current_step_index == 0
    assert during.completed_step_ids == frozenset()
    snap = session.snapshot()
    assert snap is not None and snap.name == "Warm up"
    assert snap.elapsed_seconds == 0

    assert sequencer.advance() is True
    after = sequencer.snapshot()
    assert after == before
    snap = session.snapshot()
    assert snap is not None and snap.name == "Climb"


def test_retreat_on_first_step_is_refused(sequencer: ChallengeSequencer, three_step: ChallengeDefinition) -> None:
    sequencer.start_challenge(three_step)
    assert sequencer.retreat() is None
    snap = sequencer.snapshot()
    assert snap is not None and snap.current_step_index == 0


def test_operations_without_challenge_are_noops(sequencer: ChallengeSequencer) -> None:
    assert sequencer.advance() is False
    assert sequencer.retreat() is None
    assert sequencer.abandon() is None
    assert sequencer.snapshot() is None


def test_completed_challenge_cannot_restart(
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
    ledger: InMemoryLedger,
    three_step: ChallengeDefinition,
) -> None:
    sequencer.start_challenge(three_step)
    for _ in three_step.tasks:
        session.complete()
    entries = ledger.count_entries()

    result = sequencer.start_challenge(three_step)

    assert isinstance(result, AlreadyCompleted)
    assert result.challenge_id == "ladder"
    assert result.completed_at is not None
    assert session.is_idle
    assert ledger.count_entries() == entries


def test_empty_challenge_is_a_hard_error(sequencer: ChallengeSequencer, session: ActiveTaskSession) -> None:
    with pytest.raises(EmptyChallengeError):
        sequencer.start_challenge(ChallengeDefinition(id="empty", title="Empty", tasks=()))
    assert session.is_idle


def test_dismissed_step_keeps_progress_and_restart_resumes(
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
    ledger: InMemoryLedger,
    three_step: ChallengeDefinition,
) -> None:
    sequencer.start_challenge(three_step)
    session.complete()
    session.dismiss()

    assert sequencer.advance() is False

    result = sequencer.start_challenge(three_step)

    assert isinstance(result, ChallengeResumed)
    assert result.progress.current_step_index == 1
    snap = session.snapshot()
    assert snap is not None and snap.name == "Climb"
    assert ledger.count_entries() == 1


def test_plain_task_completion_does_not_touch_challenge(
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
    three_step: ChallengeDefinition,
) -> None:
    sequencer.start_challenge(three_step)
    session.start(TaskDefinition(name="Side quest", duration_text="1 minute"))
    session.complete()

    progress = sequencer.snapshot()
    assert progress is not None
    assert progress.current_step_index == 0
    assert progress.completed_step_ids == frozenset()
    assert session.is_idle


def test_abandon_dismisses_step_without_ledger_write(
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
    ledger: InMemoryLedger,
    three_step: ChallengeDefinition,
) -> None:
    sequencer.start_challenge(three_step)

    snap = sequencer.abandon()

    assert snap is not None and snap.challenge_id == "ladder"
    assert session.is_idle
    assert sequencer.snapshot() is None
    assert ledger.count_entries() == 0
    assert isinstance(sequencer.start_challenge(three_step), ChallengeStarted)


def test_retreat_reports_side_task_it_abandons(
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
    ledger: InMemoryLedger,
    three_step: ChallengeDefinition,
) -> None:
    sequencer.start_challenge(three_step)
    session.complete()
    session.start(TaskDefinition(name="Side quest", duration_text="10 minutes"))
    for _ in range(300):
        session.tick()

    result = sequencer.retreat()

    assert isinstance(result, ReplacedPrevious)
    assert result.previous_id == "Side quest"
    assert result.previous.elapsed_seconds == 300
    assert result.task.name == "Warm up"
    assert not ledger.is_completed(EntryKind.TASK, "Side quest")


def test_retreat_from_idle_session_starts_previous_step(
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
    three_step: ChallengeDefinition,
) -> None:
    sequencer.start_challenge(three_step)
    session.complete()
    session.dismiss()

    result = sequencer.retreat()

    assert isinstance(result, Started)
    assert result.task.name == "Warm up"


@pytest.mark.parametrize("challenge_id", ["", "   "])
def test_blank_challenge_id_is_rejected(
    session: ActiveTaskSession,
    sequencer: ChallengeSequencer,
    three_step: ChallengeDefinition,
    challenge_id: str,
) -> None:
    blank = replace(three_step, id=challenge_id)
    with pytest.raises(ValueError):
        sequencer.start_challenge(blank)
    with pytest.raises(ValueError):
        sequencer.restore_progress(blank, ChallengeProgress(challenge_id=challenge_id))
    assert session.is_idle
    assert sequencer.in_progress() == []
