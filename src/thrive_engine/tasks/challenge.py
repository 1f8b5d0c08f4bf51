# src/thrive_engine/tasks/challenge.py

from __future__ import annotations

"""
Challenge sequencer.

Walks a ChallengeDefinition step by step on top of the ActiveTaskSession:
- start_challenge() instantiates step 0 (or resumes an unfinished run at its current step)
- completing the active step (timer or user) auto-instantiates the next one
- retreat() goes back one step and un-completes it
- finishing the last step writes one CHALLENGE ledger entry and drops the progress

Step identity is the step's position in the challenge.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from ..core.ports import CompletionRepo, NotificationSink
from ..errors import EmptyChallengeError
from .rewards import challenge_bonus
from .session import ActiveTaskSession, notify_safely, utcnow
from .task_models import (
    AlreadyCompleted,
    ChallengeDefinition,
    ChallengeProgress,
    ChallengeResumed,
    ChallengeSnapshot,
    ChallengeStarted,
    ChallengeStartResult,
    CompletionEvent,
    ContextKind,
    ContextRef,
    EntryKind,
    LedgerEntry,
    StartResult,
)

logger = logging.getLogger(__name__)


def _check_definition(definition: ChallengeDefinition) -> None:
    if not definition.id or not definition.id.strip():
        raise ValueError("challenge id is required")
    if not definition.tasks:
        raise EmptyChallengeError(definition.id)


class ChallengeSequencer:
    def __init__(
        self,
        session: ActiveTaskSession,
        ledger: CompletionRepo,
        notifier: NotificationSink | None = None,
        *,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session = session
        self._ledger = ledger
        self._notifier = notifier
        self._now = now

        self._definitions: dict[str, ChallengeDefinition] = {}
        self._progress: dict[str, ChallengeProgress] = {}
        self._active_id: str | None = None
        self._last_finished: ChallengeSnapshot | None = None

        session.add_completion_listener(self._on_task_completed)

    # ---- read side ----

    @property
    def active_challenge_id(self) -> str | None:
        return self._active_id

    @property
    def last_finished(self) -> ChallengeSnapshot | None:
        return self._last_finished

    def snapshot(self, challenge_id: str | None = None) -> ChallengeSnapshot | None:
        cid = challenge_id or self._active_id
        if cid is None:
            return None
        progress = self._progress.get(cid)
        definition = self._definitions.get(cid)
        if progress is None or definition is None:
            return None
        return self._snapshot_of(definition, progress)

    def in_progress(self) -> list[tuple[ChallengeDefinition, ChallengeProgress]]:
        """Copies of every unfinished run (used for persistence)."""
        out: list[tuple[ChallengeDefinition, ChallengeProgress]] = []
        for cid, progress in self._progress.items():
            copy = replace(progress, completed_step_ids=set(progress.completed_step_ids))
            out.append((self._definitions[cid], copy))
        return out

    # ---- operations ----

    def start_challenge(self, definition: ChallengeDefinition) -> ChallengeStartResult:
        _check_definition(definition)

        last = self._ledger.last_completion(EntryKind.CHALLENGE, definition.id)
        if last is not None:
            logger.info("Challenge already completed id=%s at %s", definition.id, last.completed_at.isoformat())
            return AlreadyCompleted(challenge_id=definition.id, completed_at=last.completed_at)

        progress = self._progress.get(definition.id)
        if progress is not None:
            self._definitions[definition.id] = definition
            self._active_id = definition.id
            start = self._start_step(definition, progress)
            logger.info("Challenge resumed id=%s step=%s", definition.id, progress.current_step_index)
            return ChallengeResumed(progress=self._snapshot_of(definition, progress), start=start)

        progress = ChallengeProgress(challenge_id=definition.id)
        self._definitions[definition.id] = definition
        self._progress[definition.id] = progress
        self._active_id = definition.id
        start = self._start_step(definition, progress)
        logger.info("Challenge started id=%s steps=%s", definition.id, len(definition.tasks))
        return ChallengeStarted(progress=self._snapshot_of(definition, progress), start=start)

    def advance(self) -> bool:
        """
        Mark the active challenge's current step as done.

        Only works while the session is actually running that step; completion then
        auto-advances (or finishes the challenge).
        """
        progress = self._active_progress()
        if progress is None:
            return False
        if not self._session_on_step(progress.challenge_id, progress.current_step_index):
            logger.debug(
                "advance ignored: session is not on step %s of %s",
                progress.current_step_index,
                progress.challenge_id,
            )
            return False
        self._session.complete()
        return True

    def retreat(self) -> StartResult | None:
        """
        Go back one step: un-complete it and run it again.

        Returns the session start result (ReplacedPrevious if whatever was in the slot got
        abandoned), or None when there is no active challenge or it is already on step 0.
        """
        progress = self._active_progress()
        if progress is None or progress.current_step_index <= 0:
            return None

        definition = self._definitions[progress.challenge_id]
        progress.current_step_index -= 1
        progress.completed_step_ids.discard(progress.current_step_index)
        start = self._start_step(definition, progress)
        logger.info("Challenge retreat id=%s step=%s", progress.challenge_id, progress.current_step_index)
        return start

    def abandon(self, challenge_id: str | None = None) -> ChallengeSnapshot | None:
        """Drop an unfinished run (no ledger write). Dismisses the session if it is on that challenge."""
        cid = challenge_id or self._active_id
        if cid is None or cid not in self._progress:
            return None

        snap = self.snapshot(cid)
        task = self._session.snapshot()
        ctx = task.context_ref if task is not None else None
        if ctx is not None and ctx.kind == ContextKind.CHALLENGE and ctx.id == cid:
            self._session.dismiss()

        del self._progress[cid]
        self._definitions.pop(cid, None)
        if self._active_id == cid:
            self._active_id = None
        logger.info("Challenge abandoned id=%s", cid)
        return snap

    def restore_progress(
        self,
        definition: ChallengeDefinition,
        progress: ChallengeProgress,
        *,
        active: bool = False,
    ) -> None:
        """Re-register a saved run without touching the session slot."""
        _check_definition(definition)
        if self._ledger.is_completed(EntryKind.CHALLENGE, definition.id):
            logger.info("Skipping restore of completed challenge id=%s", definition.id)
            return

        index = max(0, min(int(progress.current_step_index), len(definition.tasks) - 1))
        completed = {i for i in progress.completed_step_ids if 0 <= i < len(definition.tasks)}
        self._definitions[definition.id] = definition
        self._progress[definition.id] = ChallengeProgress(
            challenge_id=definition.id,
            current_step_index=index,
            completed_step_ids=completed,
        )
        if active:
            self._active_id = definition.id
        logger.info("Challenge progress restored id=%s step=%s", definition.id, index)

    # ---- internals ----

    def _active_progress(self) -> ChallengeProgress | None:
        if self._active_id is None:
            return None
        return self._progress.get(self._active_id)

    def _session_on_step(self, challenge_id: str, step_index: int) -> bool:
        task = self._session.snapshot()
        if task is None or task.context_ref is None:
            return False
        ctx = task.context_ref
        return ctx.kind == ContextKind.CHALLENGE and ctx.id == challenge_id and ctx.step_index == step_index

    def _start_step(self, definition: ChallengeDefinition, progress: ChallengeProgress) -> StartResult:
        index = progress.current_step_index
        ctx = ContextRef(kind=ContextKind.CHALLENGE, id=definition.id, step_index=index)
        return self._session.start(definition.tasks[index], ctx)

    def _on_task_completed(self, event: CompletionEvent) -> None:
        ctx = event.context_ref
        if ctx is None or ctx.kind != ContextKind.CHALLENGE or ctx.step_index is None:
            return

        progress = self._progress.get(ctx.id)
        definition = self._definitions.get(ctx.id)
        if progress is None or definition is None:
            return

        progress.completed_step_ids.add(ctx.step_index)
        if ctx.step_index != progress.current_step_index:
            # Completion of a step the run has already moved past.
            return

        if progress.current_step_index + 1 < len(definition.tasks):
            progress.current_step_index += 1
            self._active_id = definition.id
            logger.info(
                "Challenge step done id=%s step=%s -> next=%s",
                definition.id,
                ctx.step_index,
                progress.current_step_index,
            )
            self._start_step(definition, progress)
            return

        self._finish_challenge(definition, progress)

    def _finish_challenge(self, definition: ChallengeDefinition, progress: ChallengeProgress) -> None:
        progress.is_challenge_complete = True
        ts = self._now()
        bonus = challenge_bonus(definition)
        ctx = ContextRef(kind=ContextKind.CHALLENGE, id=definition.id)

        self._ledger.record(
            LedgerEntry(kind=EntryKind.CHALLENGE, identity=definition.id, completed_at=ts, context_ref=ctx, xp=bonus)
        )
        notify_safely(
            self._notifier,
            CompletionEvent(kind=EntryKind.CHALLENGE, identity=definition.id, context_ref=ctx, xp=bonus, completed_at=ts),
        )

        self._last_finished = self._snapshot_of(definition, progress)
        del self._progress[definition.id]
        self._definitions.pop(definition.id, None)
        if self._active_id == definition.id:
            self._active_id = None
        logger.info("Challenge completed id=%s bonus_xp=%s", definition.id, bonus)

    @staticmethod
    def _snapshot_of(definition: ChallengeDefinition, progress: ChallengeProgress) -> ChallengeSnapshot:
        return ChallengeSnapshot(
            challenge_id=definition.id,
            title=definition.title,
            current_step_index=progress.current_step_index,
            total_steps=len(definition.tasks),
            completed_step_ids=frozenset(progress.completed_step_ids),
            is_challenge_complete=progress.is_challenge_complete,
        )
