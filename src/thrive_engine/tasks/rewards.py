# src/thrive_engine/tasks/rewards.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .task_models import ChallengeDefinition, Difficulty, EntryKind, LedgerEntry

XP_BY_DIFFICULTY: dict[Difficulty, int] = {
    Difficulty.EASY: 10,
    Difficulty.MEDIUM: 20,
    Difficulty.HARD: 30,
}


def xp_for(difficulty: Difficulty) -> int:
    return XP_BY_DIFFICULTY.get(difficulty, XP_BY_DIFFICULTY[Difficulty.EASY])


def challenge_bonus(definition: ChallengeDefinition) -> int:
    """Finishing a challenge pays out the sum of its steps once more."""
    return sum(xp_for(t.difficulty) for t in definition.tasks)


@dataclass(slots=True, frozen=True)
class CompletionStats:
    today: int
    week: int
    total: int
    current_streak: int
    xp_total: int


def _local_day(ts: datetime) -> date:
    return ts.astimezone().date() if ts.tzinfo is not None else ts.date()


def completion_stats(history: Iterable[LedgerEntry], now: datetime) -> CompletionStats:
    """
    Aggregate task completions.

    - today/week/total count TASK entries (week = last 7 days including today)
    - current_streak: consecutive days with at least one task completion, ending today,
      or yesterday if nothing was completed yet today
    - xp_total sums every entry (tasks and challenge bonuses)
    """
    today = _local_day(now)
    week_start = today - timedelta(days=6)

    days: set[date] = set()
    n_today = n_week = n_total = 0
    xp_total = 0

    for entry in history:
        xp_total += int(entry.xp)
        if entry.kind != EntryKind.TASK:
            continue
        day = _local_day(entry.completed_at)
        days.add(day)
        n_total += 1
        if day == today:
            n_today += 1
        if week_start <= day <= today:
            n_week += 1

    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)

    return CompletionStats(today=n_today, week=n_week, total=n_total, current_streak=streak, xp_total=xp_total)
