# src/thrive_engine/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from itertools import islice
from typing import cast

from ..core.state import AppState
from ..errors import EmptyChallengeError
from ..tasks.catalog import quick_start
from ..tasks.duration import format_clock
from ..tasks.rewards import completion_stats
from ..tasks.task_models import (
    AlreadyCompleted,
    ChallengeResumed,
    ChallengeSnapshot,
    ContextKind,
    ContextRef,
    EntryKind,
    ReplacedPrevious,
    StartResult,
    TaskSnapshot,
)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /start, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def format_task(snap: TaskSnapshot) -> str:
    line = (
        f"{snap.name} [{snap.status.value}] "
        f"{format_clock(snap.elapsed_seconds)} / {format_clock(snap.total_duration_seconds)} "
        f"({snap.progress_percent:.0f}%)"
    )
    if snap.steps:
        line += "\n" + "\n".join(f"    - {s}" for s in snap.steps)
    return line


def format_challenge(snap: ChallengeSnapshot) -> str:
    marks = "".join("x" if i in snap.completed_step_ids else "." for i in range(snap.total_steps))
    return f"{snap.title} ({snap.challenge_id}) step {snap.current_step_index + 1}/{snap.total_steps} [{marks}]"


def _describe_start(result: StartResult) -> str:
    text = f"Started: {format_task(result.task)}"
    if isinstance(result, ReplacedPrevious):
        text = f"Abandoned unfinished task: {result.previous_id}\n{text}"
    return text


# ---- handlers ----


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_catalog(state: AppState, args: list[str]) -> str:
    lines = ["Routines:"]
    for rname in state.catalog.routine_names():
        lines.append(f"  {rname}:")
        for i, t in enumerate(state.catalog.routine(rname), start=1):
            lines.append(f"    {i}. {t.name} ({t.duration_text}, {t.category.value}, {t.difficulty.value})")
    lines.append("Challenges:")
    for ch in state.catalog.challenges():
        lines.append(f"  {ch.id}: {ch.title} ({len(ch.tasks)} steps)")
    return "\n".join(lines)


def cmd_start(state: AppState, args: list[str]) -> str:
    """
    /start <routine> [n]   -> start item n (1-based, default 1) of a routine
    """
    if not args:
        return "Usage: /start <routine> [n]. See /catalog."

    routine = args[0]
    items = state.catalog.routine(routine)
    if not items:
        return f"Unknown routine: {routine}. See /catalog."

    try:
        n = int(args[1]) if len(args) > 1 else 1
    except ValueError:
        return "Item number must be an integer."
    if not 1 <= n <= len(items):
        return f"Routine {routine} has items 1..{len(items)}."

    ctx = ContextRef(kind=ContextKind.ROUTINE, id=routine, step_index=None)
    return _describe_start(state.session.start(items[n - 1], ctx))


def cmd_quick(state: AppState, args: list[str]) -> str:
    """
    /quick <minutes> <name...>  -> start a custom activity
    """
    if len(args) < 2:
        return "Usage: /quick <minutes> <name>."
    try:
        minutes = int(args[0])
    except ValueError:
        return "Minutes must be an integer."

    definition = quick_start(" ".join(args[1:]), minutes)
    ctx = ContextRef(kind=ContextKind.CUSTOM, id=definition.name)
    return _describe_start(state.session.start(definition, ctx))


def cmd_pause(state: AppState, args: list[str]) -> str:
    if state.session.pause():
        return "Paused."
    return "Nothing to pause." if state.session.is_idle else "Already paused."


def cmd_resume(state: AppState, args: list[str]) -> str:
    if state.session.resume():
        return "Resumed."
    return "Nothing to resume." if state.session.is_idle else "Already running."


def cmd_done(state: AppState, args: list[str]) -> str:
    event = state.session.complete()
    if event is None:
        return "No active task."
    nxt = state.session.snapshot()
    if nxt is not None:
        return f"Done: {event.identity}\nNext: {format_task(nxt)}"
    return f"Done: {event.identity}"


def cmd_dismiss(state: AppState, args: list[str]) -> str:
    snap = state.session.dismiss()
    if snap is None:
        return "No active task."
    return f"Dismissed (not recorded): {snap.name} at {format_clock(snap.elapsed_seconds)}"


def cmd_challenge(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /challenge            -> list challenges
    /challenge <id>       -> start (or resume) a challenge
    """
    if not args:
        lines = ["Challenges:"]
        for ch in state.catalog.challenges():
            done = " (completed)" if state.ledger.is_completed(EntryKind.CHALLENGE, ch.id) else ""
            lines.append(f"  {ch.id}: {ch.title}{done}")
        return "\n".join(lines)

    definition = state.catalog.challenge(args[0])
    if definition is None:
        return f"Unknown challenge: {args[0]}."

    try:
        result = state.sequencer.start_challenge(definition)
    except EmptyChallengeError as e:
        logger.warning("Refused to start challenge: %s", e)
        return f"Cannot start challenge: {e}."

    if isinstance(result, AlreadyCompleted):
        return f"You already completed {definition.title}."

    if emit and isinstance(result.start, ReplacedPrevious):
        with contextlib.suppress(Exception):
            emit(f"Abandoned unfinished task: {result.start.previous_id}")

    verb = "Resumed" if isinstance(result, ChallengeResumed) else "Started"
    return f"{verb} {format_challenge(result.progress)}\n{format_task(result.start.task)}"


def cmd_next(state: AppState, args: list[str]) -> str:
    if not state.sequencer.advance():
        return "No challenge step is running."
    return _challenge_position(state)


def cmd_back(state: AppState, args: list[str]) -> str:
    challenge_id = state.sequencer.active_challenge_id
    result = state.sequencer.retreat()
    if result is None:
        return "Cannot go back (no active challenge, or already on the first step)."
    text = _challenge_position(state)
    if isinstance(result, ReplacedPrevious):
        ctx = result.previous.context_ref
        # The challenge's own later step is expected to be replaced.
        if ctx is None or ctx.kind != ContextKind.CHALLENGE or ctx.id != challenge_id:
            text = f"Abandoned unfinished task: {result.previous_id}\n{text}"
    return text


def cmd_abandon(state: AppState, args: list[str]) -> str:
    snap = state.sequencer.abandon(args[0] if args else None)
    if snap is None:
        return "No challenge in progress."
    return f"Abandoned challenge {snap.title}."


def _challenge_position(state: AppState) -> str:
    snap = state.sequencer.snapshot()
    if snap is None:
        finished = state.sequencer.last_finished
        if finished is not None and finished.is_challenge_complete:
            return f"Challenge complete: {finished.title}!"
        return "No challenge in progress."
    task = state.session.snapshot()
    return format_challenge(snap) + (f"\n{format_task(task)}" if task else "")


def cmd_status(state: AppState, args: list[str]) -> str:
    lines = ["Status:"]
    task = state.session.snapshot()
    lines.append(f"  Task: {format_task(task)}" if task else "  Task: idle")
    ch = state.sequencer.snapshot()
    if ch is not None:
        lines.append(f"  Challenge: {format_challenge(ch)}")
    lines.append(f"  Completions recorded: {state.ledger.count_entries()}")
    return "\n".join(lines)


def cmd_history(state: AppState, args: list[str]) -> str:
    """
    /history [n]  -> last n ledger entries (default 10)
    """
    try:
        n = max(1, int(args[0])) if args else 10
    except ValueError:
        return "Usage: /history [n]."

    total = state.ledger.count_entries()
    entries = list(islice(state.ledger.history(), max(0, total - n), None))
    if not entries:
        return "No completions yet."
    lines = [f"Last {len(entries)} of {total} completions:"]
    for e in entries:
        ts = e.completed_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        lines.append(f"  [{ts}] {e.kind.value}: {e.identity} (+{e.xp} XP)")
    return "\n".join(lines)


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = completion_stats(state.ledger.history(), datetime.now(timezone.utc))
    return (
        "Stats:\n"
        f"  Today: {s.today}\n"
        f"  Last 7 days: {s.week}\n"
        f"  Total: {s.total}\n"
        f"  Streak: {s.current_streak} day(s)\n"
        f"  XP: {s.xp_total}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("catalog", cmd_catalog, help_text="List routines and challenges.", aliases=["ls"])
registry.register("start", cmd_start, help_text="Start a routine item: /start <routine> [n].")
registry.register("quick", cmd_quick, help_text="Start a custom activity: /quick <minutes> <name>.")
registry.register("pause", cmd_pause, help_text="Pause the active task.")
registry.register("resume", cmd_resume, help_text="Resume the paused task.")
registry.register("done", cmd_done, help_text="Complete the active task now.", aliases=["complete"])
registry.register("dismiss", cmd_dismiss, help_text="Abandon the active task without recording it.")
registry.register("challenge", cmd_challenge, help_text="List or start a challenge: /challenge [id].")
registry.register("next", cmd_next, help_text="Mark the current challenge step done.")
registry.register("back", cmd_back, help_text="Go back to the previous challenge step.")
registry.register("abandon", cmd_abandon, help_text="Drop the current challenge run.")
registry.register("status", cmd_status, help_text="Show the active task and challenge.")
registry.register("history", cmd_history, help_text="Show recent completions: /history [n].")
registry.register("stats", cmd_stats, help_text="Show completion stats, streak and XP.")
