# src/thrive_engine/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

EXIT_COMMANDS = frozenset({"/exit", "/quit"})
PROMPT = ">>> "


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _echo_input(line: str) -> None:
    """Re-print the typed line with a timestamp, overwriting the prompt on a TTY."""
    stamped = f"[{_ts_local()}] {PROMPT}{line}"
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r" + stamped + "\n")
            sys.stdout.flush()
            return
    except OSError:
        pass
    print(stamped)


def print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def handle_console_line(state: AppState, line: str, emit: Callable[[str], None] = print_ts) -> str | None:
    """
    One REPL line -> reply text (None for blank input).

    Commands run under state.lock, the same lock the clock thread ticks under.
    """
    line = line.strip()
    if not line:
        return None
    if not line.startswith("/"):
        return "Commands start with '/'. Try /help or /catalog."

    try:
        with state.lock:
            return command_registry.handle(state, line, emit=emit)
    except Exception:
        logger.exception("Command handler crashed line=%r", line)
        return "Internal error while handling a command."


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    print_ts("[CONSOLE] /catalog lists routines and challenges, /help lists commands, /exit quits.\n")

    while True:
        try:
            user_input = input(PROMPT).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        _echo_input(user_input)
        if user_input.lower() in EXIT_COMMANDS:
            logger.info("Console exit command received.")
            break

        reply = handle_console_line(state, user_input)
        if reply is not None:
            print_ts(reply)

    logger.info("Console connector finished.")
