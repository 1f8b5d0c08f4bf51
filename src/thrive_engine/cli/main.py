# src/thrive_engine/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, restores the saved session, then starts:
- the session clock in a background thread (optional),
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state, load_session_state, save_session_state
from ..config import get_settings
from ..connectors.console_connector import print_ts, run_console_loop
from ..logging_setup import setup_logging
from ..notify import CallbackNotifier, FanOutNotifier, LoggingNotifier
from ..tasks.clock import ClockBackgroundRunner, start_clock_in_background

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/thrive")
    log_file = setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s... (log file: %s)", getattr(settings, "app_name", "thrive"), log_file)

    notifier = FanOutNotifier([LoggingNotifier(), CallbackNotifier(print_ts)])
    state = create_initial_state(settings=settings, notifier=notifier)

    if load_session_state(state):
        snap = state.session.snapshot()
        if snap is not None:
            print_ts(f"Restored paused task: {snap.name}. Use /resume to continue.")

    clock: ClockBackgroundRunner | None = None
    if settings.clock_enabled:
        clock = start_clock_in_background(
            state.session,
            interval_seconds=settings.tick_seconds,
            lock=state.lock,
        )

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError):
        # Not in the main thread, or the platform lacks SIGTERM.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running the clock only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        if clock is not None:
            clock.stop()
            clock.join(timeout=5.0)

        save_session_state(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
