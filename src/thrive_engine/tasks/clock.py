# src/thrive_engine/tasks/clock.py

from __future__ import annotations

"""
Session clock.

The only time authority of the engine: calls session.tick() once per interval.
- run_session_clock(): the async loop (cancel it, or set stop_event, to stop)
- start_clock_in_background(): runs that loop on its own thread/event loop so a
  blocking console REPL can drive the same session

The clock never compensates for missed ticks; a paused session simply drops them.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import ContextManager

from .session import ActiveTaskSession
from .task_models import CompletionEvent

logger = logging.getLogger(__name__)

TickCallback = Callable[[CompletionEvent], None]


async def run_session_clock(
    session: ActiveTaskSession,
    *,
    interval_seconds: float = 1.0,
    lock: ContextManager | None = None,
    on_completed: TickCallback | None = None,
    stop_event: asyncio.Event | None = None,
) -> None:
    """
    Tick loop.

    Every interval_seconds:
    - take the shared lock (if any) so ticks never interleave with user actions
    - session.tick()
    - report an auto-completion via on_completed (best-effort)
    """
    sleep_s = max(0.01, float(interval_seconds))

    while stop_event is None or not stop_event.is_set():
        if stop_event is None:
            await asyncio.sleep(sleep_s)
        else:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)
            if stop_event.is_set():
                break

        try:
            if lock is not None:
                with lock:
                    event = session.tick()
            else:
                event = session.tick()
        except Exception:
            logger.exception("session tick failed")
            continue

        if event is not None and on_completed is not None:
            try:
                on_completed(event)
            except Exception:
                logger.exception("on_completed callback failed identity=%s", event.identity)

    logger.debug("Session clock loop finished.")


@dataclass(slots=True)
class ClockBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Failed to signal clock stop (loop already closed).", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_clock_in_background(
    session: ActiveTaskSession,
    *,
    interval_seconds: float = 1.0,
    lock: ContextManager | None = None,
    on_completed: TickCallback | None = None,
) -> ClockBackgroundRunner | None:
    """
    Start the session clock in a background thread.

    Threading model:
    - console REPL is blocking (input()).
    - the clock runs on its own event loop in that thread.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_session_clock(
                    session,
                    interval_seconds=interval_seconds,
                    lock=lock,
                    on_completed=on_completed,
                    stop_event=stop_event,
                )
            )
        finally:
            loop.close()

    t = threading.Thread(target=runner, name="session-clock", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Clock thread did not initialize properly.")
        return None

    logger.info("Session clock started (interval=%ss).", interval_seconds)
    return ClockBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
