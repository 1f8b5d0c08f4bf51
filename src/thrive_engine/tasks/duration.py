# src/thrive_engine/tasks/duration.py

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_SECONDS = 60

# "<int> minute(s)" / "<int> min" anywhere in the text. Second-granularity text is not recognised.
MINUTES_REGEX = re.compile(r"(\d+)\s*(?:minutes?|mins?)\b", re.IGNORECASE)


def parse_duration(text: str | None, *, fallback_seconds: int = DEFAULT_FALLBACK_SECONDS) -> int:
    """
    Convert free-form duration text into seconds.

    Only minute granularity is understood: "15 minutes" -> 900, "45 min activity" -> 2700.
    Anything else ("45 seconds", "a while", "") falls back to fallback_seconds.
    The result is always > 0.
    """
    fallback = max(1, int(fallback_seconds))
    if not text:
        return fallback

    m = MINUTES_REGEX.search(text)
    if not m:
        logger.debug("No minute pattern in duration text %r; using %ss", text, fallback)
        return fallback

    minutes = int(m.group(1))
    if minutes <= 0:
        return fallback
    return minutes * 60


def format_clock(seconds: int) -> str:
    """mm:ss for timer displays."""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins:02d}:{secs:02d}"
