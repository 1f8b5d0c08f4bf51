# src/thrive_engine/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "thrive.log"

# Console thresholds by logger prefix; the longest matching prefix wins.
CONSOLE_MIN_LEVELS: dict[str, int] = {
    "thrive_engine": logging.DEBUG,
    "thrive_engine.tasks.clock": logging.WARNING,
    "thrive_engine.tasks.session": logging.INFO,
    "py.warnings": logging.ERROR,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL readable while a task is running.

    The clock and session log every tick at DEBUG; those stay in the file only.
    Anything outside thrive_engine (asyncio, sqlite adapters, warnings) needs ERROR+.
    """

    def __init__(self, levels: dict[str, int] | None = None) -> None:
        super().__init__()
        self._levels = sorted((levels or CONSOLE_MIN_LEVELS).items(), key=lambda kv: len(kv[0]), reverse=True)

    def min_level_for(self, name: str) -> int:
        for prefix, level in self._levels:
            if name == prefix or name.startswith(prefix + "."):
                return level
        return logging.ERROR

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.min_level_for(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/thrive",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 2_000_000,
    backup_count: int = 3,
) -> Path:
    """
    Console handler (filtered) + rotating file handler (everything at file_level).

    Call once, before the first log line. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = RotatingFileHandler(str(log_file), maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)
    return log_file
