# src/thrive_engine/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Components never read the environment; bootstrap injects the values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "THRIVE"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_optional_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Engine ----
    tick_seconds: float
    fallback_duration_seconds: int

    # ---- Switches ----
    console_enabled: bool
    clock_enabled: bool
    persist_session: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    ledger_db_path: Path
    session_state_path: Path
    catalog_path: Optional[Path]

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "thrive") or "thrive"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        tick_seconds = max(0.01, _env_float(_k("TICK_SECONDS"), 1.0))
        fallback_duration_seconds = max(1, _env_int(_k("FALLBACK_DURATION_SECONDS"), 60))

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        clock_enabled = _env_bool(_k("CLOCK_ENABLED"), True)
        persist_session = _env_bool(_k("PERSIST_SESSION"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/thrive"))
        ledger_db_path = _env_path(_k("LEDGER_DB_PATH"), data_dir / "ledger.sqlite3")
        session_state_path = _env_path(_k("SESSION_STATE_PATH"), data_dir / "session_state.json")
        catalog_path = _env_optional_path(_k("CATALOG_PATH"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            tick_seconds=tick_seconds,
            fallback_duration_seconds=fallback_duration_seconds,
            console_enabled=console_enabled,
            clock_enabled=clock_enabled,
            persist_session=persist_session,
            data_dir=data_dir,
            ledger_db_path=ledger_db_path,
            session_state_path=session_state_path,
            catalog_path=catalog_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
