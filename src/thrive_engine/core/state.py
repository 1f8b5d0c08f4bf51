# src/thrive_engine/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..tasks.catalog import Catalog
from ..tasks.challenge import ChallengeSequencer
from ..tasks.ledger import InMemoryLedger
from ..tasks.session import ActiveTaskSession
from .ports import NotificationSink


@dataclass
class AppState:
    """
    Everything a host surface (console, tests) needs, passed around by reference.

    There is exactly one session; every surface reads it through snapshots.
    Any thread that touches session/sequencer/ledger must hold `lock`.
    """

    settings: Any

    catalog: Catalog
    ledger: InMemoryLedger
    session: ActiveTaskSession
    sequencer: ChallengeSequencer
    notifier: NotificationSink | None = None

    lock: threading.RLock = field(default_factory=threading.RLock)
