# src/thrive_engine/tasks/catalog.py

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from ..errors import CatalogError
from .task_models import Category, ChallengeDefinition, Difficulty, TaskDefinition

logger = logging.getLogger(__name__)


class Catalog:
    """
    In-memory content catalog (routines + challenges).

    Definitions are immutable; the engine only reads them.
    """

    def __init__(
        self,
        routines: Mapping[str, Sequence[TaskDefinition]] | None = None,
        challenges: Sequence[ChallengeDefinition] = (),
    ) -> None:
        self._routines: dict[str, tuple[TaskDefinition, ...]] = {
            k: tuple(v) for k, v in (routines or {}).items()
        }
        self._challenges: dict[str, ChallengeDefinition] = {c.id: c for c in challenges}

    def routine_names(self) -> list[str]:
        return list(self._routines)

    def routine(self, name: str) -> tuple[TaskDefinition, ...]:
        return self._routines.get(name, ())

    def challenges(self) -> list[ChallengeDefinition]:
        return list(self._challenges.values())

    def challenge(self, challenge_id: str) -> ChallengeDefinition | None:
        return self._challenges.get(challenge_id)


def quick_start(name: str, minutes: int, category: str | Category = Category.OTHER) -> TaskDefinition:
    """Ad-hoc custom activity with a minute-based duration."""
    if not name or not name.strip():
        raise ValueError("name is required")
    minutes = max(1, int(minutes))
    unit = "minute" if minutes == 1 else "minutes"
    return TaskDefinition(
        name=name.strip(),
        duration_text=f"{minutes} {unit}",
        category=category if isinstance(category, Category) else Category.parse(category),
    )


def _task_from_dict(raw: Any) -> TaskDefinition:
    if not isinstance(raw, dict):
        raise CatalogError(f"task entry must be an object, got {type(raw).__name__}")
    name = str(raw.get("name") or "").strip()
    if not name:
        raise CatalogError("task entry without a name")
    steps_raw = raw.get("steps") or []
    if not isinstance(steps_raw, list):
        raise CatalogError(f"steps of {name!r} must be a list")
    return TaskDefinition(
        name=name,
        duration_text=str(raw.get("duration") or raw.get("duration_text") or ""),
        category=Category.parse(raw.get("category")),
        difficulty=Difficulty.parse(raw.get("difficulty")),
        steps=tuple(str(s) for s in steps_raw),
    )


def catalog_from_dict(data: Any) -> Catalog:
    if not isinstance(data, dict):
        raise CatalogError("catalog root must be an object")

    routines_raw = data.get("routines") or {}
    if not isinstance(routines_raw, dict):
        raise CatalogError("'routines' must be an object of name -> task list")
    routines: dict[str, list[TaskDefinition]] = {}
    for rname, items in routines_raw.items():
        if not isinstance(items, list):
            raise CatalogError(f"routine {rname!r} must be a list")
        routines[str(rname)] = [_task_from_dict(t) for t in items]

    challenges_raw = data.get("challenges") or []
    if not isinstance(challenges_raw, list):
        raise CatalogError("'challenges' must be a list")
    challenges: list[ChallengeDefinition] = []
    for ch in challenges_raw:
        if not isinstance(ch, dict) or not ch.get("id"):
            raise CatalogError("challenge entry without an id")
        tasks = ch.get("tasks") or []
        if not isinstance(tasks, list):
            raise CatalogError(f"tasks of challenge {ch['id']!r} must be a list")
        challenges.append(
            ChallengeDefinition(
                id=str(ch["id"]),
                title=str(ch.get("title") or ch["id"]),
                tasks=tuple(_task_from_dict(t) for t in tasks),
            )
        )

    return Catalog(routines=routines, challenges=challenges)


def load_catalog(path: str | Path) -> Catalog:
    path = Path(path)
    try:
        data = json.loads(path.read_text("utf-8"))
    except OSError as e:
        raise CatalogError(f"cannot read catalog {path}: {e}") from e
    except ValueError as e:
        raise CatalogError(f"catalog {path} is not valid JSON: {e}") from e

    catalog = catalog_from_dict(data)
    logger.info(
        "Catalog loaded from %s: %d routines, %d challenges",
        path,
        len(catalog.routine_names()),
        len(catalog.challenges()),
    )
    return catalog


DEFAULT_CATALOG: dict[str, Any] = {
    "routines": {
        "morning": [
            {
                "name": "Morning Energy Flow",
                "duration": "12 minutes",
                "category": "movement",
                "difficulty": "medium",
                "steps": ["Neck rolls", "Cat-cow", "Sun salutation x3"],
            },
            {
                "name": "4-7-8 Breathing",
                "duration": "3 minutes",
                "category": "wellness",
                "difficulty": "easy",
                "steps": ["Inhale 4s", "Hold 7s", "Exhale 8s"],
            },
            {
                "name": "Plan Top 3",
                "duration": "5 min planning",
                "category": "planning",
                "difficulty": "easy",
            },
        ],
        "evening": [
            {"name": "Bed Stretches", "duration": "5 minutes", "category": "movement", "difficulty": "easy"},
            {"name": "Gratitude Journal", "duration": "4 minutes", "category": "mindset", "difficulty": "easy"},
        ],
    },
    "challenges": [
        {
            "id": "pushup-ladder",
            "title": "Progressive Push-Up Challenge",
            "tasks": [
                {"name": "Wall Push-ups", "duration": "2 minutes", "category": "movement", "difficulty": "easy"},
                {"name": "Knee Push-ups", "duration": "3 minutes", "category": "movement", "difficulty": "medium"},
                {"name": "Full Push-ups", "duration": "4 minutes", "category": "movement", "difficulty": "hard"},
            ],
        },
        {
            "id": "calm-reset",
            "title": "Calm Reset",
            "tasks": [
                {"name": "Box Breathing", "duration": "2 minutes", "category": "wellness", "difficulty": "easy"},
                {"name": "Body Scan", "duration": "45 seconds", "category": "mindset", "difficulty": "easy"},
            ],
        },
    ],
}


def default_catalog() -> Catalog:
    return catalog_from_dict(DEFAULT_CATALOG)
