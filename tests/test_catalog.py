# tests/test_catalog.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from thrive_engine.errors import CatalogError
from thrive_engine.tasks.catalog import catalog_from_dict, default_catalog, load_catalog, quick_start
from thrive_engine.tasks.task_models import Category, Difficulty


def test_default_catalog_has_routines_and_challenges() -> None:
    cat = default_catalog()

    assert "morning" in cat.routine_names()
    assert cat.routine("morning")[0].name == "Morning Energy Flow"
    ladder = cat.challenge("pushup-ladder")
    assert ladder is not None and len(ladder.tasks) == 3
    assert cat.routine("nope") == ()
    assert cat.challenge("nope") is None


def test_load_catalog_from_json(tmp_path: Path) -> None:
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            {
                "routines": {
                    "lunch": [
                        {"name": "Walk", "duration": "10 minutes", "category": "movement", "steps": ["Go outside"]},
                        {"name": "Mystery", "duration": "", "category": "astrology", "difficulty": "brutal"},
                    ]
                },
                "challenges": [
                    {"id": "tiny", "tasks": [{"name": "Sip water", "duration": "1 min", "category": "nutrition"}]}
                ],
            }
        ),
        "utf-8",
    )

    cat = load_catalog(path)
    walk, mystery = cat.routine("lunch")

    assert walk.category is Category.MOVEMENT
    assert walk.steps == ("Go outside",)
    assert mystery.category is Category.OTHER
    assert mystery.difficulty is Difficulty.EASY
    tiny = cat.challenge("tiny")
    assert tiny is not None and tiny.title == "tiny"


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"routines": ["x"]},
        {"routines": {"r": "not a list"}},
        {"routines": {"r": [{"duration": "1 minute"}]}},
        {"challenges": [{"title": "no id"}]},
        {"challenges": [{"id": "x", "tasks": "abc"}]},
    ],
)
def test_catalog_from_dict_rejects_bad_shapes(data) -> None:
    with pytest.raises(CatalogError):
        catalog_from_dict(data)


def test_load_catalog_reports_io_and_json_errors(tmp_path: Path) -> None:
    with pytest.raises(CatalogError):
        load_catalog(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{nope", "utf-8")
    with pytest.raises(CatalogError):
        load_catalog(broken)


def test_quick_start() -> None:
    d = quick_start("  Tidy desk ", 5, "habit")
    assert d.name == "Tidy desk"
    assert d.duration_text == "5 minutes"
    assert d.category is Category.HABIT

    assert quick_start("Blink", 0).duration_text == "1 minute"

    with pytest.raises(ValueError):
        quick_start("   ", 3)
