# src/thrive_engine/errors.py

from __future__ import annotations


class ThriveError(Exception):
    """Base class for failures the engine reports to its caller."""


class EmptyChallengeError(ThriveError, ValueError):
    """A challenge definition without tasks cannot be started (content authoring defect)."""

    def __init__(self, challenge_id: str) -> None:
        super().__init__(f"Challenge {challenge_id!r} has no tasks")
        self.challenge_id = challenge_id


class CatalogError(ThriveError):
    """The content catalog could not be read or has an unexpected shape."""
