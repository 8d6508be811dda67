"""Custom exceptions for Skill Rating.

Only ValidationError is meant to reach the caller of the rating engine: it
describes input the player can correct. Everything else raised inside a
rating computation is absorbed into a fallback result.
"""

from __future__ import annotations

from typing import Any


class SkillRatingError(Exception):
    """Base exception for all Skill Rating errors."""

    pass


class ValidationError(SkillRatingError, ValueError):
    """A reference rating or reliability score is outside its domain.

    Raised instead of silently clamping, so the questionnaire can ask the
    player to correct the value.
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        self.field = field
        self.value = value
        full_message = message
        if field:
            full_message = f"Invalid value for '{field}': {message}"
        super().__init__(full_message)


class CatalogError(SkillRatingError):
    """A question catalog could not be loaded or is inconsistent."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        full_message = message
        if path:
            full_message = f"Could not load catalog at '{path}'.\n{message}"
        super().__init__(full_message)


class UnknownSportError(SkillRatingError):
    """No catalog is available for the requested sport."""

    def __init__(self, sport: str, supported: list[str]):
        self.sport = sport
        self.supported = supported
        message = (
            f"No questionnaire catalog for sport '{sport}'.\n"
            f"Available sports: {', '.join(sorted(supported)) or 'none'}"
        )
        super().__init__(message)


class ConfigError(SkillRatingError):
    """Error in engine configuration.

    Raised when a configuration file is missing, malformed or out of bounds.
    """

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        full_message = message
        if field:
            full_message = f"Configuration error in '{field}': {message}"
        super().__init__(full_message)
