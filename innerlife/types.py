"""Closed vocabularies shared by every subsystem.

Each static table in the package is keyed by one of these enums and is
checked with :func:`require_exhaustive` at import time, so adding a new
emotion or urge without filling in its tables fails loudly on import.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Mapping, Optional, Type, TypeVar


class TimeOfDay(str, Enum):
    """Coarse time-of-day bucket supplied by the driving clock."""

    DAWN = "dawn"
    MORNING = "morning"
    MIDDAY = "midday"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"
    LATE_NIGHT = "late_night"


class Emotion(str, Enum):
    """The mood dimensions tracked by the emotion engine."""

    JOY = "joy"
    PEACE = "peace"
    CURIOSITY = "curiosity"
    MELANCHOLY = "melancholy"
    LONELINESS = "loneliness"
    ANXIETY = "anxiety"
    CONTENTMENT = "contentment"
    WONDER = "wonder"
    WARMTH = "warmth"
    FATIGUE = "fatigue"
    BOREDOM = "boredom"
    ANTICIPATION = "anticipation"
    CONFUSION = "confusion"
    NOSTALGIA = "nostalgia"
    HOPE = "hope"
    FEAR = "fear"


class Urge(str, Enum):
    """Motivational drives tracked by the urge system."""

    REST = "rest"
    ACTIVITY = "activity"
    KNOWLEDGE = "knowledge"
    UNDERSTANDING = "understanding"
    NOVELTY = "novelty"
    EXPRESSION = "expression"
    CREATIVITY = "creativity"
    CONNECTION = "connection"
    RECOGNITION = "recognition"
    BELONGING = "belonging"
    REFLECTION = "reflection"
    SOLITUDE = "solitude"
    EXCITEMENT = "excitement"
    MEANING = "meaning"
    GROWTH = "growth"
    MEMORY = "memory"
    CONTINUITY = "continuity"
    MOVE = "move"
    WARMTH = "warmth"
    COMFORT = "comfort"
    CURIOSITY = "curiosity"
    CREATION = "creation"
    EXPLORATION = "exploration"


class HomeostasisVariable(str, Enum):
    """Physiological variables held near their set points."""

    ENERGY = "energy"
    NOVELTY = "novelty"
    SAFETY = "safety"
    CONNECTION = "connection"
    EXPRESSION = "expression"


E = TypeVar("E", bound=Enum)


def require_exhaustive(table: Mapping, enum_cls: Type[Enum], name: str) -> None:
    """Raise ValueError if ``table`` lacks a key for any member of ``enum_cls``."""
    missing = [member.value for member in enum_cls if member not in table]
    if missing:
        raise ValueError(f"{name} is missing entries for: {', '.join(missing)}")


def parse_enum(enum_cls: Type[E], value) -> Optional[E]:
    """Coerce ``value`` (member or raw value) to ``enum_cls``, or None if unknown."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def utc_now() -> datetime:
    """Return current UTC timestamp."""
    return datetime.now(timezone.utc)


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string written by ``datetime.isoformat``.

    Values without an offset are taken to be UTC.
    """
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
