"""Emotional state and change-event records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from innerlife.affect.interactions import INITIAL_LEVELS
from innerlife.types import Emotion, parse_datetime, utc_now
from innerlife.utils.numeric import clamp

# Momentum is half a direct change, and a batch change is at most 2.0
MOMENTUM_LIMIT = 1.0


class EmotionTriggerType(str, Enum):
    PATTERN = "pattern"
    DECAY = "decay"
    TIME = "time"
    EVENT = "event"
    VISITOR = "visitor"
    ACTION = "action"
    MEMORY = "memory"
    YURAGI = "yuragi"
    URGE = "urge"
    HOMEOSTASIS = "homeostasis"
    EXTERNAL = "external"


@dataclass(frozen=True)
class EmotionTrigger:
    """What caused a change; ``detail`` carries the pattern id, event name, etc."""

    type: EmotionTriggerType
    detail: Optional[str] = None

    @property
    def label(self) -> str:
        if self.detail is None:
            return self.type.value
        return f"{self.type.value}:{self.detail}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "detail": self.detail}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmotionTrigger":
        return cls(type=EmotionTriggerType(data["type"]), detail=data.get("detail"))


@dataclass(frozen=True)
class EmotionChange:
    emotion: Emotion
    previous_level: float
    new_level: float
    delta: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "emotion": self.emotion.value,
            "previous_level": self.previous_level,
            "new_level": self.new_level,
            "delta": self.delta,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmotionChange":
        return cls(
            emotion=Emotion(data["emotion"]),
            previous_level=float(data["previous_level"]),
            new_level=float(data["new_level"]),
            delta=float(data["delta"]),
        )


@dataclass
class EmotionChangeEvent:
    trigger: EmotionTrigger
    changes: list[EmotionChange]
    timestamp: datetime = field(default_factory=utc_now)

    def change_for(self, emotion: Emotion) -> Optional[EmotionChange]:
        """First change in this event touching ``emotion``."""
        for change in self.changes:
            if change.emotion == emotion:
                return change
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger": self.trigger.to_dict(),
            "changes": [c.to_dict() for c in self.changes],
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmotionChangeEvent":
        return cls(
            trigger=EmotionTrigger.from_dict(data["trigger"]),
            changes=[EmotionChange.from_dict(c) for c in data.get("changes", [])],
            timestamp=parse_datetime(data["timestamp"]),
        )


@dataclass(frozen=True)
class SignificantChange:
    emotion: Emotion
    timestamp: datetime
    trigger: str


@dataclass
class EmotionalState:
    """Continuous mood vector plus the scalars derived from it.

    Attributes:
        levels: Level per emotion in [0, 1]; every emotion is always present
        momentum: Signed carry-over per emotion, decays every tick
        primary: Dominant emotion (retained until another crosses the primary threshold)
        secondary: Runner-up emotion, None when nothing else is active
        valence: Positive-affect mean minus negative-affect mean
        arousal: Blend of high-arousal and inverted low-arousal means
        last_significant_change: Last direct change larger than 0.2
    """

    levels: dict[Emotion, float] = field(default_factory=lambda: dict(INITIAL_LEVELS))
    momentum: dict[Emotion, float] = field(
        default_factory=lambda: {emotion: 0.0 for emotion in Emotion}
    )
    primary: Emotion = Emotion.PEACE
    secondary: Optional[Emotion] = Emotion.CURIOSITY
    valence: float = 0.3
    arousal: float = 0.3
    last_significant_change: Optional[SignificantChange] = None

    def copy(self) -> "EmotionalState":
        return EmotionalState(
            levels=dict(self.levels),
            momentum=dict(self.momentum),
            primary=self.primary,
            secondary=self.secondary,
            valence=self.valence,
            arousal=self.arousal,
            last_significant_change=self.last_significant_change,
        )

    def to_dict(self) -> dict[str, Any]:
        significant = None
        if self.last_significant_change is not None:
            significant = {
                "emotion": self.last_significant_change.emotion.value,
                "timestamp": self.last_significant_change.timestamp.isoformat(),
                "trigger": self.last_significant_change.trigger,
            }
        return {
            "levels": {e.value: level for e, level in self.levels.items()},
            "momentum": {e.value: m for e, m in self.momentum.items()},
            "primary": self.primary.value,
            "secondary": self.secondary.value if self.secondary else None,
            "valence": self.valence,
            "arousal": self.arousal,
            "last_significant_change": significant,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmotionalState":
        levels = {emotion: 0.0 for emotion in Emotion}
        levels.update({Emotion(k): clamp(float(v)) for k, v in data["levels"].items()})
        momentum = {emotion: 0.0 for emotion in Emotion}
        momentum.update({
            Emotion(k): clamp(float(v), -MOMENTUM_LIMIT, MOMENTUM_LIMIT)
            for k, v in data.get("momentum", {}).items()
        })
        significant = data.get("last_significant_change")
        secondary = data.get("secondary")
        return cls(
            levels=levels,
            momentum=momentum,
            primary=Emotion(data["primary"]),
            secondary=Emotion(secondary) if secondary else None,
            valence=float(data.get("valence", 0.0)),
            arousal=float(data.get("arousal", 0.0)),
            last_significant_change=SignificantChange(
                emotion=Emotion(significant["emotion"]),
                timestamp=parse_datetime(significant["timestamp"]),
                trigger=significant["trigger"],
            ) if significant else None,
        )
