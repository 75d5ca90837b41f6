"""Static emotion tables and the layered coupling matrix.

The coupling matrix says how strongly one emotion pushes another up (positive)
or down (negative). Learned adjustments never touch the factory table: they
live in a sparse override layer that is checked first on every lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

import numpy as np

from innerlife.types import Emotion, TimeOfDay, require_exhaustive
from innerlife.utils.numeric import clamp

E = Emotion
T = TimeOfDay

EMOTION_ORDER: tuple[Emotion, ...] = tuple(Emotion)
EMOTION_INDEX: Mapping[Emotion, int] = {emotion: i for i, emotion in enumerate(EMOTION_ORDER)}

# source -> {target: coupling}
EMOTION_RELATIONS: Mapping[Emotion, Mapping[Emotion, float]] = {
    E.JOY: {E.PEACE: 0.3, E.CONTENTMENT: 0.5, E.WARMTH: 0.4, E.HOPE: 0.4,
            E.ANXIETY: -0.5, E.LONELINESS: -0.3},
    E.PEACE: {E.CONTENTMENT: 0.6, E.JOY: 0.2, E.ANXIETY: -0.7, E.FEAR: -0.5,
              E.BOREDOM: 0.1},
    E.CURIOSITY: {E.WONDER: 0.6, E.ANTICIPATION: 0.4, E.BOREDOM: -0.7,
                  E.CONTENTMENT: -0.2},
    E.MELANCHOLY: {E.LONELINESS: 0.4, E.NOSTALGIA: 0.5, E.PEACE: 0.1, E.JOY: -0.3,
                   E.CURIOSITY: -0.2},
    E.LONELINESS: {E.MELANCHOLY: 0.4, E.ANXIETY: 0.3, E.WARMTH: -0.6, E.JOY: -0.4},
    E.ANXIETY: {E.FEAR: 0.5, E.PEACE: -0.6, E.CONTENTMENT: -0.4, E.JOY: -0.4},
    E.CONTENTMENT: {E.PEACE: 0.5, E.JOY: 0.3, E.CURIOSITY: -0.2, E.ANXIETY: -0.4},
    E.WONDER: {E.CURIOSITY: 0.5, E.JOY: 0.3, E.BOREDOM: -0.5},
    E.WARMTH: {E.JOY: 0.3, E.PEACE: 0.3, E.LONELINESS: -0.6},
    E.FATIGUE: {E.PEACE: 0.1, E.CURIOSITY: -0.4, E.ANXIETY: 0.2},
    E.BOREDOM: {E.CURIOSITY: -0.3, E.PEACE: -0.2, E.ANXIETY: 0.2},
    E.ANTICIPATION: {E.CURIOSITY: 0.4, E.ANXIETY: 0.2, E.JOY: 0.3},
    E.CONFUSION: {E.ANXIETY: 0.3, E.CURIOSITY: 0.2, E.PEACE: -0.3},
    E.NOSTALGIA: {E.MELANCHOLY: 0.4, E.WARMTH: 0.3, E.PEACE: 0.2},
    E.HOPE: {E.JOY: 0.3, E.ANTICIPATION: 0.5, E.ANXIETY: -0.2, E.FEAR: -0.3},
    E.FEAR: {E.ANXIETY: 0.6, E.PEACE: -0.6, E.JOY: -0.5, E.CURIOSITY: -0.3},
}

# Small additive pulls per time of day (applied at 10% per tick)
TIME_EMOTION_BIAS: Mapping[TimeOfDay, Mapping[Emotion, float]] = {
    T.DAWN: {E.PEACE: 0.15, E.HOPE: 0.1, E.WONDER: 0.1, E.FATIGUE: 0.05},
    T.MORNING: {E.PEACE: 0.1, E.CURIOSITY: 0.1, E.ANTICIPATION: 0.05},
    T.MIDDAY: {E.CURIOSITY: 0.1, E.CONTENTMENT: 0.05},
    T.AFTERNOON: {E.FATIGUE: 0.05, E.PEACE: 0.05},
    T.EVENING: {E.MELANCHOLY: 0.1, E.NOSTALGIA: 0.1, E.PEACE: 0.1},
    T.NIGHT: {E.MELANCHOLY: 0.15, E.LONELINESS: 0.1, E.PEACE: 0.05},
    T.LATE_NIGHT: {E.LONELINESS: 0.15, E.ANXIETY: 0.1, E.MELANCHOLY: 0.1, E.WONDER: 0.05},
}

# Resting level each emotion decays toward
BASELINES: Mapping[Emotion, float] = {emotion: 0.0 for emotion in Emotion} | {
    E.PEACE: 0.3,
    E.MELANCHOLY: 0.1,
    E.CURIOSITY: 0.2,
}

INITIAL_LEVELS: Mapping[Emotion, float] = {emotion: 0.0 for emotion in Emotion} | {
    E.PEACE: 0.5,
    E.MELANCHOLY: 0.2,
    E.CURIOSITY: 0.3,
}

POSITIVE_AFFECT = (E.JOY, E.PEACE, E.CONTENTMENT, E.WARMTH, E.HOPE)
NEGATIVE_AFFECT = (E.ANXIETY, E.LONELINESS, E.FEAR, E.MELANCHOLY)
HIGH_AROUSAL = (E.CURIOSITY, E.ANXIETY, E.ANTICIPATION, E.WONDER, E.JOY)
LOW_AROUSAL = (E.PEACE, E.FATIGUE, E.CONTENTMENT)

EMOTION_WORDS: Mapping[Emotion, str] = {
    E.JOY: "happy",
    E.PEACE: "calm",
    E.CURIOSITY: "curious",
    E.MELANCHOLY: "lost in thought",
    E.LONELINESS: "lonely",
    E.ANXIETY: "anxious",
    E.CONTENTMENT: "content",
    E.WONDER: "full of wonder",
    E.WARMTH: "warm inside",
    E.FATIGUE: "tired",
    E.BOREDOM: "bored",
    E.ANTICIPATION: "expectant",
    E.CONFUSION: "confused",
    E.NOSTALGIA: "nostalgic",
    E.HOPE: "hopeful",
    E.FEAR: "afraid",
}


def relations_matrix() -> np.ndarray:
    """Dense source x target matrix of the factory coupling table."""
    matrix = np.zeros((len(EMOTION_ORDER), len(EMOTION_ORDER)), dtype=np.float64)
    for source, targets in EMOTION_RELATIONS.items():
        for target, coupling in targets.items():
            matrix[EMOTION_INDEX[source], EMOTION_INDEX[target]] = coupling
    return matrix


@dataclass
class CouplingTable:
    """Factory coupling matrix plus a sparse layer of learned overrides."""

    overrides: dict[tuple[Emotion, Emotion], float] = field(default_factory=dict)
    _static: np.ndarray = field(default_factory=relations_matrix, repr=False)

    def static(self, source: Emotion, target: Emotion) -> float:
        return float(self._static[EMOTION_INDEX[source], EMOTION_INDEX[target]])

    def effective(self, source: Emotion, target: Emotion) -> float:
        """Override if one is set, otherwise the factory value."""
        override = self.overrides.get((source, target))
        if override is not None:
            return override
        return self.static(source, target)

    def set_override(self, source: Emotion, target: Emotion, value: float) -> float:
        value = clamp(value, -1.0, 1.0)
        self.overrides[(source, target)] = value
        return value

    def clear_override(self, source: Emotion, target: Emotion) -> Optional[float]:
        return self.overrides.pop((source, target), None)

    def targets(self, source: Emotion) -> list[tuple[Emotion, float]]:
        """Non-zero effective couplings out of ``source``."""
        row = self.matrix()[EMOTION_INDEX[source]]
        return [(EMOTION_ORDER[i], float(row[i])) for i in np.flatnonzero(row)]

    def matrix(self) -> np.ndarray:
        """Effective dense matrix (a copy; the factory table is never mutated)."""
        effective = self._static.copy()
        for (source, target), value in self.overrides.items():
            effective[EMOTION_INDEX[source], EMOTION_INDEX[target]] = value
        return effective

    def to_dict(self) -> list[dict[str, object]]:
        return [
            {"source": source.value, "target": target.value, "value": value}
            for (source, target), value in self.overrides.items()
        ]

    @classmethod
    def from_dict(cls, data: list[dict[str, object]]) -> "CouplingTable":
        table = cls()
        for entry in data:
            table.set_override(Emotion(entry["source"]), Emotion(entry["target"]),
                               float(entry["value"]))
        return table


require_exhaustive(EMOTION_RELATIONS, Emotion, "EMOTION_RELATIONS")
require_exhaustive(TIME_EMOTION_BIAS, TimeOfDay, "TIME_EMOTION_BIAS")
require_exhaustive(BASELINES, Emotion, "BASELINES")
require_exhaustive(EMOTION_WORDS, Emotion, "EMOTION_WORDS")
