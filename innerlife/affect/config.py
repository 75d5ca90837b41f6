"""Configuration for the emotion engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any


@dataclass
class EmotionConfig:
    """Tuning for emotion dynamics.

    Attributes:
        decay_rate: Fraction of the distance to baseline removed per tick
        momentum_retention: Geometric decay applied to momentum per tick
        activation_threshold: Level at which an emotion counts as active
        primary_threshold: Level an emotion needs to take over as primary
        max_change_per_tick: Largest single direct change (doubled for batches)
        interaction_strength: Gain on cross-emotion coupling
    """

    decay_rate: float = 0.02
    momentum_retention: float = 0.95
    activation_threshold: float = 0.15
    primary_threshold: float = 0.4
    max_change_per_tick: float = 0.15
    interaction_strength: float = 0.3

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 0.0 <= self.decay_rate <= 1.0:
            raise ValueError(f"decay_rate must be in [0, 1], got {self.decay_rate}")
        if not 0.0 <= self.momentum_retention < 1.0:
            raise ValueError(
                f"momentum_retention must be in [0, 1), got {self.momentum_retention}"
            )
        if not 0.0 < self.activation_threshold <= self.primary_threshold <= 1.0:
            raise ValueError(
                "Thresholds must satisfy 0 < activation <= primary <= 1, got "
                f"{self.activation_threshold} / {self.primary_threshold}"
            )
        if not 0.0 < self.max_change_per_tick <= 1.0:
            raise ValueError(
                f"max_change_per_tick must be in (0, 1], got {self.max_change_per_tick}"
            )
        if self.interaction_strength < 0:
            raise ValueError(
                f"interaction_strength must be non-negative, got {self.interaction_strength}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmotionConfig":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})
