"""Configuration for the homeostasis regulator and urge system."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any


def _known_fields(cls, data: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class HomeostasisConfig:
    """Tuning for homeostatic regulation.

    Attributes:
        regulation_speed: Pull toward the set point per tick (scaled by 0.1)
        urgency_multiplier: Gain applied to out-of-band deviation
        deviation_threshold: Urgency above which a variable is unstable
        critical_threshold: Urgency at or above which the state is critical
        novelty_decay: Per-tick loss of novelty satisfaction
        connection_decay: Per-tick loss of connection satisfaction
        expression_decay: Per-tick loss of expression satisfaction
    """

    regulation_speed: float = 0.05
    urgency_multiplier: float = 1.5
    deviation_threshold: float = 0.3
    critical_threshold: float = 0.7
    novelty_decay: float = 0.003
    connection_decay: float = 0.002
    expression_decay: float = 0.004

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 0.0 <= self.regulation_speed <= 1.0:
            raise ValueError(
                f"regulation_speed must be in [0, 1], got {self.regulation_speed}"
            )
        if self.urgency_multiplier <= 0:
            raise ValueError(
                f"urgency_multiplier must be positive, got {self.urgency_multiplier}"
            )
        if not 0.0 < self.deviation_threshold <= self.critical_threshold <= 1.0:
            raise ValueError(
                "Thresholds must satisfy 0 < deviation <= critical <= 1, got "
                f"{self.deviation_threshold} / {self.critical_threshold}"
            )
        for name in ("novelty_decay", "connection_decay", "expression_decay"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HomeostasisConfig":
        return cls(**_known_fields(cls, data))


@dataclass
class UrgeSystemConfig:
    """Tuning for urge growth, satisfaction and conflict.

    Attributes:
        base_growth_rate: Natural growth per tick before profile multipliers
        max_satisfaction_rate: Largest reduction a single satisfying action gives
        conflict_threshold: Both urges of a pair above this are in conflict
        dominance_threshold: Urges above this suppress the urges they dominate
        minimum_level: Floor every urge is normalized to
        urgent_threshold: Level an urge must reach to be reported as dominant
        suppression_rate: Gain applied to a suppressor's excess over dominance
        resolution_margin: Score margin needed to settle a conflict
    """

    base_growth_rate: float = 0.002
    max_satisfaction_rate: float = 0.3
    conflict_threshold: float = 0.6
    dominance_threshold: float = 0.7
    minimum_level: float = 0.05
    urgent_threshold: float = 0.85
    suppression_rate: float = 0.05
    resolution_margin: float = 0.1

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.base_growth_rate < 0:
            raise ValueError(
                f"base_growth_rate must be non-negative, got {self.base_growth_rate}"
            )
        if not 0.0 < self.max_satisfaction_rate <= 1.0:
            raise ValueError(
                f"max_satisfaction_rate must be in (0, 1], got {self.max_satisfaction_rate}"
            )
        if not 0.0 <= self.minimum_level < self.conflict_threshold:
            raise ValueError(
                f"minimum_level ({self.minimum_level}) must be below "
                f"conflict_threshold ({self.conflict_threshold})"
            )
        for name in ("conflict_threshold", "dominance_threshold", "urgent_threshold"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ValueError(f"{name} must be in (0, 1], got {value}")
        if self.suppression_rate < 0 or self.resolution_margin < 0:
            raise ValueError("suppression_rate and resolution_margin must be non-negative")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UrgeSystemConfig":
        return cls(**_known_fields(cls, data))
