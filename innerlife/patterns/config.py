"""Configuration for the pattern library."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Union


@dataclass
class PatternLibraryConfig:
    """Capacities and mutation tuning for the pattern library.

    Attributes:
        data_path: Directory holding ``library.json``
        max_speech_patterns: Capacity of the speech collection
        max_behavior_patterns: Capacity of the behavior collection
        max_emotion_patterns: Capacity of the mood-response collection
        mutation_rate: Chance an unforced mutation goes ahead
        prune_threshold: Eviction candidates score below this plus the recency bonus
    """

    data_path: Union[str, Path] = "./data/patterns"
    max_speech_patterns: int = 10000
    max_behavior_patterns: int = 5000
    max_emotion_patterns: int = 3000
    mutation_rate: float = 0.1
    prune_threshold: int = 3

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.data_path = Path(self.data_path)
        for name in ("max_speech_patterns", "max_behavior_patterns", "max_emotion_patterns"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError(f"mutation_rate must be in [0, 1], got {self.mutation_rate}")
        if self.prune_threshold < 0:
            raise ValueError(f"prune_threshold must be non-negative, got {self.prune_threshold}")

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["data_path"] = str(self.data_path)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PatternLibraryConfig":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})
