"""Mood: emotion dynamics, coupling and self-correction."""
from innerlife.affect.config import EmotionConfig
from innerlife.affect.emotion_engine import EmotionEngine
from innerlife.affect.interactions import CouplingTable
from innerlife.affect.self_correction import (
    CorrectionRecord,
    CorrectionType,
    TriggerOutcome,
    TriggerStats,
)
from innerlife.affect.state import (
    EmotionalState,
    EmotionChange,
    EmotionChangeEvent,
    EmotionTrigger,
    EmotionTriggerType,
)

__all__ = [
    "EmotionConfig",
    "EmotionEngine",
    "CouplingTable",
    "CorrectionRecord",
    "CorrectionType",
    "TriggerOutcome",
    "TriggerStats",
    "EmotionalState",
    "EmotionChange",
    "EmotionChangeEvent",
    "EmotionTrigger",
    "EmotionTriggerType",
]
