"""Speech, behavior and mood-response patterns that evolve with use."""
from innerlife.patterns.config import PatternLibraryConfig
from innerlife.patterns.evolution import EvolutionResult, MergeEvent, PatternChange, SplitEvent
from innerlife.patterns.library import PatternLibrary
from innerlife.patterns.schemas import (
    ActionStep,
    BehaviorPattern,
    CreatedBy,
    EmotionalResponse,
    EmotionPattern,
    ExpectedOutcome,
    MutationRecord,
    MutationType,
    PatternKind,
    SituationDescriptor,
    SpeechPattern,
)

__all__ = [
    "PatternLibraryConfig",
    "EvolutionResult",
    "MergeEvent",
    "PatternChange",
    "SplitEvent",
    "PatternLibrary",
    "ActionStep",
    "BehaviorPattern",
    "CreatedBy",
    "EmotionalResponse",
    "EmotionPattern",
    "ExpectedOutcome",
    "MutationRecord",
    "MutationType",
    "PatternKind",
    "SituationDescriptor",
    "SpeechPattern",
]
