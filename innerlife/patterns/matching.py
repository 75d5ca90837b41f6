"""Scoring patterns against a situation snapshot.

Speech patterns score the weighted share of their conditions that hold,
behavior patterns the probability-weighted share of their triggers that fire
(scaled by their track record), and mood patterns match only when every
field their descriptor specifies agrees with the situation.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from innerlife.patterns.schemas import (
    BehaviorPattern,
    BetweenCondition,
    Condition,
    ConditionKind,
    ContainsCondition,
    EmotionalTrigger,
    EmotionPattern,
    EqualsCondition,
    GreaterCondition,
    LessCondition,
    RandomTrigger,
    SpeechPattern,
    TimeBasedTrigger,
    Trigger,
    UrgeThresholdTrigger,
)
from innerlife.situation import Situation
from innerlife.types import Emotion, Urge, parse_enum

SPEECH_MATCH_THRESHOLD = 0.3


# ─────────────────────────────────────────────────────────────────────────────
# Speech
# ─────────────────────────────────────────────────────────────────────────────


def _label(situation: Situation, kind: ConditionKind) -> Optional[str]:
    """Categorical reading of the situation for equals/contains conditions."""
    if kind == ConditionKind.EMOTION:
        return situation.primary_emotion.value if situation.primary_emotion else None
    if kind == ConditionKind.TIME:
        return situation.time_of_day.value
    if kind == ConditionKind.ACTIVITY:
        return situation.activity
    if kind == ConditionKind.URGE:
        strongest = situation.strongest_urge
        return strongest.value if strongest else None
    return None


def _numeric(situation: Situation, condition: Condition) -> Optional[float]:
    """Numeric reading for greater/less/between; None when the kind has no level."""
    if condition.kind == ConditionKind.EMOTION:
        emotion = parse_enum(Emotion, condition.subject) if condition.subject else situation.primary_emotion
        return situation.emotion_level(emotion) if emotion is not None else None
    if condition.kind == ConditionKind.URGE:
        urge = parse_enum(Urge, condition.subject) if condition.subject else situation.strongest_urge
        return situation.urge_level(urge) if urge is not None else None
    return None


def condition_holds(condition: Condition, situation: Situation) -> bool:
    if isinstance(condition, EqualsCondition):
        if condition.kind == ConditionKind.VISITOR:
            return situation.visitor_present == condition.value
        return _label(situation, condition.kind) == condition.value
    if isinstance(condition, ContainsCondition):
        if condition.kind == ConditionKind.EMOTION:
            present = {situation.primary_emotion, situation.secondary_emotion}
            return any(e is not None and e.value in condition.values for e in present)
        return _label(situation, condition.kind) in condition.values

    level = _numeric(situation, condition)
    if level is None:
        return False
    if isinstance(condition, GreaterCondition):
        return level > condition.threshold
    if isinstance(condition, LessCondition):
        return level < condition.threshold
    if isinstance(condition, BetweenCondition):
        return condition.min <= level <= condition.max
    raise TypeError(f"Unhandled condition variant: {type(condition).__name__}")


def score_speech(pattern: SpeechPattern, situation: Situation) -> float:
    """Matched condition weight over total condition weight (0 with no weight)."""
    total = sum(c.weight for c in pattern.conditions)
    if total <= 0:
        return 0.0
    matched = sum(c.weight for c in pattern.conditions if condition_holds(c, situation))
    return matched / total


def match_speech(
    patterns: list[SpeechPattern], situation: Situation
) -> list[tuple[SpeechPattern, float]]:
    """Patterns scoring above 0.3, best first."""
    scored = [(p, score_speech(p, situation)) for p in patterns]
    matches = [(p, s) for p, s in scored if s > SPEECH_MATCH_THRESHOLD]
    return sorted(matches, key=lambda item: item[1], reverse=True)


# ─────────────────────────────────────────────────────────────────────────────
# Behavior
# ─────────────────────────────────────────────────────────────────────────────


def trigger_fires(trigger: Trigger, situation: Situation, rng: np.random.Generator) -> bool:
    if isinstance(trigger, UrgeThresholdTrigger):
        return situation.urge_level(trigger.urge) >= trigger.threshold
    if isinstance(trigger, TimeBasedTrigger):
        return situation.time_of_day in trigger.times
    if isinstance(trigger, EmotionalTrigger):
        return (
            situation.primary_emotion == trigger.emotion
            and situation.emotion_level(trigger.emotion) >= trigger.intensity
        )
    if isinstance(trigger, RandomTrigger):
        return bool(rng.random() < trigger.chance)
    raise TypeError(f"Unhandled trigger variant: {type(trigger).__name__}")


def score_behavior(
    pattern: BehaviorPattern, situation: Situation, rng: np.random.Generator
) -> float:
    """Fired trigger probability share scaled by ``0.5 + 0.5 * success_rate``.

    Patterns costing more energy than the situation has score 0.
    """
    if pattern.expected_outcome.energy_cost > situation.energy:
        return 0.0
    total = sum(t.probability for t in pattern.triggers)
    if total <= 0:
        return 0.0
    fired = sum(t.probability for t in pattern.triggers if trigger_fires(t, situation, rng))
    return (fired / total) * (0.5 + 0.5 * pattern.success_rate)


def match_behavior(
    patterns: list[BehaviorPattern], situation: Situation, rng: np.random.Generator
) -> list[tuple[BehaviorPattern, float]]:
    """Affordable patterns with at least one fired trigger, best first."""
    scored = [(p, score_behavior(p, situation, rng)) for p in patterns]
    matches = [(p, s) for p, s in scored if s > 0]
    return sorted(matches, key=lambda item: item[1], reverse=True)


# ─────────────────────────────────────────────────────────────────────────────
# Mood
# ─────────────────────────────────────────────────────────────────────────────


def match_mood(pattern: EmotionPattern, situation: Situation) -> bool:
    """True when every field the descriptor specifies agrees with ``situation``."""
    descriptor = pattern.situation
    if descriptor.times_of_day is not None and situation.time_of_day not in descriptor.times_of_day:
        return False
    if descriptor.visitor_present is not None and descriptor.visitor_present != situation.visitor_present:
        return False
    if descriptor.urge_ranges is not None:
        for urge, bounds in descriptor.urge_ranges.items():
            if not bounds.contains(situation.urge_level(urge)):
                return False
    if descriptor.recent_events is not None:
        if not set(descriptor.recent_events) & set(situation.recent_events):
            return False
    return True


def match_moods(patterns: list[EmotionPattern], situation: Situation) -> list[EmotionPattern]:
    return [p for p in patterns if match_mood(p, situation)]
