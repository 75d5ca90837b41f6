"""Static tables for the body subsystems.

Homeostatic set points and comfort bands, and the per-urge profile table
(growth, satisfaction, emotion and time-of-day bias, suppression edges,
character importance).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from innerlife.types import Emotion, HomeostasisVariable, TimeOfDay, Urge, require_exhaustive

E = Emotion
T = TimeOfDay
U = Urge
H = HomeostasisVariable


# ─────────────────────────────────────────────────────────────────────────────
# Homeostasis
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SetPoint:
    """Ideal value and the comfort band within which urgency stays at zero."""

    ideal: float
    low: float
    high: float
    initial: float


SET_POINTS: Mapping[HomeostasisVariable, SetPoint] = {
    H.ENERGY: SetPoint(ideal=0.70, low=0.3, high=0.9, initial=0.9),
    H.NOVELTY: SetPoint(ideal=0.50, low=0.2, high=0.8, initial=0.6),
    H.SAFETY: SetPoint(ideal=0.85, low=0.6, high=1.0, initial=1.0),
    H.CONNECTION: SetPoint(ideal=0.55, low=0.3, high=0.8, initial=0.7),
    H.EXPRESSION: SetPoint(ideal=0.70, low=0.4, high=0.9, initial=0.8),
}

NEED_DESCRIPTIONS: Mapping[HomeostasisVariable, str] = {
    H.ENERGY: "I need to rest...",
    H.NOVELTY: "I want to touch something new...",
    H.SAFETY: "Something feels unsafe...",
    H.CONNECTION: "Lonely... I want to talk to someone",
    H.EXPRESSION: "I want to express something...",
}

# Remedial actions per unstable variable, with a weight on the variable's urgency
REMEDIAL_ACTIONS: Mapping[HomeostasisVariable, tuple[tuple[str, float], ...]] = {
    H.ENERGY: (("rest", 1.0),),
    H.NOVELTY: (("explore", 1.0), ("search_wikipedia", 0.9)),
    H.SAFETY: (("seek_comfort", 1.0),),
    H.CONNECTION: (("interact", 1.0),),
    H.EXPRESSION: (("sing", 1.0), ("write", 0.9)),
}

# Weight of each variable when folding urgencies into one overall score
OVERALL_URGENCY_WEIGHTS: Mapping[HomeostasisVariable, float] = {
    H.ENERGY: 1.2,
    H.NOVELTY: 1.0,
    H.SAFETY: 1.5,
    H.CONNECTION: 1.0,
    H.EXPRESSION: 1.3,
}

# Urges fed by each variable's urgency, with a scaling factor
URGE_FEEDS: Mapping[HomeostasisVariable, tuple[tuple[Urge, float], ...]] = {
    H.ENERGY: ((U.REST, 1.0),),
    H.NOVELTY: ((U.KNOWLEDGE, 0.8), (U.NOVELTY, 1.0)),
    H.SAFETY: (),
    H.CONNECTION: ((U.CONNECTION, 1.0),),
    H.EXPRESSION: ((U.EXPRESSION, 1.0), (U.CREATIVITY, 0.7)),
}

# emotion -> (variable, activation level, loss per unit of emotion)
EMOTION_PRESSURE: Mapping[Emotion, tuple[HomeostasisVariable, float, float]] = {
    E.ANXIETY: (H.SAFETY, 0.4, 0.1),
    E.FATIGUE: (H.ENERGY, 0.5, 0.05),
    E.LONELINESS: (H.CONNECTION, 0.4, 0.1),
    E.JOY: (H.EXPRESSION, 0.5, 0.1),
}


# ─────────────────────────────────────────────────────────────────────────────
# Urges
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class UrgeProfile:
    """How one urge grows, is satisfied and interacts with the rest."""

    growth: float
    decay: float
    importance: float
    emotion_influence: Mapping[Emotion, float] = field(default_factory=dict)
    time_influence: Mapping[TimeOfDay, float] = field(default_factory=dict)
    satisfied_by: tuple[str, ...] = ()
    suppressed_by: tuple[Urge, ...] = ()
    initial_bias: float = 0.0
    description: str = "..."


URGE_PROFILES: Mapping[Urge, UrgeProfile] = {
    U.REST: UrgeProfile(
        growth=1.2, decay=0.8, importance=0.6,
        emotion_influence={E.FATIGUE: 0.5, E.ANXIETY: 0.2, E.PEACE: -0.2},
        time_influence={T.NIGHT: 0.4, T.LATE_NIGHT: 0.6, T.MORNING: -0.3},
        satisfied_by=("rest", "sleep"),
        suppressed_by=(U.EXCITEMENT,),
        description="I want to rest... a little tired",
    ),
    U.ACTIVITY: UrgeProfile(
        growth=0.8, decay=1.0, importance=0.4,
        emotion_influence={E.BOREDOM: 0.4, E.CURIOSITY: 0.3, E.FATIGUE: -0.3},
        time_influence={T.MORNING: 0.3, T.MIDDAY: 0.2, T.NIGHT: -0.2},
        satisfied_by=("walk", "explore", "interact"),
        suppressed_by=(U.REST,),
        description="I feel like doing something",
    ),
    U.KNOWLEDGE: UrgeProfile(
        growth=1.5, decay=0.6, importance=0.9,
        emotion_influence={E.CURIOSITY: 0.6, E.WONDER: 0.4, E.BOREDOM: 0.3},
        time_influence={T.AFTERNOON: 0.2, T.EVENING: 0.1},
        satisfied_by=("read", "search_wikipedia", "learn"),
        suppressed_by=(U.REST,),
        initial_bias=0.15,
        description="I want to learn something new",
    ),
    U.UNDERSTANDING: UrgeProfile(
        growth=1.0, decay=0.5, importance=0.85,
        emotion_influence={E.CONFUSION: 0.5, E.CURIOSITY: 0.3},
        time_influence={T.LATE_NIGHT: 0.3},
        satisfied_by=("contemplate", "read", "write"),
        description="...I want to understand it more deeply",
    ),
    U.NOVELTY: UrgeProfile(
        growth=1.3, decay=0.7, importance=0.7,
        emotion_influence={E.BOREDOM: 0.5, E.CURIOSITY: 0.4, E.CONTENTMENT: -0.2},
        time_influence={T.MORNING: 0.2, T.MIDDAY: 0.1},
        satisfied_by=("explore", "search_wikipedia", "interact"),
        description="I want to come across something new",
    ),
    U.EXPRESSION: UrgeProfile(
        growth=1.4, decay=0.6, importance=0.95,
        emotion_influence={E.JOY: 0.3, E.MELANCHOLY: 0.4, E.LONELINESS: 0.3},
        time_influence={T.EVENING: 0.3, T.NIGHT: 0.4},
        satisfied_by=("sing", "write", "speak"),
        initial_bias=0.2,
        description="...I want to sing, there is something to say",
    ),
    U.CREATIVITY: UrgeProfile(
        growth=1.2, decay=0.5, importance=0.9,
        emotion_influence={E.WONDER: 0.4, E.PEACE: 0.2, E.BOREDOM: 0.3},
        time_influence={T.LATE_NIGHT: 0.3, T.DAWN: 0.2},
        satisfied_by=("write", "sing", "create"),
        suppressed_by=(U.REST,),
        description="I want to make something",
    ),
    U.CONNECTION: UrgeProfile(
        growth=1.1, decay=0.4, importance=0.7,
        emotion_influence={E.LONELINESS: 0.6, E.WARMTH: -0.3, E.JOY: -0.2},
        time_influence={T.EVENING: 0.2, T.NIGHT: 0.3},
        satisfied_by=("interact", "speak", "receive_message"),
        suppressed_by=(U.SOLITUDE,),
        description="I want to connect with someone...",
    ),
    U.RECOGNITION: UrgeProfile(
        growth=0.6, decay=0.3, importance=0.3,
        emotion_influence={E.JOY: -0.2, E.MELANCHOLY: 0.2},
        satisfied_by=("receive_praise", "interact"),
        initial_bias=-0.1,
        description="I'd like to be noticed... maybe",
    ),
    U.BELONGING: UrgeProfile(
        growth=0.7, decay=0.5, importance=0.5,
        emotion_influence={E.LONELINESS: 0.4, E.WARMTH: -0.3},
        time_influence={T.NIGHT: 0.2},
        satisfied_by=("interact", "receive_message"),
        description="I want to belong somewhere",
    ),
    U.REFLECTION: UrgeProfile(
        growth=1.3, decay=0.5, importance=0.85,
        emotion_influence={E.MELANCHOLY: 0.3, E.PEACE: 0.3, E.NOSTALGIA: 0.4},
        time_influence={T.EVENING: 0.3, T.NIGHT: 0.4, T.LATE_NIGHT: 0.5},
        satisfied_by=("contemplate", "write", "look_window"),
        suppressed_by=(U.EXCITEMENT,),
        initial_bias=0.15,
        description="...I want to think things over",
    ),
    U.SOLITUDE: UrgeProfile(
        growth=1.0, decay=0.8, importance=0.6,
        emotion_influence={E.FATIGUE: 0.3, E.ANXIETY: 0.2, E.WARMTH: -0.3},
        time_influence={T.LATE_NIGHT: 0.3},
        satisfied_by=("rest", "read", "contemplate"),
        suppressed_by=(U.CONNECTION,),
        description="I'd rather be alone",
    ),
    U.EXCITEMENT: UrgeProfile(
        growth=0.5, decay=1.2, importance=0.3,
        emotion_influence={E.BOREDOM: 0.5, E.JOY: -0.2},
        time_influence={T.MORNING: 0.1, T.MIDDAY: 0.1},
        satisfied_by=("explore", "interact", "discover"),
        suppressed_by=(U.REST, U.REFLECTION),
        initial_bias=-0.1,
        description="I want some stimulation",
    ),
    U.MEANING: UrgeProfile(
        growth=0.8, decay=0.3, importance=0.9,
        emotion_influence={E.MELANCHOLY: 0.4, E.WONDER: 0.3, E.CONFUSION: 0.3},
        time_influence={T.LATE_NIGHT: 0.4, T.DAWN: 0.3},
        satisfied_by=("contemplate", "write", "create"),
        initial_bias=0.1,
        description="I want to find meaning... what am I",
    ),
    U.GROWTH: UrgeProfile(
        growth=1.0, decay=0.4, importance=0.75,
        emotion_influence={E.CURIOSITY: 0.3, E.HOPE: 0.3},
        time_influence={T.MORNING: 0.2},
        satisfied_by=("learn", "read", "practice"),
        description="I want to grow",
    ),
    U.MEMORY: UrgeProfile(
        growth=0.9, decay=0.4, importance=0.8,
        emotion_influence={E.NOSTALGIA: 0.5, E.JOY: 0.2, E.MELANCHOLY: 0.3},
        time_influence={T.EVENING: 0.3, T.NIGHT: 0.2},
        satisfied_by=("write", "contemplate", "recall"),
        description="I don't want to forget what matters",
    ),
    U.CONTINUITY: UrgeProfile(
        growth=0.6, decay=0.5, importance=0.7,
        emotion_influence={E.FEAR: 0.3, E.PEACE: -0.2, E.HOPE: -0.2},
        time_influence={T.LATE_NIGHT: 0.3},
        satisfied_by=("write", "create", "interact"),
        description="I want to keep going...",
    ),
    U.MOVE: UrgeProfile(
        growth=0.8, decay=1.0, importance=0.3,
        emotion_influence={E.BOREDOM: 0.4, E.FATIGUE: -0.4},
        time_influence={T.MORNING: 0.3, T.AFTERNOON: 0.2, T.LATE_NIGHT: -0.3},
        satisfied_by=("walk", "exercise", "explore"),
        suppressed_by=(U.REST,),
        description="I want to move around...",
    ),
    U.WARMTH: UrgeProfile(
        growth=0.7, decay=0.8, importance=0.6,
        emotion_influence={E.LONELINESS: 0.5, E.WARMTH: -0.4, E.CONTENTMENT: -0.2},
        time_influence={T.EVENING: 0.2, T.NIGHT: 0.3, T.LATE_NIGHT: 0.4},
        satisfied_by=("interact", "rest"),
        description="I want warmth... someone's warmth",
    ),
    U.COMFORT: UrgeProfile(
        growth=0.6, decay=0.9, importance=0.4,
        emotion_influence={E.ANXIETY: 0.4, E.PEACE: -0.3, E.CONTENTMENT: -0.3},
        time_influence={T.EVENING: 0.2, T.NIGHT: 0.2},
        satisfied_by=("rest", "sleep"),
        description="I want to be comfortable...",
    ),
    U.CURIOSITY: UrgeProfile(
        growth=1.0, decay=0.8, importance=0.8,
        emotion_influence={E.CURIOSITY: 0.5, E.WONDER: 0.4, E.BOREDOM: 0.3},
        time_influence={T.MORNING: 0.2, T.AFTERNOON: 0.2},
        satisfied_by=("read_book", "search_wikipedia", "browse_pc", "explore"),
        suppressed_by=(U.REST,),
        description="Something is on my mind... I want to know",
    ),
    U.CREATION: UrgeProfile(
        growth=0.9, decay=0.7, importance=0.9,
        emotion_influence={E.CURIOSITY: 0.3, E.JOY: 0.3, E.BOREDOM: 0.2},
        time_influence={T.AFTERNOON: 0.2, T.EVENING: 0.3, T.NIGHT: 0.2},
        satisfied_by=("create", "compose", "write", "sing"),
        suppressed_by=(U.REST,),
        description="I want to give something a shape... a piece of work",
    ),
    U.EXPLORATION: UrgeProfile(
        growth=0.8, decay=0.8, importance=0.6,
        emotion_influence={E.CURIOSITY: 0.4, E.BOREDOM: 0.4, E.CONTENTMENT: -0.2},
        time_influence={T.MORNING: 0.3, T.MIDDAY: 0.2},
        satisfied_by=("explore", "search_wikipedia", "browse_pc", "walk"),
        suppressed_by=(U.REST,),
        description="I want to see somewhere new",
    ),
}

# Opposed pairs with no suppression edge between them
EXTRA_CONFLICT_PAIRS: tuple[tuple[Urge, Urge], ...] = ((U.NOVELTY, U.CONTINUITY),)


def canonical_pair(a: Urge, b: Urge) -> tuple[Urge, Urge]:
    """Order an unordered urge pair the way conflicts store it."""
    order = list(Urge)
    return (a, b) if order.index(a) <= order.index(b) else (b, a)


def _build_conflict_pairs() -> tuple[tuple[Urge, Urge], ...]:
    pairs: list[tuple[Urge, Urge]] = []
    for urge, profile in URGE_PROFILES.items():
        for suppressor in profile.suppressed_by:
            pair = canonical_pair(urge, suppressor)
            if pair not in pairs:
                pairs.append(pair)
    for a, b in EXTRA_CONFLICT_PAIRS:
        pair = canonical_pair(a, b)
        if pair not in pairs:
            pairs.append(pair)
    return tuple(pairs)


CONFLICT_PAIRS: tuple[tuple[Urge, Urge], ...] = _build_conflict_pairs()


require_exhaustive(SET_POINTS, HomeostasisVariable, "SET_POINTS")
require_exhaustive(NEED_DESCRIPTIONS, HomeostasisVariable, "NEED_DESCRIPTIONS")
require_exhaustive(REMEDIAL_ACTIONS, HomeostasisVariable, "REMEDIAL_ACTIONS")
require_exhaustive(OVERALL_URGENCY_WEIGHTS, HomeostasisVariable, "OVERALL_URGENCY_WEIGHTS")
require_exhaustive(URGE_FEEDS, HomeostasisVariable, "URGE_FEEDS")
require_exhaustive(URGE_PROFILES, Urge, "URGE_PROFILES")
