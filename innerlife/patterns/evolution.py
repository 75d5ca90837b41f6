"""Population evolution for the pattern arenas.

One pass (:func:`evolve`) runs these phases in order:

1. Behavior fitness: ``0.4 * success_rate + 0.4 * satisfaction + 0.2 * recency``.
   Low-fitness patterns may get a radical mutation, middling ones a minor one.
2. Merge: similar non-initial behavior pairs fold into the stronger one.
3. Split: complex non-initial behaviors divide into front and back halves.
4. Speech adaptation: well-used templates gain a mood-colored example.
5. Mood sensitivity: frequently reinforced responses dull, rare ones sharpen.
6. Cull: stale non-initial behaviors with a poor record are removed.

Capacity is enforced separately by :func:`evict_overflow`.

Usage:
    result = evolve(speech, behavior, emotion, rng)
    for removed in evict_overflow(behavior, prune_threshold=3):
        ...
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import numpy as np

from innerlife.patterns.arena import PatternArena
from innerlife.patterns.mutation import (
    adapt_speech_to_emotion,
    mutate_behavior,
    radical_behavior_mutation,
    select_mutation_type,
    shift_intensity,
)
from innerlife.patterns.schemas import (
    BehaviorPattern,
    CreatedBy,
    EmotionPattern,
    MutationRecord,
    MutationType,
    PatternKind,
    SpeechPattern,
)
from innerlife.types import Emotion, utc_now
from innerlife.utils.numeric import jaccard

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0

MIN_USES_FOR_FITNESS = 3
RECENCY_HORIZON_DAYS = 30.0
RADICAL_FITNESS = 0.3
STABLE_FITNESS = 0.5
RADICAL_PROBABILITY = 0.3
MINOR_PROBABILITY = 0.5

MERGE_SIMILARITY = 0.6
MAX_MERGE_PAIRS = 3
MERGE_PROBABILITY_SCALE = 0.3

SPLIT_MIN_TRIGGERS = 3
SPLIT_MIN_STEPS = 4
SPLIT_PROBABILITY = 0.1

ADAPT_MIN_USES = 10
ADAPT_PROBABILITY = 0.15

SENSITIVITY_MIN_REINFORCEMENT = 5
SENSITIVITY_PROBABILITY = 0.2
DESENSITIZE_RATE = 10.0
SENSITIZE_RATE = 0.5
DESENSITIZE_STEP = -0.05
SENSITIZE_STEP = 0.03

CULL_AGE_DAYS = 30.0
CULL_SUCCESS_RATE = 0.3
CULL_MIN_USES = 5

RECENT_USE_DAYS = 7.0
RECENT_USE_BONUS = 10


# ─────────────────────────────────────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class PatternChange:
    pattern_id: str
    kind: PatternKind
    description: str


@dataclass
class MergeEvent:
    source_ids: tuple[str, str]
    result_id: str
    removed_id: str
    description: str = "similar patterns merged"


@dataclass
class SplitEvent:
    source_id: str
    result_ids: tuple[str, str]
    description: str


@dataclass
class EvolutionResult:
    mutations: list[PatternChange] = field(default_factory=list)
    merges: list[MergeEvent] = field(default_factory=list)
    splits: list[SplitEvent] = field(default_factory=list)
    eliminations: list[PatternChange] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.mutations or self.merges or self.splits or self.eliminations)

    def summary(self) -> str:
        return (
            f"{len(self.mutations)} mutations, {len(self.merges)} merges, "
            f"{len(self.splits)} splits, {len(self.eliminations)} eliminations"
        )


@dataclass(frozen=True)
class Fitness:
    pattern_id: str
    value: float
    diagnosis: str


# ─────────────────────────────────────────────────────────────────────────────
# Scoring helpers
# ─────────────────────────────────────────────────────────────────────────────


def days_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def recency_score(last: datetime, now: datetime) -> float:
    """1.0 for a use right now, falling linearly to 0 at 30 days."""
    return max(0.0, 1.0 - days_between(last, now) / RECENCY_HORIZON_DAYS)


def behavior_fitness(pattern: BehaviorPattern, now: datetime) -> Optional[Fitness]:
    """Fitness of a behavior pattern, or None below three recorded uses."""
    if pattern.total_uses < MIN_USES_FOR_FITNESS:
        return None
    success_rate = pattern.success_rate
    satisfaction = pattern.average_satisfaction
    recency = recency_score(pattern.last_used or pattern.created_at, now)
    value = 0.4 * success_rate + 0.4 * satisfaction + 0.2 * recency

    if success_rate < 0.3:
        diagnosis = "low success rate"
    elif satisfaction < 0.3:
        diagnosis = "low satisfaction"
    elif recency < 0.2:
        diagnosis = "unused for a long time"
    else:
        diagnosis = "healthy"
    return Fitness(pattern.id, value, diagnosis)


def behavior_similarity(a: BehaviorPattern, b: BehaviorPattern) -> float:
    """Half trigger-type Jaccard, half action Jaccard."""
    triggers = jaccard({t.type for t in a.triggers}, {t.type for t in b.triggers})
    actions = jaccard({s.action for s in a.action_sequence}, {s.action for s in b.action_sequence})
    return 0.5 * triggers + 0.5 * actions


def find_merge_candidates(patterns: list[BehaviorPattern]) -> list[tuple[str, str, float]]:
    """Up to three non-initial pairs with similarity above 0.6, in arena order."""
    eligible = [p for p in patterns if p.created_by != CreatedBy.INITIAL]
    candidates = []
    for i, a in enumerate(eligible):
        for b in eligible[i + 1:]:
            similarity = behavior_similarity(a, b)
            if similarity > MERGE_SIMILARITY:
                candidates.append((a.id, b.id, similarity))
                if len(candidates) == MAX_MERGE_PAIRS:
                    return candidates
    return candidates


def eviction_score(pattern, now: datetime) -> int:
    """Use count proxy plus a bonus when used in the last week; lower goes first."""
    if isinstance(pattern, SpeechPattern):
        uses, last = pattern.use_count, pattern.last_used
    elif isinstance(pattern, BehaviorPattern):
        uses, last = pattern.success_count, pattern.last_used
    else:
        uses, last = pattern.reinforcement_count, pattern.last_triggered
    last = last or pattern.created_at
    bonus = RECENT_USE_BONUS if days_between(last, now) < RECENT_USE_DAYS else 0
    return uses + bonus


# ─────────────────────────────────────────────────────────────────────────────
# Structural operations
# ─────────────────────────────────────────────────────────────────────────────


def merge_behaviors(a: BehaviorPattern, b: BehaviorPattern) -> tuple[BehaviorPattern, str]:
    """Fold two patterns into the one with the better success rate.

    The stronger pattern keeps its id and structure; counters are averaged
    and failures cleared. Ties keep ``a``.

    Returns:
        The merged record and the id of the pattern that should be removed
    """
    base, other = (a, b) if a.success_rate >= b.success_rate else (b, a)
    record = MutationRecord(
        type=MutationType.COMBINATION,
        original=other.id,
        new=base.id,
        reason="merged with a similar pattern",
    )
    description = base.description
    if not description.endswith(" (merged)"):
        description = f"{description} (merged)"
    merged = base.model_copy(update={
        "description": description,
        "success_count": (base.success_count + other.success_count) // 2,
        "failure_count": 0,
        "consecutive_failures": 0,
        "average_satisfaction": (base.average_satisfaction + other.average_satisfaction) / 2,
        "created_by": CreatedBy.SELF_CREATED,
        "can_mutate": True,
        "mutation_history": [*base.mutation_history, record],
    })
    return merged, other.id


def split_behavior(pattern: BehaviorPattern) -> Optional[tuple[BehaviorPattern, BehaviorPattern]]:
    """Front and back halves of triggers and steps as two fresh patterns."""
    if len(pattern.triggers) < 2 or len(pattern.action_sequence) < 3:
        return None
    mid_triggers = math.ceil(len(pattern.triggers) / 2)
    mid_steps = math.ceil(len(pattern.action_sequence) / 2)

    def half(suffix: str, triggers, steps) -> BehaviorPattern:
        return BehaviorPattern(
            description=f"{pattern.description} ({suffix})",
            triggers=list(triggers),
            action_sequence=list(steps),
            expected_outcome=pattern.expected_outcome,
            average_satisfaction=pattern.average_satisfaction,
            created_by=CreatedBy.SELF_CREATED,
        )

    front = half("front", pattern.triggers[:mid_triggers], pattern.action_sequence[:mid_steps])
    back = half("back", pattern.triggers[mid_triggers:], pattern.action_sequence[mid_steps:])
    return front, back


def adjust_sensitivity(
    pattern: EmotionPattern, now: datetime, rng: np.random.Generator
) -> Optional[EmotionPattern]:
    """Dull or sharpen a mood response by how often it has been reinforced.

    The rate is reinforcements per day since the last trigger, with the
    window floored at one day.
    """
    if rng.random() >= SENSITIVITY_PROBABILITY:
        return None
    last = pattern.last_triggered or now
    days = max(1.0, days_between(last, now))
    rate = pattern.reinforcement_count / days

    if rate > DESENSITIZE_RATE:
        updated, _ = shift_intensity(pattern, DESENSITIZE_STEP, "desensitized by frequent triggering")
        return updated
    if rate < SENSITIZE_RATE and pattern.reinforcement_count > 0:
        updated, _ = shift_intensity(pattern, SENSITIZE_STEP, "sensitized by rare triggering")
        return updated
    return None


def should_cull(pattern: BehaviorPattern, now: datetime) -> bool:
    if pattern.created_by == CreatedBy.INITIAL:
        return False
    if pattern.total_uses < CULL_MIN_USES:
        return False
    last = pattern.last_used or pattern.created_at
    return days_between(last, now) >= CULL_AGE_DAYS and pattern.success_rate < CULL_SUCCESS_RATE


def evict_overflow(arena: PatternArena, prune_threshold: int, now: Optional[datetime] = None) -> list[str]:
    """Trim an arena to ``max_size`` and return the evicted ids.

    Entries scoring below ``prune_threshold + 10`` go first, lowest score
    first. If the arena is still over capacity the remaining non-initial
    entries follow in score order. Initial patterns are never evicted.
    """
    excess = arena.overflow()
    if excess == 0:
        return []
    now = now or utc_now()
    scored = sorted(
        ((eviction_score(p, now), p.id) for p in arena if p.created_by != CreatedBy.INITIAL),
        key=lambda item: item[0],
    )
    stale = [pid for score, pid in scored if score < prune_threshold + RECENT_USE_BONUS]
    rest = [pid for score, pid in scored if score >= prune_threshold + RECENT_USE_BONUS]

    evicted = []
    for pattern_id in [*stale, *rest][:excess]:
        arena.remove(pattern_id)
        evicted.append(pattern_id)
    if arena.overflow():
        logger.warning(
            f"Arena holds {len(arena)} patterns over its limit of {arena.max_size}; "
            f"only initial patterns remain"
        )
    return evicted


# ─────────────────────────────────────────────────────────────────────────────
# Evolution pass
# ─────────────────────────────────────────────────────────────────────────────


def _evolve_fitness(
    behavior: PatternArena[BehaviorPattern], rng: np.random.Generator, now: datetime,
    result: EvolutionResult,
) -> None:
    for pattern in behavior:
        if not pattern.can_mutate:
            continue
        fitness = behavior_fitness(pattern, now)
        if fitness is None:
            continue

        if fitness.value < RADICAL_FITNESS:
            if rng.random() >= RADICAL_PROBABILITY:
                continue
            mutated = radical_behavior_mutation(pattern, rng)
            note = f"changed sharply: {fitness.diagnosis}"
        elif fitness.value < STABLE_FITNESS:
            if rng.random() >= MINOR_PROBABILITY:
                continue
            kind = select_mutation_type(rng)
            if kind == MutationType.COMBINATION:
                kind = MutationType.MINOR_VARIATION
            mutated = mutate_behavior(pattern, kind, rng)
            note = "fine-tuned"
        else:
            continue

        if mutated is not None:
            behavior.replace(mutated[0])
            result.mutations.append(
                PatternChange(pattern.id, PatternKind.BEHAVIOR, f"'{pattern.description[:20]}' {note}")
            )


def _evolve_merges(
    behavior: PatternArena[BehaviorPattern], rng: np.random.Generator, result: EvolutionResult
) -> None:
    for a_id, b_id, similarity in find_merge_candidates(list(behavior)):
        a, b = behavior.get(a_id), behavior.get(b_id)
        if a is None or b is None:
            continue
        if rng.random() >= similarity * MERGE_PROBABILITY_SCALE:
            continue
        merged, removed_id = merge_behaviors(a, b)
        behavior.replace(merged)
        behavior.remove(removed_id)
        result.merges.append(MergeEvent((a_id, b_id), merged.id, removed_id))
        logger.info(f"Merged behavior pattern {removed_id} into {merged.id} (similarity {similarity:.2f})")


def _evolve_splits(
    behavior: PatternArena[BehaviorPattern], rng: np.random.Generator, result: EvolutionResult
) -> None:
    for pattern in behavior:
        if pattern.created_by == CreatedBy.INITIAL:
            continue
        if len(pattern.triggers) < SPLIT_MIN_TRIGGERS or len(pattern.action_sequence) < SPLIT_MIN_STEPS:
            continue
        if rng.random() >= SPLIT_PROBABILITY:
            continue
        halves = split_behavior(pattern)
        if halves is None:
            continue
        behavior.remove(pattern.id)
        for half in halves:
            behavior.add(half)
        result.splits.append(SplitEvent(
            pattern.id,
            (halves[0].id, halves[1].id),
            f"'{pattern.description[:20]}' split into two specialized patterns",
        ))
        logger.info(f"Split behavior pattern {pattern.id} into {halves[0].id} and {halves[1].id}")


def _evolve_speech(
    speech: PatternArena[SpeechPattern], rng: np.random.Generator,
    emotion: Optional[Emotion], result: EvolutionResult,
) -> None:
    for pattern in speech:
        if not pattern.can_mutate or pattern.use_count <= ADAPT_MIN_USES:
            continue
        if rng.random() >= ADAPT_PROBABILITY:
            continue
        adapted = adapt_speech_to_emotion(pattern, rng, emotion)
        if adapted is not None:
            speech.replace(adapted[0])
            result.mutations.append(PatternChange(
                pattern.id, PatternKind.SPEECH, f"'{pattern.template[:20]}' adapted to mood"
            ))


def _evolve_sensitivity(
    emotions: PatternArena[EmotionPattern], rng: np.random.Generator, now: datetime,
    result: EvolutionResult,
) -> None:
    for pattern in emotions:
        if not pattern.can_modify or pattern.reinforcement_count <= SENSITIVITY_MIN_REINFORCEMENT:
            continue
        adjusted = adjust_sensitivity(pattern, now, rng)
        if adjusted is not None:
            emotions.replace(adjusted)
            result.mutations.append(PatternChange(
                pattern.id, PatternKind.EMOTION,
                f"{pattern.response.primary.value} response sensitivity adjusted",
            ))


def _cull(behavior: PatternArena[BehaviorPattern], now: datetime, result: EvolutionResult) -> None:
    for pattern in behavior:
        if should_cull(pattern, now):
            behavior.remove(pattern.id)
            result.eliminations.append(PatternChange(
                pattern.id, PatternKind.BEHAVIOR,
                f"'{pattern.description[:20]}' culled (success rate {pattern.success_rate:.0%})",
            ))
            logger.info(f"Culled behavior pattern {pattern.id}")


def evolve(
    speech: PatternArena[SpeechPattern],
    behavior: PatternArena[BehaviorPattern],
    emotions: PatternArena[EmotionPattern],
    rng: np.random.Generator,
    now: Optional[datetime] = None,
    emotion: Optional[Emotion] = None,
) -> EvolutionResult:
    """Run one evolution pass over the three arenas in place.

    Args:
        speech: Speech arena
        behavior: Behavior arena
        emotions: Mood-response arena
        rng: Source of every probabilistic decision
        now: Reference time for recency and culling (defaults to now)
        emotion: Current primary emotion, used to color speech adaptation

    Returns:
        What changed during the pass
    """
    now = now or utc_now()
    result = EvolutionResult()
    _evolve_fitness(behavior, rng, now, result)
    _evolve_merges(behavior, rng, result)
    _evolve_splits(behavior, rng, result)
    _evolve_speech(speech, rng, emotion, result)
    _evolve_sensitivity(emotions, rng, now, result)
    _cull(behavior, now, result)
    return result
