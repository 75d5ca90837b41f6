"""Mutation operators.

Each operator takes a record and the RNG and returns ``(updated, record)``
for a copy of the pattern with the change and its history entry applied, or
None when the operator does not apply to that pattern. The input record is
never modified.
"""

from __future__ import annotations

import re
from typing import Optional

import numpy as np

from innerlife.patterns.schemas import (
    ActionStep,
    BehaviorPattern,
    EmotionPattern,
    ModificationRecord,
    MutationRecord,
    MutationType,
    SpeechPattern,
)
from innerlife.types import Emotion
from innerlife.utils.numeric import clamp

MAX_EXAMPLES = 10
MAX_STEPS = 8
MIN_INTENSITY = 0.1

RADICAL_ACTIONS = ("wander", "rest", "think", "look_at", "examine", "write", "sing", "daydream")
EXAMPLE_SUFFIXES = (" maybe", " I think", " I wonder", "...")
ADAPTIVE_SUFFIXES = ("... I think", "... maybe", "... you know", "... sort of", "... like that")
EMOTION_SUFFIXES = {
    Emotion.JOY: " ♪",
    Emotion.MELANCHOLY: "... I suppose",
    Emotion.LONELINESS: "... all alone",
    Emotion.CURIOSITY: "... I wonder?",
    Emotion.PEACE: "... that's nice",
}

_TRAILING = re.compile(r"(\s+(maybe|I think|I wonder))?[.…?!]*$")

SpeechMutation = Optional[tuple[SpeechPattern, MutationRecord]]
BehaviorMutation = Optional[tuple[BehaviorPattern, MutationRecord]]


def select_mutation_type(rng: np.random.Generator) -> MutationType:
    roll = rng.random()
    if roll < 0.4:
        return MutationType.MINOR_VARIATION
    if roll < 0.6:
        return MutationType.SIMPLIFICATION
    if roll < 0.9:
        return MutationType.EXPANSION
    return MutationType.COMBINATION


def _choice(rng: np.random.Generator, options):
    return options[int(rng.integers(len(options)))]


def _with_speech_record(pattern: SpeechPattern, record: MutationRecord, **update) -> SpeechMutation:
    update["mutation_history"] = [*pattern.mutation_history, record]
    return pattern.model_copy(update=update), record


def _with_behavior_record(
    pattern: BehaviorPattern, record: MutationRecord, **update
) -> BehaviorMutation:
    update["mutation_history"] = [*pattern.mutation_history, record]
    return pattern.model_copy(update=update), record


# ─────────────────────────────────────────────────────────────────────────────
# Speech
# ─────────────────────────────────────────────────────────────────────────────


def mutate_speech(
    pattern: SpeechPattern, kind: MutationType, rng: np.random.Generator
) -> SpeechMutation:
    if kind == MutationType.MINOR_VARIATION:
        return vary_ellipsis(pattern, rng)
    if kind == MutationType.SIMPLIFICATION:
        return drop_weakest_condition(pattern)
    if kind == MutationType.EXPANSION:
        return add_example_variation(pattern, rng)
    return None


def vary_ellipsis(pattern: SpeechPattern, rng: np.random.Generator) -> SpeechMutation:
    """Shorten or stretch the first ellipsis in the template."""
    if "..." not in pattern.template:
        return None
    replacement = ".." if rng.random() > 0.5 else "....."
    modified = pattern.template.replace("...", replacement, 1)
    record = MutationRecord(
        type=MutationType.MINOR_VARIATION,
        original=pattern.template,
        new=modified,
        reason="template punctuation tweak",
    )
    return _with_speech_record(pattern, record, template=modified)


def drop_weakest_condition(pattern: SpeechPattern) -> SpeechMutation:
    if len(pattern.conditions) <= 1:
        return None
    weakest = min(range(len(pattern.conditions)), key=lambda i: pattern.conditions[i].weight)
    removed = pattern.conditions[weakest]
    record = MutationRecord(
        type=MutationType.SIMPLIFICATION,
        original=removed.model_dump_json(),
        reason="condition dropped",
    )
    remaining = [c for i, c in enumerate(pattern.conditions) if i != weakest]
    return _with_speech_record(pattern, record, conditions=remaining)


def add_example_variation(pattern: SpeechPattern, rng: np.random.Generator) -> SpeechMutation:
    """Re-end an existing example with a different trailing phrase."""
    if not pattern.examples or len(pattern.examples) >= MAX_EXAMPLES:
        return None
    base = _choice(rng, pattern.examples)
    modified = _TRAILING.sub("", base) + _choice(rng, EXAMPLE_SUFFIXES)
    if modified in pattern.examples:
        return None
    record = MutationRecord(type=MutationType.EXPANSION, new=modified, reason="example added")
    return _with_speech_record(pattern, record, examples=[*pattern.examples, modified])


def adapt_speech_to_emotion(
    pattern: SpeechPattern, rng: np.random.Generator, emotion: Optional[Emotion] = None
) -> SpeechMutation:
    """Add an example colored by the current mood; only for templates with placeholders."""
    if "{{" not in pattern.template or len(pattern.examples) >= MAX_EXAMPLES:
        return None
    candidates = list(ADAPTIVE_SUFFIXES)
    if emotion in EMOTION_SUFFIXES:
        candidates.append(EMOTION_SUFFIXES[emotion])
    suffix = _choice(rng, candidates)
    if any(example.endswith(suffix) for example in pattern.examples):
        return None
    base = pattern.examples[0] if pattern.examples else pattern.template
    modified = base.rstrip(".…") + suffix
    record = MutationRecord(
        type=MutationType.EXPANSION,
        new=modified,
        reason=f"adapted to {emotion.value}" if emotion else "adapted to mood",
    )
    return _with_speech_record(pattern, record, examples=[*pattern.examples, modified])


# ─────────────────────────────────────────────────────────────────────────────
# Behavior
# ─────────────────────────────────────────────────────────────────────────────


def mutate_behavior(
    pattern: BehaviorPattern, kind: MutationType, rng: np.random.Generator
) -> BehaviorMutation:
    if kind == MutationType.MINOR_VARIATION:
        return swap_adjacent_steps(pattern, rng)
    if kind == MutationType.SIMPLIFICATION:
        return drop_step(pattern, rng)
    if kind == MutationType.EXPANSION:
        return append_reflection(pattern)
    return radical_behavior_mutation(pattern, rng)


def swap_adjacent_steps(pattern: BehaviorPattern, rng: np.random.Generator) -> BehaviorMutation:
    steps = list(pattern.action_sequence)
    if len(steps) < 2:
        return None
    i = int(rng.integers(len(steps) - 1))
    steps[i], steps[i + 1] = steps[i + 1], steps[i]
    record = MutationRecord(
        type=MutationType.MINOR_VARIATION,
        original=f"step {i} <-> step {i + 1}",
        new=f"step {i + 1} <-> step {i}",
        reason="step order changed",
    )
    return _with_behavior_record(pattern, record, action_sequence=steps)


def drop_step(pattern: BehaviorPattern, rng: np.random.Generator) -> BehaviorMutation:
    """Drop a random interruptible step, keeping at least two."""
    steps = list(pattern.action_sequence)
    if len(steps) <= 2:
        return None
    i = int(rng.integers(len(steps)))
    if not steps[i].interruptible:
        return None
    removed = steps.pop(i)
    record = MutationRecord(
        type=MutationType.SIMPLIFICATION, original=removed.action, reason="step removed"
    )
    return _with_behavior_record(pattern, record, action_sequence=steps)


def append_reflection(pattern: BehaviorPattern) -> BehaviorMutation:
    steps = list(pattern.action_sequence)
    if len(steps) >= MAX_STEPS or (steps and steps[-1].action == "think"):
        return None
    step = ActionStep(action="think", duration=5, thought_during="how was that...")
    record = MutationRecord(type=MutationType.EXPANSION, new=step.action, reason="reflection appended")
    return _with_behavior_record(pattern, record, action_sequence=[*steps, step])


def radical_behavior_mutation(
    pattern: BehaviorPattern, rng: np.random.Generator
) -> BehaviorMutation:
    """One of: swap an action for a random one, jitter a trigger, or forgive past failures."""
    choice = int(rng.integers(3))
    if choice == 0:
        steps = list(pattern.action_sequence)
        if len(steps) < 2:
            return None
        i = int(rng.integers(len(steps)))
        old_action = steps[i].action
        steps[i] = steps[i].model_copy(update={"action": _choice(rng, RADICAL_ACTIONS)})
        record = MutationRecord(
            type=MutationType.COMBINATION,
            original=old_action,
            new=steps[i].action,
            reason="low fitness: action replaced",
        )
        return _with_behavior_record(pattern, record, action_sequence=steps)

    if choice == 1:
        triggers = list(pattern.triggers)
        if not triggers:
            return None
        i = int(rng.integers(len(triggers)))
        old = triggers[i].probability
        new = clamp(old + float(rng.uniform(-0.15, 0.15)), 0.1, 1.0)
        triggers[i] = triggers[i].model_copy(update={"probability": new})
        record = MutationRecord(
            type=MutationType.MINOR_VARIATION,
            original=f"trigger_prob: {old:.2f}",
            new=f"trigger_prob: {new:.2f}",
            reason="low fitness: trigger probability rebalanced",
        )
        return _with_behavior_record(pattern, record, triggers=triggers)

    record = MutationRecord(
        type=MutationType.SIMPLIFICATION,
        original="accumulated_failures",
        new="reset",
        reason="low fitness: failures halved for a fresh start",
    )
    return _with_behavior_record(
        pattern, record,
        average_satisfaction=0.5,
        failure_count=pattern.failure_count // 2,
        consecutive_failures=0,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Mood
# ─────────────────────────────────────────────────────────────────────────────


def shift_intensity(
    pattern: EmotionPattern, delta: float, reason: str
) -> tuple[EmotionPattern, ModificationRecord]:
    before = pattern.response.intensity
    after = clamp(before + delta, MIN_INTENSITY, 1.0)
    record = ModificationRecord(before=before, after=after, reason=reason)
    response = pattern.response.model_copy(update={"intensity": after})
    updated = pattern.model_copy(update={
        "response": response,
        "modification_history": [*pattern.modification_history, record],
    })
    return updated, record


def jitter_intensity(
    pattern: EmotionPattern, rng: np.random.Generator
) -> tuple[EmotionPattern, ModificationRecord]:
    return shift_intensity(pattern, float(rng.uniform(-0.1, 0.1)), "automatic intensity drift")
