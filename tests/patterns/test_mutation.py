"""Tests for the mutation operators."""
import numpy as np
import pytest

from innerlife.patterns.mutation import (
    MIN_INTENSITY,
    adapt_speech_to_emotion,
    add_example_variation,
    append_reflection,
    drop_step,
    drop_weakest_condition,
    radical_behavior_mutation,
    select_mutation_type,
    shift_intensity,
    swap_adjacent_steps,
    vary_ellipsis,
)
from innerlife.patterns.schemas import (
    ActionStep,
    BehaviorPattern,
    ConditionKind,
    EmotionalResponse,
    EmotionPattern,
    EqualsCondition,
    MutationType,
    SituationDescriptor,
    SpeechPattern,
    TimeBasedTrigger,
)
from innerlife.types import Emotion, TimeOfDay


def steps(*actions) -> list[ActionStep]:
    return [ActionStep(action=action) for action in actions]


def routine(*actions, **fields) -> BehaviorPattern:
    return BehaviorPattern(description="evening routine", action_sequence=steps(*actions), **fields)


class TestSpeech:
    """Speech operators."""

    def test_vary_ellipsis_returns_copy(self, rng):
        pattern = SpeechPattern(template="well... maybe")
        updated, record = vary_ellipsis(pattern, rng)

        assert updated.template in ("well.. maybe", "well..... maybe")
        assert updated.id == pattern.id
        assert updated.mutation_history == [record]
        assert pattern.template == "well... maybe"
        assert pattern.mutation_history == []

    def test_vary_ellipsis_needs_ellipsis(self, rng):
        assert vary_ellipsis(SpeechPattern(template="hello"), rng) is None

    def test_drop_weakest_condition(self):
        pattern = SpeechPattern(
            template="x",
            conditions=[
                EqualsCondition(kind=ConditionKind.TIME, value="night", weight=2.0),
                EqualsCondition(kind=ConditionKind.ACTIVITY, value="reading", weight=0.5),
            ],
        )
        updated, record = drop_weakest_condition(pattern)

        assert [c.value for c in updated.conditions] == ["night"]
        assert record.type == MutationType.SIMPLIFICATION

    def test_single_condition_is_kept(self):
        pattern = SpeechPattern(
            template="x", conditions=[EqualsCondition(kind=ConditionKind.TIME, value="night")]
        )
        assert drop_weakest_condition(pattern) is None

    def test_example_variation_rewrites_ending(self, rng):
        pattern = SpeechPattern(template="x", examples=["the stars are out"])
        updated, _ = add_example_variation(pattern, rng)

        added = updated.examples[-1]
        assert len(updated.examples) == 2
        assert added.startswith("the stars are out")
        assert added != "the stars are out"

    def test_adapt_needs_placeholder(self, rng):
        assert adapt_speech_to_emotion(SpeechPattern(template="plain"), rng) is None

    def test_adapt_adds_example(self, rng):
        pattern = SpeechPattern(template="I feel {{emotion_word}}...", examples=["I feel calm..."])
        updated, record = adapt_speech_to_emotion(pattern, rng, Emotion.JOY)

        assert len(updated.examples) == 2
        assert updated.examples[-1].startswith("I feel calm")
        assert record.reason == "adapted to joy"


class TestBehavior:
    """Behavior operators."""

    def test_swap_pair(self, rng):
        updated, record = swap_adjacent_steps(routine("read", "rest"), rng)
        assert [s.action for s in updated.action_sequence] == ["rest", "read"]
        assert record.type == MutationType.MINOR_VARIATION

    def test_drop_keeps_two_steps(self, rng):
        assert drop_step(routine("read", "rest"), rng) is None

    def test_drop_interruptible_step(self, rng):
        updated, _ = drop_step(routine("read", "rest", "sing"), rng)
        assert len(updated.action_sequence) == 2

    def test_drop_refuses_uninterruptible(self, rng):
        pattern = BehaviorPattern(
            description="ritual",
            action_sequence=[ActionStep(action=a, interruptible=False) for a in ("a", "b", "c")],
        )
        assert drop_step(pattern, rng) is None

    def test_reflection_appended_once(self):
        updated, _ = append_reflection(routine("read"))
        assert updated.action_sequence[-1].action == "think"
        assert append_reflection(updated) is None

    def test_radical_mutation_records_history(self):
        pattern = routine(
            "read", "rest",
            triggers=[TimeBasedTrigger(times=[TimeOfDay.NIGHT], probability=0.5)],
            failure_count=6,
            consecutive_failures=3,
        )
        outcomes = set()
        for seed in range(30):
            mutated = radical_behavior_mutation(pattern, np.random.default_rng(seed))
            assert mutated is not None
            updated, record = mutated
            assert updated.mutation_history == [record]
            outcomes.add(record.type)
            if record.type == MutationType.SIMPLIFICATION:
                assert updated.failure_count == 3
                assert updated.consecutive_failures == 0
            if record.type == MutationType.MINOR_VARIATION:
                assert 0.1 <= updated.triggers[0].probability <= 1.0
        assert len(outcomes) == 3

    def test_select_mutation_type(self, rng):
        kinds = {select_mutation_type(rng) for _ in range(200)}
        assert kinds == set(MutationType)


class TestIntensity:
    """Mood intensity shifts."""

    @pytest.fixture
    def mood(self):
        return EmotionPattern(
            situation=SituationDescriptor(),
            response=EmotionalResponse(primary=Emotion.HOPE, intensity=0.15),
        )

    def test_shift_clamps_to_minimum(self, mood):
        updated, record = shift_intensity(mood, -0.5, "test")
        assert updated.response.intensity == MIN_INTENSITY
        assert (record.before, record.after) == (0.15, MIN_INTENSITY)
        assert mood.response.intensity == 0.15

    def test_shift_clamps_to_one(self, mood):
        updated, _ = shift_intensity(mood, 2.0, "test")
        assert updated.response.intensity == 1.0
        assert len(updated.modification_history) == 1
