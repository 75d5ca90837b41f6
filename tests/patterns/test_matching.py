"""Tests for scoring patterns against a situation."""
import numpy as np
import pytest

from innerlife.patterns.matching import (
    condition_holds,
    match_behavior,
    match_mood,
    match_speech,
    score_behavior,
    score_speech,
)
from innerlife.patterns.schemas import (
    ActionStep,
    BehaviorPattern,
    ConditionKind,
    ContainsCondition,
    EmotionalResponse,
    EmotionPattern,
    EqualsCondition,
    ExpectedOutcome,
    GreaterCondition,
    RandomTrigger,
    SituationDescriptor,
    SpeechPattern,
    TimeBasedTrigger,
    UrgeThresholdTrigger,
)
from innerlife.situation import Situation
from innerlife.types import Emotion, TimeOfDay, Urge


@pytest.fixture
def night():
    return Situation(
        time_of_day=TimeOfDay.NIGHT,
        emotion_levels={Emotion.MELANCHOLY: 0.6, Emotion.JOY: 0.2},
        primary_emotion=Emotion.MELANCHOLY,
        secondary_emotion=Emotion.JOY,
        urge_levels={Urge.REST: 0.2, Urge.REFLECTION: 0.7},
        energy=0.4,
        recent_events=("rain",),
    )


def walk(**fields) -> BehaviorPattern:
    fields.setdefault("description", "walk by the window")
    fields.setdefault("action_sequence", [ActionStep(action="wander"), ActionStep(action="look_at")])
    return BehaviorPattern(**fields)


class TestConditions:
    """Single conditions."""

    def test_time_equals(self, night):
        assert condition_holds(EqualsCondition(kind=ConditionKind.TIME, value="night"), night)

    def test_visitor_equals(self, night):
        assert condition_holds(EqualsCondition(kind=ConditionKind.VISITOR, value=False), night)
        assert not condition_holds(EqualsCondition(kind=ConditionKind.VISITOR, value=True), night)

    def test_emotion_contains_checks_secondary(self, night):
        condition = ContainsCondition(kind=ConditionKind.EMOTION, values=["joy", "wonder"])
        assert condition_holds(condition, night)

    def test_urge_without_subject_uses_strongest(self, night):
        condition = GreaterCondition(kind=ConditionKind.URGE, threshold=0.5)
        assert condition_holds(condition, night)

    def test_numeric_comparison_on_time_never_holds(self, night):
        assert not condition_holds(GreaterCondition(kind=ConditionKind.TIME, threshold=0.0), night)


class TestSpeech:
    """Weighted condition scoring."""

    def test_weighted_share(self, night):
        pattern = SpeechPattern(
            template="the night is long...",
            conditions=[
                EqualsCondition(kind=ConditionKind.TIME, value="night", weight=2.0),
                GreaterCondition(kind=ConditionKind.EMOTION, subject="joy", threshold=0.5),
            ],
        )
        assert score_speech(pattern, night) == pytest.approx(2 / 3)

    def test_no_conditions_scores_zero(self, night):
        assert score_speech(SpeechPattern(template="hm"), night) == 0.0

    def test_only_matches_above_threshold_best_first(self, night):
        strong = SpeechPattern(
            template="a", conditions=[EqualsCondition(kind=ConditionKind.TIME, value="night")]
        )
        weak = SpeechPattern(
            template="b",
            conditions=[
                EqualsCondition(kind=ConditionKind.TIME, value="night"),
                EqualsCondition(kind=ConditionKind.ACTIVITY, value="reading", weight=3.0),
            ],
        )
        miss = SpeechPattern(
            template="c", conditions=[EqualsCondition(kind=ConditionKind.TIME, value="dawn")]
        )

        matches = match_speech([weak, miss, strong], night)

        assert [p.template for p, _ in matches] == ["a"]


class TestBehavior:
    """Trigger scoring."""

    def test_fired_share_scaled_by_track_record(self, night):
        pattern = walk(
            triggers=[
                TimeBasedTrigger(times=[TimeOfDay.NIGHT], probability=0.6),
                UrgeThresholdTrigger(urge=Urge.REST, threshold=0.7, probability=0.4),
            ],
            success_count=3,
            failure_count=1,
        )
        score = score_behavior(pattern, night, np.random.default_rng(0))
        assert score == pytest.approx(0.6 * (0.5 + 0.5 * 0.75))

    def test_unaffordable_pattern_scores_zero(self, night):
        pattern = walk(
            triggers=[TimeBasedTrigger(times=[TimeOfDay.NIGHT])],
            expected_outcome=ExpectedOutcome(energy_cost=0.9),
        )
        assert score_behavior(pattern, night, np.random.default_rng(0)) == 0.0

    def test_random_trigger_uses_rng(self, night):
        always = walk(triggers=[RandomTrigger(chance=1.0)])
        never = walk(triggers=[RandomTrigger(chance=0.0)])
        matches = match_behavior([never, always], night, np.random.default_rng(0))
        assert [p.id for p, _ in matches] == [always.id]


class TestMood:
    """All-specified-fields matching."""

    def test_empty_descriptor_matches_anything(self, night):
        pattern = EmotionPattern(
            situation=SituationDescriptor(),
            response=EmotionalResponse(primary=Emotion.PEACE, intensity=0.2),
        )
        assert match_mood(pattern, night)

    def test_urge_range_shorthand(self, night):
        pattern = EmotionPattern(
            situation=SituationDescriptor(urge_ranges={"reflection": (0.5, 1.0)}),
            response=EmotionalResponse(primary=Emotion.NOSTALGIA, intensity=0.3),
        )
        assert match_mood(pattern, night)

    def test_every_field_must_agree(self, night):
        pattern = EmotionPattern(
            situation=SituationDescriptor(
                times_of_day=[TimeOfDay.NIGHT], recent_events=["visitor_left"]
            ),
            response=EmotionalResponse(primary=Emotion.LONELINESS, intensity=0.3),
        )
        assert not match_mood(pattern, night)
