"""Tests for the self-correction policies, driven directly."""
import numpy as np
import pytest

from innerlife.affect.config import EmotionConfig
from innerlife.affect.interactions import CouplingTable
from innerlife.affect.self_correction import (
    CHARACTERISTIC_EMOTIONS,
    CorrectionType,
    SelfCorrector,
    TriggerOutcome,
)
from innerlife.affect.state import (
    EmotionalState,
    EmotionChange,
    EmotionChangeEvent,
    EmotionTrigger,
    EmotionTriggerType,
)
from innerlife.types import Emotion


@pytest.fixture
def corrector():
    return SelfCorrector(EmotionConfig(), CouplingTable(), np.random.default_rng(3))


def flat_state(**levels) -> EmotionalState:
    state = EmotionalState(levels={emotion: 0.0 for emotion in Emotion})
    for name, level in levels.items():
        state.levels[Emotion(name)] = level
    return state


def history_of(emotion: Emotion, level: float, count: int) -> list[EmotionChangeEvent]:
    trigger = EmotionTrigger(EmotionTriggerType.EXTERNAL)
    return [
        EmotionChangeEvent(trigger=trigger, changes=[EmotionChange(emotion, level, level, 0.0)])
        for _ in range(count)
    ]


def of_type(corrections, kind):
    return [c for c in corrections if c.type == kind]


class TestOutcomes:
    """Recording trigger outcomes."""

    def test_mapping_is_accepted(self, corrector):
        stats = corrector.record_outcome(
            "visitor", Emotion.JOY, 0.4,
            {"was_helpful": True, "duration_ticks": 6, "subsequent_emotion": "warmth"},
        )
        assert stats.occurrences == 1
        assert stats.helpful_rate == 1.0
        assert stats.average_duration == 6
        assert stats.subsequent_emotions == {Emotion.WARMTH: 1}

    def test_unknown_subsequent_emotion_dropped(self):
        outcome = TriggerOutcome.from_dict({"was_helpful": False, "subsequent_emotion": "glee"})
        assert outcome.subsequent_emotion is None

    def test_nothing_to_do_without_data(self, corrector):
        assert corrector.perform(EmotionalState(), []) == []


class TestPolicies:
    """Each correction policy in isolation."""

    def test_overreaction_loses_momentum(self, corrector):
        state = flat_state(joy=0.5)
        state.momentum[Emotion.JOY] = 0.5
        for _ in range(5):
            corrector.record_outcome("event", Emotion.JOY, 0.8, TriggerOutcome(was_helpful=False))

        corrections = of_type(corrector.perform(state, []), CorrectionType.DESENSITIZE)

        assert [c.target for c in corrections] == [Emotion.JOY]
        assert state.momentum[Emotion.JOY] == pytest.approx(0.35)

    def test_idle_emotion_fades(self, corrector):
        state = flat_state(anxiety=0.6)
        for _ in range(10):
            corrector.record_outcome("event", Emotion.ANXIETY, 0.3, TriggerOutcome(was_helpful=True))

        corrections = of_type(corrector.perform(state, []), CorrectionType.REDUCE_IDLE)

        assert corrections[0].target == Emotion.ANXIETY
        assert state.levels[Emotion.ANXIETY] == pytest.approx(0.57)

    def test_stagnation_resets_tracker(self, corrector):
        state = flat_state(peace=0.5)
        for _ in range(102):
            corrector.track_stagnation(state.levels)

        corrections = of_type(corrector.perform(state, []), CorrectionType.BREAK_STAGNATION)

        assert len(corrections) == len(Emotion)
        assert all(t.duration == 0 for t in corrector.stagnation.values())

    def test_flat_mood_gets_characteristic_emotion(self, corrector):
        """One active emotion and a monotonous history reawaken a characteristic emotion."""
        state = flat_state(peace=0.5)

        corrections = of_type(
            corrector.perform(state, history_of(Emotion.PEACE, 0.5, 20)),
            CorrectionType.DIVERSITY_BOOST,
        )

        assert len(corrections) == 1
        boosted = corrections[0].target
        assert boosted in CHARACTERISTIC_EMOTIONS
        assert state.levels[boosted] == pytest.approx(0.15)

    def test_varied_mood_is_left_alone(self, corrector):
        state = flat_state(peace=0.5, joy=0.4)
        corrections = corrector.perform(state, history_of(Emotion.PEACE, 0.5, 20))
        assert of_type(corrections, CorrectionType.DIVERSITY_BOOST) == []

    def test_coupling_override_leaves_factory_table(self, corrector):
        outcome = TriggerOutcome(was_helpful=True, led_to_action=True, subsequent_emotion=Emotion.HOPE)
        for _ in range(8):
            corrector.record_outcome("event", Emotion.WONDER, 0.4, outcome)

        corrections = of_type(corrector.perform(flat_state(), []), CorrectionType.COUPLING_ADJUST)

        assert corrections[0].adjustment == pytest.approx(0.02)
        assert corrector.coupling.effective(Emotion.WONDER, Emotion.HOPE) == pytest.approx(0.02)
        assert corrector.coupling.static(Emotion.WONDER, Emotion.HOPE) == 0.0

    def test_momentum_drifts_toward_recent_average(self, corrector):
        state = flat_state(joy=0.2, peace=0.5)

        corrections = of_type(
            corrector.perform(state, history_of(Emotion.JOY, 0.8, 50)),
            CorrectionType.BASELINE_ADAPT,
        )

        assert [c.target for c in corrections] == [Emotion.JOY]
        assert state.momentum[Emotion.JOY] == pytest.approx(0.02)


class TestSensitivity:
    """External sensitivity adjustments."""

    def test_decrease_clamps_at_zero(self, corrector):
        state = flat_state(fear=0.1)
        record = corrector.adjust_sensitivity(state, Emotion.FEAR, "decrease", 0.5)
        assert record.type == CorrectionType.EXTERNAL_ADJUST
        assert state.levels[Emotion.FEAR] == 0.0

    def test_unknown_direction(self, corrector):
        assert corrector.adjust_sensitivity(flat_state(), Emotion.FEAR, "up", 0.5) is None
        assert corrector.recent_log() == []


class TestSerialization:
    """to_dict / restore."""

    def test_round_trip(self, corrector):
        corrector.record_outcome("visitor", Emotion.JOY, 0.4, TriggerOutcome(was_helpful=True))
        corrector.track_stagnation({Emotion.JOY: 0.4})
        corrector.adjust_sensitivity(flat_state(), Emotion.JOY, "increase", 0.1)

        restored = SelfCorrector(EmotionConfig(), CouplingTable(), np.random.default_rng(0))
        restored.restore(corrector.to_dict())

        assert restored.trigger_stats[("visitor", Emotion.JOY)].occurrences == 1
        assert restored.stagnation[Emotion.JOY].level == pytest.approx(0.4)
        assert [r.type for r in restored.recent_log()] == [CorrectionType.EXTERNAL_ADJUST]
