"""Tests for the homeostasis regulator."""
import pytest

from innerlife.body.config import HomeostasisConfig
from innerlife.body.homeostasis import (
    HomeostasisRegulator,
    HomeostasisTriggerType,
    compute_urgency,
)
from innerlife.types import Emotion, HomeostasisVariable, TimeOfDay, Urge


class TestEnergyScenario:
    """Consuming then restoring energy."""

    def test_consume_then_restore(self, regulator):
        """Energy ends at clamp(initial - 0.9 + 0.5) with two tagged events."""
        initial = regulator.get_state().energy.current

        consumed = regulator.consume_energy(0.9, "sing")
        restored = regulator.restore_energy(0.5, "rest")

        expected = min(1.0, max(0.0, initial - 0.9 + 0.5))
        assert regulator.get_state().energy.current == pytest.approx(expected)
        assert consumed.trigger.type == HomeostasisTriggerType.ACTION
        assert consumed.trigger.detail == "sing"
        assert restored.trigger.type == HomeostasisTriggerType.EXTERNAL
        assert restored.trigger.detail == "rest"
        assert regulator.get_recent_changes(2) == [consumed, restored]

    def test_oversized_consumption_is_clamped(self, regulator):
        """Consuming more than is available bottoms out at zero."""
        event = regulator.consume_energy(5.0, "marathon")
        assert event.new_value == 0.0
        assert regulator.get_state().energy.current == 0.0


class TestUpdate:
    """Per-tick drain and regulation."""

    def test_values_stay_bounded(self, regulator):
        """Every variable and urgency stays in [0, 1] over a long run."""
        for tick in range(2000):
            regulator.update(tick, TimeOfDay.LATE_NIGHT, fatigue_level=1.0)
        for _, state in regulator.get_state().items():
            assert 0.0 <= state.current <= 1.0
            assert 0.0 <= state.urgency <= 1.0

    def test_fatigue_speeds_energy_drain(self):
        """A tired body loses more energy per tick."""
        rested, tired = HomeostasisRegulator(), HomeostasisRegulator()
        rested.update(1, TimeOfDay.MIDDAY, fatigue_level=0.0)
        tired.update(1, TimeOfDay.MIDDAY, fatigue_level=1.0)
        assert tired.get_state().energy.current < rested.get_state().energy.current

    def test_connection_drains_faster_at_night(self):
        """Loneliness creeps in faster at night."""
        day, night = HomeostasisRegulator(), HomeostasisRegulator()
        day.update(1, TimeOfDay.MIDDAY)
        night.update(1, TimeOfDay.NIGHT)
        assert night.get_state().connection.current < day.get_state().connection.current

    def test_update_reports_changed_variables(self, regulator):
        """Events are emitted only for variables that moved."""
        events = regulator.update(1, TimeOfDay.EVENING)
        assert events
        assert all(abs(e.new_value - e.previous_value) > 0.001 for e in events)


class TestUrgency:
    """Urgency, criticality and recommendations."""

    def test_urgency_zero_inside_band(self):
        assert compute_urgency(HomeostasisVariable.ENERGY, 0.6, 1.5) == 0.0

    def test_urgency_saturates(self):
        assert compute_urgency(HomeostasisVariable.ENERGY, 0.0, 1.5) == 1.0

    def test_depleted_energy_is_critical(self, regulator):
        """Running out of energy makes rest the top recommendation."""
        regulator.consume_energy(1.0, "overwork")

        assert regulator.get_urgency(HomeostasisVariable.ENERGY) == pytest.approx(1.0)
        assert regulator.is_critical()
        assert regulator.get_most_urgent().variable == HomeostasisVariable.ENERGY
        assert regulator.get_recommended_actions()[0].action == "rest"
        assert regulator.get_summary()["overall"] == "critical"

    def test_unstable_variables_feed_urges(self, regulator):
        regulator.consume_energy(1.0, "overwork")
        influences = regulator.get_urge_influences()
        assert influences[Urge.REST] == pytest.approx(1.0)

    def test_fresh_regulator_is_stable(self, regulator):
        assert regulator.get_most_urgent() is None
        assert regulator.get_summary()["overall"] == "stable"


class TestEmotionInfluence:
    """Strong emotions pressing on homeostasis."""

    def test_below_activation_has_no_effect(self, regulator):
        assert regulator.apply_emotion_influence(Emotion.ANXIETY, 0.3) is None

    def test_strong_anxiety_erodes_safety(self, regulator):
        before = regulator.get_state().safety.current
        event = regulator.apply_emotion_influence(Emotion.ANXIETY, 0.8)

        assert event.variable == HomeostasisVariable.SAFETY
        assert event.new_value == pytest.approx(before - 0.08)
        assert event.trigger.type == HomeostasisTriggerType.EMOTION_INFLUENCE
        assert event.trigger.detail == "anxiety"

    def test_unrelated_or_unknown_emotion_ignored(self, regulator):
        assert regulator.apply_emotion_influence(Emotion.WONDER, 0.9) is None
        assert regulator.apply_emotion_influence("not_an_emotion", 0.9) is None


class TestSerialization:
    """to_dict / from_dict."""

    def test_round_trip(self, regulator):
        regulator.consume_energy(0.4, "sing")
        regulator.update(3, TimeOfDay.NIGHT)

        restored = HomeostasisRegulator.from_dict(regulator.to_dict())

        for variable, state in regulator.get_state().items():
            assert restored.get_state().get(variable).current == pytest.approx(state.current)
        assert len(restored.get_recent_changes(100)) == len(regulator.get_recent_changes(100))

    @pytest.mark.parametrize("data", [None, "garbage", {"state": {}}, {"state": {"energy": 1}}])
    def test_malformed_state_starts_fresh(self, data):
        restored = HomeostasisRegulator.from_dict(data)
        assert restored.get_state().energy.current == pytest.approx(0.9)


class TestHomeostasisConfig:
    """Config validation."""

    def test_rejects_out_of_range_speed(self):
        with pytest.raises(ValueError, match="regulation_speed"):
            HomeostasisConfig(regulation_speed=2.0)

    def test_rejects_inverted_thresholds(self):
        with pytest.raises(ValueError, match="Thresholds"):
            HomeostasisConfig(deviation_threshold=0.8, critical_threshold=0.5)

    def test_from_dict_ignores_unknown_keys(self):
        config = HomeostasisConfig.from_dict({"regulation_speed": 0.1, "unknown": 1})
        assert config.regulation_speed == 0.1
