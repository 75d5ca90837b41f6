"""Tests for the urge system."""
from datetime import timedelta

import pytest

from innerlife.body.config import UrgeSystemConfig
from innerlife.body.urges import UrgeSystem, UrgeTriggerType
from innerlife.types import Emotion, TimeOfDay, Urge


class MovableClock:
    """Clock the test can advance."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def push_into_conflict(system):
    system.increase_urge(Urge.REST, 1.0, "test")
    system.increase_urge(Urge.EXCITEMENT, 1.0, "test")
    system.update(1, TimeOfDay.MIDDAY, {})


class TestConflicts:
    """Conflict detection and resolution."""

    def test_one_conflict_per_pair(self, urge_system):
        """Two mutually suppressive urges above threshold give exactly one conflict."""
        push_into_conflict(urge_system)

        conflicts = urge_system.get_conflicts()
        assert len(conflicts) == 1
        assert set(conflicts[0].pair) == {Urge.REST, Urge.EXCITEMENT}

    def test_repeated_ticks_keep_single_entry(self, urge_system):
        push_into_conflict(urge_system)
        urge_system.update(2, TimeOfDay.MIDDAY, {})
        assert len(urge_system.get_conflicts()) == 1

    def test_balanced_conflict_is_not_resolved(self, urge_system):
        push_into_conflict(urge_system)
        conflict = urge_system.get_conflicts()[0]

        result = urge_system.attempt_resolve_conflict(conflict)

        assert not result.resolved
        assert conflict.resolution_attempts == 1
        assert len(urge_system.get_conflicts()) == 1

    def test_clear_winner_resolves_conflict(self, urge_system):
        """Once one side is clearly weaker the stronger one wins."""
        push_into_conflict(urge_system)
        urge_system.satisfy_by_action("rest")
        conflict = urge_system.get_conflicts()[0]

        result = urge_system.attempt_resolve_conflict(conflict)

        assert result.resolved
        assert result.winner == Urge.EXCITEMENT
        assert urge_system.get_conflicts() == []


class TestUpdate:
    """Per-tick dynamics."""

    def test_levels_stay_bounded(self, urge_system):
        emotions = {emotion: 1.0 for emotion in Emotion}
        for tick in range(500):
            urge_system.update(tick, TimeOfDay.LATE_NIGHT, emotions, {Urge.REST: 1.0})
        for level in urge_system.get_levels().values():
            assert 0.05 <= level <= 1.0

    def test_loneliness_raises_connection(self, fixed_now):
        lonely = UrgeSystem(clock=lambda: fixed_now)
        calm = UrgeSystem(clock=lambda: fixed_now)
        lonely.update(1, TimeOfDay.MIDDAY, {"loneliness": 1.0})
        calm.update(1, TimeOfDay.MIDDAY, {})
        assert lonely.get_urge_level(Urge.CONNECTION) > calm.get_urge_level(Urge.CONNECTION)

    def test_growth_accelerates_after_satisfaction(self, fixed_now):
        """An urge satisfied hours ago grows faster than one never satisfied."""
        clock = MovableClock(fixed_now)
        satisfied = UrgeSystem(clock=clock)
        untouched = UrgeSystem(clock=clock)
        satisfied.satisfy_urge(Urge.KNOWLEDGE, 0.0, "test")
        clock.now = fixed_now + timedelta(hours=2)

        satisfied.update(1, TimeOfDay.NIGHT, {})
        untouched.update(1, TimeOfDay.NIGHT, {})

        assert satisfied.get_urge_level(Urge.KNOWLEDGE) > untouched.get_urge_level(Urge.KNOWLEDGE)

    def test_homeostasis_influence(self, urge_system):
        before = urge_system.get_urge_level(Urge.REST)
        events = urge_system.apply_homeostasis_influence({Urge.REST: 1.0})
        assert urge_system.get_urge_level(Urge.REST) == pytest.approx(before + 0.01)
        assert events[0].trigger.type == UrgeTriggerType.HOMEOSTASIS_INFLUENCE


class TestMutators:
    """Satisfaction and direct changes."""

    def test_satisfy_by_action(self, urge_system):
        before = urge_system.get_urge_level(Urge.EXPRESSION)
        events = urge_system.satisfy_by_action("sing")

        expression = [e for e in events if e.urge == Urge.EXPRESSION]
        assert len(expression) == 1
        assert expression[0].trigger.type == UrgeTriggerType.ACTION_SATISFACTION
        assert expression[0].trigger.detail == "sing"
        assert urge_system.get_urge_level(Urge.EXPRESSION) == pytest.approx(before - 0.3 * 0.6)

    def test_unknown_urge_returns_none(self, urge_system):
        assert urge_system.satisfy_urge("flying", 0.5, "test") is None
        assert urge_system.increase_urge("flying", 0.5, "test") is None

    def test_satisfaction_floors_at_minimum(self, urge_system):
        urge_system.satisfy_urge(Urge.MEANING, 5.0, "test")
        assert urge_system.get_urge_level(Urge.MEANING) == pytest.approx(0.05)

    def test_dominant_urge(self, urge_system):
        assert urge_system.get_dominant_urge() is None
        urge_system.increase_urge(Urge.CURIOSITY, 1.0, "test")
        assert urge_system.get_dominant_urge() == Urge.CURIOSITY
        assert urge_system.get_summary()["dominant"] == Urge.CURIOSITY

    def test_associate_memory(self, urge_system):
        assert urge_system.associate_memory(Urge.MEMORY, "m1")
        assert not urge_system.associate_memory(Urge.MEMORY, "m1")
        assert not urge_system.associate_memory("flying", "m1")


class TestSerialization:
    """to_dict / from_dict."""

    def test_round_trip(self, urge_system, fixed_now):
        push_into_conflict(urge_system)
        urge_system.satisfy_by_action("read")

        restored = UrgeSystem.from_dict(urge_system.to_dict(), clock=lambda: fixed_now)

        for urge, level in urge_system.get_levels().items():
            assert restored.get_urge_level(urge) == pytest.approx(level)
        assert [c.pair for c in restored.get_conflicts()] == [
            c.pair for c in urge_system.get_conflicts()
        ]

    @pytest.mark.parametrize("data", [None, 42, {"urges": {"rest": {}}}])
    def test_malformed_state_starts_fresh(self, data):
        restored = UrgeSystem.from_dict(data)
        assert restored.get_urge_level(Urge.REST) == pytest.approx(0.18)

    def test_timestamp_without_offset_is_utc(self, urge_system, fixed_now):
        data = urge_system.to_dict()
        data["urges"]["rest"]["last_satisfied"] = "2026-01-01T00:00:00"

        restored = UrgeSystem.from_dict(data, clock=lambda: fixed_now)
        restored.update(1, TimeOfDay.MIDDAY, {})

        last = restored.to_dict()["urges"]["rest"]["last_satisfied"]
        assert last == "2026-01-01T00:00:00+00:00"


class TestUrgeSystemConfig:
    """Config validation."""

    def test_minimum_must_sit_below_conflict_threshold(self):
        with pytest.raises(ValueError, match="minimum_level"):
            UrgeSystemConfig(minimum_level=0.7, conflict_threshold=0.6)

    def test_from_dict_ignores_unknown_keys(self):
        config = UrgeSystemConfig.from_dict({"conflict_threshold": 0.5, "extra": True})
        assert config.conflict_threshold == 0.5
