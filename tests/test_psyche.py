"""Tests for the InnerLife coordinator."""
import pytest

from innerlife import InnerLife
from innerlife.types import Emotion, TimeOfDay


@pytest.fixture
def life():
    return InnerLife(seed=11)


class TestTick:
    """One tick through every subsystem."""

    def test_report_carries_situation(self, life):
        report = life.tick(1, TimeOfDay.EVENING, visitor_present=True, activity="reading")

        assert report.tick == 1
        assert report.situation.time_of_day == TimeOfDay.EVENING
        assert report.situation.visitor_present
        assert report.situation.activity == "reading"
        assert report.situation.primary_emotion == life.emotions.get_primary_emotion()
        assert life.last_report is report

    def test_long_run_stays_bounded(self, life):
        times = list(TimeOfDay)
        for tick in range(300):
            life.tick(tick, times[(tick // 10) % len(times)], visitor_present=tick % 50 < 5)

        for level in life.emotions.get_state().levels.values():
            assert 0.0 <= level <= 1.0
        for level in life.urges.get_levels().values():
            assert 0.0 <= level <= 1.0
        for _, state in life.homeostasis.get_state().items():
            assert 0.0 <= state.current <= 1.0

    def test_matching_mood_is_applied_and_reinforced(self, life):
        report = life.tick(
            1, TimeOfDay.MIDDAY, visitor_present=False, recent_events=["visitor_departed"]
        )

        applied = life.library.get_emotion_pattern(report.applied_pattern_id)
        assert applied.response.primary == Emotion.LONELINESS
        assert applied.reinforcement_count == 1
        assert report.pattern_event.change_for(Emotion.LONELINESS) is not None

    def test_engine_sees_reinforced_copy(self, life):
        report = life.tick(1, TimeOfDay.MIDDAY, recent_events=["visitor_departed"])
        chosen = life.emotions.find_matching_pattern(report.situation)
        assert chosen.id == report.applied_pattern_id
        assert chosen.reinforcement_count == 1

    def test_fatigue_drains_energy(self):
        rested, tired = InnerLife(seed=1), InnerLife(seed=1)
        rested.tick(1, TimeOfDay.MIDDAY, fatigue_level=0.0)
        tired.tick(1, TimeOfDay.MIDDAY, fatigue_level=1.0)
        assert (
            tired.homeostasis.get_state().energy.current
            < rested.homeostasis.get_state().energy.current
        )


class TestEvolve:
    """Evolution through the coordinator."""

    def test_fresh_seeds_are_stable(self, life):
        result = life.evolve()
        assert not result.changed


class TestSerialization:
    """to_dict / from_dict and summaries."""

    def test_round_trip(self, life):
        for tick in range(5):
            life.tick(tick, TimeOfDay.NIGHT)

        restored = InnerLife.from_dict(life.to_dict(), seed=2)

        for emotion in Emotion:
            assert restored.emotions.get_emotion_level(emotion) == pytest.approx(
                life.emotions.get_emotion_level(emotion)
            )
        assert restored.library.get_stats()["emotion_reinforcements"] == (
            life.library.get_stats()["emotion_reinforcements"]
        )
        assert restored.homeostasis.get_state().energy.current == pytest.approx(
            life.homeostasis.get_state().energy.current
        )

    def test_garbage_starts_fresh(self):
        restored = InnerLife.from_dict("garbage")
        assert restored.library.get_stats()["initial_patterns"] > 0
        assert restored.emotions.get_primary_emotion() == Emotion.PEACE

    def test_summary(self, life):
        assert life.get_summary()["last_tick"] is None
        life.tick(7, TimeOfDay.DAWN)
        summary = life.get_summary()
        assert summary["last_tick"] == 7
        assert set(summary) == {"homeostasis", "urges", "emotions", "patterns", "last_tick"}
