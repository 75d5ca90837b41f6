"""Tests for the pattern library."""
import json
import logging

import numpy as np
import pytest

from innerlife.patterns.config import PatternLibraryConfig
from innerlife.patterns.library import LIBRARY_FILE, PatternLibrary
from innerlife.patterns.schemas import (
    ActionStep,
    BehaviorPattern,
    CreatedBy,
    EmotionalResponse,
    EmotionPattern,
    PatternKind,
    SituationDescriptor,
    SpeechPattern,
    TimeBasedTrigger,
)
from innerlife.patterns.seeds import (
    initial_behavior_patterns,
    initial_emotion_patterns,
    initial_speech_patterns,
)
from innerlife.situation import Situation
from innerlife.types import Emotion, TimeOfDay


def stroll(description="stroll") -> BehaviorPattern:
    return BehaviorPattern(
        description=description,
        action_sequence=[ActionStep(action="wander"), ActionStep(action="rest")],
        triggers=[TimeBasedTrigger(times=[TimeOfDay.EVENING])],
    )


def small_library(tmp_path, **limits) -> PatternLibrary:
    config = PatternLibraryConfig(data_path=tmp_path / "small", **limits)
    return PatternLibrary(config, rng=np.random.default_rng(5))


class TestInitialize:
    """Seeding."""

    def test_seeds_every_collection(self, library):
        stats = library.get_stats()
        assert stats["speech_patterns"] == len(initial_speech_patterns())
        assert stats["behavior_patterns"] == len(initial_behavior_patterns())
        assert stats["emotion_patterns"] == len(initial_emotion_patterns())
        total = stats["speech_patterns"] + stats["behavior_patterns"] + stats["emotion_patterns"]
        assert stats["initial_patterns"] == total

    def test_seeds_must_fit_capacity(self, tmp_path):
        library = small_library(tmp_path, max_speech_patterns=1)
        with pytest.raises(ValueError, match="exceed capacity"):
            library.initialize()

    def test_initialize_replaces_contents(self, library):
        library.add_behavior_pattern(stroll())
        library.initialize()
        assert len(library.behavior) == len(initial_behavior_patterns())


class TestCapacity:
    """Collections never exceed their limits."""

    def test_adds_stay_within_limit(self, tmp_path):
        library = small_library(tmp_path, max_behavior_patterns=3)
        ids = []
        for i in range(10):
            ids.append(library.add_behavior_pattern(stroll(f"stroll {i}")))
            assert len(library.behavior) <= 3
        assert ids[-1] in library.behavior

    def test_initial_patterns_are_never_evicted(self, tmp_path):
        seeds = len(initial_speech_patterns())
        library = small_library(tmp_path, max_speech_patterns=seeds)
        library.initialize()
        seed_ids = set(library.speech.ids())

        library.add_speech_pattern(SpeechPattern(template="new words"))

        assert set(library.speech.ids()) == seed_ids

    def test_added_pattern_is_not_initial(self, empty_library):
        pattern_id = empty_library.add_speech_pattern(
            SpeechPattern(template="hello", created_by=CreatedBy.INITIAL)
        )
        assert empty_library.get_speech_pattern(pattern_id).created_by == CreatedBy.LEARNED

    def test_evolution_trims_overfull_collections(self, tmp_path):
        library = small_library(tmp_path, max_behavior_patterns=2)
        for action in ("wander", "read", "sing", "daydream"):
            library.behavior.add(BehaviorPattern(
                description=action,
                action_sequence=[ActionStep(action=action)],
                triggers=[TimeBasedTrigger(times=[TimeOfDay.EVENING])],
            ))

        result = library.evolve_patterns()

        evicted = [e for e in result.eliminations if e.description == "evicted to stay within capacity"]
        assert len(evicted) == 2
        assert len(library.behavior) == 2


class TestUsage:
    """record_pattern_use and mutate_pattern."""

    def test_behavior_success_updates_statistics(self, empty_library):
        pattern_id = empty_library.add_behavior_pattern(stroll())

        assert empty_library.record_pattern_use(pattern_id, "behavior", success=True, satisfaction=1.0)

        pattern = empty_library.get_behavior_pattern(pattern_id)
        assert pattern.success_count == 1
        assert pattern.average_satisfaction == pytest.approx(0.55)
        assert pattern.last_used is not None

    def test_repeated_failure_forces_mutation(self, empty_library):
        pattern_id = empty_library.add_behavior_pattern(stroll())
        for _ in range(3):
            empty_library.record_pattern_use(pattern_id, PatternKind.BEHAVIOR, success=False)

        pattern = empty_library.get_behavior_pattern(pattern_id)
        assert pattern.total_uses >= 1
        assert pattern.consecutive_failures == 0

    def test_speech_use_counts(self, empty_library):
        pattern_id = empty_library.add_speech_pattern(SpeechPattern(template="well..."))
        for _ in range(5):
            empty_library.record_pattern_use(pattern_id, "speech")
        assert empty_library.get_speech_pattern(pattern_id).use_count == 5

    def test_mood_reinforcement(self, empty_library):
        pattern_id = empty_library.add_emotion_pattern(EmotionPattern(
            situation=SituationDescriptor(times_of_day=[TimeOfDay.NIGHT]),
            response=EmotionalResponse(primary=Emotion.MELANCHOLY, intensity=0.4),
        ))
        empty_library.record_pattern_use(pattern_id, "emotion")

        pattern = empty_library.get_emotion_pattern(pattern_id)
        assert pattern.reinforcement_count == 1
        assert pattern.last_triggered is not None

    def test_unknown_pattern_or_kind(self, library):
        assert not library.record_pattern_use("missing", "speech")
        assert not library.record_pattern_use("missing", "poetry")
        assert not library.delete_pattern("missing", "poetry")

    def test_immutable_pattern_is_left_alone(self, empty_library):
        pattern_id = empty_library.add_speech_pattern(
            SpeechPattern(template="never... changes", can_mutate=False)
        )
        assert not empty_library.mutate_pattern(pattern_id, "speech", force=True)

    def test_forced_mood_mutation_jitters_intensity(self, empty_library):
        pattern_id = empty_library.add_emotion_pattern(EmotionPattern(
            situation=SituationDescriptor(),
            response=EmotionalResponse(primary=Emotion.HOPE, intensity=0.5),
        ))

        assert empty_library.mutate_pattern(pattern_id, "emotion", force=True)

        pattern = empty_library.get_emotion_pattern(pattern_id)
        assert 0.4 <= pattern.response.intensity <= 0.6
        assert len(pattern.modification_history) == 1

    def test_unforced_mutation_respects_rate(self, tmp_path):
        library = small_library(tmp_path, mutation_rate=0.0)
        pattern_id = library.add_behavior_pattern(stroll())
        assert not library.mutate_pattern(pattern_id, "behavior")

    def test_delete(self, empty_library):
        pattern_id = empty_library.add_behavior_pattern(stroll())
        assert empty_library.delete_pattern(pattern_id, PatternKind.BEHAVIOR)
        assert empty_library.get_pattern(pattern_id, "behavior") is None


class TestMatching:
    """Library-level lookups."""

    def test_seeded_night_mood(self, library):
        moods = library.find_emotion_patterns(Situation(time_of_day=TimeOfDay.NIGHT))
        assert Emotion.MELANCHOLY in {p.response.primary for p in moods}

    def test_behavior_lookup(self, empty_library):
        pattern_id = empty_library.add_behavior_pattern(stroll())
        matches = empty_library.find_behavior_patterns(Situation(time_of_day=TimeOfDay.EVENING))
        assert [p.id for p, _ in matches] == [pattern_id]


class TestPersistence:
    """save / load / from_dict."""

    def test_round_trip(self, library, tmp_path, rng):
        pattern_id = library.add_behavior_pattern(stroll())
        library.record_pattern_use(pattern_id, "behavior", success=True, satisfaction=0.9)
        library.save()

        restored = PatternLibrary(library.config, rng=rng)
        assert restored.load()

        assert restored.get_behavior_pattern(pattern_id) == library.get_behavior_pattern(pattern_id)
        assert restored.speech.ids() == library.speech.ids()
        assert restored.get_stats()["behavior_uses"] == 1

    def test_saved_file_is_json(self, library):
        library.save()
        data = json.loads((library.config.data_path / LIBRARY_FILE).read_text())
        assert set(data) == {"version", "saved_at", "speech", "behavior", "emotion"}

    def test_missing_file_uses_seeds(self, empty_library):
        assert not empty_library.load()
        assert empty_library.get_stats()["initial_patterns"] > 0

    def test_malformed_file_uses_seeds(self, empty_library, caplog):
        path = empty_library.config.data_path / LIBRARY_FILE
        path.parent.mkdir(parents=True)
        path.write_text('{"speech": [{"template": 5}]')

        with caplog.at_level(logging.ERROR):
            assert not empty_library.load()

        assert "Failed to load pattern library" in caplog.text
        assert len(empty_library.behavior) == len(initial_behavior_patterns())

    def test_undecodable_file_uses_seeds(self, empty_library, caplog):
        path = empty_library.config.data_path / LIBRARY_FILE
        path.parent.mkdir(parents=True)
        path.write_bytes(b"\xff\xfe\x00garbage")

        with caplog.at_level(logging.ERROR):
            assert not empty_library.load()

        assert "Failed to load pattern library" in caplog.text
        assert len(empty_library.speech) == len(initial_speech_patterns())

    def test_invalid_record_rejects_whole_file(self, library):
        data = library.to_dict()
        data["behavior"].append({"description": "broken", "action_sequence": "nope"})

        restored = PatternLibrary.from_dict(data)

        assert restored.get_stats()["initial_patterns"] == library.get_stats()["initial_patterns"]
        assert all(p.description != "broken" for p in restored.behavior)

    @pytest.mark.parametrize("data", [None, [], {"speech": []}])
    def test_from_dict_malformed(self, data):
        restored = PatternLibrary.from_dict(data, seed=1)
        assert len(restored.emotion) == len(initial_emotion_patterns())

    def test_export_groups_by_kind(self, library):
        exported = library.get_all_patterns()
        assert set(exported) == {"speech", "behavior", "emotion"}
        assert library.emotion_patterns_for_engine() == exported["emotion"]
