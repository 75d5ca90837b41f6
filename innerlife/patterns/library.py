"""Pattern library: the three pattern arenas and their lifecycle.

The library owns the speech, behavior and mood-response collections. It
seeds them with protected initial patterns, matches them against
:class:`~innerlife.situation.Situation` snapshots, folds usage feedback into
their statistics, mutates and evolves them, keeps each collection within its
capacity, and persists them as JSON.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional, Union

import numpy as np
from pydantic import ValidationError

from innerlife.patterns.arena import PatternArena
from innerlife.patterns.config import PatternLibraryConfig
from innerlife.patterns.evolution import (
    RECENT_USE_BONUS,
    EvolutionResult,
    PatternChange,
    evict_overflow,
    eviction_score,
    evolve,
)
from innerlife.patterns.matching import match_behavior, match_moods, match_speech
from innerlife.patterns.mutation import (
    jitter_intensity,
    mutate_behavior,
    mutate_speech,
    select_mutation_type,
)
from innerlife.patterns.schemas import (
    BehaviorPattern,
    CreatedBy,
    EmotionPattern,
    PatternKind,
    SpeechPattern,
)
from innerlife.patterns.seeds import (
    initial_behavior_patterns,
    initial_emotion_patterns,
    initial_speech_patterns,
)
from innerlife.situation import Situation
from innerlife.types import Emotion, parse_enum, utc_now
from innerlife.utils.numeric import clamp, mean

logger = logging.getLogger(__name__)

LIBRARY_FILE = "library.json"
LIBRARY_VERSION = 1

SPEECH_MUTATION_INTERVAL = 20
FAILURE_MUTATION_THRESHOLD = 3
SATISFACTION_RETENTION = 0.9

KindLike = Union[PatternKind, str]


class PatternLibrary:
    """Bounded, self-modifying collections of speech, behavior and mood patterns.

    Usage:
        library = PatternLibrary(PatternLibraryConfig(data_path=tmp), seed=7)
        library.load()
        for pattern, score in library.find_behavior_patterns(situation):
            ...
        library.record_pattern_use(pattern.id, "behavior", success=True, satisfaction=0.8)
        library.evolve_patterns()
        library.save()
    """

    def __init__(
        self,
        config: Optional[PatternLibraryConfig] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        self.config = config or PatternLibraryConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)

        self.speech: PatternArena[SpeechPattern] = PatternArena(self.config.max_speech_patterns)
        self.behavior: PatternArena[BehaviorPattern] = PatternArena(self.config.max_behavior_patterns)
        self.emotion: PatternArena[EmotionPattern] = PatternArena(self.config.max_emotion_patterns)

    def _arena(self, kind: KindLike) -> Optional[PatternArena]:
        kind = parse_enum(PatternKind, kind)
        if kind == PatternKind.SPEECH:
            return self.speech
        if kind == PatternKind.BEHAVIOR:
            return self.behavior
        if kind == PatternKind.EMOTION:
            return self.emotion
        return None

    def _arenas(self) -> dict[PatternKind, PatternArena]:
        return {
            PatternKind.SPEECH: self.speech,
            PatternKind.BEHAVIOR: self.behavior,
            PatternKind.EMOTION: self.emotion,
        }

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def initialize(self) -> None:
        """Replace every collection with the initial seed patterns.

        Raises:
            ValueError: If a seed set does not fit its configured capacity
        """
        seeds = {
            PatternKind.SPEECH: initial_speech_patterns(),
            PatternKind.BEHAVIOR: initial_behavior_patterns(),
            PatternKind.EMOTION: initial_emotion_patterns(),
        }
        arenas = self._arenas()
        for kind, patterns in seeds.items():
            if len(patterns) > arenas[kind].max_size:
                raise ValueError(
                    f"{len(patterns)} initial {kind.value} patterns exceed "
                    f"capacity {arenas[kind].max_size}"
                )

        for kind, patterns in seeds.items():
            arenas[kind].clear()
            for pattern in patterns:
                arenas[kind].add(pattern)

        logger.info(
            f"Pattern library initialized: {len(self.speech)} speech, "
            f"{len(self.behavior)} behavior, {len(self.emotion)} emotion patterns"
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Matching
    # ─────────────────────────────────────────────────────────────────────────

    def find_speech_patterns(self, situation: Situation) -> list[tuple[SpeechPattern, float]]:
        return match_speech(list(self.speech), situation)

    def find_behavior_patterns(self, situation: Situation) -> list[tuple[BehaviorPattern, float]]:
        return match_behavior(list(self.behavior), situation, self.rng)

    def find_emotion_patterns(self, situation: Situation) -> list[EmotionPattern]:
        return match_moods(list(self.emotion), situation)

    # ─────────────────────────────────────────────────────────────────────────
    # Add / get / delete
    # ─────────────────────────────────────────────────────────────────────────

    def _add(self, arena: PatternArena, pattern) -> str:
        # Seeds enter through initialize(); anything added later is evictable.
        if pattern.created_by == CreatedBy.INITIAL:
            pattern = pattern.model_copy(update={"created_by": CreatedBy.LEARNED})
        arena.add(pattern)
        evicted = evict_overflow(arena, self.config.prune_threshold)
        if evicted:
            logger.debug(f"Evicted {len(evicted)} patterns to stay within capacity")
        return pattern.id

    def add_speech_pattern(self, pattern: SpeechPattern) -> str:
        return self._add(self.speech, pattern)

    def add_behavior_pattern(self, pattern: BehaviorPattern) -> str:
        return self._add(self.behavior, pattern)

    def add_emotion_pattern(self, pattern: EmotionPattern) -> str:
        return self._add(self.emotion, pattern)

    def get_speech_pattern(self, pattern_id: str) -> Optional[SpeechPattern]:
        return self.speech.get(pattern_id)

    def get_behavior_pattern(self, pattern_id: str) -> Optional[BehaviorPattern]:
        return self.behavior.get(pattern_id)

    def get_emotion_pattern(self, pattern_id: str) -> Optional[EmotionPattern]:
        return self.emotion.get(pattern_id)

    def get_pattern(self, pattern_id: str, kind: KindLike):
        arena = self._arena(kind)
        return arena.get(pattern_id) if arena is not None else None

    def delete_pattern(self, pattern_id: str, kind: KindLike) -> bool:
        arena = self._arena(kind)
        if arena is None:
            logger.debug(f"Unknown pattern kind: {kind}")
            return False
        return arena.remove(pattern_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Feedback and mutation
    # ─────────────────────────────────────────────────────────────────────────

    def record_pattern_use(
        self,
        pattern_id: str,
        kind: KindLike,
        success: bool = True,
        satisfaction: float = 0.5,
    ) -> bool:
        """Fold one use of a pattern into its statistics.

        Speech patterns are force-mutated every 20 uses and behavior patterns
        after three consecutive failures. ``success`` and ``satisfaction``
        only apply to behavior patterns.

        Returns:
            False if the pattern is unknown
        """
        kind = parse_enum(PatternKind, kind)
        arena = self._arena(kind) if kind is not None else None
        pattern = arena.get(pattern_id) if arena is not None else None
        if pattern is None:
            logger.debug(f"Use recorded for unknown pattern {pattern_id} ({kind})")
            return False
        now = utc_now()

        if kind == PatternKind.SPEECH:
            updated = pattern.model_copy(update={"use_count": pattern.use_count + 1, "last_used": now})
            arena.replace(updated)
            if updated.use_count % SPEECH_MUTATION_INTERVAL == 0:
                self.mutate_pattern(pattern_id, kind, force=True)

        elif kind == PatternKind.BEHAVIOR:
            satisfaction = clamp(satisfaction)
            update: dict[str, Any] = {
                "last_used": now,
                "average_satisfaction": (
                    SATISFACTION_RETENTION * pattern.average_satisfaction
                    + (1 - SATISFACTION_RETENTION) * satisfaction
                ),
            }
            if success:
                update["success_count"] = pattern.success_count + 1
                update["consecutive_failures"] = 0
            else:
                update["failure_count"] = pattern.failure_count + 1
                update["consecutive_failures"] = pattern.consecutive_failures + 1
            updated = pattern.model_copy(update=update)
            arena.replace(updated)
            if updated.consecutive_failures >= FAILURE_MUTATION_THRESHOLD:
                self.mutate_pattern(pattern_id, kind, force=True)
                current = arena.get(pattern_id)
                arena.replace(current.model_copy(update={"consecutive_failures": 0}))

        else:
            arena.replace(pattern.model_copy(update={
                "reinforcement_count": pattern.reinforcement_count + 1,
                "last_triggered": now,
            }))
        return True

    def mutate_pattern(self, pattern_id: str, kind: KindLike, force: bool = False) -> bool:
        """Apply one mutation to a pattern.

        Unforced calls go ahead with probability ``mutation_rate``. Patterns
        marked immutable are left alone even when forced.

        Returns:
            True if the pattern changed
        """
        kind = parse_enum(PatternKind, kind)
        arena = self._arena(kind) if kind is not None else None
        pattern = arena.get(pattern_id) if arena is not None else None
        if pattern is None:
            logger.debug(f"Cannot mutate unknown pattern {pattern_id} ({kind})")
            return False

        if kind == PatternKind.EMOTION:
            if not pattern.can_modify:
                return False
        elif not pattern.can_mutate:
            return False

        if not force and self.rng.random() >= self.config.mutation_rate:
            return False

        if kind == PatternKind.EMOTION:
            updated, record = jitter_intensity(pattern, self.rng)
            arena.replace(updated)
            logger.debug(f"Mood pattern {pattern_id} intensity {record.before:.2f} -> {record.after:.2f}")
            return True

        mutation_type = select_mutation_type(self.rng)
        if kind == PatternKind.SPEECH:
            mutated = mutate_speech(pattern, mutation_type, self.rng)
        else:
            mutated = mutate_behavior(pattern, mutation_type, self.rng)
        if mutated is None:
            return False

        updated, record = mutated
        arena.replace(updated)
        logger.debug(f"Mutated {kind.value} pattern {pattern_id}: {record.type.value} ({record.reason})")
        return True

    def evolve_patterns(
        self, now: Optional[datetime] = None, emotion: Optional[Emotion] = None
    ) -> EvolutionResult:
        """Run one evolution pass, then trim every collection to capacity."""
        now = now or utc_now()
        result = evolve(self.speech, self.behavior, self.emotion, self.rng, now=now, emotion=emotion)
        for kind, arena in self._arenas().items():
            for pattern_id in evict_overflow(arena, self.config.prune_threshold, now):
                result.eliminations.append(
                    PatternChange(pattern_id, kind, "evicted to stay within capacity")
                )
        if result.changed:
            logger.info(f"Pattern evolution: {result.summary()}")
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Persistence
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": LIBRARY_VERSION,
            "saved_at": utc_now().isoformat(),
            "speech": [p.model_dump(mode="json") for p in self.speech],
            "behavior": [p.model_dump(mode="json") for p in self.behavior],
            "emotion": [p.model_dump(mode="json") for p in self.emotion],
        }

    def save(self) -> None:
        """Write all collections to ``data_path/library.json``."""
        path = self.config.data_path / LIBRARY_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(
            f"Saved pattern library ({len(self.speech)} speech, {len(self.behavior)} behavior, "
            f"{len(self.emotion)} emotion) to {path}"
        )

    def load(self) -> bool:
        """Restore collections from ``data_path/library.json``.

        A missing or unreadable file falls back to :meth:`initialize`.

        Returns:
            True if the file was loaded, False if the seeds were used instead
        """
        path = self.config.data_path / LIBRARY_FILE
        if not path.exists():
            logger.info(f"No pattern library at {path}, starting from initial patterns")
            self.initialize()
            return False

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            self._install(data)
        except (OSError, ValueError, AttributeError, KeyError, TypeError) as e:
            logger.error(f"Failed to load pattern library from {path}: {e}")
            self.initialize()
            return False

        logger.info(
            f"Loaded pattern library: {len(self.speech)} speech, "
            f"{len(self.behavior)} behavior, {len(self.emotion)} emotion patterns"
        )
        return True

    def _install(self, data: dict[str, Any]) -> None:
        """Validate every record in ``data`` and only then replace the arenas."""
        loaded = {
            PatternKind.SPEECH: [SpeechPattern.model_validate(p) for p in data["speech"]],
            PatternKind.BEHAVIOR: [BehaviorPattern.model_validate(p) for p in data["behavior"]],
            PatternKind.EMOTION: [EmotionPattern.model_validate(p) for p in data["emotion"]],
        }
        for kind, arena in self._arenas().items():
            arena.clear()
            for pattern in loaded[kind]:
                if pattern.id not in arena:
                    arena.add(pattern)
            evict_overflow(arena, self.config.prune_threshold)

    @classmethod
    def from_dict(
        cls,
        data: Any,
        config: Optional[PatternLibraryConfig] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ) -> "PatternLibrary":
        """Restore from ``to_dict`` output; malformed input yields the seed patterns."""
        library = cls(config, rng=rng, seed=seed)
        try:
            library._install(data)
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            logger.warning(f"Malformed pattern library state, starting from seeds: {e}")
            library.initialize()
        return library

    # ─────────────────────────────────────────────────────────────────────────
    # Export and stats
    # ─────────────────────────────────────────────────────────────────────────

    def get_all_patterns(self) -> dict[str, list]:
        return {
            PatternKind.SPEECH.value: list(self.speech),
            PatternKind.BEHAVIOR.value: list(self.behavior),
            PatternKind.EMOTION.value: list(self.emotion),
        }

    def emotion_patterns_for_engine(self) -> list[EmotionPattern]:
        """Mood patterns for ``EmotionEngine.register_patterns``."""
        return list(self.emotion)

    def get_stats(self) -> dict[str, Any]:
        now = utc_now()
        prunable = sum(
            1
            for arena in self._arenas().values()
            for p in arena
            if p.created_by != CreatedBy.INITIAL
            and eviction_score(p, now) < self.config.prune_threshold + RECENT_USE_BONUS
        )
        behaviors = list(self.behavior)
        used = [p for p in behaviors if p.total_uses > 0]
        return {
            "speech_patterns": len(self.speech),
            "behavior_patterns": len(self.behavior),
            "emotion_patterns": len(self.emotion),
            "initial_patterns": sum(a.count_initial() for a in self._arenas().values()),
            "prunable_patterns": prunable,
            "speech_uses": sum(p.use_count for p in self.speech),
            "behavior_uses": sum(p.total_uses for p in behaviors),
            "emotion_reinforcements": sum(p.reinforcement_count for p in self.emotion),
            "average_behavior_success": mean(p.success_rate for p in used),
            "mutations": (
                sum(len(p.mutation_history) for p in self.speech)
                + sum(len(p.mutation_history) for p in behaviors)
                + sum(len(p.modification_history) for p in self.emotion)
            ),
        }

