"""Multi-dimensional mood with decay, momentum, coupling and self-correction.

Each tick the engine pulls every level toward its baseline, lets residual
momentum carry on, adds a small time-of-day bias, and propagates active
emotions through the coupling matrix. Direct changes are bounded per call and
spread to related emotions immediately.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import numpy as np

from innerlife.affect.config import EmotionConfig
from innerlife.affect.interactions import (
    BASELINES,
    EMOTION_ORDER,
    EMOTION_WORDS,
    HIGH_AROUSAL,
    LOW_AROUSAL,
    NEGATIVE_AFFECT,
    POSITIVE_AFFECT,
    TIME_EMOTION_BIAS,
    CouplingTable,
)
from innerlife.affect.self_correction import CorrectionRecord, OutcomeLike, SelfCorrector
from innerlife.affect.state import (
    EmotionalState,
    EmotionChange,
    EmotionChangeEvent,
    EmotionTrigger,
    EmotionTriggerType,
    SignificantChange,
)
from innerlife.patterns.matching import match_mood
from innerlife.patterns.schemas import EmotionPattern
from innerlife.situation import Situation
from innerlife.types import Emotion, TimeOfDay, parse_enum, utc_now
from innerlife.utils.numeric import clamp, mean

logger = logging.getLogger(__name__)

MAX_HISTORY = 1000
SAVED_HISTORY = 100
SIGNIFICANT_CHANGE = 0.2
REPORT_EPSILON = 0.01
CHANGE_EPSILON = 0.001

EmotionDeltas = Union[Mapping[Any, float], Iterable[tuple[Any, float]]]


class EmotionEngine:
    """Tracks every emotion level and the dominant mood.

    Args:
        config: Dynamics tuning, defaults to ``EmotionConfig()``
        rng: Random source for self-correction perturbations
        seed: Seed used to build ``rng`` when none is given

    Usage:
        engine = EmotionEngine(seed=7)
        engine.respond_to_visitor("arrived", familiarity=0.8)
        engine.update(tick=1, time_of_day=TimeOfDay.EVENING)
        engine.get_summary()["description"]
    """

    def __init__(
        self,
        config: Optional[EmotionConfig] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        self.config = config or EmotionConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.coupling = CouplingTable()
        self.corrector = SelfCorrector(self.config, self.coupling, self.rng)
        self._state = EmotionalState()
        self._patterns: list[EmotionPattern] = []
        self._history: list[EmotionChangeEvent] = []
        self._last_update_tick = 0

    # ─────────────────────────────────────────────────────────────────────
    # Tick
    # ─────────────────────────────────────────────────────────────────────

    def update(self, tick: int, time_of_day: TimeOfDay) -> Optional[EmotionChangeEvent]:
        """Advance one tick; returns the visible changes, or None if nothing moved."""
        changes: list[EmotionChange] = []

        self._apply_decay(changes)
        self._apply_momentum(changes)
        self._apply_time_bias(time_of_day, changes)
        self._apply_interactions(changes)
        self._normalize()
        self._update_primary_secondary()
        self._update_valence_arousal()
        self.corrector.track_stagnation(self._state.levels)
        self._last_update_tick = tick

        visible = [c for c in changes if abs(c.delta) > REPORT_EPSILON]
        if not visible:
            return None
        event = EmotionChangeEvent(trigger=EmotionTrigger(EmotionTriggerType.DECAY), changes=visible)
        self._record(event)
        return event

    def _apply_decay(self, changes: list[EmotionChange]) -> None:
        levels = self._state.levels
        for emotion, current in levels.items():
            diff = current - BASELINES[emotion]
            if abs(diff) <= 0.01:
                continue
            decay = diff * self.config.decay_rate
            levels[emotion] = current - decay
            if abs(decay) > CHANGE_EPSILON:
                changes.append(EmotionChange(emotion, current, levels[emotion], -decay))

    def _apply_momentum(self, changes: list[EmotionChange]) -> None:
        levels, momentum = self._state.levels, self._state.momentum
        for emotion, carry in momentum.items():
            if abs(carry) > CHANGE_EPSILON:
                previous = levels[emotion]
                levels[emotion] = clamp(previous + carry * 0.1)
                changes.append(EmotionChange(emotion, previous, levels[emotion],
                                             levels[emotion] - previous))
            momentum[emotion] = carry * self.config.momentum_retention

    def _apply_time_bias(self, time_of_day: TimeOfDay, changes: list[EmotionChange]) -> None:
        levels = self._state.levels
        for emotion, amount in TIME_EMOTION_BIAS[time_of_day].items():
            previous = levels[emotion]
            levels[emotion] = clamp(previous + amount * 0.1)
            if abs(levels[emotion] - previous) > CHANGE_EPSILON:
                changes.append(EmotionChange(emotion, previous, levels[emotion],
                                             levels[emotion] - previous))

    def _apply_interactions(self, changes: list[EmotionChange]) -> None:
        """Every active emotion pushes its targets through the effective coupling."""
        vector = np.array([self._state.levels[e] for e in EMOTION_ORDER])
        sources = np.where(vector >= self.config.activation_threshold, vector, 0.0)
        deltas = sources @ self.coupling.matrix() * self.config.interaction_strength * 0.01
        for i in np.flatnonzero(np.abs(deltas) > CHANGE_EPSILON):
            emotion = EMOTION_ORDER[i]
            previous = self._state.levels[emotion]
            self._state.levels[emotion] = clamp(previous + float(deltas[i]))
            changes.append(EmotionChange(emotion, previous, self._state.levels[emotion],
                                         float(deltas[i])))

    def _normalize(self) -> None:
        for emotion, level in self._state.levels.items():
            self._state.levels[emotion] = clamp(level)

    def _update_primary_secondary(self) -> None:
        ranked = sorted(self._state.levels.items(), key=lambda item: item[1], reverse=True)
        top, top_level = ranked[0]
        if top_level >= self.config.primary_threshold:
            self._state.primary = top
        self._state.secondary = None
        for emotion, level in ranked:
            if emotion == self._state.primary:
                continue
            if level >= self.config.activation_threshold:
                self._state.secondary = emotion
            break

    def _update_valence_arousal(self) -> None:
        levels = self._state.levels
        positive = mean(levels[e] for e in POSITIVE_AFFECT)
        negative = mean(levels[e] for e in NEGATIVE_AFFECT)
        self._state.valence = positive - negative
        high = mean(levels[e] for e in HIGH_AROUSAL)
        low = mean(levels[e] for e in LOW_AROUSAL)
        self._state.arousal = (high + (1.0 - low)) / 2

    # ─────────────────────────────────────────────────────────────────────
    # Direct changes
    # ─────────────────────────────────────────────────────────────────────

    def change_emotion(
        self, emotion, delta: float, trigger: Optional[EmotionTrigger] = None
    ) -> Optional[EmotionChangeEvent]:
        """Apply one bounded change; the first change in the event is the direct one."""
        resolved = parse_enum(Emotion, emotion)
        if resolved is None:
            logger.debug(f"Ignoring change to unknown emotion {emotion!r}")
            return None
        trigger = trigger or EmotionTrigger(EmotionTriggerType.EXTERNAL)
        limit = self.config.max_change_per_tick
        direct, propagated = self._apply_change(resolved, clamp(delta, -limit, limit), trigger)

        self._update_primary_secondary()
        self._update_valence_arousal()
        event = EmotionChangeEvent(trigger=trigger, changes=[direct, *propagated])
        self._record(event)
        return event

    def change_emotions(
        self, changes: EmotionDeltas, trigger: Optional[EmotionTrigger] = None
    ) -> Optional[EmotionChangeEvent]:
        """Apply several changes at once, each bounded to twice the single-change limit.

        Entries are applied in order, so the same emotion may appear more than
        once. Unknown emotions are skipped; None when nothing was applicable.
        """
        items = changes.items() if isinstance(changes, Mapping) else changes
        trigger = trigger or EmotionTrigger(EmotionTriggerType.EXTERNAL)
        limit = self.config.max_change_per_tick * 2
        applied: list[EmotionChange] = []
        for emotion, delta in items:
            resolved = parse_enum(Emotion, emotion)
            if resolved is None:
                logger.debug(f"Skipping unknown emotion {emotion!r} in batch change")
                continue
            direct, propagated = self._apply_change(resolved, clamp(delta, -limit, limit), trigger)
            applied.append(direct)
            applied.extend(propagated)
        if not applied:
            return None

        self._update_primary_secondary()
        self._update_valence_arousal()
        event = EmotionChangeEvent(
            trigger=trigger,
            changes=[c for c in applied if abs(c.delta) > CHANGE_EPSILON],
        )
        self._record(event)
        return event

    def _apply_change(
        self, emotion: Emotion, clamped: float, trigger: EmotionTrigger
    ) -> tuple[EmotionChange, list[EmotionChange]]:
        previous = self._state.levels[emotion]
        self._state.levels[emotion] = clamp(previous + clamped)
        self._state.momentum[emotion] = clamped * 0.5
        direct = EmotionChange(emotion, previous, self._state.levels[emotion],
                               self._state.levels[emotion] - previous)
        if abs(clamped) > SIGNIFICANT_CHANGE:
            self._state.last_significant_change = SignificantChange(
                emotion=emotion, timestamp=utc_now(), trigger=trigger.label
            )
        return direct, self._propagate(emotion, clamped)

    def _propagate(self, source: Emotion, delta: float) -> list[EmotionChange]:
        changes = []
        for target, coupling in self.coupling.targets(source):
            propagated = delta * coupling * self.config.interaction_strength
            if abs(propagated) <= REPORT_EPSILON:
                continue
            previous = self._state.levels[target]
            self._state.levels[target] = clamp(previous + propagated)
            changes.append(EmotionChange(target, previous, self._state.levels[target],
                                         self._state.levels[target] - previous))
        return changes

    # ─────────────────────────────────────────────────────────────────────
    # Reactions
    # ─────────────────────────────────────────────────────────────────────

    def respond_to_visitor(self, event: str, familiarity: float) -> Optional[EmotionChangeEvent]:
        """React to a visitor arriving, leaving or sending a message."""
        familiarity = clamp(familiarity)
        if event == "arrived":
            changes = [
                (Emotion.WARMTH, 0.2 + familiarity * 0.2),
                (Emotion.LONELINESS, -0.3),
                (Emotion.ANTICIPATION, 0.15),
            ]
            if familiarity > 0.5:
                changes.append((Emotion.JOY, 0.15))
        elif event == "departed":
            changes = [
                (Emotion.LONELINESS, 0.15 + familiarity * 0.1),
                (Emotion.MELANCHOLY, 0.1),
                (Emotion.WARMTH, -0.2),
            ]
            if familiarity > 0.7:
                changes.append((Emotion.NOSTALGIA, 0.1))
        elif event == "message":
            changes = [(Emotion.WARMTH, 0.05), (Emotion.CURIOSITY, 0.05)]
        else:
            logger.debug(f"No reaction defined for visitor event {event!r}")
            return None
        return self.change_emotions(changes, EmotionTrigger(EmotionTriggerType.VISITOR, event))

    def respond_to_action(
        self, action: str, outcome: str, satisfaction: float = 0.5
    ) -> Optional[EmotionChangeEvent]:
        """React to an action being started, completed or failing."""
        satisfaction = clamp(satisfaction)
        if outcome == "completed":
            changes = [
                (Emotion.CONTENTMENT, satisfaction * 0.2),
                (Emotion.JOY, satisfaction * 0.1),
            ]
            if "read" in action or "learn" in action:
                changes.append((Emotion.CURIOSITY, -0.1 + satisfaction * 0.15))
            if "sing" in action or "create" in action:
                changes.append((Emotion.JOY, 0.15))
            if "rest" in action or "sleep" in action:
                changes.extend([(Emotion.PEACE, 0.2), (Emotion.FATIGUE, -0.3)])
        elif outcome == "failed":
            changes = [(Emotion.CONFUSION, 0.1), (Emotion.ANXIETY, 0.05)]
        elif outcome == "started":
            changes = [(Emotion.ANTICIPATION, 0.1)]
        else:
            logger.debug(f"No reaction defined for action outcome {outcome!r}")
            return None
        return self.change_emotions(
            changes, EmotionTrigger(EmotionTriggerType.ACTION, f"{action}:{outcome}")
        )

    def respond_to_memory(
        self, memory_id: str, emotional_tags: Sequence[str], intensity: float
    ) -> Optional[EmotionChangeEvent]:
        """Re-evoke the emotions a recalled memory is tagged with."""
        intensity = clamp(intensity)
        changes = [(tag, intensity * 0.3) for tag in emotional_tags]
        if intensity > 0.3:
            changes.append((Emotion.NOSTALGIA, 0.1))
        return self.change_emotions(changes, EmotionTrigger(EmotionTriggerType.MEMORY, memory_id))

    def apply_yuragi_effect(
        self, yuragi_type: str, changes: Mapping[str, float]
    ) -> Optional[EmotionChangeEvent]:
        return self.change_emotions(changes, EmotionTrigger(EmotionTriggerType.YURAGI, yuragi_type))

    # ─────────────────────────────────────────────────────────────────────
    # Patterns
    # ─────────────────────────────────────────────────────────────────────

    def register_patterns(self, patterns: Iterable[EmotionPattern]) -> None:
        self._patterns = list(patterns)

    def add_pattern(self, pattern: EmotionPattern) -> None:
        self._patterns.append(pattern)

    def apply_pattern(self, pattern: EmotionPattern) -> Optional[EmotionChangeEvent]:
        response = pattern.response
        return self.change_emotions(
            [(response.primary, response.intensity)],
            EmotionTrigger(EmotionTriggerType.PATTERN, pattern.id),
        )

    def find_matching_pattern(self, situation: Situation) -> Optional[EmotionPattern]:
        """Most specific registered pattern matching ``situation``, ties to the most reinforced."""
        candidates = [p for p in self._patterns if match_mood(p, situation)]
        if not candidates:
            return None
        return max(
            candidates,
            key=lambda p: (p.situation.specificity(), p.reinforcement_count),
        )

    def respond_to_situation(self, situation: Situation) -> Optional[EmotionChangeEvent]:
        pattern = self.find_matching_pattern(situation)
        if pattern is None:
            return None
        return self.apply_pattern(pattern)

    # ─────────────────────────────────────────────────────────────────────
    # Self-correction
    # ─────────────────────────────────────────────────────────────────────

    def record_trigger_outcome(
        self, trigger_type: str, emotion, intensity: float, outcome: OutcomeLike
    ) -> bool:
        """Accumulate what followed a triggered emotion; False for an unknown emotion."""
        resolved = parse_enum(Emotion, emotion)
        if resolved is None:
            logger.debug(f"Ignoring trigger outcome for unknown emotion {emotion!r}")
            return False
        self.corrector.record_outcome(trigger_type, resolved, clamp(intensity), outcome)
        return True

    def perform_self_correction(self) -> list[CorrectionRecord]:
        corrections = self.corrector.perform(self._state, self._history)
        if corrections:
            self._normalize()
            self._update_primary_secondary()
            self._update_valence_arousal()
        return corrections

    def adjust_sensitivity(self, emotion, direction: str, amount: float) -> bool:
        resolved = parse_enum(Emotion, emotion)
        if resolved is None:
            logger.debug(f"Ignoring sensitivity adjustment for unknown emotion {emotion!r}")
            return False
        record = self.corrector.adjust_sensitivity(self._state, resolved, direction, amount)
        if record is None:
            return False
        self._update_primary_secondary()
        self._update_valence_arousal()
        return True

    def get_effective_coupling(self, source, target) -> float:
        source, target = parse_enum(Emotion, source), parse_enum(Emotion, target)
        if source is None or target is None:
            return 0.0
        return self.coupling.effective(source, target)

    def get_self_correction_log(self, count: int = 20) -> list[CorrectionRecord]:
        return self.corrector.recent_log(count)

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    def get_state(self) -> EmotionalState:
        return self._state.copy()

    def get_emotion_level(self, emotion) -> float:
        resolved = parse_enum(Emotion, emotion)
        return self._state.levels[resolved] if resolved is not None else 0.0

    def get_primary_emotion(self) -> Emotion:
        return self._state.primary

    def get_active_emotions(self) -> list[tuple[Emotion, float]]:
        active = [
            (emotion, level) for emotion, level in self._state.levels.items()
            if level >= self.config.activation_threshold
        ]
        return sorted(active, key=lambda item: item[1], reverse=True)

    def describe(self) -> str:
        """Short natural-language rendering of the current mood."""
        level = self._state.levels[self._state.primary]
        if level > 0.8:
            intensity = "very "
        elif level > 0.6:
            intensity = "quite "
        elif level > 0.4:
            intensity = ""
        else:
            intensity = "a little "
        description = f"{intensity}{EMOTION_WORDS[self._state.primary]}"
        if self._state.secondary is not None:
            description += f", and {EMOTION_WORDS[self._state.secondary]}"
        return description

    def get_summary(self) -> dict[str, Any]:
        return {
            "primary": self._state.primary,
            "secondary": self._state.secondary,
            "valence": self._state.valence,
            "arousal": self._state.arousal,
            "description": self.describe(),
        }

    def get_recent_changes(self, count: int = 10) -> list[EmotionChangeEvent]:
        return self._history[-count:]

    def get_last_significant_change(self) -> Optional[SignificantChange]:
        return self._state.last_significant_change

    def get_stats(self) -> dict[str, Any]:
        return {
            "active_emotion_count": len(self.get_active_emotions()),
            "dominant_emotion": self._state.primary,
            "valence": self._state.valence,
            "arousal": self._state.arousal,
            "history_size": len(self._history),
            "pattern_count": len(self._patterns),
            "coupling_overrides": len(self.coupling.overrides),
            "tracked_triggers": len(self.corrector.trigger_stats),
        }

    def _record(self, event: EmotionChangeEvent) -> None:
        self._history.append(event)
        if len(self._history) > MAX_HISTORY:
            self._history = self._history[-MAX_HISTORY:]

    # ─────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "state": self._state.to_dict(),
            "history": [e.to_dict() for e in self._history[-SAVED_HISTORY:]],
            "pattern_ids": [p.id for p in self._patterns],
            "last_update_tick": self._last_update_tick,
            "coupling_overrides": self.coupling.to_dict(),
            "self_correction": self.corrector.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Any,
        patterns: Optional[Iterable[EmotionPattern]] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ) -> "EmotionEngine":
        """Restore from ``to_dict`` output; malformed input yields a fresh engine.

        Patterns are not part of the saved state; pass them in (or call
        ``register_patterns`` afterwards).
        """
        try:
            engine = cls(EmotionConfig.from_dict(data.get("config", {})), rng=rng, seed=seed)
            engine._state = EmotionalState.from_dict(data["state"])
            engine._history = [EmotionChangeEvent.from_dict(e) for e in data.get("history", [])]
            engine._last_update_tick = int(data.get("last_update_tick", 0))
            restored = CouplingTable.from_dict(data.get("coupling_overrides", []))
            engine.coupling.overrides.update(restored.overrides)
            engine.corrector.restore(data.get("self_correction", {}))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed emotion state, starting fresh: {e}")
            engine = cls(rng=rng, seed=seed)
        if patterns is not None:
            engine.register_patterns(patterns)
        return engine


