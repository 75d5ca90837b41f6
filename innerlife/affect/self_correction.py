"""Statistics-driven self-correction of the emotion dynamics.

Downstream consumers report, per (trigger, emotion) pair, whether the
emotion helped, how long it lasted, whether it led to an action and what
followed it. Periodically those statistics reshape the engine: overreactions
lose momentum, idle emotions fade, stagnant levels get a nudge, a flat mood
gets a characteristic emotion back, frequent successions strengthen their
coupling, and momentum drifts toward the recent average.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import numpy as np

from innerlife.affect.config import EmotionConfig
from innerlife.affect.interactions import CouplingTable
from innerlife.affect.state import EmotionalState, EmotionChangeEvent
from innerlife.types import Emotion, parse_datetime, parse_enum, utc_now
from innerlife.utils.numeric import clamp

logger = logging.getLogger(__name__)

MAX_CORRECTION_LOG = 100

DESENSITIZE_MIN_OCCURRENCES = 5
DESENSITIZE_HELPFUL_RATE = 0.3
DESENSITIZE_INTENSITY = 0.5
DESENSITIZE_FACTOR = 0.7

IDLE_MIN_OCCURRENCES = 10
IDLE_ACTION_RATE = 0.1
IDLE_FACTOR = 0.95

STAGNATION_BAND = 0.02
STAGNATION_TICKS = 100
STAGNATION_PERTURBATION = 0.05

DIVERSITY_WINDOW = 20
DIVERSITY_MAX_DISTINCT = 2
DIVERSITY_DORMANT_CEILING = 0.2
DIVERSITY_BOOST = 0.15
DIVERSITY_MOMENTUM = 0.05
CHARACTERISTIC_EMOTIONS = (Emotion.CURIOSITY, Emotion.WONDER, Emotion.NOSTALGIA)

COUPLING_MIN_OCCURRENCES = 8
COUPLING_FREQUENCY = 0.5
COUPLING_STEP = 0.02

BASELINE_MIN_HISTORY = 50
BASELINE_WINDOW = 30
BASELINE_DIVERGENCE = 0.15
BASELINE_NUDGE = 0.02


class CorrectionType(str, Enum):
    DESENSITIZE = "desensitize"
    REDUCE_IDLE = "reduce_idle"
    BREAK_STAGNATION = "break_stagnation"
    DIVERSITY_BOOST = "diversity_boost"
    COUPLING_ADJUST = "coupling_adjust"
    BASELINE_ADAPT = "baseline_adapt"
    EXTERNAL_ADJUST = "external_adjust"


@dataclass(frozen=True)
class TriggerOutcome:
    """What happened after an emotion was triggered."""

    was_helpful: bool
    duration_ticks: int = 0
    led_to_action: bool = False
    subsequent_emotion: Optional[Emotion] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TriggerOutcome":
        subsequent = data.get("subsequent_emotion")
        return cls(
            was_helpful=bool(data.get("was_helpful", False)),
            duration_ticks=int(data.get("duration_ticks", 0)),
            led_to_action=bool(data.get("led_to_action", False)),
            subsequent_emotion=parse_enum(Emotion, subsequent) if subsequent else None,
        )


@dataclass
class TriggerStats:
    trigger_type: str
    emotion: Emotion
    occurrences: int = 0
    helpful_count: int = 0
    total_intensity: float = 0.0
    total_duration: int = 0
    action_lead_count: int = 0
    subsequent_emotions: dict[Emotion, int] = field(default_factory=dict)

    @property
    def helpful_rate(self) -> float:
        return self.helpful_count / self.occurrences if self.occurrences else 0.0

    @property
    def average_intensity(self) -> float:
        return self.total_intensity / self.occurrences if self.occurrences else 0.0

    @property
    def action_rate(self) -> float:
        return self.action_lead_count / self.occurrences if self.occurrences else 0.0

    @property
    def average_duration(self) -> float:
        return self.total_duration / self.occurrences if self.occurrences else 0.0

    def record(self, intensity: float, outcome: TriggerOutcome) -> None:
        self.occurrences += 1
        if outcome.was_helpful:
            self.helpful_count += 1
        self.total_intensity += intensity
        self.total_duration += outcome.duration_ticks
        if outcome.led_to_action:
            self.action_lead_count += 1
        if outcome.subsequent_emotion is not None:
            subsequent = outcome.subsequent_emotion
            self.subsequent_emotions[subsequent] = self.subsequent_emotions.get(subsequent, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger_type": self.trigger_type,
            "emotion": self.emotion.value,
            "occurrences": self.occurrences,
            "helpful_count": self.helpful_count,
            "total_intensity": self.total_intensity,
            "total_duration": self.total_duration,
            "action_lead_count": self.action_lead_count,
            "subsequent_emotions": {e.value: n for e, n in self.subsequent_emotions.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TriggerStats":
        return cls(
            trigger_type=data["trigger_type"],
            emotion=Emotion(data["emotion"]),
            occurrences=int(data["occurrences"]),
            helpful_count=int(data["helpful_count"]),
            total_intensity=float(data["total_intensity"]),
            total_duration=int(data["total_duration"]),
            action_lead_count=int(data["action_lead_count"]),
            subsequent_emotions={
                Emotion(k): int(v) for k, v in data.get("subsequent_emotions", {}).items()
            },
        )


@dataclass
class StagnationTracker:
    level: float
    duration: int = 0


@dataclass(frozen=True)
class CorrectionRecord:
    type: CorrectionType
    target: Emotion
    description: str
    adjustment: float
    reason: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "target": self.target.value,
            "description": self.description,
            "adjustment": self.adjustment,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CorrectionRecord":
        return cls(
            type=CorrectionType(data["type"]),
            target=Emotion(data["target"]),
            description=data["description"],
            adjustment=float(data["adjustment"]),
            reason=data["reason"],
            timestamp=parse_datetime(data["timestamp"]),
        )


OutcomeLike = Union[TriggerOutcome, Mapping[str, Any]]


class SelfCorrector:
    """Owns trigger statistics and stagnation trackers and applies corrections.

    The corrector mutates the state it is handed; the engine passes its live
    state and history in on every call and owns the coupling table shared
    here for coupling adjustments.
    """

    def __init__(
        self,
        config: EmotionConfig,
        coupling: CouplingTable,
        rng: np.random.Generator,
    ):
        self.config = config
        self.coupling = coupling
        self.rng = rng
        self.trigger_stats: dict[tuple[str, Emotion], TriggerStats] = {}
        self.stagnation: dict[Emotion, StagnationTracker] = {}
        self.log: deque[CorrectionRecord] = deque(maxlen=MAX_CORRECTION_LOG)

    def record_outcome(
        self,
        trigger_type: str,
        emotion: Emotion,
        intensity: float,
        outcome: OutcomeLike,
    ) -> TriggerStats:
        if not isinstance(outcome, TriggerOutcome):
            outcome = TriggerOutcome.from_dict(outcome)
        key = (trigger_type, emotion)
        stats = self.trigger_stats.get(key)
        if stats is None:
            stats = TriggerStats(trigger_type=trigger_type, emotion=emotion)
            self.trigger_stats[key] = stats
        stats.record(intensity, outcome)
        return stats

    def track_stagnation(self, levels: Mapping[Emotion, float]) -> None:
        """Called once per tick: count how long each level stays within the band."""
        for emotion, level in levels.items():
            tracker = self.stagnation.get(emotion)
            if tracker is None:
                self.stagnation[emotion] = StagnationTracker(level=level)
            elif abs(tracker.level - level) < STAGNATION_BAND:
                tracker.duration += 1
            else:
                tracker.level = level
                tracker.duration = 0

    def perform(
        self, state: EmotionalState, history: Sequence[EmotionChangeEvent]
    ) -> list[CorrectionRecord]:
        """Run every correction policy once against ``state``."""
        corrections: list[CorrectionRecord] = []

        for stats in self.trigger_stats.values():
            if (
                stats.occurrences >= DESENSITIZE_MIN_OCCURRENCES
                and stats.helpful_rate < DESENSITIZE_HELPFUL_RATE
                and stats.average_intensity > DESENSITIZE_INTENSITY
            ):
                corrections.append(self._desensitize(state, stats))
            if stats.occurrences >= IDLE_MIN_OCCURRENCES and stats.action_rate < IDLE_ACTION_RATE:
                corrections.append(self._reduce_idle(state, stats))

        for emotion, tracker in self.stagnation.items():
            if tracker.duration > STAGNATION_TICKS:
                corrections.append(self._break_stagnation(state, emotion, tracker))

        diversity = self._ensure_diversity(state, history)
        if diversity is not None:
            corrections.append(diversity)

        corrections.extend(self._adjust_couplings())
        corrections.extend(self._adapt_baselines(state, history))

        self.log.extend(corrections)
        if corrections:
            kinds = sorted({c.type.value for c in corrections})
            logger.info(f"Self-correction applied {len(corrections)} adjustments: {kinds}")
        else:
            logger.debug("Self-correction found nothing to adjust")
        return corrections

    def adjust_sensitivity(
        self, state: EmotionalState, emotion: Emotion, direction: str, amount: float
    ) -> Optional[CorrectionRecord]:
        if direction not in ("increase", "decrease"):
            logger.debug(f"Ignoring sensitivity adjustment with direction {direction!r}")
            return None
        signed = amount if direction == "increase" else -amount
        state.levels[emotion] = clamp(state.levels[emotion] + signed)
        record = CorrectionRecord(
            type=CorrectionType.EXTERNAL_ADJUST,
            target=emotion,
            description=f"{emotion.value} sensitivity adjusted ({direction})",
            adjustment=signed,
            reason="external request",
        )
        self.log.append(record)
        return record

    def recent_log(self, count: int = 20) -> list[CorrectionRecord]:
        return list(self.log)[-count:]

    # ─────────────────────────────────────────────────────────────────────
    # Policies
    # ─────────────────────────────────────────────────────────────────────

    def _desensitize(self, state: EmotionalState, stats: TriggerStats) -> CorrectionRecord:
        emotion = stats.emotion
        if abs(state.momentum[emotion]) > 0.01:
            state.momentum[emotion] *= DESENSITIZE_FACTOR
        return CorrectionRecord(
            type=CorrectionType.DESENSITIZE,
            target=emotion,
            description=f"{emotion.value} overreacts to {stats.trigger_type}; momentum weakened",
            adjustment=DESENSITIZE_FACTOR - 1.0,
            reason=(
                f"helpful rate {stats.helpful_rate:.0%}, "
                f"average intensity {stats.average_intensity:.2f}"
            ),
        )

    def _reduce_idle(self, state: EmotionalState, stats: TriggerStats) -> CorrectionRecord:
        emotion = stats.emotion
        state.levels[emotion] *= IDLE_FACTOR
        return CorrectionRecord(
            type=CorrectionType.REDUCE_IDLE,
            target=emotion,
            description=f"{emotion.value} rarely leads to action; intensity reduced",
            adjustment=IDLE_FACTOR - 1.0,
            reason=f"action rate {stats.action_rate:.0%}",
        )

    def _break_stagnation(
        self, state: EmotionalState, emotion: Emotion, tracker: StagnationTracker
    ) -> CorrectionRecord:
        stalled_for = tracker.duration
        perturbation = float(self.rng.uniform(-STAGNATION_PERTURBATION, STAGNATION_PERTURBATION))
        new_level = clamp(state.levels[emotion] + perturbation)
        state.levels[emotion] = new_level
        state.momentum[emotion] += perturbation * 0.5
        tracker.level = new_level
        tracker.duration = 0
        return CorrectionRecord(
            type=CorrectionType.BREAK_STAGNATION,
            target=emotion,
            description=f"{emotion.value} stalled for {stalled_for} ticks; perturbed",
            adjustment=perturbation,
            reason=f"stalled near {new_level - perturbation:.2f}",
        )

    def _ensure_diversity(
        self, state: EmotionalState, history: Sequence[EmotionChangeEvent]
    ) -> Optional[CorrectionRecord]:
        active = [
            e for e, level in state.levels.items()
            if level >= self.config.activation_threshold
        ]
        if len(active) > 1 or len(history) < DIVERSITY_WINDOW:
            return None

        representatives = {
            _representative(event, state.primary) for event in history[-DIVERSITY_WINDOW:]
        }
        if len(representatives) > DIVERSITY_MAX_DISTINCT:
            return None

        emotion = CHARACTERISTIC_EMOTIONS[int(self.rng.integers(len(CHARACTERISTIC_EMOTIONS)))]
        current = state.levels[emotion]
        if current >= DIVERSITY_DORMANT_CEILING:
            return None
        state.levels[emotion] = clamp(current + DIVERSITY_BOOST)
        state.momentum[emotion] += DIVERSITY_MOMENTUM
        return CorrectionRecord(
            type=CorrectionType.DIVERSITY_BOOST,
            target=emotion,
            description=f"mood has flattened; {emotion.value} reawakened",
            adjustment=DIVERSITY_BOOST,
            reason=f"{len(active)} active emotions",
        )

    def _adjust_couplings(self) -> list[CorrectionRecord]:
        corrections = []
        for stats in self.trigger_stats.values():
            if stats.occurrences < COUPLING_MIN_OCCURRENCES:
                continue
            source = stats.emotion
            for subsequent, count in stats.subsequent_emotions.items():
                frequency = count / stats.occurrences
                if frequency <= COUPLING_FREQUENCY or subsequent == source:
                    continue
                current = self.coupling.effective(source, subsequent)
                updated = clamp(current + COUPLING_STEP, -1.0, 1.0)
                if abs(updated - current) <= 0.01:
                    continue
                self.coupling.set_override(source, subsequent, updated)
                corrections.append(CorrectionRecord(
                    type=CorrectionType.COUPLING_ADJUST,
                    target=source,
                    description=(
                        f"{source.value}->{subsequent.value} coupling "
                        f"{current:+.2f} -> {updated:+.2f}"
                    ),
                    adjustment=updated - current,
                    reason=f"followed by {subsequent.value} {frequency:.0%} of the time",
                ))
        return corrections

    def _adapt_baselines(
        self, state: EmotionalState, history: Sequence[EmotionChangeEvent]
    ) -> list[CorrectionRecord]:
        if len(history) < BASELINE_MIN_HISTORY:
            return []

        recent = _recent_levels(history, BASELINE_WINDOW)
        corrections = []
        for emotion, levels in recent.items():
            average = float(np.mean(levels))
            current = state.levels[emotion]
            if abs(average - current) <= BASELINE_DIVERGENCE:
                continue
            nudge = BASELINE_NUDGE if average > current else -BASELINE_NUDGE
            state.momentum[emotion] += nudge
            corrections.append(CorrectionRecord(
                type=CorrectionType.BASELINE_ADAPT,
                target=emotion,
                description=f"{emotion.value} drifting toward its recent average {average:.2f}",
                adjustment=nudge,
                reason=f"current {current:.2f} vs recent {average:.2f}",
            ))
        return corrections

    # ─────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger_stats": [stats.to_dict() for stats in self.trigger_stats.values()],
            "stagnation": {
                emotion.value: {"level": t.level, "duration": t.duration}
                for emotion, t in self.stagnation.items()
            },
            "log": [record.to_dict() for record in self.log],
        }

    def restore(self, data: dict[str, Any]) -> None:
        """Load statistics, trackers and the log written by ``to_dict``."""
        stats = [TriggerStats.from_dict(s) for s in data.get("trigger_stats", [])]
        self.trigger_stats = {(s.trigger_type, s.emotion): s for s in stats}
        self.stagnation = {
            Emotion(k): StagnationTracker(level=float(v["level"]), duration=int(v["duration"]))
            for k, v in data.get("stagnation", {}).items()
        }
        self.log = deque(
            (CorrectionRecord.from_dict(r) for r in data.get("log", [])),
            maxlen=MAX_CORRECTION_LOG,
        )


def _representative(event: EmotionChangeEvent, fallback: Emotion) -> Emotion:
    """Emotion that ended highest in ``event``."""
    if not event.changes:
        return fallback
    return max(event.changes, key=lambda c: c.new_level).emotion


def _recent_levels(
    history: Iterable[EmotionChangeEvent], window: int
) -> dict[Emotion, list[float]]:
    """Per emotion, its new level in each of the last ``window`` events that touched it."""
    recent: dict[Emotion, list[float]] = {}
    for event in reversed(list(history)):
        for emotion in {c.emotion for c in event.changes}:
            levels = recent.setdefault(emotion, [])
            if len(levels) < window:
                levels.append(event.change_for(emotion).new_level)
    return recent
