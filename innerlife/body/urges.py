"""Motivational urges: natural growth, satisfaction, suppression and conflict.

Urges grow on their own every tick, faster the longer they go unsatisfied,
and are nudged by time of day, by the current emotions and by homeostatic
pressure. An urge above the dominance threshold suppresses the urges it
dominates; pairs linked by suppression that are both strongly active are
reported as conflicts, which the caller may try to resolve.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from innerlife.body.config import UrgeSystemConfig
from innerlife.body.profiles import CONFLICT_PAIRS, URGE_PROFILES, canonical_pair
from innerlife.types import Emotion, TimeOfDay, Urge, parse_datetime, parse_enum, utc_now
from innerlife.utils.numeric import clamp

logger = logging.getLogger(__name__)

MAX_HISTORY = 500
MAX_ASSOCIATED_MEMORIES = 100
GROWTH_EVENT_EPSILON = 0.01
EMOTION_INFLUENCE_FLOOR = 0.005
ACTIVE_LEVEL = 0.3
RECOMMEND_LEVEL = 0.4
RECENCY_BONUS = 0.05
CONFLICT_LOSER_FACTOR = 0.9


class UrgeTriggerType(str, Enum):
    NATURAL_GROWTH = "natural_growth"
    TIME_INFLUENCE = "time_influence"
    EMOTION_INFLUENCE = "emotion_influence"
    HOMEOSTASIS_INFLUENCE = "homeostasis_influence"
    ACTION_SATISFACTION = "action_satisfaction"
    SUPPRESSION = "suppression"
    EXTERNAL = "external"
    CONFLICT_RESOLUTION = "conflict_resolution"


@dataclass(frozen=True)
class UrgeTrigger:
    type: UrgeTriggerType
    detail: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "detail": self.detail}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UrgeTrigger":
        return cls(type=UrgeTriggerType(data["type"]), detail=data.get("detail"))


@dataclass
class UrgeState:
    """Level and bookkeeping for one urge.

    Attributes:
        level: Current strength in [minimum_level, 1]
        change_rate: Most recent change applied
        last_satisfied: When the urge was last reduced by satisfaction
        last_reinforced: When the urge was last deliberately increased
        associated_memories: Opaque memory ids linked to this urge
    """

    level: float
    change_rate: float = 0.0
    last_satisfied: Optional[datetime] = None
    last_reinforced: Optional[datetime] = None
    associated_memories: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "change_rate": self.change_rate,
            "last_satisfied": self.last_satisfied.isoformat() if self.last_satisfied else None,
            "last_reinforced": self.last_reinforced.isoformat() if self.last_reinforced else None,
            "associated_memories": list(self.associated_memories),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UrgeState":
        return cls(
            level=clamp(float(data["level"])),
            change_rate=float(data.get("change_rate", 0.0)),
            last_satisfied=parse_datetime(data.get("last_satisfied")),
            last_reinforced=parse_datetime(data.get("last_reinforced")),
            associated_memories=[str(m) for m in data.get("associated_memories", [])],
        )


@dataclass
class UrgeConflict:
    """Two mutually suppressive urges that are both strongly active."""

    urge_a: Urge
    urge_b: Urge
    intensity: float
    resolution_attempts: int = 0

    @property
    def pair(self) -> tuple[Urge, Urge]:
        return canonical_pair(self.urge_a, self.urge_b)

    def to_dict(self) -> dict[str, Any]:
        return {
            "urge_a": self.urge_a.value,
            "urge_b": self.urge_b.value,
            "intensity": self.intensity,
            "resolution_attempts": self.resolution_attempts,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UrgeConflict":
        return cls(
            urge_a=Urge(data["urge_a"]),
            urge_b=Urge(data["urge_b"]),
            intensity=float(data["intensity"]),
            resolution_attempts=int(data.get("resolution_attempts", 0)),
        )


@dataclass
class UrgeChangeEvent:
    urge: Urge
    previous_level: float
    new_level: float
    trigger: UrgeTrigger
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "urge": self.urge.value,
            "previous_level": self.previous_level,
            "new_level": self.new_level,
            "trigger": self.trigger.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UrgeChangeEvent":
        return cls(
            urge=Urge(data["urge"]),
            previous_level=float(data["previous_level"]),
            new_level=float(data["new_level"]),
            trigger=UrgeTrigger.from_dict(data["trigger"]),
            timestamp=parse_datetime(data["timestamp"]),
        )


@dataclass(frozen=True)
class ConflictResolution:
    resolved: bool
    winner: Optional[Urge]
    description: str


@dataclass(frozen=True)
class UrgeRecommendation:
    action: str
    urgency: float
    satisfies: tuple[Urge, ...]


def initial_level(urge: Urge, minimum_level: float) -> float:
    """Starting level: importance-weighted, plus the urge's character bias."""
    profile = URGE_PROFILES[urge]
    return clamp(profile.importance * 0.3 + profile.initial_bias, minimum_level, 1.0)


class UrgeSystem:
    """Tracks the level of every urge and the conflicts between them.

    The clock is injectable so growth acceleration (which depends on how long
    an urge has gone unsatisfied) can be driven deterministically.
    """

    def __init__(
        self,
        config: Optional[UrgeSystemConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config or UrgeSystemConfig()
        self._clock = clock
        self._urges: dict[Urge, UrgeState] = {
            urge: UrgeState(level=initial_level(urge, self.config.minimum_level))
            for urge in Urge
        }
        self._conflicts: dict[tuple[Urge, Urge], UrgeConflict] = {}
        self._dominant: Optional[Urge] = None
        self._history: list[UrgeChangeEvent] = []
        self._last_update_tick = 0
        self._refresh_dominant()

    # ─────────────────────────────────────────────────────────────────────
    # Tick
    # ─────────────────────────────────────────────────────────────────────

    def update(
        self,
        tick: int,
        time_of_day: TimeOfDay,
        emotion_levels: Mapping[Any, float],
        homeostasis_influences: Optional[Mapping[Urge, float]] = None,
    ) -> list[UrgeChangeEvent]:
        """Advance one tick.

        Applies natural growth, time-of-day bias, emotion bias, homeostatic
        pressure and suppression, normalizes every level, then refreshes
        conflicts and the dominant urge.
        """
        now = self._clock()
        events: list[UrgeChangeEvent] = []

        self._apply_growth(events, now)
        self._apply_time_influence(events, time_of_day)
        self._apply_emotion_influence(events, emotion_levels)
        if homeostasis_influences:
            events.extend(self.apply_homeostasis_influence(homeostasis_influences, record=False))
        self._apply_suppression(events)
        self._normalize()
        self._detect_conflicts()
        self._refresh_dominant()

        self._last_update_tick = tick
        self._history.extend(events)
        self._trim_history()
        return events

    def _apply_growth(self, events: list[UrgeChangeEvent], now: datetime) -> None:
        for urge, state in self._urges.items():
            profile = URGE_PROFILES[urge]
            growth = self.config.base_growth_rate * profile.growth * profile.importance
            if state.last_satisfied is not None:
                hours = max(0.0, (now - state.last_satisfied).total_seconds() / 3600.0)
                growth *= 1.0 + min(0.5, hours)
            previous = state.level
            state.level += growth
            state.change_rate = growth
            if growth > GROWTH_EVENT_EPSILON:
                events.append(self._event(
                    urge, previous, state.level, UrgeTrigger(UrgeTriggerType.NATURAL_GROWTH)
                ))

    def _apply_time_influence(self, events: list[UrgeChangeEvent], time_of_day: TimeOfDay) -> None:
        for urge, state in self._urges.items():
            influence = URGE_PROFILES[urge].time_influence.get(time_of_day)
            if influence is None or abs(influence) <= 0.01:
                continue
            previous = state.level
            state.level += influence * 0.01
            events.append(self._event(
                urge, previous, state.level,
                UrgeTrigger(UrgeTriggerType.TIME_INFLUENCE, time_of_day.value),
            ))

    def _apply_emotion_influence(
        self, events: list[UrgeChangeEvent], emotion_levels: Mapping[Any, float]
    ) -> None:
        levels: dict[Emotion, float] = {}
        for key, value in emotion_levels.items():
            emotion = parse_enum(Emotion, key)
            if emotion is not None:
                levels[emotion] = clamp(value)

        for urge, state in self._urges.items():
            total = 0.0
            strongest: Optional[Emotion] = None
            strongest_contribution = 0.0
            for emotion, weight in URGE_PROFILES[urge].emotion_influence.items():
                contribution = weight * levels.get(emotion, 0.0) * 0.02
                total += contribution
                if abs(contribution) > abs(strongest_contribution):
                    strongest_contribution = contribution
                    strongest = emotion
            if abs(total) > EMOTION_INFLUENCE_FLOOR and strongest is not None:
                previous = state.level
                state.level += total
                events.append(self._event(
                    urge, previous, state.level,
                    UrgeTrigger(UrgeTriggerType.EMOTION_INFLUENCE, strongest.value),
                ))

    def apply_homeostasis_influence(
        self, influences: Mapping[Urge, float], record: bool = True
    ) -> list[UrgeChangeEvent]:
        """Raise urges fed by unstable homeostatic variables.

        Each influence adds ``value × 0.01``; the result is bounded to
        ``[minimum_level, 1]`` when called outside a tick.
        """
        events = []
        for key, value in influences.items():
            urge = parse_enum(Urge, key)
            if urge is None or value <= 0:
                continue
            state = self._urges[urge]
            previous = state.level
            state.level += clamp(value) * 0.01
            events.append(self._event(
                urge, previous, state.level,
                UrgeTrigger(UrgeTriggerType.HOMEOSTASIS_INFLUENCE),
            ))
        if record:
            self._normalize()
            self._refresh_dominant()
            self._history.extend(events)
            self._trim_history()
        return events

    def _apply_suppression(self, events: list[UrgeChangeEvent]) -> None:
        threshold = self.config.dominance_threshold
        snapshot = {urge: state.level for urge, state in self._urges.items()}
        for urge, state in self._urges.items():
            for suppressor in URGE_PROFILES[urge].suppressed_by:
                excess = snapshot[suppressor] - threshold
                if excess <= 0:
                    continue
                previous = state.level
                state.level -= excess * self.config.suppression_rate
                events.append(self._event(
                    urge, previous, state.level,
                    UrgeTrigger(UrgeTriggerType.SUPPRESSION, suppressor.value),
                ))

    def _normalize(self) -> None:
        for state in self._urges.values():
            state.level = clamp(state.level, self.config.minimum_level, 1.0)

    def _detect_conflicts(self) -> None:
        threshold = self.config.conflict_threshold
        detected: dict[tuple[Urge, Urge], UrgeConflict] = {}
        for a, b in CONFLICT_PAIRS:
            level_a, level_b = self._urges[a].level, self._urges[b].level
            if level_a <= threshold or level_b <= threshold:
                continue
            intensity = (level_a + level_b) / 2
            conflict = self._conflicts.get((a, b))
            if conflict is None:
                conflict = UrgeConflict(urge_a=a, urge_b=b, intensity=intensity)
                logger.debug(f"Urge conflict detected: {a.value} vs {b.value}")
            else:
                conflict.intensity = intensity
            detected[(a, b)] = conflict
        self._conflicts = detected

    def _refresh_dominant(self) -> None:
        self._dominant = self.get_dominant_urge()

    # ─────────────────────────────────────────────────────────────────────
    # Mutators
    # ─────────────────────────────────────────────────────────────────────

    def satisfy_by_action(self, action: str, intensity: float = 1.0) -> list[UrgeChangeEvent]:
        """Reduce every urge the action satisfies."""
        now = self._clock()
        intensity = clamp(intensity)
        events = []
        for urge, state in self._urges.items():
            profile = URGE_PROFILES[urge]
            if action not in profile.satisfied_by:
                continue
            satisfaction = self.config.max_satisfaction_rate * profile.decay * intensity
            previous = state.level
            state.level = max(self.config.minimum_level, state.level - satisfaction)
            state.last_satisfied = now
            state.change_rate = -satisfaction
            events.append(self._event(
                urge, previous, state.level,
                UrgeTrigger(UrgeTriggerType.ACTION_SATISFACTION, action),
            ))
        self._refresh_dominant()
        self._history.extend(events)
        self._trim_history()
        return events

    def satisfy_urge(self, urge, amount: float, source: str) -> Optional[UrgeChangeEvent]:
        """Directly reduce one urge. Returns None if the urge is unknown."""
        urge = parse_enum(Urge, urge)
        if urge is None:
            logger.debug(f"satisfy_urge: unknown urge from {source}")
            return None
        state = self._urges[urge]
        amount = clamp(amount)
        previous = state.level
        state.level = max(self.config.minimum_level, state.level - amount)
        state.last_satisfied = self._clock()
        state.change_rate = -amount
        return self._record_direct(urge, previous, state.level, source)

    def increase_urge(self, urge, amount: float, source: str) -> Optional[UrgeChangeEvent]:
        """Directly raise one urge. Returns None if the urge is unknown."""
        urge = parse_enum(Urge, urge)
        if urge is None:
            logger.debug(f"increase_urge: unknown urge from {source}")
            return None
        state = self._urges[urge]
        amount = clamp(amount)
        previous = state.level
        state.level = min(1.0, state.level + amount)
        state.last_reinforced = self._clock()
        state.change_rate = amount
        return self._record_direct(urge, previous, state.level, source)

    def _record_direct(
        self, urge: Urge, previous: float, new: float, source: str
    ) -> UrgeChangeEvent:
        event = self._event(urge, previous, new, UrgeTrigger(UrgeTriggerType.EXTERNAL, source))
        self._history.append(event)
        self._trim_history()
        self._refresh_dominant()
        return event

    def associate_memory(self, urge, memory_id: str) -> bool:
        """Link a memory id to an urge, keeping only the most recent links."""
        urge = parse_enum(Urge, urge)
        if urge is None:
            return False
        memories = self._urges[urge].associated_memories
        if memory_id in memories:
            return False
        memories.append(memory_id)
        if len(memories) > MAX_ASSOCIATED_MEMORIES:
            del memories[0]
        return True

    # ─────────────────────────────────────────────────────────────────────
    # Conflicts
    # ─────────────────────────────────────────────────────────────────────

    def attempt_resolve_conflict(self, conflict: UrgeConflict) -> ConflictResolution:
        """Try to settle a conflict in favour of the clearly stronger urge.

        The score of each side is its level, plus a small bonus for the side
        that was reinforced more recently. A side wins only when its score
        beats the other by more than ``resolution_margin``; the loser is then
        weakened and the conflict dropped. The attempt counter increments
        whether or not the conflict is settled.
        """
        stored = self._conflicts.get(conflict.pair)
        if stored is None:
            conflict.resolution_attempts += 1
            return ConflictResolution(False, None, "no longer in conflict")
        stored.resolution_attempts += 1
        if stored is not conflict:
            conflict.resolution_attempts = stored.resolution_attempts

        a, b = stored.urge_a, stored.urge_b
        state_a, state_b = self._urges[a], self._urges[b]
        score_a, score_b = state_a.level, state_b.level
        recent = _more_recent(state_a.last_reinforced, state_b.last_reinforced)
        if recent == 0:
            score_a += RECENCY_BONUS
        elif recent == 1:
            score_b += RECENCY_BONUS

        if abs(score_a - score_b) <= self.config.resolution_margin:
            return ConflictResolution(False, None, "the conflict continues...")

        winner, loser = (a, b) if score_a > score_b else (b, a)
        loser_state = self._urges[loser]
        previous = loser_state.level
        loser_state.level = max(self.config.minimum_level, previous * CONFLICT_LOSER_FACTOR)
        self._history.append(self._event(
            loser, previous, loser_state.level,
            UrgeTrigger(UrgeTriggerType.CONFLICT_RESOLUTION, winner.value),
        ))
        self._trim_history()
        del self._conflicts[stored.pair]
        self._refresh_dominant()
        logger.debug(f"Conflict {a.value}/{b.value} resolved in favour of {winner.value}")
        return ConflictResolution(True, winner, f"{winner.value} took priority")

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    def get_state(self) -> dict[Urge, UrgeState]:
        """Copies of every urge state."""
        return {
            urge: replace(state, associated_memories=list(state.associated_memories))
            for urge, state in self._urges.items()
        }

    def get_levels(self) -> dict[Urge, float]:
        return {urge: state.level for urge, state in self._urges.items()}

    def get_urge_level(self, urge) -> float:
        urge = parse_enum(Urge, urge)
        return self._urges[urge].level if urge is not None else 0.0

    def get_dominant_urge(self) -> Optional[Urge]:
        """Highest urge at or above ``urgent_threshold``, else None."""
        urge, state = max(self._urges.items(), key=lambda item: item[1].level)
        return urge if state.level >= self.config.urgent_threshold else None

    def get_urgent_urges(self) -> list[tuple[Urge, float]]:
        urgent = [
            (urge, state.level) for urge, state in self._urges.items()
            if state.level >= self.config.urgent_threshold
        ]
        return sorted(urgent, key=lambda item: item[1], reverse=True)

    def get_active_urges(self) -> list[dict[str, Any]]:
        """Urges at or above 0.3 with a priority weighted by importance."""
        active = [
            {
                "urge": urge,
                "level": state.level,
                "priority": state.level * URGE_PROFILES[urge].importance,
            }
            for urge, state in self._urges.items()
            if state.level >= ACTIVE_LEVEL
        ]
        return sorted(active, key=lambda item: item["priority"], reverse=True)

    def get_conflicts(self) -> list[UrgeConflict]:
        return [replace(conflict) for conflict in self._conflicts.values()]

    def get_recommended_actions(self) -> list[UrgeRecommendation]:
        merged: dict[str, tuple[float, list[Urge]]] = {}
        for urge, state in self._urges.items():
            if state.level < RECOMMEND_LEVEL:
                continue
            profile = URGE_PROFILES[urge]
            urgency = state.level * profile.importance
            for action in profile.satisfied_by:
                best, satisfies = merged.get(action, (0.0, []))
                satisfies.append(urge)
                merged[action] = (max(best, urgency), satisfies)
        recommendations = [
            UrgeRecommendation(action, urgency, tuple(satisfies))
            for action, (urgency, satisfies) in merged.items()
        ]
        return sorted(recommendations, key=lambda r: r.urgency, reverse=True)

    def get_summary(self) -> dict[str, Any]:
        urgent = [urge for urge, _ in self.get_urgent_urges()]
        if self._dominant is not None:
            description = URGE_PROFILES[self._dominant].description
        elif urgent:
            description = URGE_PROFILES[urgent[0]].description
        else:
            description = "No strong urge... a calm state"
        return {
            "dominant": self._dominant,
            "urgent": urgent,
            "conflicting": [conflict.pair for conflict in self._conflicts.values()],
            "description": description,
        }

    def get_recent_changes(self, count: int = 20) -> list[UrgeChangeEvent]:
        return self._history[-count:]

    def get_stats(self) -> dict[str, Any]:
        strongest = max(self._urges.items(), key=lambda item: item[1].level)[0]
        return {
            "total_satisfactions": sum(
                1 for e in self._history
                if e.trigger.type == UrgeTriggerType.ACTION_SATISFACTION
            ),
            "most_frequent_urge": strongest,
            "average_level": sum(s.level for s in self._urges.values()) / len(self._urges),
            "conflict_count": len(self._conflicts),
        }

    def _event(
        self, urge: Urge, previous: float, new: float, trigger: UrgeTrigger
    ) -> UrgeChangeEvent:
        return UrgeChangeEvent(
            urge=urge, previous_level=previous, new_level=new,
            trigger=trigger, timestamp=self._clock(),
        )

    def _trim_history(self) -> None:
        if len(self._history) > MAX_HISTORY:
            self._history = self._history[-MAX_HISTORY:]

    # ─────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "urges": {urge.value: state.to_dict() for urge, state in self._urges.items()},
            "conflicts": [conflict.to_dict() for conflict in self._conflicts.values()],
            "history": [e.to_dict() for e in self._history[-100:]],
            "last_update_tick": self._last_update_tick,
        }

    @classmethod
    def from_dict(
        cls, data: Any, clock: Callable[[], datetime] = utc_now
    ) -> "UrgeSystem":
        """Restore from ``to_dict`` output; malformed input yields a fresh system."""
        try:
            system = cls(UrgeSystemConfig.from_dict(data.get("config", {})), clock=clock)
            system._urges = {
                urge: UrgeState.from_dict(data["urges"][urge.value]) for urge in Urge
            }
            conflicts = [UrgeConflict.from_dict(c) for c in data.get("conflicts", [])]
            system._conflicts = {conflict.pair: conflict for conflict in conflicts}
            system._history = [UrgeChangeEvent.from_dict(e) for e in data.get("history", [])]
            system._last_update_tick = int(data.get("last_update_tick", 0))
            system._refresh_dominant()
            return system
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed urge state, starting fresh: {e}")
            return cls(clock=clock)


def _more_recent(a: Optional[datetime], b: Optional[datetime]) -> Optional[int]:
    """0 if ``a`` is more recent, 1 if ``b`` is, None if neither is."""
    if a is None and b is None:
        return None
    if b is None or (a is not None and a > b):
        return 0
    if a is None or b > a:
        return 1
    return None
