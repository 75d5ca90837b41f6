"""Homeostatic regulation of the character's physiological variables.

Five bounded variables (energy, novelty, safety, connection, expression) are
each held near a set point. Between ticks they drain at configured rates,
the regulator pulls them gently back toward their ideal, and any variable
outside its comfort band accrues urgency. Urgency is what the rest of the
system reads: unstable variables map to remedial actions and feed the urge
system.

Every change is recorded as a HomeostasisChangeEvent with a typed trigger so
downstream consumers can tell decay from action from outside influence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from innerlife.body.config import HomeostasisConfig
from innerlife.body.profiles import (
    EMOTION_PRESSURE,
    NEED_DESCRIPTIONS,
    OVERALL_URGENCY_WEIGHTS,
    REMEDIAL_ACTIONS,
    SET_POINTS,
    URGE_FEEDS,
)
from innerlife.types import (
    Emotion,
    HomeostasisVariable,
    TimeOfDay,
    Urge,
    parse_datetime,
    parse_enum,
    utc_now,
)
from innerlife.utils.numeric import clamp

logger = logging.getLogger(__name__)

MAX_HISTORY = 500
EVENT_EPSILON = 0.001
MOST_URGENT_FLOOR = 0.2
NIGHT_CONNECTION_FACTOR = 1.5


class HomeostasisTriggerType(str, Enum):
    """What caused a homeostatic change."""

    NATURAL_DECAY = "natural_decay"
    TIME_PASSAGE = "time_passage"
    ACTION = "action"
    EVENT = "event"
    EMOTION_INFLUENCE = "emotion_influence"
    URGE_INFLUENCE = "urge_influence"
    REGULATION = "regulation"
    EXTERNAL = "external"


@dataclass(frozen=True)
class HomeostasisTrigger:
    """A trigger tag plus its payload (action name, event name, source...)."""

    type: HomeostasisTriggerType
    detail: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "detail": self.detail}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HomeostasisTrigger":
        return cls(type=HomeostasisTriggerType(data["type"]), detail=data.get("detail"))


@dataclass
class VariableState:
    """Current level, set point and urgency of one variable."""

    current: float
    target: float
    urgency: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"current": self.current, "target": self.target, "urgency": self.urgency}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VariableState":
        return cls(
            current=clamp(float(data["current"])),
            target=clamp(float(data["target"])),
            urgency=clamp(float(data.get("urgency", 0.0))),
        )


@dataclass
class HomeostasisState:
    energy: VariableState
    novelty: VariableState
    safety: VariableState
    connection: VariableState
    expression: VariableState

    def get(self, variable: HomeostasisVariable) -> VariableState:
        return getattr(self, variable.value)

    def items(self):
        return [(variable, self.get(variable)) for variable in HomeostasisVariable]

    @classmethod
    def initial(cls) -> "HomeostasisState":
        return cls(**{
            variable.value: VariableState(current=point.initial, target=point.ideal)
            for variable, point in SET_POINTS.items()
        })


@dataclass
class HomeostasisChangeEvent:
    """One atomic change to a homeostatic variable."""

    variable: HomeostasisVariable
    previous_value: float
    new_value: float
    urgency_change: float
    trigger: HomeostasisTrigger
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "variable": self.variable.value,
            "previous_value": self.previous_value,
            "new_value": self.new_value,
            "urgency_change": self.urgency_change,
            "trigger": self.trigger.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HomeostasisChangeEvent":
        return cls(
            variable=HomeostasisVariable(data["variable"]),
            previous_value=float(data["previous_value"]),
            new_value=float(data["new_value"]),
            urgency_change=float(data["urgency_change"]),
            trigger=HomeostasisTrigger.from_dict(data["trigger"]),
            timestamp=parse_datetime(data["timestamp"]),
        )


@dataclass(frozen=True)
class UrgentNeed:
    variable: HomeostasisVariable
    urgency: float
    description: str


@dataclass(frozen=True)
class RecommendedAction:
    action: str
    reason: HomeostasisVariable
    urgency: float


def compute_urgency(variable: HomeostasisVariable, current: float, multiplier: float) -> float:
    """Urgency of ``current`` for ``variable``: zero inside the comfort band.

    Outside the band urgency grows linearly with the distance to the band edge,
    scaled by the room available on that side, and saturates at 1.
    """
    point = SET_POINTS[variable]
    if current < point.low:
        return min(1.0, multiplier * (point.low - current) / point.low)
    if current > point.high:
        room = 1.0 - point.high
        if room <= 0:
            return 0.0
        return min(1.0, multiplier * (current - point.high) / room)
    return 0.0


class HomeostasisRegulator:
    """Tracks the five homeostatic variables and their urgency.

    Usage:
        regulator = HomeostasisRegulator()
        regulator.update(tick=1, time_of_day=TimeOfDay.NIGHT, fatigue_level=0.4)
        event = regulator.consume_energy(0.3, "sing")
    """

    def __init__(self, config: Optional[HomeostasisConfig] = None):
        self.config = config or HomeostasisConfig()
        self._state = HomeostasisState.initial()
        self._history: list[HomeostasisChangeEvent] = []
        self._last_update_tick = 0
        self._recalculate_urgencies()

    # ─────────────────────────────────────────────────────────────────────
    # Tick
    # ─────────────────────────────────────────────────────────────────────

    def update(
        self,
        tick: int,
        time_of_day: TimeOfDay,
        fatigue_level: float = 0.0,
    ) -> list[HomeostasisChangeEvent]:
        """Advance one tick: drain, regulate toward set points, recompute urgency."""
        fatigue_level = clamp(fatigue_level)
        drains = self._drains(time_of_day, fatigue_level)
        events: list[HomeostasisChangeEvent] = []

        for variable, var_state in self._state.items():
            drain, trigger = drains[variable]
            previous = var_state.current
            previous_urgency = var_state.urgency

            level = clamp(previous - drain)
            level += (var_state.target - level) * self.config.regulation_speed * 0.1
            var_state.current = clamp(level)
            var_state.urgency = self._urgency(variable)

            if abs(var_state.current - previous) > EVENT_EPSILON:
                events.append(HomeostasisChangeEvent(
                    variable=variable,
                    previous_value=previous,
                    new_value=var_state.current,
                    urgency_change=var_state.urgency - previous_urgency,
                    trigger=trigger,
                ))

        self._last_update_tick = tick
        self._history.extend(events)
        self._trim_history()
        return events

    def _drains(
        self, time_of_day: TimeOfDay, fatigue_level: float
    ) -> dict[HomeostasisVariable, tuple[float, HomeostasisTrigger]]:
        connection = self.config.connection_decay
        if time_of_day in (TimeOfDay.NIGHT, TimeOfDay.LATE_NIGHT):
            connection *= NIGHT_CONNECTION_FACTOR
        passage = HomeostasisTrigger(HomeostasisTriggerType.TIME_PASSAGE, time_of_day.value)
        decay = HomeostasisTrigger(HomeostasisTriggerType.NATURAL_DECAY)
        return {
            HomeostasisVariable.ENERGY: (0.001 + fatigue_level * 0.002, passage),
            HomeostasisVariable.NOVELTY: (self.config.novelty_decay, decay),
            HomeostasisVariable.SAFETY: (
                0.0, HomeostasisTrigger(HomeostasisTriggerType.REGULATION, "optimal")
            ),
            HomeostasisVariable.CONNECTION: (connection, passage),
            HomeostasisVariable.EXPRESSION: (self.config.expression_decay, decay),
        }

    # ─────────────────────────────────────────────────────────────────────
    # Mutators
    # ─────────────────────────────────────────────────────────────────────

    def restore_energy(self, amount: float, source: str) -> HomeostasisChangeEvent:
        return self._apply(
            HomeostasisVariable.ENERGY, amount,
            HomeostasisTrigger(HomeostasisTriggerType.EXTERNAL, source),
        )

    def consume_energy(self, amount: float, action: str) -> HomeostasisChangeEvent:
        return self._apply(
            HomeostasisVariable.ENERGY, -amount,
            HomeostasisTrigger(HomeostasisTriggerType.ACTION, action),
        )

    def experience_novelty(self, intensity: float) -> HomeostasisChangeEvent:
        return self._apply(
            HomeostasisVariable.NOVELTY, intensity * 0.5,
            HomeostasisTrigger(HomeostasisTriggerType.EVENT, "novel_experience"),
        )

    def experience_connection(self, intensity: float) -> HomeostasisChangeEvent:
        return self._apply(
            HomeostasisVariable.CONNECTION, intensity * 0.6,
            HomeostasisTrigger(HomeostasisTriggerType.EVENT, "connection"),
        )

    def express(self, intensity: float, action: str) -> HomeostasisChangeEvent:
        return self._apply(
            HomeostasisVariable.EXPRESSION, intensity * 0.5,
            HomeostasisTrigger(HomeostasisTriggerType.ACTION, action),
        )

    def perceive_threat(self, intensity: float, source: str) -> HomeostasisChangeEvent:
        return self._apply(
            HomeostasisVariable.SAFETY, -intensity,
            HomeostasisTrigger(HomeostasisTriggerType.EXTERNAL, source),
        )

    def feel_safe(self, amount: float) -> HomeostasisChangeEvent:
        return self._apply(
            HomeostasisVariable.SAFETY, amount,
            HomeostasisTrigger(HomeostasisTriggerType.EVENT, "safety_restored"),
        )

    def apply_emotion_influence(
        self, emotion: Emotion, level: float
    ) -> Optional[HomeostasisChangeEvent]:
        """Let a strong emotion press on the variable it is tied to.

        Returns None when the emotion has no homeostatic effect or is below
        its activation level.
        """
        emotion = parse_enum(Emotion, emotion)
        if emotion is None or emotion not in EMOTION_PRESSURE:
            return None
        variable, activation, loss = EMOTION_PRESSURE[emotion]
        if level <= activation:
            return None
        return self._apply(
            variable, -clamp(level) * loss,
            HomeostasisTrigger(HomeostasisTriggerType.EMOTION_INFLUENCE, emotion.value),
        )

    def _apply(
        self,
        variable: HomeostasisVariable,
        delta: float,
        trigger: HomeostasisTrigger,
    ) -> HomeostasisChangeEvent:
        var_state = self._state.get(variable)
        previous = var_state.current
        previous_urgency = var_state.urgency

        var_state.current = clamp(previous + clamp(delta, -1.0, 1.0))
        var_state.urgency = self._urgency(variable)

        event = HomeostasisChangeEvent(
            variable=variable,
            previous_value=previous,
            new_value=var_state.current,
            urgency_change=var_state.urgency - previous_urgency,
            trigger=trigger,
        )
        self._history.append(event)
        self._trim_history()
        logger.debug(
            f"{variable.value}: {previous:.3f} -> {var_state.current:.3f} "
            f"({trigger.type.value})"
        )
        return event

    # ─────────────────────────────────────────────────────────────────────
    # Urgency
    # ─────────────────────────────────────────────────────────────────────

    def _urgency(self, variable: HomeostasisVariable) -> float:
        return compute_urgency(
            variable, self._state.get(variable).current, self.config.urgency_multiplier
        )

    def _recalculate_urgencies(self) -> None:
        for variable, var_state in self._state.items():
            var_state.urgency = self._urgency(variable)

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    def get_state(self) -> HomeostasisState:
        """Return a copy of the current state."""
        return HomeostasisState(**{
            variable.value: VariableState(s.current, s.target, s.urgency)
            for variable, s in self._state.items()
        })

    def get_urgency(self, variable: HomeostasisVariable) -> float:
        return self._state.get(variable).urgency

    def get_overall_urgency(self) -> float:
        return max(
            s.urgency * OVERALL_URGENCY_WEIGHTS[variable]
            for variable, s in self._state.items()
        )

    def get_most_urgent(self) -> Optional[UrgentNeed]:
        """The most urgent variable, or None if nothing is pressing."""
        variable, var_state = max(self._state.items(), key=lambda item: item[1].urgency)
        if var_state.urgency <= MOST_URGENT_FLOOR:
            return None
        return UrgentNeed(variable, var_state.urgency, NEED_DESCRIPTIONS[variable])

    def is_critical(self) -> bool:
        return any(
            s.urgency >= self.config.critical_threshold for _, s in self._state.items()
        )

    def get_unstable_variables(self) -> list[HomeostasisVariable]:
        return [
            variable for variable, s in self._state.items()
            if s.urgency > self.config.deviation_threshold
        ]

    def get_recommended_actions(self) -> list[RecommendedAction]:
        """Remedial actions for every unstable variable, most urgent first."""
        recommendations = []
        for variable in self.get_unstable_variables():
            urgency = self._state.get(variable).urgency
            for action, weight in REMEDIAL_ACTIONS[variable]:
                recommendations.append(RecommendedAction(action, variable, urgency * weight))
        recommendations.sort(key=lambda r: r.urgency, reverse=True)
        return recommendations

    def get_urge_influences(self) -> dict[Urge, float]:
        """Pressure each unstable variable puts on the urges it feeds."""
        influences: dict[Urge, float] = {}
        for variable in self.get_unstable_variables():
            urgency = self._state.get(variable).urgency
            for urge, factor in URGE_FEEDS[variable]:
                influences[urge] = max(influences.get(urge, 0.0), urgency * factor)
        return influences

    def get_summary(self) -> dict[str, Any]:
        if self.is_critical():
            overall = "critical"
            description = "...this is really hard"
        elif self.get_unstable_variables():
            overall = "unstable"
            most_urgent = self.get_most_urgent()
            description = most_urgent.description if most_urgent else "Something is missing..."
        else:
            overall = "stable"
            description = "In balance"
        recommendations = self.get_recommended_actions()
        return {
            "overall": overall,
            "energy": self._state.energy.current,
            "description": description,
            "recommended_action": recommendations[0].action if recommendations else None,
        }

    def get_recent_changes(self, count: int = 20) -> list[HomeostasisChangeEvent]:
        return self._history[-count:]

    def get_stats(self) -> dict[str, Any]:
        recent = self._history[-100:]
        energy_values = [e.new_value for e in recent if e.variable == HomeostasisVariable.ENERGY]
        imbalance_counts: dict[HomeostasisVariable, int] = {}
        for event in recent:
            if event.urgency_change > 0.1:
                imbalance_counts[event.variable] = imbalance_counts.get(event.variable, 0) + 1
        most_frequent = (
            max(imbalance_counts, key=imbalance_counts.get) if imbalance_counts else None
        )
        return {
            "average_energy": (
                sum(energy_values) / len(energy_values)
                if energy_values else self._state.energy.current
            ),
            "critical_events_count": sum(1 for e in recent if e.urgency_change > 0.5),
            "most_frequent_imbalance": most_frequent,
        }

    def _trim_history(self) -> None:
        if len(self._history) > MAX_HISTORY:
            self._history = self._history[-MAX_HISTORY:]

    # ─────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "state": {variable.value: s.to_dict() for variable, s in self._state.items()},
            "history": [e.to_dict() for e in self._history[-100:]],
            "last_update_tick": self._last_update_tick,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "HomeostasisRegulator":
        """Restore from ``to_dict`` output; malformed input yields a fresh regulator."""
        try:
            regulator = cls(HomeostasisConfig.from_dict(data.get("config", {})))
            regulator._state = HomeostasisState(**{
                variable.value: VariableState.from_dict(data["state"][variable.value])
                for variable in HomeostasisVariable
            })
            regulator._history = [
                HomeostasisChangeEvent.from_dict(e) for e in data.get("history", [])
            ]
            regulator._last_update_tick = int(data.get("last_update_tick", 0))
            return regulator
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed homeostasis state, starting fresh: {e}")
            return cls()
