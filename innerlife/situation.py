"""Situation snapshot passed by value from the subsystems to pattern matching."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

from innerlife.types import Emotion, TimeOfDay, Urge

if TYPE_CHECKING:
    from innerlife.affect.emotion_engine import EmotionEngine
    from innerlife.body.homeostasis import HomeostasisRegulator
    from innerlife.body.urges import UrgeSystem


@dataclass(frozen=True)
class Situation:
    """Everything pattern matching is allowed to look at for one tick.

    Attributes:
        time_of_day: Current time-of-day bucket
        visitor_present: Whether someone is in the room
        activity: Current activity label, None when idle
        emotion_levels: Level per emotion (missing emotions read as 0)
        primary_emotion: Dominant emotion
        secondary_emotion: Runner-up emotion, if active
        urge_levels: Level per urge (missing urges read as 0)
        energy: Current homeostatic energy
        recent_events: Labels of events from the last few ticks
    """

    time_of_day: TimeOfDay
    visitor_present: bool = False
    activity: Optional[str] = None
    emotion_levels: dict[Emotion, float] = field(default_factory=dict)
    primary_emotion: Optional[Emotion] = None
    secondary_emotion: Optional[Emotion] = None
    urge_levels: dict[Urge, float] = field(default_factory=dict)
    energy: float = 1.0
    recent_events: tuple[str, ...] = ()

    def emotion_level(self, emotion: Emotion) -> float:
        return self.emotion_levels.get(emotion, 0.0)

    def urge_level(self, urge: Urge) -> float:
        return self.urge_levels.get(urge, 0.0)

    @property
    def strongest_urge(self) -> Optional[Urge]:
        if not self.urge_levels:
            return None
        return max(self.urge_levels, key=self.urge_levels.get)

    @classmethod
    def capture(
        cls,
        time_of_day: TimeOfDay,
        homeostasis: "HomeostasisRegulator",
        urges: "UrgeSystem",
        emotions: "EmotionEngine",
        visitor_present: bool = False,
        activity: Optional[str] = None,
        recent_events: Iterable[str] = (),
    ) -> "Situation":
        """Copy the current subsystem readings into an immutable snapshot."""
        emotional = emotions.get_state()
        return cls(
            time_of_day=time_of_day,
            visitor_present=visitor_present,
            activity=activity,
            emotion_levels=dict(emotional.levels),
            primary_emotion=emotional.primary,
            secondary_emotion=emotional.secondary,
            urge_levels=urges.get_levels(),
            energy=homeostasis.get_state().energy.current,
            recent_events=tuple(recent_events),
        )
