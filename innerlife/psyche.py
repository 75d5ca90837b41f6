"""InnerLife: one tick of the four subsystems, wired together.

The coordinator owns a homeostasis regulator, an urge system, an emotion
engine and a pattern library. Each tick it advances them in a fixed order
and passes readings between them by value:

    homeostasis -> urges -> emotions -> homeostasis (emotional pressure)
                -> Situation snapshot -> mood pattern -> library feedback
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

import numpy as np

from innerlife.affect.emotion_engine import EmotionEngine
from innerlife.affect.state import EmotionChangeEvent
from innerlife.body.homeostasis import HomeostasisChangeEvent, HomeostasisRegulator
from innerlife.body.urges import UrgeChangeEvent, UrgeSystem
from innerlife.patterns.evolution import EvolutionResult
from innerlife.patterns.library import PatternLibrary
from innerlife.patterns.schemas import PatternKind
from innerlife.situation import Situation
from innerlife.types import TimeOfDay

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """Everything that changed during one :meth:`InnerLife.tick`."""

    tick: int
    situation: Situation
    homeostasis_events: list[HomeostasisChangeEvent] = field(default_factory=list)
    urge_events: list[UrgeChangeEvent] = field(default_factory=list)
    emotion_event: Optional[EmotionChangeEvent] = None
    applied_pattern_id: Optional[str] = None
    pattern_event: Optional[EmotionChangeEvent] = None

    @property
    def change_count(self) -> int:
        emotion_changes = len(self.emotion_event.changes) if self.emotion_event else 0
        pattern_changes = len(self.pattern_event.changes) if self.pattern_event else 0
        return len(self.homeostasis_events) + len(self.urge_events) + emotion_changes + pattern_changes


class InnerLife:
    """Drives the four subsystems one tick at a time.

    Usage:
        life = InnerLife(seed=7)
        report = life.tick(1, TimeOfDay.EVENING, visitor_present=True)
        report.situation.primary_emotion
    """

    def __init__(
        self,
        homeostasis: Optional[HomeostasisRegulator] = None,
        urges: Optional[UrgeSystem] = None,
        emotions: Optional[EmotionEngine] = None,
        library: Optional[PatternLibrary] = None,
        seed: Optional[int] = None,
    ):
        rng = np.random.default_rng(seed)
        self.homeostasis = homeostasis or HomeostasisRegulator()
        self.urges = urges or UrgeSystem()
        self.emotions = emotions or EmotionEngine(rng=rng)
        if library is None:
            library = PatternLibrary(rng=rng)
            library.initialize()
        self.library = library
        self.last_report: Optional[TickReport] = None
        self.sync_patterns()

    def sync_patterns(self) -> None:
        """Hand the library's current mood patterns to the emotion engine."""
        self.emotions.register_patterns(self.library.emotion_patterns_for_engine())

    def tick(
        self,
        tick: int,
        time_of_day: TimeOfDay,
        visitor_present: bool = False,
        activity: Optional[str] = None,
        recent_events: Iterable[str] = (),
        fatigue_level: float = 0.0,
    ) -> TickReport:
        """Advance every subsystem by one tick.

        Args:
            tick: Monotonic tick counter
            time_of_day: Current time-of-day bucket
            visitor_present: Whether someone is in the room
            activity: Current activity label, None when idle
            recent_events: Event labels mood patterns may react to
            fatigue_level: Bodily fatigue in [0, 1], speeds up energy drain

        Returns:
            The events each subsystem produced and the situation snapshot
        """
        homeostasis_events = self.homeostasis.update(tick, time_of_day, fatigue_level=fatigue_level)

        emotion_levels = self.emotions.get_state().levels
        urge_events = self.urges.update(
            tick, time_of_day, emotion_levels, self.homeostasis.get_urge_influences()
        )
        emotion_event = self.emotions.update(tick, time_of_day)

        for emotion, level in self.emotions.get_active_emotions():
            event = self.homeostasis.apply_emotion_influence(emotion, level)
            if event is not None:
                homeostasis_events.append(event)

        situation = Situation.capture(
            time_of_day, self.homeostasis, self.urges, self.emotions,
            visitor_present=visitor_present,
            activity=activity,
            recent_events=recent_events,
        )

        report = TickReport(
            tick=tick,
            situation=situation,
            homeostasis_events=homeostasis_events,
            urge_events=urge_events,
            emotion_event=emotion_event,
        )

        pattern = self.emotions.find_matching_pattern(situation)
        if pattern is not None:
            report.applied_pattern_id = pattern.id
            report.pattern_event = self.emotions.apply_pattern(pattern)
            if self.library.record_pattern_use(pattern.id, PatternKind.EMOTION):
                self.sync_patterns()
            logger.debug(f"Tick {tick}: mood pattern {pattern.id} ({pattern.response.primary.value})")

        self.last_report = report
        return report

    def evolve(self, now: Optional[datetime] = None) -> EvolutionResult:
        """Run a pattern evolution pass colored by the current mood."""
        result = self.library.evolve_patterns(now=now, emotion=self.emotions.get_primary_emotion())
        self.sync_patterns()
        return result

    def get_summary(self) -> dict[str, Any]:
        return {
            "homeostasis": self.homeostasis.get_summary(),
            "urges": self.urges.get_summary(),
            "emotions": self.emotions.get_summary(),
            "patterns": self.library.get_stats(),
            "last_tick": self.last_report.tick if self.last_report else None,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "homeostasis": self.homeostasis.to_dict(),
            "urges": self.urges.to_dict(),
            "emotions": self.emotions.to_dict(),
            "patterns": self.library.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any, seed: Optional[int] = None) -> "InnerLife":
        """Restore every subsystem; each one falls back to defaults on its own."""
        if not isinstance(data, dict):
            logger.warning("Malformed inner life state, starting fresh")
            data = {}
        rng = np.random.default_rng(seed)
        library = PatternLibrary.from_dict(data.get("patterns"), rng=rng)
        emotions = EmotionEngine.from_dict(data.get("emotions"), rng=rng)
        return cls(
            homeostasis=HomeostasisRegulator.from_dict(data.get("homeostasis")),
            urges=UrgeSystem.from_dict(data.get("urges")),
            emotions=emotions,
            library=library,
        )
