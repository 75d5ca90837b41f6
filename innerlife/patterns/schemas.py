"""Pydantic schemas for speech, behavior and mood-response patterns.

Match conditions and behavior triggers are tagged unions: a condition is
discriminated on ``op`` and a trigger on ``type``, so every variant carries
exactly the fields it needs and matching can dispatch on the variant.

Records are frozen. The library replaces a record with an updated copy
(``model_copy(update=...)``) instead of editing it in place.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from innerlife.types import Emotion, TimeOfDay, Urge, utc_now


def new_pattern_id() -> str:
    return uuid4().hex


class PatternKind(str, Enum):
    SPEECH = "speech"
    BEHAVIOR = "behavior"
    EMOTION = "emotion"


class CreatedBy(str, Enum):
    """Provenance. ``initial`` patterns are never merged, split, culled or evicted."""

    INITIAL = "initial"
    LEARNED = "learned"
    SELF_CREATED = "self_created"


class MutationType(str, Enum):
    MINOR_VARIATION = "minor_variation"
    SIMPLIFICATION = "simplification"
    EXPANSION = "expansion"
    COMBINATION = "combination"


class MutationRecord(BaseModel):
    model_config = {"frozen": True}

    timestamp: datetime = Field(default_factory=utc_now)
    type: MutationType
    original: str = ""
    new: str = ""
    reason: str = ""


class ModificationRecord(BaseModel):
    model_config = {"frozen": True}

    timestamp: datetime = Field(default_factory=utc_now)
    type: str = "intensity_change"
    before: float
    after: float
    reason: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Speech conditions (discriminated on ``op``)
# ─────────────────────────────────────────────────────────────────────────────


class ConditionKind(str, Enum):
    """What part of the situation a condition looks at."""

    EMOTION = "emotion"
    TIME = "time"
    ACTIVITY = "activity"
    VISITOR = "visitor"
    URGE = "urge"


class _ConditionBase(BaseModel):
    """Shared condition fields.

    Attributes:
        kind: Part of the situation inspected
        subject: Emotion or urge name for numeric comparisons; when omitted the
            primary emotion or the strongest urge is used
        weight: Contribution to the match score
    """

    model_config = {"frozen": True}

    kind: ConditionKind
    subject: Optional[str] = None
    weight: float = Field(default=1.0, ge=0.0)


class EqualsCondition(_ConditionBase):
    op: Literal["equals"] = "equals"
    value: Union[bool, str, None] = None


class GreaterCondition(_ConditionBase):
    op: Literal["greater"] = "greater"
    threshold: float


class LessCondition(_ConditionBase):
    op: Literal["less"] = "less"
    threshold: float


class ContainsCondition(_ConditionBase):
    op: Literal["contains"] = "contains"
    values: list[str]


class BetweenCondition(_ConditionBase):
    op: Literal["between"] = "between"
    min: float
    max: float

    @model_validator(mode="after")
    def check_bounds(self) -> "BetweenCondition":
        if self.min > self.max:
            raise ValueError(f"between condition has min {self.min} > max {self.max}")
        return self


Condition = Annotated[
    Union[EqualsCondition, GreaterCondition, LessCondition, ContainsCondition, BetweenCondition],
    Field(discriminator="op"),
]


# ─────────────────────────────────────────────────────────────────────────────
# Behavior triggers (discriminated on ``type``)
# ─────────────────────────────────────────────────────────────────────────────


class _TriggerBase(BaseModel):
    model_config = {"frozen": True}

    probability: float = Field(default=0.5, ge=0.0, le=1.0)


class UrgeThresholdTrigger(_TriggerBase):
    type: Literal["urge_threshold"] = "urge_threshold"
    urge: Urge
    threshold: float


class TimeBasedTrigger(_TriggerBase):
    type: Literal["time_based"] = "time_based"
    times: list[TimeOfDay]


class EmotionalTrigger(_TriggerBase):
    type: Literal["emotional"] = "emotional"
    emotion: Emotion
    intensity: float


class RandomTrigger(_TriggerBase):
    type: Literal["random"] = "random"
    chance: float = Field(ge=0.0, le=1.0)


Trigger = Annotated[
    Union[UrgeThresholdTrigger, TimeBasedTrigger, EmotionalTrigger, RandomTrigger],
    Field(discriminator="type"),
]


# ─────────────────────────────────────────────────────────────────────────────
# Patterns
# ─────────────────────────────────────────────────────────────────────────────


class SpeechPattern(BaseModel):
    """A phrasing template with placeholders such as ``{{emotion_word}}``."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=new_pattern_id)
    template: str
    examples: list[str] = Field(default_factory=list)
    conditions: list[Condition] = Field(default_factory=list)
    emotional_weight: dict[Emotion, float] = Field(default_factory=dict)
    created_by: CreatedBy = CreatedBy.LEARNED
    can_mutate: bool = True
    use_count: int = Field(default=0, ge=0)
    last_used: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    mutation_history: list[MutationRecord] = Field(default_factory=list)


class ActionStep(BaseModel):
    model_config = {"frozen": True}

    action: str
    target: Optional[str] = None
    duration: int = Field(default=1, ge=0)
    interruptible: bool = True
    thought_during: Optional[str] = None


class ExpectedOutcome(BaseModel):
    """What running a behavior should do; negative ``energy_cost`` restores energy."""

    model_config = {"frozen": True}

    urges_satisfied: list[Urge] = Field(default_factory=list)
    mood_primary: Optional[Emotion] = None
    valence_delta: float = 0.0
    energy_cost: float = 0.0


class BehaviorPattern(BaseModel):
    model_config = {"frozen": True}

    id: str = Field(default_factory=new_pattern_id)
    description: str
    action_sequence: list[ActionStep]
    triggers: list[Trigger] = Field(default_factory=list)
    expected_outcome: ExpectedOutcome = Field(default_factory=ExpectedOutcome)
    success_count: int = Field(default=0, ge=0)
    failure_count: int = Field(default=0, ge=0)
    consecutive_failures: int = Field(default=0, ge=0)
    average_satisfaction: float = Field(default=0.5, ge=0.0, le=1.0)
    created_by: CreatedBy = CreatedBy.LEARNED
    can_mutate: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    last_used: Optional[datetime] = None
    mutation_history: list[MutationRecord] = Field(default_factory=list)

    @property
    def total_uses(self) -> int:
        return self.success_count + self.failure_count

    @property
    def success_rate(self) -> float:
        """Observed success rate, 0.5 before any use."""
        if self.total_uses == 0:
            return 0.5
        return self.success_count / self.total_uses


class UrgeRange(BaseModel):
    model_config = {"frozen": True}

    min: float = Field(default=0.0, ge=0.0, le=1.0)
    max: float = Field(default=1.0, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_bounds(self) -> "UrgeRange":
        if self.min > self.max:
            raise ValueError(f"urge range has min {self.min} > max {self.max}")
        return self

    def contains(self, level: float) -> bool:
        return self.min <= level <= self.max


class SituationDescriptor(BaseModel):
    """Situation a mood response reacts to; omitted fields match anything."""

    model_config = {"frozen": True}

    times_of_day: Optional[list[TimeOfDay]] = None
    visitor_present: Optional[bool] = None
    urge_ranges: Optional[dict[Urge, UrgeRange]] = None
    recent_events: Optional[list[str]] = None

    @field_validator("urge_ranges", mode="before")
    @classmethod
    def accept_pairs(cls, v):
        """Allow ``{urge: (min, max)}`` as shorthand."""
        if isinstance(v, dict):
            return {
                k: {"min": r[0], "max": r[1]} if isinstance(r, (list, tuple)) else r
                for k, r in v.items()
            }
        return v

    def specificity(self) -> int:
        """Number of fields this descriptor constrains."""
        return sum(
            value is not None
            for value in (self.times_of_day, self.visitor_present,
                          self.urge_ranges, self.recent_events)
        )


class EmotionalResponse(BaseModel):
    model_config = {"frozen": True}

    primary: Emotion
    intensity: float = Field(ge=0.0, le=1.0)
    duration: int = Field(default=30, ge=0)
    associated_thoughts: list[str] = Field(default_factory=list)


class EmotionPattern(BaseModel):
    model_config = {"frozen": True}

    id: str = Field(default_factory=new_pattern_id)
    situation: SituationDescriptor
    response: EmotionalResponse
    reinforcement_count: int = Field(default=0, ge=0)
    last_triggered: Optional[datetime] = None
    created_by: CreatedBy = CreatedBy.LEARNED
    can_modify: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    modification_history: list[ModificationRecord] = Field(default_factory=list)


Pattern = Union[SpeechPattern, BehaviorPattern, EmotionPattern]

PATTERN_MODELS: dict[PatternKind, type[BaseModel]] = {
    PatternKind.SPEECH: SpeechPattern,
    PatternKind.BEHAVIOR: BehaviorPattern,
    PatternKind.EMOTION: EmotionPattern,
}
