"""Physiological drives: homeostatic regulation and motivational urges."""
from innerlife.body.config import HomeostasisConfig, UrgeSystemConfig
from innerlife.body.homeostasis import (
    HomeostasisChangeEvent,
    HomeostasisRegulator,
    HomeostasisTrigger,
    HomeostasisTriggerType,
)
from innerlife.body.urges import (
    ConflictResolution,
    UrgeChangeEvent,
    UrgeConflict,
    UrgeSystem,
    UrgeTrigger,
    UrgeTriggerType,
)

__all__ = [
    "HomeostasisConfig",
    "UrgeSystemConfig",
    "HomeostasisChangeEvent",
    "HomeostasisRegulator",
    "HomeostasisTrigger",
    "HomeostasisTriggerType",
    "ConflictResolution",
    "UrgeChangeEvent",
    "UrgeConflict",
    "UrgeSystem",
    "UrgeTrigger",
    "UrgeTriggerType",
]
