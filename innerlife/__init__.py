"""Psychological core of a simulated character.

Subpackages:
    body: homeostatic regulation and motivational urges
    affect: emotion dynamics and statistics-driven self-correction
    patterns: speech, behavior and mood-response patterns that evolve with use
"""
from innerlife.psyche import InnerLife, TickReport
from innerlife.situation import Situation
from innerlife.types import Emotion, HomeostasisVariable, TimeOfDay, Urge

__all__ = [
    "InnerLife",
    "TickReport",
    "Situation",
    "Emotion",
    "HomeostasisVariable",
    "TimeOfDay",
    "Urge",
]
