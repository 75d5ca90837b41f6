"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import numpy as np
import pytest

from innerlife.affect.emotion_engine import EmotionEngine
from innerlife.body.homeostasis import HomeostasisRegulator
from innerlife.body.urges import UrgeSystem
from innerlife.patterns.config import PatternLibraryConfig
from innerlife.patterns.library import PatternLibrary

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def rng():
    """Seeded generator so probabilistic code paths are reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def regulator():
    return HomeostasisRegulator()


@pytest.fixture
def urge_system():
    return UrgeSystem(clock=lambda: FIXED_NOW)


@pytest.fixture
def engine(rng):
    return EmotionEngine(rng=rng)


@pytest.fixture
def library(tmp_path, rng):
    """Library seeded with the initial patterns and writing under tmp_path."""
    lib = PatternLibrary(PatternLibraryConfig(data_path=tmp_path / "patterns"), rng=rng)
    lib.initialize()
    return lib


@pytest.fixture
def empty_library(tmp_path, rng):
    return PatternLibrary(PatternLibraryConfig(data_path=tmp_path / "patterns"), rng=rng)
