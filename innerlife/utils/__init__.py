"""Shared utilities for the inner-life subsystems."""

from innerlife.utils.numeric import clamp, jaccard, mean

__all__ = ["clamp", "jaccard", "mean"]
