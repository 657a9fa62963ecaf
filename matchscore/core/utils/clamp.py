"""Numeric clamping helpers shared by the scoring modules."""

from __future__ import annotations


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    """Clamp ``value`` into ``[lower, upper]``."""

    return max(lower, min(upper, value))


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning ``default`` for a zero or negative denominator."""

    if denominator <= 0:
        return default
    return numerator / denominator


def round_score(value: float, digits: int = 1) -> float:
    """Clamp to 0-100 and round for display."""

    return round(clamp(value), digits)
