"""Ordered field resolution for loosely shaped upstream payloads.

Riot payloads omit fields between patches and game modes. Every fallback
chain used by the engine goes through :func:`resolve_first` so the
precedence is written down once, at the extraction boundary.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any


def _is_present(value: Any, *, accept_zero: bool) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, bool):
        return True
    if isinstance(value, int | float):
        if isinstance(value, float) and math.isnan(value):
            return False
        return accept_zero or value != 0
    return True


def resolve_first(
    source: Mapping[str, Any] | None,
    *keys: str,
    default: Any = None,
    accept_zero: bool = False,
) -> Any:
    """Return the first usable value among ``keys`` in precedence order.

    A key is skipped when it is missing, ``None``, blank, ``NaN`` or (unless
    ``accept_zero`` is set) numerically zero. Zero is skipped by default
    because Riot reports ``0`` for counters it did not track in some modes,
    which should defer to the next source rather than win.

    Args:
        source: Mapping to read from; ``None`` resolves to ``default``.
        *keys: Candidate keys, highest precedence first.
        default: Returned when no key yields a usable value.
        accept_zero: Treat numeric zero as a usable value.

    Returns:
        The resolved value or ``default``.
    """
    if not source:
        return default
    for key in keys:
        value = source.get(key)
        if _is_present(value, accept_zero=accept_zero):
            return value
    return default


def as_float(value: Any, default: float = 0.0) -> float:
    """Coerce to a finite float, falling back to ``default``."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def as_int(value: Any, default: int = 0) -> int:
    """Coerce to int, falling back to ``default``."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
