"""Online mean/variance (Welford) for cohort metrics.

All functions are pure: they take states and return new states. ``update``
folds in a single sample in O(1); ``merge`` combines two independently
accumulated states with the parallel-variance identity, so partial
aggregates from separate batches can be combined in any order.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from matchscore.contracts.cohort import WelfordState

EMPTY = WelfordState()


def welford_update(state: WelfordState, value: float) -> WelfordState:
    """Incorporate one sample."""
    count = state.count + 1
    delta = value - state.mean
    mean = state.mean + delta / count
    m2 = state.sum_squared_deviation + delta * (value - mean)
    return WelfordState(count=count, mean=mean, sum_squared_deviation=max(0.0, m2))


def welford_merge(a: WelfordState, b: WelfordState) -> WelfordState:
    """Combine two states as if their samples had been accumulated together."""
    if b.count == 0:
        return a
    if a.count == 0:
        return b

    count = a.count + b.count
    delta = b.mean - a.mean
    mean = (a.count * a.mean + b.count * b.mean) / count
    m2 = a.sum_squared_deviation + b.sum_squared_deviation + delta * delta * a.count * b.count / count
    return WelfordState(count=count, mean=mean, sum_squared_deviation=max(0.0, m2))


def welford_merge_all(states: Iterable[WelfordState]) -> WelfordState:
    result = EMPTY
    for state in states:
        result = welford_merge(result, state)
    return result


def welford_from_samples(values: Iterable[float]) -> WelfordState:
    """Accumulate a sequence of samples from an empty state."""
    state = EMPTY
    for value in values:
        state = welford_update(state, value)
    return state


def welford_variance(state: WelfordState) -> float:
    """Population variance; 0 below two samples."""
    if state.count < 2:
        return 0.0
    return state.sum_squared_deviation / state.count


def welford_std_dev(state: WelfordState) -> float:
    return math.sqrt(welford_variance(state))
