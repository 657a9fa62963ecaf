"""Cohort aggregation: Welford statistics, snapshot merging and batched flush."""

from matchscore.core.aggregation.aggregator import CohortAggregator, FlushResult
from matchscore.core.aggregation.snapshot import apply_observation, merge_snapshots
from matchscore.core.aggregation.welford import (
    welford_from_samples,
    welford_merge,
    welford_std_dev,
    welford_update,
    welford_variance,
)

__all__ = [
    "CohortAggregator",
    "FlushResult",
    "apply_observation",
    "merge_snapshots",
    "welford_from_samples",
    "welford_merge",
    "welford_std_dev",
    "welford_update",
    "welford_variance",
]
