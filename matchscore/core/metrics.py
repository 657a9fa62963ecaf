"""
Prometheus metrics for aggregation and scoring.

Metric definitions live here on a dedicated registry so embedding
applications can expose them (or not) without touching the global one.
Helpers never raise: instrumentation must not break scoring or ingestion.
"""

from __future__ import annotations

import contextlib

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from matchscore.config.settings import get_settings

registry = CollectorRegistry()

# ============================================================================
# Counters
# ============================================================================

matchscore_observations_total = Counter(
    "matchscore_observations_total",
    "Match observations offered to the aggregator by outcome",
    labelnames=("outcome",),
    registry=registry,
)

matchscore_flushes_total = Counter(
    "matchscore_flushes_total",
    "Aggregator flush attempts by outcome",
    labelnames=("outcome",),
    registry=registry,
)

matchscore_cohorts_flushed_total = Counter(
    "matchscore_cohorts_flushed_total",
    "Cohort deltas handed to the store by outcome",
    labelnames=("outcome",),
    registry=registry,
)

matchscore_scores_total = Counter(
    "matchscore_scores_total",
    "Score breakdowns produced by outcome",
    labelnames=("outcome",),
    registry=registry,
)

# ============================================================================
# Gauges
# ============================================================================

matchscore_pending_cohorts = Gauge(
    "matchscore_pending_cohorts",
    "Cohorts currently buffered in the aggregator",
    registry=registry,
)

# ============================================================================
# Histograms
# ============================================================================

matchscore_flush_duration_seconds = Histogram(
    "matchscore_flush_duration_seconds",
    "Duration of a complete aggregator flush",
    buckets=(0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
    registry=registry,
)


# ============================================================================
# Helper Functions
# ============================================================================


def _enabled() -> bool:
    return get_settings().metrics_enabled


def mark_observation(outcome: str) -> None:
    """Count an observation ('accumulated' or 'skipped')."""
    if not _enabled():
        return
    with contextlib.suppress(Exception):
        matchscore_observations_total.labels(outcome=outcome).inc()


def mark_flush(outcome: str, duration_seconds: float | None = None) -> None:
    """Count a flush ('success', 'partial', 'failed', 'skipped', 'empty')."""
    if not _enabled():
        return
    with contextlib.suppress(Exception):
        matchscore_flushes_total.labels(outcome=outcome).inc()
        if duration_seconds is not None:
            matchscore_flush_duration_seconds.observe(duration_seconds)


def mark_cohorts_flushed(outcome: str, count: int) -> None:
    """Count cohort deltas written ('written') or dropped ('dropped')."""
    if not _enabled() or count <= 0:
        return
    with contextlib.suppress(Exception):
        matchscore_cohorts_flushed_total.labels(outcome=outcome).inc(count)


def set_pending_cohorts(count: int) -> None:
    if not _enabled():
        return
    with contextlib.suppress(Exception):
        matchscore_pending_cohorts.set(count)


def mark_score(outcome: str) -> None:
    """Count a scoring request ('scored', 'omitted')."""
    if not _enabled():
        return
    with contextlib.suppress(Exception):
        matchscore_scores_total.labels(outcome=outcome).inc()


def render_latest() -> tuple[bytes, str]:
    """Render the registry in Prometheus text exposition format."""
    return generate_latest(registry), CONTENT_TYPE_LATEST
