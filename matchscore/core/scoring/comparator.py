"""Performance comparator: continuous per-minute metrics against the cohort.

score = clamp(50 + 25·z, 0, 100), so the cohort mean maps to 50 and two
standard deviations either side map to the ends of the scale.

z comes from the cohort's Welford state once it holds enough samples
(``reliability_floor``) and a meaningful spread. Otherwise the standard
deviation is assumed to be ``fallback_std_ratio`` of the mean, which turns
z into a plain ratio: (player / mean − 1) / 0.15.
"""

from __future__ import annotations

import math

from matchscore.contracts.cohort import CohortSnapshot, PerformanceMetric, WelfordState
from matchscore.contracts.observation import MatchObservation
from matchscore.contracts.scoring import ComparisonResult
from matchscore.core.aggregation.welford import welford_std_dev
from matchscore.core.scoring.models import DEFAULT_PARAMETERS, ScoringParameters
from matchscore.core.utils.clamp import clamp, safe_ratio

NEUTRAL_SCORE = 50.0

# Metrics that feed the performance component (deaths are graded separately)
SCORED_METRICS = (
    PerformanceMetric.DAMAGE_TO_CHAMPIONS,
    PerformanceMetric.TOTAL_DAMAGE,
    PerformanceMetric.HEALING_SHIELDING,
    PerformanceMetric.CC_TIME,
)

_HEALING_RELEVANCE_FLOOR = 300.0
_CC_RELEVANCE_FLOOR = 1.0


def z_score_to_score(z: float, slope: float = DEFAULT_PARAMETERS.z_score_slope) -> float:
    """Linear z to 0-100 mapping, monotonic and clamped."""
    if math.isnan(z):
        return NEUTRAL_SCORE
    return clamp(NEUTRAL_SCORE + slope * z)


def compare_metric(
    player_value: float,
    cohort_mean: float,
    cohort_std_dev: float,
    *,
    metric: PerformanceMetric | str,
    is_reliable: bool = True,
    sample_size: int = 0,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> ComparisonResult:
    """Compare one value against a cohort mean and standard deviation.

    A non-positive or non-finite mean makes the metric meaningless for the
    cohort (e.g. healing on a champion that never heals): the result is the
    neutral 50 with z = 0.
    """
    metric_name = PerformanceMetric(metric).value
    if not math.isfinite(player_value):
        player_value = 0.0

    if not math.isfinite(cohort_mean) or cohort_mean <= 0:
        return ComparisonResult(
            metric=metric_name,
            player_value=player_value,
            cohort_mean=max(0.0, cohort_mean) if math.isfinite(cohort_mean) else 0.0,
            cohort_std_dev=0.0,
            z_score=0.0,
            is_outlier=False,
            score=NEUTRAL_SCORE,
            is_reliable=False,
            sample_size=sample_size,
        )

    use_distribution = (
        is_reliable
        and math.isfinite(cohort_std_dev)
        and cohort_std_dev > cohort_mean * params.min_std_ratio
    )
    if use_distribution:
        std_dev = cohort_std_dev
        z = (player_value - cohort_mean) / std_dev
    else:
        std_dev = cohort_mean * params.fallback_std_ratio
        z = (player_value / cohort_mean - 1.0) / params.fallback_std_ratio

    return ComparisonResult(
        metric=metric_name,
        player_value=player_value,
        cohort_mean=cohort_mean,
        cohort_std_dev=std_dev,
        z_score=z,
        is_outlier=abs(z) > params.outlier_z_threshold,
        score=z_score_to_score(z, params.z_score_slope),
        is_reliable=use_distribution,
        sample_size=sample_size,
    )


def compare_metric_with_welford(
    player_value: float,
    state: WelfordState | None,
    *,
    metric: PerformanceMetric | str,
    fallback_mean: float | None = None,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> ComparisonResult:
    """Compare against a Welford state.

    Below the reliability floor the state's spread is ignored. The mean used
    is then ``fallback_mean`` when given (typically the ratio of cohort sums)
    or the state's own mean.
    """
    state = state or WelfordState()
    reliable = state.count >= params.reliability_floor
    if reliable or fallback_mean is None:
        mean = state.mean if state.count > 0 else 0.0
    else:
        mean = fallback_mean
    return compare_metric(
        player_value,
        mean,
        welford_std_dev(state) if reliable else 0.0,
        metric=metric,
        is_reliable=reliable,
        sample_size=state.count,
        params=params,
    )


def cohort_average_per_minute(snapshot: CohortSnapshot, metric: PerformanceMetric) -> float:
    """Ratio-of-sums cohort average, falling back to the Welford mean."""
    sums = snapshot.sums
    minutes = sums.game_duration / 60.0
    totals = {
        PerformanceMetric.DAMAGE_TO_CHAMPIONS: sums.damage_to_champions,
        PerformanceMetric.TOTAL_DAMAGE: sums.total_damage,
        PerformanceMetric.HEALING_SHIELDING: sums.healing + sums.shielding,
        PerformanceMetric.CC_TIME: sums.cc_time,
        PerformanceMetric.DEATHS: float(sums.deaths),
    }
    if minutes > 0:
        return safe_ratio(totals[metric], minutes)
    return snapshot.welford_for(metric).mean


def metric_relevance(
    snapshot: CohortSnapshot, params: ScoringParameters = DEFAULT_PARAMETERS
) -> dict[PerformanceMetric, float]:
    """How much each scored metric matters for this champion (0 = skip).

    Damage always counts fully. Healing and crowd control only count for
    champions whose cohort actually produces them, scaled with the cohort
    average; high relative spread (coefficient of variation) among reliable
    cohorts raises relevance because the metric separates players.
    """
    average = {metric: cohort_average_per_minute(snapshot, metric) for metric in SCORED_METRICS}
    relevance = {
        PerformanceMetric.DAMAGE_TO_CHAMPIONS: 1.0,
        PerformanceMetric.TOTAL_DAMAGE: 1.0,
        PerformanceMetric.HEALING_SHIELDING: 0.0,
        PerformanceMetric.CC_TIME: 0.0,
    }

    healing = average[PerformanceMetric.HEALING_SHIELDING]
    if healing >= _HEALING_RELEVANCE_FLOOR:
        relevance[PerformanceMetric.HEALING_SHIELDING] = min(1.0, 0.5 + (healing - 300.0) / 2400.0)
    cc_time = average[PerformanceMetric.CC_TIME]
    if cc_time >= _CC_RELEVANCE_FLOOR:
        relevance[PerformanceMetric.CC_TIME] = min(1.0, 0.5 + (cc_time - 2.0) / 12.0)

    for metric, cv_floor, boost in (
        (PerformanceMetric.DAMAGE_TO_CHAMPIONS, 0.3, 0.5),
        (PerformanceMetric.HEALING_SHIELDING, 0.4, 0.3),
        (PerformanceMetric.CC_TIME, 0.4, 0.3),
    ):
        state = snapshot.welford_for(metric)
        if relevance[metric] <= 0 or state.count < params.reliability_floor or state.mean <= 0:
            continue
        cv = welford_std_dev(state) / state.mean
        if cv > cv_floor:
            relevance[metric] = min(1.0, relevance[metric] * (1 + cv * boost))

    return relevance


def compare_efficiency_stats(
    observation: MatchObservation,
    snapshot: CohortSnapshot,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> list[tuple[ComparisonResult, float]]:
    """Compare every relevant per-minute metric.

    Returns:
        ``(result, relevance)`` pairs in a fixed metric order. Metrics with
        zero relevance or an empty cohort are omitted.
    """
    if snapshot.games <= 0 or observation.game_duration_seconds <= 0:
        return []

    relevance = metric_relevance(snapshot, params)
    results = []
    for metric in SCORED_METRICS:
        weight = relevance[metric]
        if weight <= 0:
            continue
        average = cohort_average_per_minute(snapshot, metric)
        if average <= 0:
            continue
        result = compare_metric_with_welford(
            observation.metric_value(metric),
            snapshot.welford_for(metric),
            metric=metric,
            fallback_mean=average,
            params=params,
        )
        results.append((result, weight))
    return results
