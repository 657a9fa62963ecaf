"""Score composer - pure domain function with zero I/O.

Every sub-score becomes an entry with a raw weight. Weights are normalized
over the entries that are actually present, each entry removes
``weight × (100 − score)`` from a ceiling of 100, and the remainder is the
final score. A category with no data is omitted rather than scored 0, so
missing timelines or empty cohorts never drag a player down.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass

import numpy as np

from matchscore.contracts.cohort import CohortSnapshot, PerformanceMetric
from matchscore.contracts.observation import MatchObservation
from matchscore.contracts.scoring import (
    BuildCategory,
    BuildChoiceResult,
    ComparisonResult,
    KillDeathQuality,
    ScoreBreakdown,
    ScoreCategory,
    ScoreEntry,
)
from matchscore.core.scoring.build_ranker import CohortSource, compare_build_choices, select_cohort_source
from matchscore.core.scoring.comparator import NEUTRAL_SCORE, cohort_average_per_minute, compare_efficiency_stats
from matchscore.core.scoring.models import DEFAULT_PARAMETERS, ScoringParameters
from matchscore.core.utils.clamp import clamp, round_score

logger = logging.getLogger(__name__)

BUILD_SUB_WEIGHTS: dict[str, float] = {
    BuildCategory.CORE.value: 0.45,
    BuildCategory.KEYSTONE.value: 0.10,
    BuildCategory.SPELLS.value: 0.05,
    BuildCategory.SKILL_ORDER.value: 0.05,
    BuildCategory.STARTING_ITEMS.value: 0.05,
    BuildCategory.ITEMS.value: 0.30,
}

_KP_CAP = 0.9
_KP_EXPONENT = 0.9
_DEATHS_PER_MIN_IDEAL = (0.5, 0.7)
_DEATHS_TOO_FEW_SLOPE = 200.0
_DEATHS_TOO_MANY_SLOPE = 120.0


@dataclass
class _Draft:
    """Entry before weight normalization."""

    name: str
    category: ScoreCategory
    score: float
    raw_weight: float
    player_value: float | str | None = None
    cohort_average: float | None = None
    comparison: ComparisonResult | None = None
    build_choice: BuildChoiceResult | None = None


def kill_participation_score(kill_participation: float) -> float:
    """Concave curve that saturates at 90% kill participation."""
    share = min(max(kill_participation, 0.0), _KP_CAP) / _KP_CAP
    return float(round(100 * share**_KP_EXPONENT))


def deaths_per_minute_score(deaths_per_min: float) -> float:
    """100 inside the ideal band; dying too little means not fighting."""
    low, high = _DEATHS_PER_MIN_IDEAL
    if deaths_per_min < low:
        return clamp(100 - (low - deaths_per_min) * _DEATHS_TOO_FEW_SLOPE)
    if deaths_per_min > high:
        return clamp(100 - (deaths_per_min - high) * _DEATHS_TOO_MANY_SLOPE)
    return 100.0


def _percent_of_average(player_value: float | str | None, average: float | None) -> float | None:
    if not isinstance(player_value, int | float) or not average or average <= 0:
        return None
    return round(player_value / average * 100, 1)


def _performance_drafts(
    comparisons: list[tuple[ComparisonResult, float]], params: ScoringParameters
) -> list[_Draft]:
    total_relevance = sum(relevance for _, relevance in comparisons)
    if total_relevance <= 0:
        return []
    return [
        _Draft(
            name=PerformanceMetric(result.metric).label,
            category=ScoreCategory.PERFORMANCE,
            score=result.score,
            raw_weight=params.performance_weight * relevance / total_relevance,
            player_value=result.player_value,
            cohort_average=result.cohort_mean,
            comparison=result,
        )
        for result, relevance in comparisons
    ]


def _build_choice_name(choice: BuildChoiceResult) -> str:
    if choice.slot is not None:
        return f"Item Slot {choice.slot}"
    return choice.category


def _build_drafts(choices: list[BuildChoiceResult], params: ScoringParameters) -> list[_Draft]:
    # Categories with several results (one per item slot) share their sub-weight
    per_category: dict[str, int] = defaultdict(int)
    for choice in choices:
        per_category[choice.category] += 1
    present = sum(BUILD_SUB_WEIGHTS.get(category, 0.0) for category in per_category)
    if present <= 0:
        return []
    drafts = []
    for choice in choices:
        sub_weight = BUILD_SUB_WEIGHTS.get(choice.category, 0.0) / per_category[choice.category]
        # Low-sample choices count for less, never for nothing
        scaled = sub_weight * (0.5 + 0.5 * choice.confidence)
        drafts.append(
            _Draft(
                name=_build_choice_name(choice),
                category=ScoreCategory.BUILD,
                score=choice.score,
                raw_weight=params.build_weight * scaled / present,
                player_value=choice.player_choice,
                cohort_average=choice.top_win_rate,
                build_choice=choice,
            )
        )
    return drafts


def _quality_drafts(quality: KillDeathQuality | None, params: ScoringParameters) -> list[_Draft]:
    if quality is None:
        return []
    return [
        _Draft(
            name="Death Quality",
            category=ScoreCategory.DEATH_QUALITY,
            score=quality.death_score,
            raw_weight=params.death_quality_weight,
            player_value=float(len(quality.deaths)),
        ),
        _Draft(
            name="Kill Quality",
            category=ScoreCategory.KILL_QUALITY,
            score=quality.kill_score,
            raw_weight=params.kill_quality_weight,
            player_value=float(len(quality.kills)),
        ),
    ]


def _kda_drafts(
    observation: MatchObservation, snapshot: CohortSnapshot, params: ScoringParameters
) -> list[_Draft]:
    drafts = []
    kill_participation = observation.kill_participation
    if kill_participation is not None:
        drafts.append(
            _Draft(
                name="Kill Participation",
                category=ScoreCategory.KDA,
                score=kill_participation_score(kill_participation),
                raw_weight=params.kda_weight / 2,
                player_value=round(kill_participation * 100, 1),
            )
        )
    if observation.game_duration_seconds > 0:
        average = cohort_average_per_minute(snapshot, PerformanceMetric.DEATHS) if snapshot.games else None
        drafts.append(
            _Draft(
                name="Deaths per Minute",
                category=ScoreCategory.KDA,
                score=deaths_per_minute_score(observation.deaths_per_min),
                raw_weight=params.kda_weight / 2,
                player_value=observation.deaths_per_min,
                cohort_average=average or None,
            )
        )
    return drafts


def _finalize(drafts: list[_Draft]) -> tuple[float, list[ScoreEntry], dict[str, float]]:
    weights = np.array([draft.raw_weight for draft in drafts], dtype=float)
    total = float(weights.sum())
    if not drafts or total <= 0:
        return NEUTRAL_SCORE, [], {}

    normalized = weights / total
    entries = [
        ScoreEntry(
            name=draft.name,
            category=draft.category,
            score=draft.score,
            weight=float(weight),
            penalty=float(weight * (100 - draft.score)),
            player_value=draft.player_value,
            cohort_average=draft.cohort_average,
            percent_of_average=(
                _percent_of_average(draft.player_value, draft.cohort_average)
                if draft.build_choice is None
                else None
            ),
            comparison=draft.comparison,
            build_choice=draft.build_choice,
        )
        for draft, weight in zip(drafts, normalized)
    ]
    final_score = round_score(100 - sum(entry.penalty for entry in entries))

    grouped: dict[str, list[ScoreEntry]] = defaultdict(list)
    for entry in entries:
        grouped[ScoreCategory(entry.category).value].append(entry)
    component_scores = {
        category: round(
            float(np.average([e.score for e in group], weights=[e.weight for e in group])), 1
        )
        for category, group in grouped.items()
    }
    return final_score, entries, component_scores


def compose_score(
    observation: MatchObservation,
    snapshot: CohortSnapshot,
    *,
    kill_death_quality: KillDeathQuality | None = None,
    source: CohortSource | None = None,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> ScoreBreakdown | None:
    """Combine every available sub-score into a final 0-100 score.

    Args:
        observation: The participant being scored
        snapshot: Read-only cohort snapshot for the participant's champion/patch
        kill_death_quality: Timeline-derived grades, None when no timeline
        source: Pre-selected core sub-cohort, selected here when omitted
        params: Tuning constants

    Returns:
        A breakdown with the final score rounded to one decimal, or None for
        remakes and zero-length games, which are not scored at all.
    """
    if observation.is_remake or observation.game_duration_seconds <= 0:
        return None

    source = source or select_cohort_source(snapshot, observation.core_key, params)
    drafts = [
        *_performance_drafts(compare_efficiency_stats(observation, snapshot, params), params),
        *_build_drafts(compare_build_choices(observation, snapshot, params, source), params),
        *_quality_drafts(kill_death_quality, params),
        *_kda_drafts(observation, snapshot, params),
    ]
    final_score, entries, component_scores = _finalize(drafts)

    logger.debug(
        f"Composed score for {observation.match_id}/{observation.participant_id}: "
        f"{final_score} from {len(entries)} entries"
    )

    return ScoreBreakdown(
        match_id=observation.match_id,
        participant_id=observation.participant_id,
        puuid=observation.puuid,
        cohort=observation.cohort,
        cohort_games=snapshot.games,
        core_key=observation.core_key,
        used_core_cohort=source.is_core_cohort,
        final_score=final_score,
        component_scores=component_scores,
        entries=tuple(entries),
        kill_death_quality=kill_death_quality,
    )
