"""Match quality scoring.

Performance metrics are compared against the champion/patch cohort with
z-scores, build decisions are ranked against the cohort's alternatives, and
kills/deaths are graded by context. The composer folds everything into one
0-100 score with a displayable breakdown.
"""

from matchscore.core.scoring.build_ranker import (
    CohortSource,
    compare_build_choice,
    compare_build_choices,
    compare_item_choices,
    rank_to_score,
    select_cohort_source,
)
from matchscore.core.scoring.calculator import analyze_full_match, score_participant
from matchscore.core.scoring.comparator import compare_metric, compare_metric_with_welford, z_score_to_score
from matchscore.core.scoring.composer import compose_score
from matchscore.core.scoring.kill_quality import analyze_kill_death_quality, analyze_participant_events
from matchscore.core.scoring.lower_bound import select_best_core, wilson_lower_bound
from matchscore.core.scoring.models import DEFAULT_PARAMETERS, ScoringParameters

__all__ = [
    "DEFAULT_PARAMETERS",
    "CohortSource",
    "ScoringParameters",
    "analyze_full_match",
    "analyze_kill_death_quality",
    "analyze_participant_events",
    "compare_build_choice",
    "compare_build_choices",
    "compare_item_choices",
    "compare_metric",
    "compare_metric_with_welford",
    "compose_score",
    "rank_to_score",
    "score_participant",
    "select_best_core",
    "select_cohort_source",
    "wilson_lower_bound",
]
