"""Lower-confidence-bound ranking for "best option" selection.

Raw win rate crowns one-game wonders. Ranking by the lower end of the 95%
Wilson score interval instead rewards options that are both good and well
sampled. Used to pick representative builds, not to score a single match.
"""

from __future__ import annotations

import math
from collections.abc import Mapping

from matchscore.contracts.cohort import CohortSnapshot, GameStats
from matchscore.contracts.scoring import RankedOption
from matchscore.core.scoring.models import DEFAULT_PARAMETERS, ScoringParameters


def wilson_lower_bound(wins: int, games: int, z: float = DEFAULT_PARAMETERS.wilson_z) -> float:
    """Lower bound of the Wilson score interval, as a fraction in [0, 1]."""
    if games <= 0:
        return 0.0
    p = min(1.0, max(0.0, wins / games))
    z2 = z * z
    centre = p + z2 / (2 * games)
    margin = z * math.sqrt(p * (1 - p) / games + z2 / (4 * games * games))
    return max(0.0, (centre - margin) / (1 + z2 / games))


def rank_by_lower_bound(
    options: Mapping[str, GameStats],
    *,
    min_games: int,
    z: float = DEFAULT_PARAMETERS.wilson_z,
) -> list[RankedOption]:
    """Options with at least ``min_games``, best lower bound first.

    Ties go to the option with more games, then to the smaller key so the
    ordering is deterministic.
    """
    ranked = [
        RankedOption(
            key=key,
            games=stats.games,
            wins=stats.wins,
            win_rate=stats.wins / stats.games,
            lower_bound=wilson_lower_bound(stats.wins, stats.games, z),
        )
        for key, stats in options.items()
        if stats.games >= min_games and stats.games > 0
    ]
    ranked.sort(key=lambda option: (-option.lower_bound, -option.games, option.key))
    return ranked


def select_best_option(
    options: Mapping[str, GameStats],
    *,
    min_games: int,
    z: float = DEFAULT_PARAMETERS.wilson_z,
) -> RankedOption | None:
    ranked = rank_by_lower_bound(options, min_games=min_games, z=z)
    return ranked[0] if ranked else None


def rank_cores(
    snapshot: CohortSnapshot, params: ScoringParameters = DEFAULT_PARAMETERS
) -> list[RankedOption]:
    """Three-item cores of a cohort ranked by lower bound."""
    cores = {
        key: GameStats(games=stats.games, wins=stats.wins)
        for key, stats in snapshot.core.items()
        if len(key.split("_")) == 3
    }
    return rank_by_lower_bound(cores, min_games=params.best_core_min_games, z=params.wilson_z)


def select_best_core(
    snapshot: CohortSnapshot, params: ScoringParameters = DEFAULT_PARAMETERS
) -> RankedOption | None:
    ranked = rank_cores(snapshot, params)
    return ranked[0] if ranked else None
