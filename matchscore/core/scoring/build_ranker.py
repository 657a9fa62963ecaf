"""Build choice ranker: discrete decisions against the cohort's alternatives.

Options with enough games are ranked by win rate and the player's choice is
scored by its rank: 90·e^(−(rank−1)/5), i.e. 90 for the best known option,
74 for the second, 40 for the fifth. A choice seen too rarely to rank is
placed just past the reliable list; a choice never seen gets a flat 40.
When no option clears the floor at all the choice is neutral (50).
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping

from pydantic import BaseModel, ConfigDict

from matchscore.contracts.cohort import CohortSnapshot, CoreBuildStats, GameStats, OptionTable
from matchscore.contracts.observation import MatchObservation
from matchscore.contracts.scoring import BuildCategory, BuildChoiceResult
from matchscore.core.aggregation.snapshot import (
    POST_CORE_SLOTS,
    build_slots,
    merge_core_stats,
    merge_game_stats,
)
from matchscore.core.extraction.items import normalize_core_key, normalize_first_buy_key
from matchscore.core.scoring.comparator import NEUTRAL_SCORE
from matchscore.core.scoring.models import DEFAULT_PARAMETERS, ScoringParameters


def win_rate(stats: GameStats) -> float:
    """Win rate in percent, 0 without games."""
    if stats.games <= 0:
        return 0.0
    return stats.wins / stats.games * 100


def rank_to_score(rank: int, params: ScoringParameters = DEFAULT_PARAMETERS) -> float:
    """Exponential rank decay; strictly decreasing for rank >= 1."""
    if rank <= 0:
        return params.top_rank_score
    return float(max(0, round(params.top_rank_score * math.exp(-(rank - 1) / params.rank_decay))))


def choice_confidence(games: int, params: ScoringParameters = DEFAULT_PARAMETERS) -> float:
    """0..1 trust in a choice's win rate, saturating at full-confidence games.

    Below the games floor confidence grows linearly to 0.5; from the floor it
    grows linearly from 0.5 to 1.0 at ``full_confidence_games``.
    """
    if games <= 0:
        return 0.0
    floor = params.min_games_threshold
    if games < floor:
        return min(0.5, games / floor)
    span = max(1, params.full_confidence_games - floor)
    return min(1.0, 0.5 + 0.5 * (games - floor) / span)


def compare_build_choice(
    player_choice: str | int | None,
    options: Mapping[str, GameStats],
    category: BuildCategory | str,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> BuildChoiceResult | None:
    """Rank the player's choice among the cohort's options.

    Returns:
        None when there is nothing to compare (no choice or an empty table),
        so the category is skipped rather than penalized.
        A neutral result (score 50, rank -1) when no option has enough games
        to rank.
    """
    if player_choice is None or player_choice == "" or not options:
        return None
    choice = str(player_choice)
    category_name = BuildCategory(category).value

    reliable = sorted(
        ((key, stats) for key, stats in options.items() if stats.games >= params.min_games_threshold),
        key=lambda item: (-win_rate(item[1]), -item[1].games, item[0]),
    )
    player_stats = options.get(choice)

    if not reliable:
        # No option clears the games floor
        return BuildChoiceResult(
            category=category_name,
            player_choice=choice,
            player_win_rate=None,
            player_games=player_stats.games if player_stats else 0,
            top_win_rate=None,
            top_choice=None,
            rank=-1,
            total_options=0,
            is_top_tier=False,
            score=NEUTRAL_SCORE,
            confidence=0.0,
        )

    top_key, top_stats = reliable[0]
    top_win_rate = win_rate(top_stats)
    if player_stats is None or player_stats.games <= 0:
        return BuildChoiceResult(
            category=category_name,
            player_choice=choice,
            player_win_rate=None,
            player_games=0,
            top_win_rate=top_win_rate,
            top_choice=top_key,
            rank=-1,
            total_options=len(reliable),
            is_top_tier=False,
            score=params.unknown_choice_score,
            confidence=0.0,
        )

    position = next((index for index, (key, _) in enumerate(reliable) if key == choice), None)
    rank = position + 1 if position is not None else len(reliable) + 1

    return BuildChoiceResult(
        category=category_name,
        player_choice=choice,
        player_win_rate=win_rate(player_stats),
        player_games=player_stats.games,
        top_win_rate=top_win_rate,
        top_choice=top_key,
        rank=rank,
        total_options=len(reliable),
        is_top_tier=position is not None and rank <= params.top_tier_rank,
        score=rank_to_score(rank, params),
        confidence=choice_confidence(player_stats.games, params),
    )


class CohortSource(BaseModel):
    """Which population build choices are compared within."""

    model_config = ConfigDict(frozen=True)

    core_stats: CoreBuildStats | None = None
    matched_key: str | None = None

    @property
    def is_core_cohort(self) -> bool:
        return self.core_stats is not None


def normalize_options(table: Mapping[str, GameStats], normalize: Callable[[str], str | None]) -> OptionTable:
    """Re-key ``table`` through ``normalize``, merging keys that collapse together.

    Keys the normalizer rejects are dropped.
    """
    normalized: OptionTable = {}
    for key, stats in table.items():
        canonical = normalize(key)
        if canonical is None:
            continue
        normalized[canonical] = merge_game_stats(normalized[canonical], stats) if canonical in normalized else stats
    return normalized


def normalize_cores(cores: Mapping[str, CoreBuildStats]) -> dict[str, CoreBuildStats]:
    """Core sub-cohorts keyed by canonical core key."""
    normalized: dict[str, CoreBuildStats] = {}
    for key, stats in cores.items():
        canonical = normalize_core_key(key)
        if canonical is None:
            continue
        normalized[canonical] = merge_core_stats(normalized[canonical], stats) if canonical in normalized else stats
    return normalized


def _merge_cores(cores: list[CoreBuildStats]) -> CoreBuildStats:
    merged = CoreBuildStats()
    for core in cores:
        merged = merge_core_stats(merged, core)
    return merged


def select_cohort_source(
    snapshot: CohortSnapshot,
    core_key: str | None,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> CohortSource:
    """Narrow to the player's core sub-cohort when it has enough games.

    Exact core first; otherwise every core sharing at least two items with
    the player's ("family"), merged, if together they clear the family floor.
    Falls back to the whole champion cohort.
    """
    core_key = normalize_core_key(core_key)
    if not core_key or not snapshot.core:
        return CohortSource()
    cores = normalize_cores(snapshot.core)

    exact = cores.get(core_key)
    if exact is not None and exact.games >= params.core_cohort_min_games:
        return CohortSource(core_stats=exact, matched_key=core_key)

    player_items = set(core_key.split("_"))
    family = [
        (len(player_items & set(key.split("_"))), key, stats)
        for key, stats in cores.items()
        if key != core_key
    ]
    family = [entry for entry in family if entry[0] >= 2]
    if not family:
        return CohortSource()
    family.sort(key=lambda entry: (-entry[0], -entry[2].games, entry[1]))

    merged = _merge_cores([stats for _, _, stats in family])
    if merged.games < params.core_family_min_games:
        return CohortSource()
    return CohortSource(
        core_stats=merged,
        matched_key="family:" + "+".join(key for _, key, _ in family[:3]),
    )


def _pick_table(source: CohortSource, core_table: OptionTable | None, global_table: OptionTable) -> OptionTable:
    if source.is_core_cohort and core_table:
        return core_table
    return global_table


def _item_table(
    slot: int,
    item_id: int,
    snapshot: CohortSnapshot,
    source: CohortSource,
    params: ScoringParameters,
) -> OptionTable:
    # The core's own slot table only once it has seen this item often enough
    if source.core_stats is not None:
        core_table = source.core_stats.items.get(str(slot), {})
        stats = core_table.get(str(item_id))
        if stats is not None and stats.games >= params.min_games_threshold:
            return core_table
    return snapshot.items.get(str(slot), {})


def compare_item_choices(
    observation: MatchObservation,
    snapshot: CohortSnapshot,
    source: CohortSource,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> list[BuildChoiceResult]:
    """Rank each item bought after the core against the same build slot.

    Items sold before the end of the game are not judged.
    """
    slots = build_slots(observation.build_order)
    final_items = {item_id for item_id in observation.final_items if item_id > 0}
    results = []
    for slot in POST_CORE_SLOTS:
        item_id = slots.get(slot)
        if item_id is None or (final_items and item_id not in final_items):
            continue
        table = _item_table(slot, item_id, snapshot, source, params)
        result = compare_build_choice(item_id, table, BuildCategory.ITEMS, params)
        if result is not None:
            results.append(result.model_copy(update={"slot": slot}))
    return results


def compare_build_choices(
    observation: MatchObservation,
    snapshot: CohortSnapshot,
    params: ScoringParameters = DEFAULT_PARAMETERS,
    source: CohortSource | None = None,
) -> list[BuildChoiceResult]:
    """Score every discrete choice the observation carries.

    The core itself is always ranked among all of the cohort's cores;
    keystone, spells, skill order, starting items and post-core items are
    ranked within the core sub-cohort when one was selected. Core and
    starting-item keys are canonicalized on both sides before matching.
    """
    if snapshot.games <= 0:
        return []
    source = source or select_cohort_source(snapshot, observation.core_key, params)
    core = source.core_stats
    cores = normalize_cores(snapshot.core)
    starting = normalize_options(
        _pick_table(source, core.starting if core else None, snapshot.starting), normalize_first_buy_key
    )

    comparisons = [
        (BuildCategory.CORE, normalize_core_key(observation.core_key), cores),
        (BuildCategory.KEYSTONE, observation.keystone_id, _pick_table(source, core.keystones if core else None, snapshot.keystones)),
        (BuildCategory.SPELLS, observation.spell_key, _pick_table(source, core.spells if core else None, snapshot.spells)),
        (BuildCategory.SKILL_ORDER, observation.skill_order, _pick_table(source, core.skills if core else None, snapshot.skills)),
        (BuildCategory.STARTING_ITEMS, normalize_first_buy_key(observation.first_buy_key), starting),
    ]

    results = []
    for category, choice, table in comparisons:
        result = compare_build_choice(choice, table, category, params)
        if result is not None:
            results.append(result)
    results.extend(compare_item_choices(observation, snapshot, source, params))
    return results
