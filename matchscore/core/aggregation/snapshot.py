"""Cohort snapshot arithmetic.

``apply_observation`` folds one match into a mutable buffer snapshot owned by
the aggregator. ``merge_snapshots`` combines two snapshots (for example a
persisted aggregate and a freshly flushed delta) without mutating either.
"""

from __future__ import annotations

from matchscore.contracts.cohort import (
    CohortSnapshot,
    CoreBuildStats,
    GameStats,
    MetricSums,
    OptionTable,
    PerformanceMetric,
    RuneTables,
)
from matchscore.contracts.items import BOOT_IDS
from matchscore.contracts.observation import MatchObservation
from matchscore.core.aggregation.welford import welford_merge, welford_update

# Build slots that follow a completed three-item core
POST_CORE_SLOTS = (4, 5, 6)
MAX_BUILD_SLOTS = 6


def record_option(table: OptionTable, key: str | int | None, win: bool) -> None:
    """Count one game for ``key`` in ``table`` (no-op for empty keys)."""
    if key is None or key == "" or key == 0:
        return
    stats = table.setdefault(str(key), GameStats())
    stats.games += 1
    if win:
        stats.wins += 1


def build_slots(build_order: tuple[int, ...] | list[int]) -> dict[int, int]:
    """Completed non-boot items keyed by their 1-based build slot (up to six)."""
    items = [item_id for item_id in build_order if item_id > 0 and item_id not in BOOT_IDS]
    return {slot: item_id for slot, item_id in enumerate(items[:MAX_BUILD_SLOTS], start=1)}


def merge_game_stats(a: GameStats, b: GameStats) -> GameStats:
    return GameStats(games=a.games + b.games, wins=a.wins + b.wins)


def merge_tables(a: OptionTable, b: OptionTable) -> OptionTable:
    merged = {key: stats.model_copy() for key, stats in a.items()}
    for key, stats in b.items():
        merged[key] = merge_game_stats(merged[key], stats) if key in merged else stats.model_copy()
    return merged


def _merge_nested(a: dict[str, OptionTable], b: dict[str, OptionTable]) -> dict[str, OptionTable]:
    merged = {key: merge_tables(table, {}) for key, table in a.items()}
    for key, table in b.items():
        merged[key] = merge_tables(merged.get(key, {}), table)
    return merged


def _merge_sums(a: MetricSums, b: MetricSums) -> MetricSums:
    return MetricSums(**{
        field: getattr(a, field) + getattr(b, field) for field in MetricSums.model_fields
    })


def _merge_runes(a: RuneTables, b: RuneTables) -> RuneTables:
    return RuneTables(
        primary=merge_tables(a.primary, b.primary),
        secondary=merge_tables(a.secondary, b.secondary),
        tertiary=_merge_nested(a.tertiary, b.tertiary),
        tree=_merge_nested(a.tree, b.tree),
    )


def merge_core_stats(a: CoreBuildStats, b: CoreBuildStats) -> CoreBuildStats:
    return CoreBuildStats(
        games=a.games + b.games,
        wins=a.wins + b.wins,
        items=_merge_nested(a.items, b.items),
        keystones=merge_tables(a.keystones, b.keystones),
        spells=merge_tables(a.spells, b.spells),
        starting=merge_tables(a.starting, b.starting),
        skills=merge_tables(a.skills, b.skills),
    )


def merge_snapshots(a: CohortSnapshot, b: CohortSnapshot) -> CohortSnapshot:
    """Combine two snapshots of the same cohort.

    Raises:
        ValueError: If the snapshots belong to different cohorts.
    """
    if a.key != b.key:
        raise ValueError(f"cannot merge cohort {b.key.storage_key} into {a.key.storage_key}")

    welford = {}
    for metric in PerformanceMetric:
        welford[metric.value] = welford_merge(a.welford_for(metric), b.welford_for(metric))

    core = {key: stats.model_copy(deep=True) for key, stats in a.core.items()}
    for key, stats in b.core.items():
        core[key] = merge_core_stats(core[key], stats) if key in core else stats.model_copy(deep=True)

    return CohortSnapshot(
        champion_name=a.champion_name,
        patch=a.patch,
        games=a.games + b.games,
        wins=a.wins + b.wins,
        sums=_merge_sums(a.sums, b.sums),
        welford=welford,
        keystones=merge_tables(a.keystones, b.keystones),
        runes=_merge_runes(a.runes, b.runes),
        spells=merge_tables(a.spells, b.spells),
        skills=merge_tables(a.skills, b.skills),
        starting=merge_tables(a.starting, b.starting),
        items=_merge_nested(a.items, b.items),
        core=core,
    )


def apply_observation(snapshot: CohortSnapshot, observation: MatchObservation) -> None:
    """Fold one observation into ``snapshot`` in place.

    Only the aggregator calls this, on buffers it owns.
    """
    win = observation.win
    snapshot.games += 1
    if win:
        snapshot.wins += 1

    sums = snapshot.sums
    sums.damage_to_champions += observation.damage_to_champions
    sums.total_damage += observation.total_damage
    sums.healing += observation.healing
    sums.shielding += observation.shielding
    sums.cc_time += observation.cc_time
    sums.game_duration += observation.game_duration_seconds
    sums.kills += observation.kills
    sums.deaths += observation.deaths
    sums.assists += observation.assists

    if observation.game_duration_seconds > 0:
        for metric in PerformanceMetric:
            snapshot.welford[metric.value] = welford_update(
                snapshot.welford_for(metric), observation.metric_value(metric)
            )

    slots = build_slots(observation.build_order)
    for slot, item_id in slots.items():
        record_option(snapshot.items.setdefault(str(slot), {}), item_id, win)

    record_option(snapshot.keystones, observation.keystone_id, win)
    for perk in observation.primary_perks:
        record_option(snapshot.runes.primary, perk, win)
    for perk in observation.secondary_perks:
        record_option(snapshot.runes.secondary, perk, win)
    for row, shard in observation.stat_shards.items():
        record_option(snapshot.runes.tertiary.setdefault(row, {}), shard, win)
    record_option(snapshot.runes.tree.setdefault("primary", {}), observation.primary_tree_id, win)
    record_option(snapshot.runes.tree.setdefault("secondary", {}), observation.secondary_tree_id, win)

    record_option(snapshot.spells, observation.spell_key, win)
    record_option(snapshot.starting, observation.first_buy_key, win)
    record_option(snapshot.skills, observation.skill_order, win)

    if observation.core_key:
        core = snapshot.core.setdefault(observation.core_key, CoreBuildStats())
        core.games += 1
        if win:
            core.wins += 1
        for slot in POST_CORE_SLOTS:
            if slot in slots:
                record_option(core.items.setdefault(str(slot), {}), slots[slot], win)
        record_option(core.keystones, observation.keystone_id, win)
        record_option(core.spells, observation.spell_key, win)
        record_option(core.starting, observation.first_buy_key, win)
        record_option(core.skills, observation.skill_order, win)
