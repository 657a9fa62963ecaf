"""Turns a finished match into per-participant observations.

This is the extraction boundary: everything after it works on immutable
``MatchObservation`` values whose undo/sell sequences, fallbacks and
per-minute rates are already resolved.
"""

from __future__ import annotations

from matchscore.contracts.cohort import CohortKey
from matchscore.contracts.items import ItemCatalog
from matchscore.contracts.observation import MatchObservation
from matchscore.contracts.participant import MatchSummary, ParticipantRecord
from matchscore.contracts.timeline import MatchTimeline
from matchscore.core.extraction.abilities import extract_ability_order, skill_order_abbreviation
from matchscore.core.extraction.items import (
    create_core_key,
    create_first_buy_key,
    create_spell_key,
    extract_build_order,
    extract_core_items,
    extract_first_buy,
    extract_item_purchases,
)
from matchscore.core.extraction.patch import extract_patch
from matchscore.core.utils.clamp import safe_ratio

_DEFAULT_CATALOG = ItemCatalog()


class ObservationError(ValueError):
    """Raised when a participant cannot be turned into an observation."""


def build_observation(
    match: MatchSummary,
    participant: ParticipantRecord,
    timeline: MatchTimeline | None = None,
    catalog: ItemCatalog | None = None,
) -> MatchObservation:
    """Extract one participant's observation.

    Without a timeline the build order, first buy and ability order are
    unknown; the core key then comes from the final inventory alone.

    Raises:
        ObservationError: If the participant does not belong to ``match``.
    """
    if match.get_participant(participant.participant_id) is None:
        raise ObservationError(
            f"participant {participant.participant_id} is not part of {match.match_id}"
        )

    catalog = catalog or _DEFAULT_CATALOG
    pid = participant.participant_id
    minutes = match.game_duration_seconds / 60.0

    purchases = extract_item_purchases(timeline, pid)
    build_order = extract_build_order(purchases, catalog)
    core_items = extract_core_items(build_order, catalog, participant.items)
    ability_order = extract_ability_order(timeline, pid)
    runes = participant.runes
    shards = {
        row: shard
        for row, shard in (
            ("offense", runes.offense_shard),
            ("flex", runes.flex_shard),
            ("defense", runes.defense_shard),
        )
        if shard
    }
    healing_shielding = (
        participant.total_heals_on_teammates + participant.total_damage_shielded_on_teammates
    )

    return MatchObservation(
        match_id=match.match_id,
        cohort=CohortKey(champion_name=participant.champion_name, patch=extract_patch(match.game_version)),
        participant_id=pid,
        puuid=participant.puuid,
        team_id=participant.team_id,
        win=participant.win,
        is_remake=match.is_remake,
        game_duration_seconds=match.game_duration_seconds,
        kills=participant.kills,
        deaths=participant.deaths,
        assists=participant.assists,
        team_kills=match.team_kills(participant.team_id),
        damage_to_champions=participant.total_damage_dealt_to_champions,
        total_damage=participant.total_damage_dealt,
        healing=participant.total_heals_on_teammates,
        shielding=participant.total_damage_shielded_on_teammates,
        cc_time=participant.time_ccing_others,
        damage_to_champions_per_min=safe_ratio(participant.total_damage_dealt_to_champions, minutes),
        total_damage_per_min=safe_ratio(participant.total_damage_dealt, minutes),
        healing_shielding_per_min=safe_ratio(healing_shielding, minutes),
        cc_time_per_min=safe_ratio(participant.time_ccing_others, minutes),
        deaths_per_min=safe_ratio(participant.deaths, minutes),
        core_key=create_core_key(core_items),
        keystone_id=runes.keystone_id,
        primary_tree_id=runes.primary_tree_id,
        secondary_tree_id=runes.secondary_tree_id,
        primary_perks=runes.primary_perks,
        secondary_perks=runes.secondary_perks,
        stat_shards=shards,
        spell_key=create_spell_key(participant.summoner1_id, participant.summoner2_id),
        ability_order=ability_order,
        skill_order=skill_order_abbreviation(ability_order),
        first_buy_key=create_first_buy_key(extract_first_buy(purchases, catalog)),
        final_items=participant.items,
        build_order=tuple(build_order),
    )


def extract_observations(
    match: MatchSummary,
    timeline: MatchTimeline | None = None,
    catalog: ItemCatalog | None = None,
) -> list[MatchObservation]:
    """Observations for every participant of ``match``."""
    return [build_observation(match, p, timeline, catalog) for p in match.participants]
