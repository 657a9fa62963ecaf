"""
Participant and match summary contracts.

Riot participant payloads are loosely shaped: fields come and go between
patches and game modes. They are resolved exactly once, in
``ParticipantRecord.from_riot``, into an explicit record with defaults so
scoring code never re-checks optional keys.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import Field

from matchscore.core.utils.resolution import as_float, as_int, resolve_first

from .common import FrozenContract

ITEM_SLOTS = ("item0", "item1", "item2", "item3", "item4", "item5")


class RuneSelection(FrozenContract):
    """Resolved rune page."""

    keystone_id: int | None = Field(None, description="First primary-tree selection")
    primary_tree_id: int | None = Field(None)
    secondary_tree_id: int | None = Field(None)
    primary_perks: tuple[int, ...] = Field(default_factory=tuple)
    secondary_perks: tuple[int, ...] = Field(default_factory=tuple)
    offense_shard: int | None = Field(None)
    flex_shard: int | None = Field(None)
    defense_shard: int | None = Field(None)

    @classmethod
    def from_riot(cls, perks: Mapping[str, Any] | None) -> "RuneSelection":
        """Resolve a Riot ``perks`` object; missing pieces stay ``None``."""
        if not perks:
            return cls()

        styles = list(perks.get("styles") or [])
        primary = next(
            (s for s in styles if s.get("description") == "primaryStyle"),
            styles[0] if styles else None,
        )
        secondary = next(
            (s for s in styles if s.get("description") == "subStyle"),
            styles[1] if len(styles) > 1 else None,
        )

        def _selections(style: Mapping[str, Any] | None) -> tuple[int, ...]:
            if not style:
                return ()
            return tuple(
                as_int(sel.get("perk")) for sel in style.get("selections") or [] if sel.get("perk")
            )

        primary_perks = _selections(primary)
        stat_perks = perks.get("statPerks") or {}
        return cls(
            keystone_id=primary_perks[0] if primary_perks else None,
            primary_tree_id=as_int(primary.get("style")) or None if primary else None,
            secondary_tree_id=as_int(secondary.get("style")) or None if secondary else None,
            primary_perks=primary_perks,
            secondary_perks=_selections(secondary),
            offense_shard=resolve_first(stat_perks, "offense"),
            flex_shard=resolve_first(stat_perks, "flex"),
            defense_shard=resolve_first(stat_perks, "defense"),
        )


class ParticipantRecord(FrozenContract):
    """One participant of a finished match with every optional field defaulted."""

    participant_id: int = Field(..., ge=1, le=16)
    puuid: str = Field("", description="Player's PUUID")
    team_id: int = Field(100, description="100 (blue) or 200 (red)")
    champion_id: int = Field(0)
    champion_name: str = Field(..., min_length=1)
    win: bool = Field(False)

    kills: int = Field(0, ge=0)
    deaths: int = Field(0, ge=0)
    assists: int = Field(0, ge=0)

    total_damage_dealt_to_champions: float = Field(0.0, ge=0)
    total_damage_dealt: float = Field(0.0, ge=0)
    total_heals_on_teammates: float = Field(0.0, ge=0)
    total_damage_shielded_on_teammates: float = Field(0.0, ge=0)
    time_ccing_others: float = Field(0.0, ge=0, description="Seconds of crowd control applied")

    items: tuple[int, ...] = Field(default_factory=tuple, description="Final inventory, item0-item5")
    summoner1_id: int = Field(0)
    summoner2_id: int = Field(0)
    runes: RuneSelection = Field(default_factory=RuneSelection)

    game_ended_in_early_surrender: bool = Field(False)

    @classmethod
    def from_riot(cls, payload: Mapping[str, Any]) -> "ParticipantRecord":
        """Build a record from a Match-V5 ``info.participants[]`` entry.

        Precedence for fields with several sources:
          - crowd control: ``timeCCingOthers`` → ``totalTimeCCDealt`` → 0
          - champion name: ``championName`` → ``championId`` as text
          - healing: ``totalHealsOnTeammates`` → ``totalHeal`` → 0
        """
        champion_id = as_int(payload.get("championId"))
        return cls(
            participant_id=as_int(payload.get("participantId"), 1),
            puuid=str(payload.get("puuid") or ""),
            team_id=as_int(payload.get("teamId"), 100),
            champion_id=champion_id,
            champion_name=str(resolve_first(payload, "championName", default=str(champion_id))),
            win=bool(payload.get("win", False)),
            kills=as_int(payload.get("kills")),
            deaths=as_int(payload.get("deaths")),
            assists=as_int(payload.get("assists")),
            total_damage_dealt_to_champions=as_float(payload.get("totalDamageDealtToChampions")),
            total_damage_dealt=as_float(payload.get("totalDamageDealt")),
            total_heals_on_teammates=as_float(
                resolve_first(payload, "totalHealsOnTeammates", "totalHeal", default=0)
            ),
            total_damage_shielded_on_teammates=as_float(
                payload.get("totalDamageShieldedOnTeammates")
            ),
            time_ccing_others=as_float(
                resolve_first(payload, "timeCCingOthers", "totalTimeCCDealt", default=0)
            ),
            items=tuple(as_int(payload.get(slot)) for slot in ITEM_SLOTS),
            summoner1_id=as_int(payload.get("summoner1Id")),
            summoner2_id=as_int(payload.get("summoner2Id")),
            runes=RuneSelection.from_riot(payload.get("perks")),
            game_ended_in_early_surrender=bool(payload.get("gameEndedInEarlySurrender", False)),
        )


class MatchSummary(FrozenContract):
    """The parts of a Match-V5 ``MatchDto`` the engine consumes."""

    match_id: str = Field(..., description="Match ID, e.g. EUW1_1234567890")
    game_version: str = Field("", description="Full client version, e.g. 15.3.652.4213")
    game_duration_seconds: float = Field(0.0, ge=0)
    queue_id: int = Field(0)
    participants: tuple[ParticipantRecord, ...] = Field(default_factory=tuple)

    @property
    def is_remake(self) -> bool:
        """A match counts as a remake if any participant ended in early surrender."""
        return any(p.game_ended_in_early_surrender for p in self.participants)

    def get_participant(self, participant_id: int) -> ParticipantRecord | None:
        for participant in self.participants:
            if participant.participant_id == participant_id:
                return participant
        return None

    def team_kills(self, team_id: int) -> int:
        return sum(p.kills for p in self.participants if p.team_id == team_id)

    @classmethod
    def from_riot(cls, payload: Mapping[str, Any]) -> "MatchSummary":
        """Build a summary from a raw ``MatchDto`` (``metadata`` + ``info``).

        ``gameDuration`` is seconds when ``gameEndTimestamp`` is present and
        milliseconds on older matches that predate that field.
        """
        metadata = payload.get("metadata") or {}
        info = payload.get("info") or {}
        duration = as_float(info.get("gameDuration"))
        if "gameEndTimestamp" not in info:
            duration = duration / 1000.0
        return cls(
            match_id=str(resolve_first(metadata, "matchId", default=info.get("gameId", ""))),
            game_version=str(info.get("gameVersion") or ""),
            game_duration_seconds=duration,
            queue_id=as_int(info.get("queueId")),
            participants=tuple(
                ParticipantRecord.from_riot(p) for p in info.get("participants") or []
            ),
        )
