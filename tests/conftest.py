"""Shared fixtures for matchscore tests.

Builders return plain Riot-shaped dicts or validated contracts so each test
states only the fields it cares about.
"""

from typing import Any

import pytest

from matchscore.contracts.cohort import CohortKey
from matchscore.contracts.observation import MatchObservation
from matchscore.contracts.timeline import MatchTimeline

ANNIE_KEY = CohortKey(champion_name="Annie", patch="25.3")


def make_observation(**overrides: Any) -> MatchObservation:
    """A ten-minute, unremarkable Annie game unless overridden."""
    data: dict[str, Any] = {
        "match_id": "EUW1_1",
        "cohort": ANNIE_KEY,
        "participant_id": 1,
        "puuid": "puuid-1",
        "team_id": 100,
        "win": True,
        "game_duration_seconds": 600.0,
        "kills": 3,
        "deaths": 6,
        "assists": 9,
        "team_kills": 20,
        "damage_to_champions": 15000.0,
        "total_damage": 40000.0,
        "damage_to_champions_per_min": 1500.0,
        "total_damage_per_min": 4000.0,
        "deaths_per_min": 0.6,
    }
    data.update(overrides)
    return MatchObservation(**data)


def make_timeline(frames: list[dict[str, Any]], match_id: str = "EUW1_1") -> MatchTimeline:
    return MatchTimeline.model_validate(
        {
            "metadata": {"matchId": match_id, "participants": []},
            "info": {"frameInterval": 60000, "frames": frames},
        }
    )


def make_participant(participant_id: int, **overrides: Any) -> dict[str, Any]:
    """Riot ``info.participants[]`` entry."""
    data: dict[str, Any] = {
        "participantId": participant_id,
        "puuid": f"puuid-{participant_id}",
        "teamId": 100 if participant_id <= 5 else 200,
        "championId": 1,
        "championName": "Annie",
        "win": participant_id <= 5,
        "kills": 2,
        "deaths": 3,
        "assists": 4,
        "totalDamageDealtToChampions": 12000,
        "totalDamageDealt": 30000,
        "totalHealsOnTeammates": 0,
        "totalDamageShieldedOnTeammates": 0,
        "timeCCingOthers": 20,
        "item0": 3089,
        "item1": 3020,
        "item2": 6655,
        "item3": 3157,
        "item4": 0,
        "item5": 0,
        "summoner1Id": 32,
        "summoner2Id": 4,
        "perks": {
            "statPerks": {"offense": 5008, "flex": 5008, "defense": 5011},
            "styles": [
                {"description": "primaryStyle", "style": 8100, "selections": [{"perk": 8112}, {"perk": 8139}]},
                {"description": "subStyle", "style": 8300, "selections": [{"perk": 8345}]},
            ],
        },
    }
    data.update(overrides)
    return data


def make_match_payload(
    participants: list[dict[str, Any]] | None = None, **info_overrides: Any
) -> dict[str, Any]:
    """Riot ``MatchDto`` with ``gameDuration`` in seconds."""
    info: dict[str, Any] = {
        "gameId": 1,
        "gameVersion": "15.3.652.4213",
        "gameDuration": 1200,
        "gameEndTimestamp": 1700000000000,
        "queueId": 450,
        "participants": participants if participants is not None else [make_participant(i) for i in range(1, 11)],
    }
    info.update(info_overrides)
    return {"metadata": {"matchId": "EUW1_1", "participants": []}, "info": info}


@pytest.fixture
def observation() -> MatchObservation:
    return make_observation()


@pytest.fixture
def observation_factory():
    return make_observation


@pytest.fixture
def timeline_factory():
    return make_timeline


@pytest.fixture
def participant_factory():
    return make_participant


@pytest.fixture
def match_payload_factory():
    return make_match_payload
