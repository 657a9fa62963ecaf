"""Kill/death quality analyzer.

Deaths and kills are graded by context rather than counted:

- group engagement: at least ``teamfight_min_nearby`` other deaths within
  ``teamfight_window_ms`` and ``teamfight_radius`` (three or more deaths
  together) make a death an accepted teamfight risk;
- position: projection onto the base-to-base diagonal, 1.0 deep in enemy
  territory and 0.0 at the player's own base;
- gold: unspent gold at the time, relative to the richest anyone got in
  the match (dying with full pockets wastes it, killing a rich target
  denies it).

The death aggregate starts at 100 and loses per-death penalties; the kill
aggregate starts at 50 and gains per-kill value.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from matchscore.contracts.common import Position, TeamSide
from matchscore.contracts.scoring import DeathAnalysis, KillAnalysis, KillDeathQuality, KillEvent
from matchscore.contracts.timeline import MatchTimeline
from matchscore.core.extraction.kill_events import extract_kill_events
from matchscore.core.scoring.models import DEFAULT_PARAMETERS, ScoringParameters
from matchscore.core.utils.clamp import clamp

BLUE_BASE = (2500.0, 2500.0)
RED_BASE = (12500.0, 12500.0)

_DEATH_BASE_PENALTY = 8.0
_DEATH_GOLD_PENALTY = 8.0
_DEATH_TEAMFIGHT_RELIEF = 6.0
_DEATH_POSITION_RELIEF = 5.0
_DEATH_MIN_PENALTY = 2.0
_TEAMFIGHT_FULL_NEARBY = 4.0

_KILL_BASE_VALUE = 4.0
_KILL_GOLD_VALUE = 4.0
_KILL_DEFENSIVE_VALUE = 2.0


def position_score(position: Position, team_id: int) -> float:
    """Progress from the player's own base towards the enemy base, in [0, 1]."""
    blue = np.array(BLUE_BASE)
    axis = np.array(RED_BASE) - blue
    point = np.array([position.x, position.y], dtype=float)
    progress = float(np.dot(point - blue, axis) / np.dot(axis, axis))
    progress = clamp(progress, 0.0, 1.0)
    return progress if team_id == TeamSide.BLUE else 1.0 - progress


def count_nearby_deaths(
    kills: Sequence[KillEvent], params: ScoringParameters = DEFAULT_PARAMETERS
) -> list[int]:
    """For each kill, how many kills of other victims happened close in time and space."""
    if not kills:
        return []
    times = np.array([kill.timestamp for kill in kills], dtype=float)
    xy = np.array([[kill.position.x, kill.position.y] for kill in kills], dtype=float)
    victims = np.array([kill.victim_id for kill in kills])

    close_in_time = np.abs(times[:, None] - times[None, :]) <= params.teamfight_window_ms
    distance = np.hypot(xy[:, None, 0] - xy[None, :, 0], xy[:, None, 1] - xy[None, :, 1])
    close_in_space = distance <= params.teamfight_radius
    other_victim = victims[:, None] != victims[None, :]
    return [int(n) for n in (close_in_time & close_in_space & other_victim).sum(axis=1)]


def gold_reference(timeline: MatchTimeline | None, params: ScoringParameters = DEFAULT_PARAMETERS) -> float:
    """Gold amount that counts as "full pockets" for this match."""
    highest = timeline.max_current_gold() if timeline is not None else 0
    return float(max(params.high_gold_threshold, highest))


def grade_death(
    kill: KillEvent,
    nearby_deaths: int,
    team_id: int,
    max_gold: float,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> DeathAnalysis:
    is_teamfight = nearby_deaths >= params.teamfight_min_nearby
    pos = position_score(kill.position, team_id)
    gold_penalty = min(kill.victim_gold / max_gold, 1.0) if max_gold > 0 else 0.0
    teamfight_bonus = min(nearby_deaths / _TEAMFIGHT_FULL_NEARBY, 1.0) if is_teamfight else 0.0

    penalty = (
        _DEATH_BASE_PENALTY
        + gold_penalty * _DEATH_GOLD_PENALTY
        - teamfight_bonus * _DEATH_TEAMFIGHT_RELIEF
        - pos * _DEATH_POSITION_RELIEF
    )
    quality = 50.0 + (10.0 if is_teamfight else -gold_penalty * 20.0) + (pos - 0.5) * 30.0

    return DeathAnalysis(
        timestamp=kill.timestamp,
        position=kill.position,
        killer_id=kill.killer_id,
        gold_at_death=kill.victim_gold,
        level=kill.victim_level,
        is_teamfight=is_teamfight,
        nearby_deaths=nearby_deaths,
        position_score=pos,
        gold_penalty=gold_penalty,
        teamfight_bonus=teamfight_bonus,
        penalty=max(_DEATH_MIN_PENALTY, penalty),
        quality=clamp(quality, 20.0, 75.0),
    )


def grade_kill(
    kill: KillEvent,
    nearby_deaths: int,
    team_id: int,
    max_gold: float,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> KillAnalysis:
    is_teamfight = nearby_deaths >= params.teamfight_min_nearby
    pos = position_score(kill.position, team_id)
    gold_value = min(kill.victim_gold / max_gold, 1.0) if max_gold > 0 else 0.0

    value = _KILL_BASE_VALUE + gold_value * _KILL_GOLD_VALUE + (1.0 - pos) * _KILL_DEFENSIVE_VALUE
    quality = 50.0 + (0.0 if is_teamfight else gold_value * 10.0) + (1.0 - pos) * 5.0

    return KillAnalysis(
        timestamp=kill.timestamp,
        position=kill.position,
        victim_id=kill.victim_id,
        victim_gold=kill.victim_gold,
        gold_value=gold_value,
        is_teamfight=is_teamfight,
        nearby_deaths=nearby_deaths,
        position_score=pos,
        value=value,
        quality=clamp(quality, 0.0, 70.0),
    )


def analyze_kill_death_quality(
    kills: Sequence[KillEvent],
    participant_id: int,
    team_id: int,
    *,
    max_gold: float | None = None,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> KillDeathQuality:
    """Grade one participant's kills and deaths among all kills of the match."""
    reference = max_gold if max_gold is not None else float(params.high_gold_threshold)
    nearby = count_nearby_deaths(kills, params)

    deaths: list[DeathAnalysis] = []
    own_kills: list[KillAnalysis] = []
    for kill, nearby_deaths in zip(kills, nearby):
        if kill.victim_id == participant_id:
            deaths.append(grade_death(kill, nearby_deaths, team_id, reference, params))
        elif kill.killer_id == participant_id:
            own_kills.append(grade_kill(kill, nearby_deaths, team_id, reference, params))

    total_penalty = sum(death.penalty for death in deaths)
    total_value = sum(kill.value for kill in own_kills)
    teamfight_deaths = sum(1 for death in deaths if death.is_teamfight)
    teamfight_kills = sum(1 for kill in own_kills if kill.is_teamfight)

    return KillDeathQuality(
        death_score=max(0.0, 100.0 - total_penalty),
        kill_score=min(100.0, 50.0 + total_value),
        deaths=tuple(deaths),
        kills=tuple(own_kills),
        teamfight_deaths=teamfight_deaths,
        solo_deaths=len(deaths) - teamfight_deaths,
        teamfight_kills=teamfight_kills,
        solo_kills=len(own_kills) - teamfight_kills,
        total_death_penalty=total_penalty,
        total_kill_value=total_value,
    )


def analyze_participant_events(
    timeline: MatchTimeline | None,
    participant_id: int,
    team_id: int,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> KillDeathQuality | None:
    """Kill/death quality straight from a timeline; None without one."""
    if timeline is None or not timeline.info.frames:
        return None
    return analyze_kill_death_quality(
        extract_kill_events(timeline),
        participant_id,
        team_id,
        max_gold=gold_reference(timeline, params),
        params=params,
    )
