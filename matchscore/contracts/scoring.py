"""
Derived scoring results.

Nothing in here is persisted: every result is recomputed per request from
an immutable cohort snapshot and an immutable match observation.
"""

from enum import Enum

from pydantic import Field

from .cohort import CohortKey
from .common import FrozenContract, Position


class BuildCategory(str, Enum):
    """Discrete decisions scored by the build ranker."""

    CORE = "Core Build"
    KEYSTONE = "Keystone"
    SPELLS = "Summoner Spells"
    SKILL_ORDER = "Skill Order"
    STARTING_ITEMS = "Starting Items"
    ITEMS = "Item Choices"


class ScoreCategory(str, Enum):
    """Top-level groups in a score breakdown."""

    PERFORMANCE = "performance"
    BUILD = "build"
    DEATH_QUALITY = "death_quality"
    KILL_QUALITY = "kill_quality"
    KDA = "kda"


class ComparisonResult(FrozenContract):
    """A continuous metric compared against its cohort distribution."""

    metric: str = Field(..., description="Metric label")
    player_value: float
    cohort_mean: float
    cohort_std_dev: float = Field(..., ge=0)
    z_score: float
    is_outlier: bool
    score: float = Field(..., ge=0, le=100)
    is_reliable: bool = Field(False, description="Cohort met the reliability floor")
    sample_size: int = Field(0, ge=0)


class BuildChoiceResult(FrozenContract):
    """A discrete build decision ranked against the cohort's alternatives."""

    category: str
    player_choice: str
    player_win_rate: float | None = Field(None, ge=0, le=100, description="Percent")
    player_games: int = Field(0, ge=0)
    top_win_rate: float | None = Field(None, ge=0, le=100, description="Percent")
    top_choice: str | None = Field(None)
    rank: int = Field(..., description="1-indexed, -1 when the choice was never seen")
    total_options: int = Field(..., ge=0, description="Options above the games floor")
    is_top_tier: bool
    score: float = Field(..., ge=0, le=100)
    confidence: float = Field(..., ge=0, le=1)
    slot: int | None = Field(None, ge=1, le=6, description="Build slot, item choices only")


class RankedOption(FrozenContract):
    """One candidate in a lower-confidence-bound ranking."""

    key: str
    games: int = Field(..., ge=0)
    wins: int = Field(..., ge=0)
    win_rate: float = Field(..., ge=0, le=1)
    lower_bound: float = Field(..., ge=0, le=1)


class KillEvent(FrozenContract):
    """A champion kill with the context needed to grade it."""

    timestamp: int = Field(..., ge=0, description="Milliseconds")
    killer_id: int = Field(0, ge=0, description="0 for executions")
    victim_id: int = Field(..., ge=1)
    assisting_ids: tuple[int, ...] = Field(default_factory=tuple)
    position: Position
    killer_gold: int = Field(0, ge=0, description="Unspent gold at the preceding frame")
    victim_gold: int = Field(0, ge=0, description="Unspent gold at the preceding frame")
    killer_level: int = Field(1, ge=1)
    victim_level: int = Field(1, ge=1)
    bounty: int = Field(0, ge=0)
    shutdown_bounty: int = Field(0, ge=0)


class DeathAnalysis(FrozenContract):
    """One of the player's deaths, graded."""

    timestamp: int = Field(..., ge=0)
    position: Position
    killer_id: int = Field(0, ge=0)
    gold_at_death: int = Field(0, ge=0)
    level: int = Field(1, ge=1)
    is_teamfight: bool
    nearby_deaths: int = Field(0, ge=0)
    position_score: float = Field(..., ge=0, le=1)
    gold_penalty: float = Field(..., ge=0, le=1)
    teamfight_bonus: float = Field(0.0, ge=0, le=1)
    penalty: float = Field(..., ge=0)
    quality: float = Field(..., ge=0, le=100, description="Per-event display value")


class KillAnalysis(FrozenContract):
    """One of the player's kills, graded."""

    timestamp: int = Field(..., ge=0)
    position: Position
    victim_id: int = Field(..., ge=1)
    victim_gold: int = Field(0, ge=0)
    gold_value: float = Field(..., ge=0, le=1)
    is_teamfight: bool
    nearby_deaths: int = Field(0, ge=0)
    position_score: float = Field(..., ge=0, le=1)
    value: float = Field(..., ge=0)
    quality: float = Field(..., ge=0, le=100, description="Per-event display value")


class KillDeathQuality(FrozenContract):
    """Aggregate kill/death grades for one participant."""

    death_score: float = Field(..., ge=0, le=100)
    kill_score: float = Field(..., ge=0, le=100)
    deaths: tuple[DeathAnalysis, ...] = Field(default_factory=tuple)
    kills: tuple[KillAnalysis, ...] = Field(default_factory=tuple)
    teamfight_deaths: int = Field(0, ge=0)
    solo_deaths: int = Field(0, ge=0)
    teamfight_kills: int = Field(0, ge=0)
    solo_kills: int = Field(0, ge=0)
    total_death_penalty: float = Field(0.0, ge=0)
    total_kill_value: float = Field(0.0, ge=0)


class ScoreEntry(FrozenContract):
    """One line of the breakdown with its penalty contribution."""

    name: str
    category: ScoreCategory
    score: float = Field(..., ge=0, le=100)
    weight: float = Field(..., ge=0, le=1, description="Share of the final score")
    penalty: float = Field(..., ge=0, description="Points removed from the 100 ceiling")
    player_value: float | str | None = Field(None)
    cohort_average: float | None = Field(None)
    percent_of_average: float | None = Field(None)
    comparison: ComparisonResult | None = Field(None)
    build_choice: BuildChoiceResult | None = Field(None)


class ScoreBreakdown(FrozenContract):
    """Final match quality score plus everything needed to display it."""

    match_id: str
    participant_id: int = Field(..., ge=1, le=16)
    puuid: str = Field("")
    cohort: CohortKey
    cohort_games: int = Field(0, ge=0)
    core_key: str | None = Field(None)
    used_core_cohort: bool = Field(False, description="Build choices compared within the core sub-cohort")
    final_score: float = Field(..., ge=0, le=100, description="Rounded to one decimal")
    component_scores: dict[str, float] = Field(default_factory=dict)
    entries: tuple[ScoreEntry, ...] = Field(default_factory=tuple)
    kill_death_quality: KillDeathQuality | None = Field(None)

    @property
    def total_penalty(self) -> float:
        return sum(entry.penalty for entry in self.entries)

    def entries_for(self, category: ScoreCategory) -> list[ScoreEntry]:
        return [entry for entry in self.entries if entry.category == category]
