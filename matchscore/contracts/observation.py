"""
Per-participant match observation.

An observation is extracted once per participant per match and is never
mutated afterwards. It is both the sample fed to the cohort aggregator and
the value set being scored.
"""

from pydantic import Field

from .cohort import CohortKey, PerformanceMetric
from .common import FrozenContract


class MatchObservation(FrozenContract):
    """One participant's extracted stats for one match."""

    match_id: str = Field(..., description="Match ID")
    cohort: CohortKey
    participant_id: int = Field(..., ge=1, le=16)
    puuid: str = Field("")
    team_id: int = Field(100)
    win: bool = Field(False)
    is_remake: bool = Field(False)
    game_duration_seconds: float = Field(0.0, ge=0)

    kills: int = Field(0, ge=0)
    deaths: int = Field(0, ge=0)
    assists: int = Field(0, ge=0)
    team_kills: int = Field(0, ge=0, description="Kills by the participant's team")

    # Raw totals
    damage_to_champions: float = Field(0.0, ge=0)
    total_damage: float = Field(0.0, ge=0)
    healing: float = Field(0.0, ge=0)
    shielding: float = Field(0.0, ge=0)
    cc_time: float = Field(0.0, ge=0, description="Seconds")

    # Per-minute rates (0 when duration is 0)
    damage_to_champions_per_min: float = Field(0.0, ge=0)
    total_damage_per_min: float = Field(0.0, ge=0)
    healing_shielding_per_min: float = Field(0.0, ge=0)
    cc_time_per_min: float = Field(0.0, ge=0)
    deaths_per_min: float = Field(0.0, ge=0)

    # Discrete choices
    core_key: str | None = Field(None, description="Normalized three-item core, e.g. 3031_3087_6672")
    keystone_id: int | None = Field(None)
    primary_tree_id: int | None = Field(None)
    secondary_tree_id: int | None = Field(None)
    primary_perks: tuple[int, ...] = Field(default_factory=tuple)
    secondary_perks: tuple[int, ...] = Field(default_factory=tuple)
    stat_shards: dict[str, int] = Field(default_factory=dict, description="offense/flex/defense")
    spell_key: str | None = Field(None, description="Sorted summoner spell pair, e.g. 4_32")
    ability_order: str | None = Field(None, description="Space separated, e.g. 'Q W E Q'")
    skill_order: str | None = Field(None, description="Max order abbreviation, e.g. 'qwe'")
    first_buy_key: str | None = Field(None, description="Sorted starting items, potions folded, e.g. 1055,99998")
    final_items: tuple[int, ...] = Field(default_factory=tuple)
    build_order: tuple[int, ...] = Field(default_factory=tuple, description="Completed items in buy order")

    def metric_value(self, metric: PerformanceMetric | str) -> float:
        """Per-minute value for a tracked metric."""
        return float(getattr(self, PerformanceMetric(metric).value))

    @property
    def kill_participation(self) -> float | None:
        """Share of team kills the participant took part in, or None without team kills."""
        if self.team_kills <= 0:
            return None
        return min(1.0, (self.kills + self.assists) / self.team_kills)
