"""
Cohort aggregate contracts.

A cohort is every observed game of one champion on one patch. Its snapshot
holds online (Welford) statistics for the continuous per-minute metrics and
games/wins tables for each discrete build decision. Snapshots are what the
aggregator writes to the store and what the scorer reads back.
"""

from enum import Enum

from pydantic import AliasChoices, ConfigDict, Field

from .common import BaseContract, FrozenContract


class PerformanceMetric(str, Enum):
    """Continuous per-minute metrics tracked per cohort."""

    DAMAGE_TO_CHAMPIONS = "damage_to_champions_per_min"
    TOTAL_DAMAGE = "total_damage_per_min"
    HEALING_SHIELDING = "healing_shielding_per_min"
    CC_TIME = "cc_time_per_min"
    DEATHS = "deaths_per_min"

    @property
    def label(self) -> str:
        return _METRIC_LABELS[self]


_METRIC_LABELS = {
    PerformanceMetric.DAMAGE_TO_CHAMPIONS: "Damage to Champions",
    PerformanceMetric.TOTAL_DAMAGE: "Total Damage",
    PerformanceMetric.HEALING_SHIELDING: "Healing + Shielding",
    PerformanceMetric.CC_TIME: "CC Time",
    PerformanceMetric.DEATHS: "Deaths",
}


class WelfordState(FrozenContract):
    """Running count / mean / sum of squared deviations for one metric.

    Accepts the compact ``{n, mean, m2}`` form used by older snapshots.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    count: int = Field(0, ge=0, validation_alias=AliasChoices("count", "n"))
    mean: float = Field(0.0)
    sum_squared_deviation: float = Field(
        0.0, ge=0, validation_alias=AliasChoices("sum_squared_deviation", "m2")
    )


class CohortKey(FrozenContract):
    """Identifies the historical population a match is compared against."""

    champion_name: str = Field(..., min_length=1)
    patch: str = Field(..., min_length=1, description="Short patch, e.g. 25.3")

    @property
    def storage_key(self) -> str:
        return f"{self.champion_name}|{self.patch}"


class GameStats(BaseContract):
    """Games and wins for one discrete option."""

    games: int = Field(0, ge=0)
    wins: int = Field(0, ge=0)


class MetricSums(BaseContract):
    """Raw totals across every game in the cohort."""

    damage_to_champions: float = Field(0.0, ge=0)
    total_damage: float = Field(0.0, ge=0)
    healing: float = Field(0.0, ge=0)
    shielding: float = Field(0.0, ge=0)
    cc_time: float = Field(0.0, ge=0)
    game_duration: float = Field(0.0, ge=0, description="Seconds")
    kills: int = Field(0, ge=0)
    deaths: int = Field(0, ge=0)
    assists: int = Field(0, ge=0)


OptionTable = dict[str, GameStats]


class RuneTables(BaseContract):
    """Rune usage tables."""

    primary: OptionTable = Field(default_factory=dict, description="Primary-tree perks")
    secondary: OptionTable = Field(default_factory=dict, description="Secondary-tree perks")
    tertiary: dict[str, OptionTable] = Field(
        default_factory=lambda: {"offense": {}, "flex": {}, "defense": {}},
        description="Stat shards by row",
    )
    tree: dict[str, OptionTable] = Field(
        default_factory=lambda: {"primary": {}, "secondary": {}},
        description="Rune tree ids",
    )


class CoreBuildStats(GameStats):
    """Sub-cohort of games that completed one specific three-item core."""

    items: dict[str, OptionTable] = Field(
        default_factory=dict, description="Items bought after the core, by build slot (4, 5, 6)"
    )
    keystones: OptionTable = Field(default_factory=dict)
    spells: OptionTable = Field(default_factory=dict)
    starting: OptionTable = Field(default_factory=dict)
    skills: OptionTable = Field(default_factory=dict)


class CohortSnapshot(BaseContract):
    """Serialized aggregate for one cohort (or a delta of one)."""

    model_config = ConfigDict(extra="ignore")

    champion_name: str = Field(..., min_length=1)
    patch: str = Field(..., min_length=1)
    games: int = Field(0, ge=0)
    wins: int = Field(0, ge=0)
    sums: MetricSums = Field(default_factory=MetricSums)
    welford: dict[str, WelfordState] = Field(
        default_factory=lambda: {metric.value: WelfordState() for metric in PerformanceMetric}
    )
    keystones: OptionTable = Field(default_factory=dict)
    runes: RuneTables = Field(default_factory=RuneTables)
    spells: OptionTable = Field(default_factory=dict)
    skills: OptionTable = Field(default_factory=dict)
    starting: OptionTable = Field(default_factory=dict)
    items: dict[str, OptionTable] = Field(
        default_factory=dict, description="Completed non-boot items by build slot (1-6)"
    )
    core: dict[str, CoreBuildStats] = Field(default_factory=dict)

    @property
    def key(self) -> CohortKey:
        return CohortKey(champion_name=self.champion_name, patch=self.patch)

    def welford_for(self, metric: PerformanceMetric | str) -> WelfordState:
        value = metric.value if isinstance(metric, PerformanceMetric) else metric
        return self.welford.get(value) or WelfordState()

    @classmethod
    def empty(cls, key: CohortKey) -> "CohortSnapshot":
        return cls(champion_name=key.champion_name, patch=key.patch)
