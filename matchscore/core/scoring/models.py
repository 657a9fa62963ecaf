"""Scoring parameter model.

SOLID: Single Responsibility - Data structures only, no business logic.
"""

from pydantic import BaseModel, ConfigDict, Field

from matchscore.config.settings import Settings, get_settings


class ScoringParameters(BaseModel):
    """Tuning constants for one scoring run.

    Defaults reproduce the published score values; override through
    settings rather than in code.
    """

    model_config = ConfigDict(frozen=True)

    # Performance comparator
    reliability_floor: int = Field(30, ge=1)
    fallback_std_ratio: float = Field(0.15, gt=0)
    min_std_ratio: float = Field(0.05, ge=0)
    z_score_slope: float = Field(25.0, gt=0)
    outlier_z_threshold: float = Field(2.0, gt=0)

    # Build choice ranker
    min_games_threshold: int = Field(10, ge=1)
    full_confidence_games: int = Field(30, ge=1)
    rank_decay: float = Field(5.0, gt=0)
    top_rank_score: float = Field(90.0, ge=0, le=100)
    unknown_choice_score: float = Field(40.0, ge=0, le=100)
    top_tier_rank: int = Field(5, ge=1)
    core_cohort_min_games: int = Field(10, ge=1)
    core_family_min_games: int = Field(30, ge=1)
    best_core_min_games: int = Field(100, ge=1)
    wilson_z: float = Field(1.96, gt=0)

    # Kill/death quality
    teamfight_window_ms: int = Field(5000, ge=0)
    teamfight_radius: float = Field(2000.0, ge=0)
    teamfight_min_nearby: int = Field(2, ge=1)
    high_gold_threshold: int = Field(2500, gt=0)

    # Composer category weights
    performance_weight: float = Field(0.30, ge=0)
    build_weight: float = Field(0.50, ge=0)
    death_quality_weight: float = Field(0.125, ge=0)
    kill_quality_weight: float = Field(0.025, ge=0)
    kda_weight: float = Field(0.05, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ScoringParameters":
        settings = settings or get_settings()
        return cls(**{
            name: getattr(settings, name) for name in cls.model_fields if hasattr(settings, name)
        })


DEFAULT_PARAMETERS = ScoringParameters()
