"""
Configuration settings using Pydantic Settings.

Tuning constants for the scoring engine are exposed here so they can be
overridden per deployment from the environment or a ``.env`` file.
Connection strings must never be hardcoded outside of local defaults.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Order: init kwargs > .env (dotenv) > env vars > file secrets
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        return (
            init_settings,
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    # Storage Configuration
    database_url: str = Field("postgresql://localhost/matchscore", alias="DATABASE_URL")
    database_pool_size: int = Field(10, alias="DATABASE_POOL_SIZE")
    database_pool_timeout: int = Field(30, alias="DATABASE_POOL_TIMEOUT")
    redis_url: str = Field("redis://localhost:6379", alias="REDIS_URL")
    redis_key_prefix: str = Field("cohort:", alias="REDIS_KEY_PREFIX")

    # Performance Comparator
    reliability_floor: int = Field(
        30, validation_alias=AliasChoices("SCORING_RELIABILITY_FLOOR", "RELIABILITY_FLOOR")
    )
    fallback_std_ratio: float = Field(0.15, alias="FALLBACK_STD_RATIO")
    min_std_ratio: float = Field(0.05, alias="MIN_STD_RATIO")
    z_score_slope: float = Field(25.0, alias="Z_SCORE_SLOPE")
    outlier_z_threshold: float = Field(2.0, alias="OUTLIER_Z_THRESHOLD")

    # Build Choice Ranker
    min_games_threshold: int = Field(10, alias="MIN_GAMES_THRESHOLD")
    full_confidence_games: int = Field(30, alias="FULL_CONFIDENCE_GAMES")
    rank_decay: float = Field(5.0, alias="RANK_DECAY")
    top_rank_score: float = Field(90.0, alias="TOP_RANK_SCORE")
    unknown_choice_score: float = Field(40.0, alias="UNKNOWN_CHOICE_SCORE")
    top_tier_rank: int = Field(5, alias="TOP_TIER_RANK")
    core_cohort_min_games: int = Field(10, alias="CORE_COHORT_MIN_GAMES")
    core_family_min_games: int = Field(30, alias="CORE_FAMILY_MIN_GAMES")
    best_core_min_games: int = Field(100, alias="BEST_CORE_MIN_GAMES")
    wilson_z: float = Field(1.96, alias="WILSON_Z")

    # Kill/Death Quality Analyzer
    teamfight_window_ms: int = Field(5000, alias="TEAMFIGHT_WINDOW_MS")
    teamfight_radius: float = Field(2000.0, alias="TEAMFIGHT_RADIUS")
    teamfight_min_nearby: int = Field(2, alias="TEAMFIGHT_MIN_NEARBY")
    high_gold_threshold: int = Field(2500, alias="HIGH_GOLD_THRESHOLD")

    # Score Composer weights
    performance_weight: float = Field(0.30, alias="PERFORMANCE_WEIGHT")
    build_weight: float = Field(0.50, alias="BUILD_WEIGHT")
    death_quality_weight: float = Field(0.125, alias="DEATH_QUALITY_WEIGHT")
    kill_quality_weight: float = Field(0.025, alias="KILL_QUALITY_WEIGHT")
    kda_weight: float = Field(0.05, alias="KDA_WEIGHT")

    # Aggregation / Flush
    flush_batch_size: int = Field(10, alias="FLUSH_BATCH_SIZE")
    flush_timeout_seconds: float = Field(10.0, alias="FLUSH_TIMEOUT_SECONDS")
    tracked_ids_ttl_seconds: float = Field(300.0, alias="TRACKED_IDS_TTL_SECONDS")
    accepted_patches: list[str] = Field(default_factory=list, alias="ACCEPTED_PATCHES")

    # Observability
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    metrics_enabled: bool = Field(True, alias="METRICS_ENABLED")


# Global settings instance; every field has a local default
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance.

    This function provides dependency injection support for settings.
    """
    return settings
