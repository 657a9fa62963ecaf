"""Contract models for data validation."""

from .cohort import (
    CohortKey,
    CohortSnapshot,
    CoreBuildStats,
    GameStats,
    MetricSums,
    PerformanceMetric,
    RuneTables,
    WelfordState,
)
from .common import BaseContract, FrozenContract, Position, TeamSide
from .observation import MatchObservation
from .participant import MatchSummary, ParticipantRecord, RuneSelection
from .scoring import (
    BuildCategory,
    BuildChoiceResult,
    ComparisonResult,
    DeathAnalysis,
    KillAnalysis,
    KillDeathQuality,
    KillEvent,
    RankedOption,
    ScoreBreakdown,
    ScoreCategory,
    ScoreEntry,
)
from .timeline import Frame, MatchTimeline, ParticipantFrame

__all__ = [
    "BaseContract",
    "BuildCategory",
    "BuildChoiceResult",
    "CohortKey",
    "CohortSnapshot",
    "ComparisonResult",
    "CoreBuildStats",
    "DeathAnalysis",
    "Frame",
    "FrozenContract",
    "GameStats",
    "KillAnalysis",
    "KillDeathQuality",
    "KillEvent",
    "MatchObservation",
    "MatchSummary",
    "MatchTimeline",
    "MetricSums",
    "ParticipantFrame",
    "ParticipantRecord",
    "PerformanceMetric",
    "Position",
    "RankedOption",
    "RuneSelection",
    "RuneTables",
    "ScoreBreakdown",
    "ScoreCategory",
    "ScoreEntry",
    "TeamSide",
    "WelfordState",
]
