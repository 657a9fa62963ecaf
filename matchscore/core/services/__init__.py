"""Application services orchestrating extraction, aggregation and storage."""

from matchscore.core.services.ingestion import IngestionResult, MatchIngestionService

__all__ = ["IngestionResult", "MatchIngestionService"]
