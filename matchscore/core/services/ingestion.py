"""Match ingestion service.

Turns raw Match-V5 payloads into observations, feeds the cohort aggregator
and reports which tracked players appeared in the match so the caller can
refresh their profiles.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from matchscore.config.settings import get_settings
from matchscore.contracts.items import ItemCatalog
from matchscore.contracts.participant import MatchSummary
from matchscore.contracts.timeline import MatchTimeline
from matchscore.core.aggregation.aggregator import CohortAggregator, FlushResult
from matchscore.core.cache import TrackedIdCache
from matchscore.core.extraction.observation import ObservationError, extract_observations
from matchscore.core.extraction.patch import extract_patch, is_patch_accepted
from matchscore.core.ports import CohortStorePort, TrackedPlayerSourcePort

logger = logging.getLogger(__name__)


class IngestionResult(BaseModel):
    """What happened to one ingested match."""

    model_config = ConfigDict(frozen=True)

    match_id: str = Field("")
    patch: str = Field("")
    accumulated: int = Field(0, ge=0, description="Observations folded into the aggregator")
    tracked_puuids: tuple[str, ...] = Field(default_factory=tuple)
    skipped_reason: str | None = Field(None)

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


class MatchIngestionService:
    """Feeds finished matches into a ``CohortAggregator``."""

    def __init__(
        self,
        aggregator: CohortAggregator,
        *,
        tracked_source: TrackedPlayerSourcePort | None = None,
        tracked_cache: TrackedIdCache | None = None,
        catalog: ItemCatalog | None = None,
        accepted_patches: list[str] | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.tracked_source = tracked_source
        self.tracked_cache = tracked_cache or TrackedIdCache()
        self.catalog = catalog
        self.accepted_patches = (
            accepted_patches if accepted_patches is not None else get_settings().accepted_patches
        )

    async def ingest(
        self,
        match_payload: Mapping[str, Any],
        timeline_payload: Mapping[str, Any] | None = None,
    ) -> IngestionResult:
        """Extract and accumulate every participant of one match.

        Args:
            match_payload: Raw ``MatchDto`` (``metadata`` + ``info``)
            timeline_payload: Raw ``TimelineDto``, optional

        Returns:
            IngestionResult; malformed payloads, remakes and unaccepted
            patches are reported as skipped rather than raised.
        """
        try:
            match = MatchSummary.from_riot(match_payload)
            timeline = MatchTimeline.model_validate(timeline_payload) if timeline_payload else None
        except ValidationError as e:
            logger.warning(f"Rejected malformed match payload: {e.error_count()} validation errors")
            return IngestionResult(skipped_reason="invalid_payload")

        patch = extract_patch(match.game_version)
        if not is_patch_accepted(patch, self.accepted_patches):
            logger.info(f"Skipping {match.match_id}: patch {patch} not accepted")
            return IngestionResult(match_id=match.match_id, patch=patch, skipped_reason="patch_not_accepted")

        if match.is_remake or match.game_duration_seconds <= 0:
            logger.info(f"Skipping {match.match_id}: remake or zero duration")
            return IngestionResult(match_id=match.match_id, patch=patch, skipped_reason="remake")

        try:
            observations = extract_observations(match, timeline, self.catalog)
        except ObservationError as e:
            logger.error(f"Observation extraction failed for {match.match_id}: {e}")
            return IngestionResult(match_id=match.match_id, patch=patch, skipped_reason="extraction_failed")

        accumulated = self.aggregator.accumulate_many(observations)
        tracked = await self._tracked_ids()
        seen = tuple(o.puuid for o in observations if o.puuid and o.puuid in tracked)

        logger.debug(
            f"Ingested {match.match_id} ({patch}): {accumulated} observations, "
            f"{len(seen)} tracked players"
        )
        return IngestionResult(
            match_id=match.match_id,
            patch=patch,
            accumulated=accumulated,
            tracked_puuids=seen,
        )

    async def flush(self, store: CohortStorePort) -> FlushResult:
        return await self.aggregator.flush(store)

    async def _tracked_ids(self) -> frozenset[str]:
        if self.tracked_source is None:
            return self.tracked_cache.get()
        return await self.tracked_cache.refresh_if_expired(self.tracked_source.load_tracked_ids)
