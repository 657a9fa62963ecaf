"""Batched in-memory cohort aggregator.

The aggregator owns one mutable buffer of cohort deltas. Observations are
folded in synchronously; ``flush`` is the only operation that performs I/O.

Flush protocol:
    1. Under the lock, refuse if a flush is already running (no-op result),
       otherwise mark one as running and swap the buffer for a fresh one.
       Accumulation continues into the fresh buffer immediately.
    2. Write the drained deltas in batches, each bounded by a timeout.
       A failed or timed-out batch is logged and dropped; it is never
       retried and never merged back, so nothing is double counted.
    3. Discard the drained deltas and clear the running flag.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Iterable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from matchscore.config.settings import get_settings
from matchscore.contracts.cohort import CohortKey, CohortSnapshot
from matchscore.contracts.observation import MatchObservation
from matchscore.core import metrics
from matchscore.core.aggregation.snapshot import apply_observation
from matchscore.core.ports import CohortStorePort

logger = structlog.get_logger(__name__)


class FlushResult(BaseModel):
    """Outcome of one flush request."""

    model_config = ConfigDict(frozen=True)

    skipped: bool = Field(False, description="Another flush was already running")
    cohorts_written: int = Field(0, ge=0)
    cohorts_dropped: int = Field(0, ge=0)
    batches_failed: int = Field(0, ge=0)
    duration_seconds: float = Field(0.0, ge=0)

    @property
    def succeeded(self) -> bool:
        return not self.skipped and self.batches_failed == 0


class CohortAggregator:
    """Accumulates match observations per cohort and flushes them in batches."""

    def __init__(
        self,
        *,
        batch_size: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        settings = get_settings()
        self._batch_size = max(1, batch_size or settings.flush_batch_size)
        self._timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.flush_timeout_seconds
        )
        self._buffer: dict[CohortKey, CohortSnapshot] = {}
        self._pending_observations = 0
        self._lock = threading.Lock()
        self._flush_in_progress = False

    @property
    def is_flushing(self) -> bool:
        return self._flush_in_progress

    @property
    def pending_keys(self) -> list[CohortKey]:
        with self._lock:
            return list(self._buffer)

    @property
    def pending_observations(self) -> int:
        return self._pending_observations

    def accumulate(self, observation: MatchObservation) -> bool:
        """Fold one observation into the live buffer.

        Remakes and zero-length games carry no signal and are skipped.

        Returns:
            True if the observation was accumulated
        """
        if observation.is_remake or observation.game_duration_seconds <= 0:
            logger.debug(
                "observation_skipped",
                match_id=observation.match_id,
                participant_id=observation.participant_id,
                is_remake=observation.is_remake,
            )
            metrics.mark_observation("skipped")
            return False

        with self._lock:
            snapshot = self._buffer.get(observation.cohort)
            if snapshot is None:
                snapshot = CohortSnapshot.empty(observation.cohort)
                self._buffer[observation.cohort] = snapshot
            apply_observation(snapshot, observation)
            self._pending_observations += 1
            pending_cohorts = len(self._buffer)

        metrics.mark_observation("accumulated")
        metrics.set_pending_cohorts(pending_cohorts)
        return True

    def accumulate_many(self, observations: Iterable[MatchObservation]) -> int:
        return sum(1 for observation in observations if self.accumulate(observation))

    def snapshot(self, key: CohortKey) -> CohortSnapshot | None:
        """Copy of the buffered delta for ``key`` (not the persisted aggregate)."""
        with self._lock:
            snapshot = self._buffer.get(key)
            return snapshot.model_copy(deep=True) if snapshot is not None else None

    async def flush(self, store: CohortStorePort) -> FlushResult:
        """Write every buffered cohort delta to ``store``.

        Safe to call while accumulation continues. A call made while another
        flush is running returns immediately with ``skipped=True``.
        """
        with self._lock:
            if self._flush_in_progress:
                logger.info("flush_skipped_in_progress")
                metrics.mark_flush("skipped")
                return FlushResult(skipped=True)
            self._flush_in_progress = True
            drained = self._buffer
            drained_observations = self._pending_observations
            self._buffer = {}
            self._pending_observations = 0

        metrics.set_pending_cohorts(0)
        started = time.perf_counter()
        written = dropped = failed = 0
        try:
            if not drained:
                metrics.mark_flush("empty", 0.0)
                return FlushResult()

            deltas = list(drained.values())
            logger.info(
                "flush_started",
                cohorts=len(deltas),
                observations=drained_observations,
                batch_size=self._batch_size,
            )
            for start in range(0, len(deltas), self._batch_size):
                batch = deltas[start : start + self._batch_size]
                try:
                    await asyncio.wait_for(
                        store.upsert_snapshots(batch), timeout=self._timeout_seconds
                    )
                    written += len(batch)
                except asyncio.TimeoutError:
                    failed += 1
                    dropped += len(batch)
                    logger.warning(
                        "flush_batch_timeout",
                        batch_index=start // self._batch_size,
                        cohorts=[d.key.storage_key for d in batch],
                        timeout_seconds=self._timeout_seconds,
                    )
                except Exception as e:
                    failed += 1
                    dropped += len(batch)
                    logger.error(
                        "flush_batch_failed",
                        batch_index=start // self._batch_size,
                        cohorts=[d.key.storage_key for d in batch],
                        error_type=type(e).__name__,
                        error_message=str(e),
                    )

            duration = time.perf_counter() - started
            outcome = "success" if failed == 0 else ("failed" if written == 0 else "partial")
            metrics.mark_flush(outcome, duration)
            metrics.mark_cohorts_flushed("written", written)
            metrics.mark_cohorts_flushed("dropped", dropped)
            logger.info(
                "flush_completed",
                outcome=outcome,
                cohorts_written=written,
                cohorts_dropped=dropped,
                batches_failed=failed,
                duration_seconds=round(duration, 3),
            )
            return FlushResult(
                cohorts_written=written,
                cohorts_dropped=dropped,
                batches_failed=failed,
                duration_seconds=duration,
            )
        finally:
            drained.clear()
            with self._lock:
                self._flush_in_progress = False
