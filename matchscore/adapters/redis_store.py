"""Redis cohort store.

Each cohort snapshot is one JSON string under ``{prefix}{champion}|{patch}``.
Deltas are applied read-merge-write and a batch is written in one MULTI/EXEC
transaction, so it lands whole or not at all. The aggregator's single
in-flight flush is the only writer.
"""

import logging
from typing import Any

import redis.asyncio as aioredis
from pydantic import ValidationError

from matchscore.config import get_settings
from matchscore.contracts.cohort import CohortKey, CohortSnapshot
from matchscore.core.aggregation.snapshot import merge_snapshots
from matchscore.core.observability import trace_adapter
from matchscore.core.ports import CohortStoreError, CohortStorePort

logger = logging.getLogger(__name__)


class RedisCohortStore(CohortStorePort):
    """Cohort store backed by the async redis client."""

    def __init__(self, redis_url: str | None = None, key_prefix: str | None = None) -> None:
        self.settings = get_settings()
        self._redis_url = redis_url or self.settings.redis_url
        self._prefix = key_prefix if key_prefix is not None else self.settings.redis_key_prefix
        self._client: Any = None  # aioredis.Redis (untyped library)

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._client:
            logger.warning("Redis client already connected")
            return

        try:
            self._client = aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("Redis client connected")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Redis client disconnected")

    def key_for(self, key: CohortKey) -> str:
        return f"{self._prefix}{key.storage_key}"

    async def get_snapshot(self, key: CohortKey) -> CohortSnapshot | None:
        """Load a cohort snapshot; unreadable entries are logged and treated as missing."""
        if not self._client:
            logger.error("Redis client not connected")
            return None

        try:
            raw = await self._client.get(self.key_for(key))
        except Exception as e:
            logger.error(f"Error getting cohort {key.storage_key}: {e}")
            return None
        if raw is None:
            return None

        try:
            return CohortSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Corrupt cohort snapshot under {self.key_for(key)}: {e.error_count()} errors")
            return None

    @trace_adapter
    async def upsert_snapshots(self, deltas: list[CohortSnapshot]) -> int:
        """Merge each delta into its stored snapshot and write the batch atomically.

        Raises:
            CohortStoreError: If the batch could not be read or written; no
                cohort of it has been stored then.
        """
        if not self._client:
            raise CohortStoreError("Redis client not connected")
        if not deltas:
            return 0

        try:
            merged: list[tuple[str, CohortSnapshot]] = []
            for delta in deltas:
                redis_key = self.key_for(delta.key)
                raw = await self._client.get(redis_key)
                snapshot = delta
                if raw is not None:
                    snapshot = merge_snapshots(CohortSnapshot.model_validate_json(raw), delta)
                merged.append((redis_key, snapshot))

            async with self._client.pipeline(transaction=True) as pipe:
                for redis_key, snapshot in merged:
                    pipe.set(redis_key, snapshot.model_dump_json())
                await pipe.execute()
        except Exception as e:
            raise CohortStoreError(f"Redis upsert of {len(deltas)} cohorts failed, none written: {e}") from e
        return len(deltas)

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        if not self._client:
            return False

        try:
            await self._client.ping()
            return True
        except Exception:
            return False
