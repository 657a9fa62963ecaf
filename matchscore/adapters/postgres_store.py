"""PostgreSQL cohort store using asyncpg.

Snapshots live as JSONB in ``cohort_stats``; a batch of deltas is merged
under row locks in a single transaction, so a failed batch leaves every
stored cohort untouched. Tracked players are read from ``tracked_players``.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

import asyncpg
from pydantic import ValidationError

from matchscore.config.settings import settings
from matchscore.contracts.cohort import CohortKey, CohortSnapshot
from matchscore.core.aggregation.snapshot import merge_snapshots
from matchscore.core.observability import trace_adapter
from matchscore.core.ports import CohortStoreError, CohortStorePort, TrackedPlayerSourcePort

logger = logging.getLogger(__name__)


def _decode(value: Any) -> Any:
    # asyncpg returns JSONB as text unless a codec is registered
    if isinstance(value, str):
        return json.loads(value)
    return value


class PostgresCohortStore(CohortStorePort, TrackedPlayerSourcePort):
    """Cohort store and tracked player source backed by asyncpg."""

    def __init__(self) -> None:
        self._pool: Any = None  # asyncpg.Pool (untyped library)

    async def connect(self) -> None:
        """Create the connection pool and the tables it needs."""
        if self._pool is not None:
            logger.warning("Database pool already exists")
            return

        try:
            self._pool = await asyncpg.create_pool(
                dsn=settings.database_url,
                min_size=1,
                max_size=settings.database_pool_size,
                max_inactive_connection_lifetime=300,
                command_timeout=settings.database_pool_timeout,
            )
            logger.info("Database connection pool created successfully")
            await self._initialize_schema()
        except Exception as e:
            logger.error(f"Failed to create database pool: {e}")
            raise

    async def disconnect(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection pool closed")

    async def _initialize_schema(self) -> None:
        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cohort_stats (
                    champion_name VARCHAR(64) NOT NULL,
                    patch VARCHAR(16) NOT NULL,
                    games INTEGER NOT NULL DEFAULT 0,
                    snapshot JSONB NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (champion_name, patch)
                );

                CREATE INDEX IF NOT EXISTS idx_cohort_stats_patch
                ON cohort_stats(patch);

                CREATE TABLE IF NOT EXISTS tracked_players (
                    puuid VARCHAR(255) PRIMARY KEY,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                );
            """
            )

    async def get_snapshot(self, key: CohortKey) -> CohortSnapshot | None:
        """Load a cohort snapshot; unreadable rows are logged and treated as missing."""
        if not self._pool:
            logger.error("Database pool not initialized")
            return None

        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT snapshot FROM cohort_stats
                    WHERE champion_name = $1 AND patch = $2
                    """,
                    key.champion_name,
                    key.patch,
                )
        except Exception as e:
            logger.error(f"Error fetching cohort {key.storage_key}: {e}")
            return None

        if row is None:
            return None
        try:
            return CohortSnapshot.model_validate(_decode(row["snapshot"]))
        except (ValidationError, json.JSONDecodeError) as e:
            logger.error(f"Corrupt cohort snapshot row for {key.storage_key}: {e}")
            return None

    @trace_adapter
    async def upsert_snapshots(self, deltas: list[CohortSnapshot]) -> int:
        """Merge all deltas in one transaction; any failure rolls back the batch."""
        if not self._pool:
            raise CohortStoreError("Database pool not initialized")
        if not deltas:
            return 0

        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    for delta in deltas:
                        row = await conn.fetchrow(
                            """
                            SELECT snapshot FROM cohort_stats
                            WHERE champion_name = $1 AND patch = $2
                            FOR UPDATE
                            """,
                            delta.champion_name,
                            delta.patch,
                        )
                        merged = delta
                        if row is not None:
                            merged = merge_snapshots(
                                CohortSnapshot.model_validate(_decode(row["snapshot"])), delta
                            )
                        await conn.execute(
                            """
                            INSERT INTO cohort_stats (champion_name, patch, games, snapshot, updated_at)
                            VALUES ($1, $2, $3, $4, $5)
                            ON CONFLICT (champion_name, patch)
                            DO UPDATE SET
                                games = EXCLUDED.games,
                                snapshot = EXCLUDED.snapshot,
                                updated_at = EXCLUDED.updated_at
                            """,
                            merged.champion_name,
                            merged.patch,
                            merged.games,
                            merged.model_dump_json(),
                            datetime.now(UTC),
                        )
        except Exception as e:
            raise CohortStoreError(f"Postgres upsert of {len(deltas)} cohorts failed: {e}") from e

        logger.info(f"Upserted {len(deltas)} cohort snapshots")
        return len(deltas)

    async def load_tracked_ids(self) -> set[str]:
        if not self._pool:
            logger.error("Database pool not initialized")
            return set()

        async with self._pool.acquire() as conn:
            rows = await conn.fetch("SELECT puuid FROM tracked_players")
        return {row["puuid"] for row in rows}

    async def health_check(self) -> bool:
        if not self._pool:
            return False

        try:
            async with self._pool.acquire() as conn:
                result: int | None = await conn.fetchval("SELECT 1")
                return bool(result == 1)
        except Exception:
            return False
