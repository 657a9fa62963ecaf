"""Unit tests for the PostgreSQL cohort store.

Tests focus on adapter behavior with mocked asyncpg operations.
"""

import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from matchscore.adapters.postgres_store import PostgresCohortStore
from matchscore.contracts.cohort import CohortKey, CohortSnapshot
from matchscore.core.aggregation.snapshot import apply_observation
from matchscore.core.ports import CohortStoreError

ANNIE = CohortKey(champion_name="Annie", patch="25.3")
LUX = CohortKey(champion_name="Lux", patch="25.3")


def _snapshot(observation_factory, key: CohortKey = ANNIE, games: int = 1) -> CohortSnapshot:
    snapshot = CohortSnapshot.empty(key)
    for index in range(games):
        apply_observation(snapshot, observation_factory(match_id=f"EUW1_{index}", cohort=key))
    return snapshot


class TestPostgresCohortStore:
    """Test suite for PostgresCohortStore."""

    @pytest.fixture
    def store(self):
        return PostgresCohortStore()

    @pytest.fixture
    def mock_pool(self):
        pool = MagicMock()
        pool.acquire = MagicMock()
        pool.close = AsyncMock()
        return pool

    @pytest.fixture
    def mock_conn(self, store, mock_pool):
        store._pool = mock_pool
        conn = AsyncMock()

        @asynccontextmanager
        async def transaction():
            yield None

        conn.transaction = MagicMock(side_effect=lambda: transaction())
        conn.fetchrow.return_value = None
        mock_pool.acquire.return_value.__aenter__.return_value = conn
        return conn

    @pytest.mark.asyncio
    async def test_connect_creates_pool_and_schema(self, store):
        mock_pool = MagicMock()
        mock_conn = AsyncMock()
        mock_pool.acquire.return_value.__aenter__.return_value = mock_conn

        with (
            patch("asyncpg.create_pool", new=AsyncMock(return_value=mock_pool)) as mock_create,
            patch("matchscore.adapters.postgres_store.settings") as mock_settings,
        ):
            mock_settings.database_url = "postgresql://test"
            mock_settings.database_pool_size = 5
            mock_settings.database_pool_timeout = 30

            await store.connect()

            mock_create.assert_called_once()
            assert store._pool == mock_pool
            assert "CREATE TABLE IF NOT EXISTS cohort_stats" in mock_conn.execute.call_args.args[0]

    @pytest.mark.asyncio
    async def test_connect_already_connected(self, store, mock_pool):
        store._pool = mock_pool

        with patch("asyncpg.create_pool") as mock_create:
            await store.connect()
            mock_create.assert_not_called()

    @pytest.mark.asyncio
    async def test_connect_error(self, store):
        with (
            patch("asyncpg.create_pool", side_effect=Exception("Connection failed")),
            pytest.raises(Exception, match="Connection failed"),
        ):
            await store.connect()

    @pytest.mark.asyncio
    async def test_disconnect(self, store, mock_pool):
        store._pool = mock_pool

        await store.disconnect()

        mock_pool.close.assert_called_once()
        assert store._pool is None

    @pytest.mark.asyncio
    async def test_get_snapshot_decodes_jsonb_text(self, store, mock_conn, observation_factory):
        stored = _snapshot(observation_factory, games=2)
        mock_conn.fetchrow.return_value = {"snapshot": stored.model_dump_json()}

        loaded = await store.get_snapshot(ANNIE)

        assert loaded == stored
        assert mock_conn.fetchrow.call_args.args[1:] == ("Annie", "25.3")

    @pytest.mark.asyncio
    async def test_get_snapshot_not_found(self, store, mock_conn):
        assert await store.get_snapshot(ANNIE) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stored", ['{"champion_name": ""}', "{not json", {"games": -1}])
    async def test_get_snapshot_corrupt_row(self, store, mock_conn, stored):
        mock_conn.fetchrow.return_value = {"snapshot": stored}

        assert await store.get_snapshot(ANNIE) is None

    @pytest.mark.asyncio
    async def test_get_snapshot_no_pool(self, store):
        assert await store.get_snapshot(ANNIE) is None

    @pytest.mark.asyncio
    async def test_upsert_inserts_new_cohorts(self, store, mock_conn, observation_factory):
        deltas = [_snapshot(observation_factory, ANNIE), _snapshot(observation_factory, LUX, games=2)]

        assert await store.upsert_snapshots(deltas) == 2

        assert mock_conn.fetchrow.call_count == 2
        assert "FOR UPDATE" in mock_conn.fetchrow.call_args.args[0]
        assert mock_conn.execute.call_count == 2
        champion, patch_name, games, payload, _ = mock_conn.execute.call_args.args[1:]
        assert (champion, patch_name, games) == ("Lux", "25.3", 2)
        assert json.loads(payload)["games"] == 2

    @pytest.mark.asyncio
    async def test_upsert_merges_locked_row(self, store, mock_conn, observation_factory):
        mock_conn.fetchrow.return_value = {
            "snapshot": _snapshot(observation_factory, games=4).model_dump(mode="json")
        }

        await store.upsert_snapshots([_snapshot(observation_factory, games=1)])

        assert mock_conn.execute.call_args.args[3] == 5

    @pytest.mark.asyncio
    async def test_upsert_empty_batch(self, store, mock_conn):
        assert await store.upsert_snapshots([]) == 0
        mock_conn.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert_error_raises_store_error(self, store, mock_conn, observation_factory):
        mock_conn.execute.side_effect = Exception("deadlock detected")

        with pytest.raises(CohortStoreError, match="deadlock detected"):
            await store.upsert_snapshots([_snapshot(observation_factory)])

    @pytest.mark.asyncio
    async def test_upsert_no_pool(self, store, observation_factory):
        with pytest.raises(CohortStoreError):
            await store.upsert_snapshots([_snapshot(observation_factory)])

    @pytest.mark.asyncio
    async def test_load_tracked_ids(self, store, mock_conn):
        mock_conn.fetch.return_value = [{"puuid": "a"}, {"puuid": "b"}]

        assert await store.load_tracked_ids() == {"a", "b"}
        assert "FROM tracked_players" in mock_conn.fetch.call_args.args[0]

    @pytest.mark.asyncio
    async def test_load_tracked_ids_propagates_errors(self, store, mock_conn):
        mock_conn.fetch.side_effect = Exception("relation does not exist")

        with pytest.raises(Exception, match="relation does not exist"):
            await store.load_tracked_ids()

    @pytest.mark.asyncio
    async def test_health_check_success(self, store, mock_conn):
        mock_conn.fetchval.return_value = 1

        assert await store.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_no_pool(self, store):
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_connection_error(self, store, mock_pool):
        store._pool = mock_pool
        mock_pool.acquire.side_effect = Exception("Connection error")

        assert await store.health_check() is False
