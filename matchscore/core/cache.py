"""Time-to-live cache of tracked player ids.

Owned by whoever runs ingestion; the clock is injected so expiry can be
driven deterministically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from matchscore.config.settings import get_settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
TrackedIdLoader = Callable[[], Awaitable[set[str]]]


class TrackedIdCache:
    """Holds the set of tracked PUUIDs and reloads it once the TTL lapses."""

    def __init__(self, *, ttl_seconds: float | None = None, clock: Clock = time.monotonic) -> None:
        self._ttl = float(ttl_seconds if ttl_seconds is not None else get_settings().tracked_ids_ttl_seconds)
        self._clock = clock
        self._ids: frozenset[str] = frozenset()
        self._loaded_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def is_expired(self) -> bool:
        if self._loaded_at is None:
            return True
        return self._clock() - self._loaded_at >= self._ttl

    def get(self) -> frozenset[str]:
        """Current ids, possibly stale; never triggers a load."""
        return self._ids

    def contains(self, puuid: str) -> bool:
        return puuid in self._ids

    async def refresh_if_expired(self, loader: TrackedIdLoader) -> frozenset[str]:
        """Reload through ``loader`` when expired and return the ids.

        A failing loader keeps the previous ids and leaves the cache
        expired, so the next call retries.
        """
        if not self.is_expired:
            return self._ids

        async with self._lock:
            # Another caller may have refreshed while we waited
            if not self.is_expired:
                return self._ids
            try:
                ids = await loader()
            except Exception as exc:
                logger.warning(f"Tracked id refresh failed, keeping {len(self._ids)} cached ids: {exc}")
                return self._ids
            self._ids = frozenset(ids)
            self._loaded_at = self._clock()
            logger.debug(f"Tracked id cache refreshed with {len(self._ids)} ids")
            return self._ids

    def invalidate(self) -> None:
        self._loaded_at = None
