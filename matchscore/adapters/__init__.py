"""Store adapters implementing the core ports."""

from matchscore.adapters.postgres_store import PostgresCohortStore
from matchscore.adapters.redis_store import RedisCohortStore

__all__ = ["PostgresCohortStore", "RedisCohortStore"]
