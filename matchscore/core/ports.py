"""Port interfaces for hexagonal architecture.

These ports define the contracts between the scoring core and external
adapters. The core never talks to Redis or PostgreSQL directly.
"""

from abc import ABC, abstractmethod

from matchscore.contracts.cohort import CohortKey, CohortSnapshot


class CohortStoreError(Exception):
    """Raised when cohort deltas cannot be persisted."""


class CohortStorePort(ABC):
    """Port for reading and writing serialized cohort aggregates."""

    @abstractmethod
    async def get_snapshot(self, key: CohortKey) -> CohortSnapshot | None:
        """Load the persisted aggregate for a cohort.

        Args:
            key: Champion/patch cohort key

        Returns:
            The snapshot, or None when the cohort has never been written
        """
        pass

    @abstractmethod
    async def upsert_snapshots(self, deltas: list[CohortSnapshot]) -> int:
        """Merge a batch of cohort deltas into the persisted aggregates.

        Args:
            deltas: One delta per cohort, as drained from the aggregator

        Returns:
            Number of cohorts written

        Raises:
            CohortStoreError: If the batch could not be persisted
        """
        pass


class TrackedPlayerSourcePort(ABC):
    """Port for the set of players whose profiles are kept up to date."""

    @abstractmethod
    async def load_tracked_ids(self) -> set[str]:
        """Return the PUUIDs of every tracked player."""
        pass
