"""
Item catalog contracts.

The catalog is injected wherever item semantics matter (completed-item
checks for core builds, gold cost for first-buy detection). It is usually
built from the static ``items.json`` keyed by item id.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import Field

from .common import RiotContract

BOOT_IDS = frozenset({1001, 3006, 3009, 3020, 3047, 3111, 3117, 3158})
TIER1_BOOTS = 1001
BOOTS_NORMALIZED = 99999
POTION_IDS = frozenset({2003, 2031, 2033})
POTION_NORMALIZED = 99998

_COMPLETED_TYPES = frozenset({"legendary", "mythic"})


class ItemInfo(RiotContract):
    """Static data for one item."""

    name: str = Field("")
    item_type: str = Field("other", description="legendary, boots, mythic, component or other")
    total_cost: int = Field(0, ge=0)


class ItemCatalog(RiotContract):
    """Lookup of item metadata by id."""

    items: dict[int, ItemInfo] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]]) -> "ItemCatalog":
        """Build from ``{"3031": {"name": ..., "itemType": ..., "totalCost": ...}}``."""
        return cls(items={int(item_id): ItemInfo.model_validate(info) for item_id, info in data.items()})

    def get(self, item_id: int) -> ItemInfo | None:
        return self.items.get(item_id)

    def cost(self, item_id: int) -> int:
        info = self.items.get(item_id)
        return info.total_cost if info else 0

    def is_completed(self, item_id: int) -> bool:
        """Legendary/mythic items and finished (tier 2) boots.

        Items missing from the catalog fall back to the id range heuristic:
        ids from 3000 upwards are finished items.
        """
        if item_id <= 0 or item_id == TIER1_BOOTS:
            return False
        if item_id in BOOT_IDS:
            return True
        info = self.items.get(item_id)
        if info is None:
            return item_id >= 3000
        return info.item_type in _COMPLETED_TYPES
