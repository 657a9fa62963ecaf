"""Item purchase extraction and build keys.

Purchases are replayed per participant with an undo stack: an ``ITEM_UNDO``
pops events (reverting them) until the undone item is reached, so a buy that
is immediately refunded disappears together with its undo. A later
``ITEM_SOLD`` removes the most recent surviving purchase of that item.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import Field

from matchscore.contracts.common import FrozenContract
from matchscore.contracts.items import (
    BOOT_IDS,
    BOOTS_NORMALIZED,
    POTION_IDS,
    POTION_NORMALIZED,
    ItemCatalog,
)
from matchscore.contracts.timeline import MatchTimeline

CORE_SIZE = 3
FIRST_BUY_WINDOW_MS = 60_000
STARTING_GOLD = 1400

_ITEM_EVENTS = ("ITEM_PURCHASED", "ITEM_SOLD", "ITEM_DESTROYED", "ITEM_UNDO")


class ItemPurchase(FrozenContract):
    """A purchase that survived undo/sell resolution."""

    item_id: int = Field(..., gt=0)
    timestamp: int = Field(..., ge=0)


def extract_item_purchases(timeline: MatchTimeline | None, participant_id: int) -> list[ItemPurchase]:
    """Resolved purchase sequence for one participant, in buy order."""
    if timeline is None:
        return []

    stack: list[tuple[str, int, int]] = []
    for event in timeline.iter_events(*_ITEM_EVENTS):
        if event.get("participantId") != participant_id:
            continue
        event_type = event["type"]
        if event_type == "ITEM_UNDO":
            target = event.get("beforeId") or event.get("afterId")
            if not target:
                continue
            while stack:
                _, item_id, _ = stack.pop()
                if item_id == target:
                    break
        elif event.get("itemId"):
            stack.append((event_type, int(event["itemId"]), int(event.get("timestamp", 0))))

    purchases: list[tuple[int, int]] = []
    sold: set[int] = set()
    for event_type, item_id, timestamp in stack:
        if event_type == "ITEM_PURCHASED":
            purchases.append((item_id, timestamp))
        elif event_type == "ITEM_SOLD":
            for index in range(len(purchases) - 1, -1, -1):
                if purchases[index][0] == item_id and index not in sold:
                    sold.add(index)
                    break

    return [
        ItemPurchase(item_id=item_id, timestamp=timestamp)
        for index, (item_id, timestamp) in enumerate(purchases)
        if index not in sold
    ]


def extract_build_order(purchases: Iterable[ItemPurchase], catalog: ItemCatalog) -> list[int]:
    """Completed items in the order they were first bought."""
    order: list[int] = []
    for purchase in purchases:
        if catalog.is_completed(purchase.item_id) and purchase.item_id not in order:
            order.append(purchase.item_id)
    return order


def extract_core_items(
    build_order: Sequence[int],
    catalog: ItemCatalog,
    final_items: Sequence[int] = (),
) -> list[int]:
    """First three unique completed non-boot items.

    Falls back to the final inventory when the build order (usually from a
    missing timeline) does not contain three.
    """
    core: list[int] = []
    for item_id in list(build_order) + list(final_items):
        if len(core) >= CORE_SIZE:
            break
        if item_id in BOOT_IDS or item_id in core:
            continue
        if catalog.is_completed(item_id):
            core.append(item_id)
    return core


def create_core_key(core_items: Sequence[int]) -> str | None:
    """Sorted ``_``-joined key for exactly three unique non-boot items."""
    unique = sorted({item_id for item_id in core_items if item_id not in BOOT_IDS})
    if len(unique) != CORE_SIZE:
        return None
    return "_".join(str(item_id) for item_id in unique)


def _parse_ids(key: str, separator: str) -> list[int]:
    ids = []
    for part in key.split(separator):
        part = part.strip()
        if part.isdigit() and int(part) > 0:
            ids.append(int(part))
    return ids


def normalize_core_key(key: str | None) -> str | None:
    """Canonical core key: boots folded to one sentinel, de-duplicated, sorted.

    Applying it twice gives the same result as applying it once.
    """
    if not key:
        return None
    ids = {BOOTS_NORMALIZED if item_id in BOOT_IDS else item_id for item_id in _parse_ids(key, "_")}
    if not ids:
        return None
    return "_".join(str(item_id) for item_id in sorted(ids))


def extract_first_buy(purchases: Sequence[ItemPurchase], catalog: ItemCatalog) -> list[int]:
    """Items bought with the starting gold in the first minute."""
    if not purchases:
        return []
    cutoff = min(purchases[0].timestamp + FIRST_BUY_WINDOW_MS, FIRST_BUY_WINDOW_MS)
    items: list[int] = []
    spent = 0
    for purchase in purchases:
        if purchase.timestamp > cutoff:
            break
        cost = catalog.cost(purchase.item_id)
        if spent + cost > STARTING_GOLD:
            break
        items.append(purchase.item_id)
        spent += cost
    return items


def create_first_buy_key(items: Sequence[int]) -> str | None:
    return normalize_first_buy_key(",".join(str(item_id) for item_id in items))


def normalize_first_buy_key(key: str | None) -> str | None:
    """Numerically sorted ``,``-joined starting items.

    Every potion variant folds to one sentinel. Duplicates are kept: two
    potions is a different start than one.
    """
    if not key:
        return None
    ids = [POTION_NORMALIZED if item_id in POTION_IDS else item_id for item_id in _parse_ids(key, ",")]
    if not ids:
        return None
    return ",".join(str(item_id) for item_id in sorted(ids))


def create_spell_key(spell_a: int, spell_b: int) -> str | None:
    """Order-independent summoner spell pair key, e.g. ``4_32``."""
    spells = [spell for spell in (spell_a, spell_b) if spell > 0]
    if not spells:
        return None
    return "_".join(str(spell) for spell in sorted(spells))
