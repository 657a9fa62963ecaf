"""Event extraction: match timeline and participant payloads to typed observations."""

from matchscore.core.extraction.abilities import extract_ability_order, skill_order_abbreviation
from matchscore.core.extraction.items import (
    create_core_key,
    extract_item_purchases,
    normalize_core_key,
    normalize_first_buy_key,
)
from matchscore.core.extraction.kill_events import extract_kill_events
from matchscore.core.extraction.observation import (
    ObservationError,
    build_observation,
    extract_observations,
)
from matchscore.core.extraction.patch import extract_patch

__all__ = [
    "ObservationError",
    "build_observation",
    "create_core_key",
    "extract_ability_order",
    "extract_item_purchases",
    "extract_kill_events",
    "extract_observations",
    "extract_patch",
    "normalize_core_key",
    "normalize_first_buy_key",
    "skill_order_abbreviation",
]
