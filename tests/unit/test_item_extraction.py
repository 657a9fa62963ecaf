"""Unit tests for item, skill and patch extraction from timelines."""

import pytest

from matchscore.contracts.items import ItemCatalog
from matchscore.core.extraction.abilities import extract_ability_order, skill_order_abbreviation
from matchscore.core.extraction.items import (
    create_core_key,
    create_spell_key,
    extract_build_order,
    extract_core_items,
    extract_first_buy,
    extract_item_purchases,
    normalize_core_key,
    normalize_first_buy_key,
)
from matchscore.core.extraction.patch import extract_patch, is_patch_accepted

CATALOG = ItemCatalog.from_mapping(
    {
        "1056": {"name": "Doran's Ring", "itemType": "component", "totalCost": 400},
        "2003": {"name": "Health Potion", "itemType": "other", "totalCost": 50},
        "1001": {"name": "Boots", "itemType": "boots", "totalCost": 300},
        "1026": {"name": "Blasting Wand", "itemType": "component", "totalCost": 850},
        "3020": {"name": "Sorcerer's Shoes", "itemType": "boots", "totalCost": 1100},
        "6655": {"name": "Luden's Companion", "itemType": "legendary", "totalCost": 2900},
        "3089": {"name": "Rabadon's Deathcap", "itemType": "legendary", "totalCost": 3600},
        "3157": {"name": "Zhonya's Hourglass", "itemType": "legendary", "totalCost": 3250},
        "3135": {"name": "Void Staff", "itemType": "legendary", "totalCost": 3000},
    }
)


def _item(event_type: str, timestamp: int, participant_id: int = 1, **fields) -> dict:
    return {"type": event_type, "timestamp": timestamp, "participantId": participant_id, **fields}


@pytest.fixture
def purchase_timeline(timeline_factory):
    return timeline_factory(
        [
            {
                "timestamp": 0,
                "events": [
                    _item("ITEM_PURCHASED", 1_000, itemId=1056),
                    _item("ITEM_PURCHASED", 1_500, itemId=2003),
                    _item("ITEM_PURCHASED", 1_800, itemId=2003),
                    _item("ITEM_PURCHASED", 2_000, participant_id=2, itemId=1055),
                ],
            },
            {
                "timestamp": 60_000,
                "events": [
                    # Bought by mistake and undone right away
                    _item("ITEM_PURCHASED", 400_000, itemId=1026),
                    _item("ITEM_UNDO", 401_000, beforeId=1026, afterId=0, goldGain=850),
                    _item("ITEM_PURCHASED", 420_000, itemId=6655),
                    _item("ITEM_PURCHASED", 500_000, itemId=3020),
                ],
            },
            {
                "timestamp": 600_000,
                "events": [
                    _item("ITEM_PURCHASED", 900_000, itemId=3089),
                    _item("ITEM_SOLD", 1_100_000, itemId=1056),
                    _item("ITEM_PURCHASED", 1_200_000, itemId=3157),
                    _item("ITEM_PURCHASED", 1_500_000, itemId=3135),
                ],
            },
        ]
    )


class TestPurchases:
    def test_undo_and_sell_resolved(self, purchase_timeline):
        purchases = extract_item_purchases(purchase_timeline, 1)

        assert [p.item_id for p in purchases] == [2003, 2003, 6655, 3020, 3089, 3157, 3135]

    def test_other_participants_ignored(self, purchase_timeline):
        assert [p.item_id for p in extract_item_purchases(purchase_timeline, 2)] == [1055]

    def test_no_timeline(self):
        assert extract_item_purchases(None, 1) == []

    def test_sell_removes_latest_matching_purchase(self, timeline_factory):
        timeline = timeline_factory(
            [
                {
                    "timestamp": 0,
                    "events": [
                        _item("ITEM_PURCHASED", 1_000, itemId=2003),
                        _item("ITEM_PURCHASED", 2_000, itemId=1056),
                        _item("ITEM_PURCHASED", 3_000, itemId=2003),
                        _item("ITEM_SOLD", 4_000, itemId=2003),
                    ],
                }
            ]
        )
        purchases = extract_item_purchases(timeline, 1)
        assert [(p.item_id, p.timestamp) for p in purchases] == [(2003, 1_000), (1056, 2_000)]


class TestBuildKeys:
    def test_build_order_and_core(self, purchase_timeline):
        purchases = extract_item_purchases(purchase_timeline, 1)
        order = extract_build_order(purchases, CATALOG)

        assert order == [6655, 3020, 3089, 3157, 3135]
        core = extract_core_items(order, CATALOG)
        assert core == [6655, 3089, 3157]
        assert create_core_key(core) == "3089_3157_6655"

    def test_core_falls_back_to_final_items(self):
        core = extract_core_items([], CATALOG, final_items=(3020, 3089, 0, 6655, 2003, 3135))
        assert create_core_key(core) == "3089_3135_6655"

    def test_incomplete_core_has_no_key(self):
        assert create_core_key([3089, 6655]) is None

    def test_first_buy(self, purchase_timeline):
        purchases = extract_item_purchases(purchase_timeline, 1)
        # The sold Doran's Ring is gone from the resolved sequence
        assert extract_first_buy(purchases, CATALOG) == [2003, 2003]

    def test_first_buy_respects_starting_gold(self, timeline_factory):
        timeline = timeline_factory(
            [
                {
                    "timestamp": 0,
                    "events": [
                        _item("ITEM_PURCHASED", 1_000, itemId=1056),
                        _item("ITEM_PURCHASED", 1_100, itemId=1001),
                        _item("ITEM_PURCHASED", 1_200, itemId=1026),
                    ],
                }
            ]
        )
        first = extract_first_buy(extract_item_purchases(timeline, 1), CATALOG)
        assert first == [1056, 1001]

    def test_spell_key_is_order_independent(self):
        assert create_spell_key(14, 4) == create_spell_key(4, 14) == "4_14"
        assert create_spell_key(0, 0) is None


class TestNormalization:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("6655_3089_3157", "3089_3157_6655"),
            ("3020_3089_6655", "3089_6655_99999"),
            ("3089_3089_6655_3006", "3089_6655_99999"),
            ("", None),
        ],
    )
    def test_core_key(self, raw, expected):
        assert normalize_core_key(raw) == expected

    @pytest.mark.parametrize("raw", ["6655_3020_3089", "3158_3006_1001", "3157_3089_3157"])
    def test_core_key_idempotent(self, raw):
        once = normalize_core_key(raw)
        assert normalize_core_key(once) == once

    @pytest.mark.parametrize("raw", ["2003,1056,2003", "1055, 2003", "3865"])
    def test_first_buy_key_idempotent(self, raw):
        once = normalize_first_buy_key(raw)
        assert normalize_first_buy_key(once) == once

    def test_first_buy_key_keeps_duplicates(self):
        assert normalize_first_buy_key("1056,1056,3865") == "1056,1056,3865"

    def test_first_buy_key_folds_potion_variants(self):
        assert normalize_first_buy_key("2003,1056,2003") == "1056,99998,99998"
        assert normalize_first_buy_key("2031,1056") == normalize_first_buy_key("1056,2033") == "1056,99998"


# ============================================================================
# Skill order
# ============================================================================


def _level_up(slot: int, participant_id: int = 1, level_up_type: str = "NORMAL") -> dict:
    return {
        "type": "SKILL_LEVEL_UP",
        "participantId": participant_id,
        "skillSlot": slot,
        "levelUpType": level_up_type,
    }


class TestSkillOrder:
    def test_ability_order_from_timeline(self, timeline_factory):
        timeline = timeline_factory(
            [
                {"timestamp": 0, "events": [_level_up(1), _level_up(2, participant_id=3)]},
                {"timestamp": 60_000, "events": [_level_up(3), _level_up(4, level_up_type="EVOLVE")]},
                {"timestamp": 120_000, "events": [_level_up(2), _level_up(4)]},
            ]
        )
        assert extract_ability_order(timeline, 1) == "Q E W R"

    def test_no_level_ups(self, timeline_factory):
        assert extract_ability_order(timeline_factory([{"timestamp": 0}]), 1) is None

    @pytest.mark.parametrize(
        ("order", "expected"),
        [
            ("Q W E Q Q R Q Q W W R W W E E R E E", "qwe"),
            ("Q E W E E R E E W W R W W", "ewq"),
            ("Q W E Q Q R Q", None),
            ("", None),
        ],
    )
    def test_abbreviation(self, order, expected):
        assert skill_order_abbreviation(order) == expected


class TestPatch:
    @pytest.mark.parametrize(
        ("version", "expected"),
        [("15.3.652.4213", "25.3"), ("14.24.1", "14.24"), ("", "unknown"), ("garbage", "unknown")],
    )
    def test_extract_patch(self, version, expected):
        assert extract_patch(version) == expected

    def test_accepted_patches(self):
        assert is_patch_accepted("25.3", []) is True
        assert is_patch_accepted("25.3", ["25.3", "25.4"]) is True
        assert is_patch_accepted("25.2", ["25.3"]) is False
        assert is_patch_accepted("unknown", []) is False
