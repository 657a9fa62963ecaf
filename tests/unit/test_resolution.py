"""Unit tests for ordered field resolution."""

import math

import pytest

from matchscore.core.utils.resolution import as_float, as_int, resolve_first


class TestResolveFirst:
    def test_first_present_key_wins(self):
        assert resolve_first({"a": 3, "b": 5}, "a", "b") == 3

    def test_missing_and_none_skipped(self):
        assert resolve_first({"a": None, "c": 7}, "a", "b", "c") == 7

    def test_zero_skipped_by_default(self):
        assert resolve_first({"a": 0, "b": 4}, "a", "b") == 4

    def test_zero_accepted_when_asked(self):
        assert resolve_first({"a": 0, "b": 4}, "a", "b", accept_zero=True) == 0

    def test_blank_and_nan_skipped(self):
        assert resolve_first({"a": "  ", "b": math.nan, "c": "Annie"}, "a", "b", "c") == "Annie"

    def test_false_is_a_value(self):
        assert resolve_first({"a": False}, "a", default=True) is False

    @pytest.mark.parametrize("source", [None, {}])
    def test_empty_source_gives_default(self, source):
        assert resolve_first(source, "a", default="fallback") == "fallback"


class TestCoercion:
    @pytest.mark.parametrize(("value", "expected"), [("1.5", 1.5), (None, 0.0), ("x", 0.0), (math.inf, 0.0)])
    def test_as_float(self, value, expected):
        assert as_float(value) == expected

    @pytest.mark.parametrize(("value", "expected"), [("12", 12), (3.9, 3), (None, 0), ("x", 0)])
    def test_as_int(self, value, expected):
        assert as_int(value) == expected
