"""Unit tests for appeal round fill-forward rules."""

import pytest

from dispute_sync.domain.services.appeal_rounds import (
    fill_round,
    is_empty,
    merge_rounds,
    round_value,
)


class TestIsEmpty:
    """Tests for is_empty."""

    @pytest.mark.parametrize("value", [None, [], (), {}, ""])
    def test_empty_values(self, value: object) -> None:
        assert is_empty(value)

    @pytest.mark.parametrize("value", [0, False, [1], "x", 1530000000000])
    def test_non_empty_values(self, value: object) -> None:
        """Zero is a real value, not an unknown slot."""
        assert not is_empty(value)


class TestFillRound:
    """Tests for fill_round."""

    def test_pads_with_none_up_to_index(self) -> None:
        assert fill_round([], 2, 30) == [None, None, 30]

    def test_handles_missing_array(self) -> None:
        assert fill_round(None, 0, 10) == [10]

    def test_overwrites_slot_with_real_value(self) -> None:
        assert fill_round([10, 20], 1, 25) == [10, 25]

    def test_empty_value_never_clears_set_slot(self) -> None:
        assert fill_round([10, [1, 2]], 1, []) == [10, [1, 2]]
        assert fill_round([10, 20], 0, None) == [10, 20]

    def test_empty_value_fills_unknown_slot(self) -> None:
        assert fill_round([10], 1, []) == [10, []]

    def test_does_not_touch_other_rounds(self) -> None:
        assert fill_round([10, 20, 30], 1, 21) == [10, 21, 30]

    def test_never_shortens(self) -> None:
        assert fill_round([10, 20, 30], 0, 11) == [11, 20, 30]

    def test_does_not_mutate_input(self) -> None:
        existing = [10]
        fill_round(existing, 1, 20)
        assert existing == [10]

    def test_negative_index_raises(self) -> None:
        with pytest.raises(ValueError, match="must be >= 0"):
            fill_round([], -1, 10)


class TestMergeRounds:
    """Tests for merge_rounds."""

    def test_incoming_values_win_where_non_empty(self) -> None:
        assert merge_rounds([1, 2, 3], [None, 5]) == [1, 5, 3]

    def test_result_at_least_as_long_as_either(self) -> None:
        assert merge_rounds([1], [None, None, 3]) == [1, None, 3]
        assert merge_rounds([1, 2, 3], [4]) == [4, 2, 3]

    def test_handles_missing_arrays(self) -> None:
        assert merge_rounds(None, None) == []


class TestRoundValue:
    """Tests for round_value."""

    def test_reads_slot(self) -> None:
        assert round_value([10, 20], 1) == 20

    def test_missing_slot_returns_default(self) -> None:
        assert round_value([10], 3, default="none") == "none"

    def test_empty_slot_returns_default(self) -> None:
        assert round_value([None, []], 1, default=()) == ()
