"""
Tests for slice set normalization and manual edits.
"""
import pytest

from beatslicer.core.config import SLICE_CONFIG
from beatslicer.core.slices import normalize, insert_slice, remove_slice, move_slice


class TestNormalize:
    """Tests for normalize."""

    def test_empty_input(self):
        assert normalize([]) == []

    def test_dedup_sort_and_zero_anchor(self):
        assert normalize([0.2, 0.2, 5.0, 1.0]) == [0.0, 0.2, 1.0, 5.0]

    def test_sub_epsilon_neighbour_of_zero_collapsed(self):
        assert normalize([0.0, 0.03, 2.0]) == [0.0, 2.0]

    def test_near_zero_first_slice_snapped(self):
        assert normalize([0.02, 1.5]) == [0.0, 1.5]

    def test_analysis_output_with_duplicates(self):
        assert normalize([1.002, 0, 0, 3.5]) == [0.0, 1.002, 3.5]

    def test_near_duplicates_collapsed(self):
        assert normalize([0.0, 1.0, 1.01, 1.04, 2.0]) == [0.0, 1.0, 2.0]

    def test_capped_at_pad_count(self):
        result = normalize([i * 0.5 for i in range(40)])
        assert len(result) == SLICE_CONFIG.max_slices
        assert result[0] == 0.0

    def test_cap_applies_after_zero_anchor(self):
        raw = [1.0 + i for i in range(16)]
        result = normalize(raw)
        assert len(result) == 16
        assert result[0] == 0.0
        assert result[-1] == 15.0

    def test_strictly_increasing(self):
        result = normalize([3.0, 0.7, 9.1, 0.7, 2.2, 0.1])
        assert all(b - a >= SLICE_CONFIG.epsilon for a, b in zip(result, result[1:]))

    def test_unusable_values_dropped(self):
        assert normalize([float("nan"), float("inf"), -4.0, 2.0]) == [0.0, 2.0]

    def test_only_unusable_values_is_empty(self):
        assert normalize([float("nan"), -1.0]) == []

    def test_accepts_integers_and_tuples(self):
        assert normalize((3, 1)) == [0.0, 1.0, 3.0]

    @pytest.mark.parametrize("raw", [
        [],
        [0.0],
        [0.2, 0.2, 5.0, 1.0],
        [0.0, 0.03, 2.0],
        [0.049, 0.05, 0.099, 0.1, 0.15],
        [i * 0.3 for i in range(30)],
    ])
    def test_idempotent(self, raw):
        once = normalize(raw)
        assert normalize(once) == once

    def test_returns_new_list(self):
        raw = [0.0, 1.0]
        result = normalize(raw)
        assert result == raw
        assert result is not raw


class TestManualEdits:
    """Tests for insert/remove/move helpers."""

    def test_insert_keeps_order(self):
        assert insert_slice([0.0, 2.0], 1.0) == [0.0, 1.0, 2.0]

    def test_insert_into_empty_adds_anchor(self):
        assert insert_slice([], 1.5) == [0.0, 1.5]

    def test_insert_near_existing_is_ignored(self):
        assert insert_slice([0.0, 2.0], 2.01) == [0.0, 2.0]

    def test_insert_does_not_mutate_input(self):
        slices = [0.0, 2.0]
        insert_slice(slices, 1.0)
        assert slices == [0.0, 2.0]

    def test_remove(self):
        assert remove_slice([0.0, 1.0, 2.0], 1) == [0.0, 2.0]

    def test_remove_anchor_restores_it(self):
        assert remove_slice([0.0, 1.0, 2.0], 0) == [0.0, 1.0, 2.0]

    def test_remove_last_remaining(self):
        assert remove_slice([0.0], 0) == []

    def test_remove_out_of_range(self):
        assert remove_slice([0.0, 1.0], 5) == [0.0, 1.0]

    def test_move(self):
        assert move_slice([0.0, 1.0, 2.0], 1, 3.0) == [0.0, 2.0, 3.0]

    def test_move_out_of_range(self):
        assert move_slice([0.0, 1.0], -1, 3.0) == [0.0, 1.0]
