"""
Unit tests for glpr/decoder.py

Run with:
    pytest tests/test_decoder.py -v
"""

import numpy as np
import pytest

from glpr.config import DEFAULT_CONFIG
from glpr.decoder import as_grid, best_path, collapse, decode
from glpr.errors import ShapeMismatch

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _grid_for(indices, num_classes: int) -> np.ndarray:
    """Probability grid whose per-step arg-max is exactly indices."""
    grid = np.full((len(indices), num_classes), 0.01, dtype=np.float32)
    for t, c in enumerate(indices):
        grid[t, c] = 0.9
    return grid


# ---------------------------------------------------------------------------
# best_path
# ---------------------------------------------------------------------------

class TestBestPath:
    def test_picks_maximum(self):
        grid = np.array([[0.1, 0.7, 0.2], [0.6, 0.3, 0.1]])
        assert best_path(grid) == [1, 0]

    def test_tie_keeps_lowest_index(self):
        grid = np.array([
            [0.5, 0.5, 0.0],
            [0.1, 0.4, 0.4],
            [0.3, 0.3, 0.3],
        ])
        assert best_path(grid) == [0, 1, 0]

    def test_negative_scores(self):
        # log-probabilities are all negative
        grid = np.array([[-3.0, -0.1, -2.0]])
        assert best_path(grid) == [1]

    def test_nan_never_wins(self):
        grid = np.array([[np.nan, 0.9, 0.0], [0.2, np.nan, 0.7]], dtype=np.float32)
        assert best_path(grid) == [1, 2]

    def test_all_nan_step_has_no_class(self):
        grid = np.array([[np.nan, np.nan, np.nan], [0.1, 0.8, 0.1]])
        assert best_path(grid) == [-1, 1]


# ---------------------------------------------------------------------------
# collapse
# ---------------------------------------------------------------------------

class TestCollapse:
    @pytest.mark.parametrize("indices, expected", [
        ([0, 0, 1, 2], [0, 1, 2]),
        ([1, 1, 1, 1], [1]),
        ([0, 1, 0], [0, 1, 0]),            # non-adjacent repeats kept
        ([2, 2, 0, 0, 2, 2], [2, 0, 2]),
        ([], []),
    ])
    def test_collapse(self, indices, expected):
        assert collapse(indices) == expected


# ---------------------------------------------------------------------------
# decode
# ---------------------------------------------------------------------------

class TestDecode:
    def test_collapse_then_map(self):
        grid = _grid_for([0, 0, 1, 2], 3)
        assert decode(grid, "AB ") == "AB "

    def test_trailing_space_is_a_symbol(self):
        grid = _grid_for([2, 2, 2, 2], 3)
        assert decode(grid, "AB ") == " "

    def test_length_equals_collapse_groups(self):
        indices = [0, 1, 1, 0, 0, 2, 2, 2]
        grid = _grid_for(indices, 3)
        result = decode(grid, "AB ")
        assert result == "ABA "
        assert len(result) == len(collapse(indices))

    def test_non_adjacent_runs_not_merged(self):
        assert decode(_grid_for([0, 1, 0], 3), "AB ") == "ABA"

    def test_single_character(self):
        assert decode(_grid_for([1] * 6, 3), "AB ") == "B"

    def test_out_of_range_dropped(self):
        # class 2 has no character in "AB"
        grid = _grid_for([2, 2, 2, 2], 3)
        assert decode(grid, "AB", num_classes=3) == ""

    def test_blank_separates_repeated_characters(self):
        grid = _grid_for([0, 2, 0, 1, 1, 2], 3)
        assert decode(grid, "AB", num_classes=3) == "AAB"

    def test_out_of_range_counts_toward_collapse_groups(self):
        indices = [0, 0, 2, 1, 1]
        grid = _grid_for(indices, 3)
        result = decode(grid, "AB", num_classes=3)
        assert len(result) == len(collapse(indices)) - 1

    def test_tie_break_in_decode(self):
        grid = np.array([[0.5, 0.5, 0.0]], dtype=np.float32)
        assert decode(grid, "AB ") == "A"

    def test_float64_near_tie_keeps_precision(self):
        grid = np.array([[0.1, 0.1 + 1e-12, 0.0]], dtype=np.float64)
        assert decode(grid, "AB ") == "B"

    def test_nan_step_skipped(self):
        grid = np.array([[np.nan, 0.9, 0.0]], dtype=np.float32)
        assert decode(grid, "AB ") == "B"

    def test_all_nan_step_dropped(self):
        grid = np.array([[0.9, 0.1, 0.0], [np.nan] * 3, [0.9, 0.1, 0.0]])
        assert decode(grid, "AB ") == "AA"

    def test_integer_scores(self):
        assert decode(np.array([[0, 5, 1], [7, 0, 0]]), "AB ") == "BA"

    def test_accepts_nested_lists(self):
        assert decode([[0.1, 0.9], [0.8, 0.2]], "XY") == "YX"

    def test_accepts_batch_of_one(self):
        grid = _grid_for([0, 1], 3)[None]
        assert decode(grid, "AB ") == "AB"

    def test_returns_string(self):
        assert isinstance(decode(_grid_for([0], 3), "AB "), str)

    def test_reference_blank_class(self):
        # the reference model's class 41 has no character
        blank = len(DEFAULT_CONFIG.alphabet)
        grid = _grid_for([blank] * DEFAULT_CONFIG.time_steps, DEFAULT_CONFIG.num_classes)
        assert decode(grid, DEFAULT_CONFIG.alphabet, DEFAULT_CONFIG.num_classes) == ""

    def test_reference_alphabet_umlauts(self):
        alphabet = DEFAULT_CONFIG.alphabet
        indices = [alphabet.index(c) for c in "MÜ-Ä1"]
        grid = _grid_for(indices, DEFAULT_CONFIG.num_classes)
        assert decode(grid, alphabet, DEFAULT_CONFIG.num_classes) == "MÜ-Ä1"

    def test_does_not_modify_grid(self):
        grid = _grid_for([0, 1], 3)
        before = grid.copy()
        decode(grid, "AB ")
        np.testing.assert_array_equal(grid, before)


class TestShapeMismatch:
    def test_too_many_classes(self):
        with pytest.raises(ShapeMismatch):
            decode(np.zeros((4, 4), dtype=np.float32), "AB ")

    def test_too_few_classes(self):
        with pytest.raises(ShapeMismatch):
            decode(np.zeros((4, 2), dtype=np.float32), "AB ")

    def test_explicit_num_classes_checked(self):
        with pytest.raises(ShapeMismatch):
            decode(np.zeros((4, 3), dtype=np.float32), "AB ", num_classes=4)

    def test_zero_time_steps(self):
        with pytest.raises(ShapeMismatch):
            decode(np.zeros((0, 3), dtype=np.float32), "AB ")

    def test_one_dimensional(self):
        with pytest.raises(ShapeMismatch):
            decode(np.zeros(3, dtype=np.float32), "AB ")

    def test_ragged_rows(self):
        with pytest.raises(ShapeMismatch):
            decode([[0.1, 0.9, 0.0], [0.2, 0.3]], "AB ")

    def test_non_numeric(self):
        with pytest.raises(ShapeMismatch):
            decode([["a", "b", "c"]], "AB ")

    def test_batch_of_two_rejected(self):
        with pytest.raises(ShapeMismatch):
            as_grid(np.zeros((2, 4, 3), dtype=np.float32), 3)

    def test_shape_mismatch_is_value_error(self):
        assert issubclass(ShapeMismatch, ValueError)
