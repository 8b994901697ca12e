"""
Tests for packing heuristics: First-Fit, Best-Fit, MBFS and decreasing variants.
"""

import unittest
from unittest import mock

import numpy as np

from bpp_ga.data_models import Bin, Item, ProblemInstance, PackingConfigurationError, CapacityError
from bpp_ga.packing import (
    first_fit,
    best_fit,
    modified_best_fit_slack,
    first_fit_decreasing,
    best_fit_decreasing,
    apply_packing,
    sort_decreasing,
    PACKING_HEURISTICS,
)


def sizes_of(bins):
    return [b.sizes() for b in bins]


class TestFirstFit(unittest.TestCase):
    """Test First-Fit placement order."""

    def test_worked_example(self):
        """6+4=10 fits the first bin exactly, so 4 joins the 6."""
        instance = ProblemInstance.from_sizes("example", 10, [6, 5, 4, 3, 2, 2])

        bins = first_fit(instance.items, 10)

        self.assertEqual(sizes_of(bins), [[6, 4], [5, 3, 2], [2]])
        self.assertEqual(len(bins), instance.lower_bound)

    def test_first_bin_wins_over_tighter_bin(self):
        instance = ProblemInstance.from_sizes("ff", 10, [5, 7, 3])

        self.assertEqual(sizes_of(first_fit(instance.items, 10)), [[5, 3], [7]])

    def test_packs_into_existing_bins(self):
        existing = [Bin(capacity=10, items=[Item(100, 7)])]
        items = [Item(0, 3), Item(1, 4)]

        bins = first_fit(items, 10, existing)

        self.assertIs(bins, existing)
        self.assertEqual(sizes_of(bins), [[7, 3], [4]])

    def test_oversized_item_is_reported(self):
        with self.assertRaises(PackingConfigurationError):
            first_fit([Item(0, 3), Item(1, 12)], 10)


class TestBestFit(unittest.TestCase):
    """Test Best-Fit and MBFS bin choice."""

    def test_tightest_bin_chosen(self):
        instance = ProblemInstance.from_sizes("bf", 10, [5, 7, 3])

        self.assertEqual(sizes_of(best_fit(instance.items, 10)), [[5], [7, 3]])

    def test_ties_go_to_earliest_bin(self):
        instance = ProblemInstance.from_sizes("tie", 10, [6, 6, 4])

        self.assertEqual(sizes_of(best_fit(instance.items, 10)), [[6, 4], [6]])

    def test_mbfs_matches_best_fit(self):
        rng = np.random.default_rng(7)
        instance = ProblemInstance.from_sizes("mbfs", 50, rng.integers(1, 50, size=40))
        ordered = sort_decreasing(instance.items)

        self.assertEqual(
            sizes_of(modified_best_fit_slack(ordered, 50)),
            sizes_of(best_fit(ordered, 50))
        )

    def test_opens_new_bin_only_when_nothing_fits(self):
        existing = [Bin(capacity=10, items=[Item(100, 8)])]

        bins = best_fit([Item(0, 2), Item(1, 3)], 10, existing)

        self.assertEqual(sizes_of(bins), [[8, 2], [3]])


class TestDecreasingVariants(unittest.TestCase):

    def setUp(self):
        self.instance = ProblemInstance.from_sizes("dec", 10, [2, 5, 4, 7, 1, 3, 8])

    def test_first_fit_decreasing(self):
        bins = first_fit_decreasing(self.instance.items, 10)
        self.assertEqual(sizes_of(bins), [[8, 2], [7, 3], [5, 4, 1]])

    def test_best_fit_decreasing(self):
        bins = best_fit_decreasing(self.instance.items, 10)
        self.assertEqual(sizes_of(bins), [[8, 2], [7, 3], [5, 4, 1]])

    def test_sort_is_stable_for_equal_sizes(self):
        items = [Item(0, 3), Item(1, 5), Item(2, 3)]
        self.assertEqual([i.uid for i in sort_decreasing(items)], [1, 0, 2])


class TestApplyPacking(unittest.TestCase):
    """Test dispatch and heuristic contracts on random inputs."""

    def test_every_placement_goes_through_bin_add(self):
        existing = [Bin(capacity=10, items=[Item(100, 7)])]
        items = [Item(0, 3), Item(1, 4), Item(2, 5)]
        original_add = Bin.add

        with mock.patch.object(Bin, 'add', autospec=True, side_effect=original_add) as add:
            for name in PACKING_HEURISTICS:
                apply_packing(items, 10, name, [b.copy() for b in existing])

        self.assertEqual(add.call_count, len(items) * len(PACKING_HEURISTICS))

    def test_bin_with_smaller_capacity_is_rejected(self):
        """A bin whose own capacity disagrees with the packing capacity raises."""
        existing = [Bin(capacity=5, items=[Item(100, 3)])]

        with self.assertRaises(CapacityError):
            first_fit([Item(0, 4)], 10, existing)

        self.assertEqual(existing[0].sizes(), [3])

    def test_unknown_heuristic(self):
        with self.assertRaises(ValueError):
            apply_packing([Item(0, 1)], 10, 'worst_fit')

    def test_dispatch(self):
        instance = ProblemInstance.from_sizes("ex", 10, [5, 7, 3])
        self.assertEqual(sizes_of(apply_packing(instance.items, 10, 'best_fit')), [[5], [7, 3]])
        self.assertEqual(sizes_of(apply_packing(instance.items, 10)), [[5, 3], [7]])

    def test_capacity_and_completeness_on_random_inputs(self):
        """Every heuristic keeps bins within capacity and places each item once."""
        rng = np.random.default_rng(2024)

        for trial in range(30):
            capacity = int(rng.integers(20, 200))
            n = int(rng.integers(1, 80))
            instance = ProblemInstance.from_sizes(
                f"random_{trial}", capacity, rng.integers(1, capacity + 1, size=n)
            )

            for name in PACKING_HEURISTICS:
                bins = apply_packing(instance.items, capacity, name)

                placed = sorted(item.uid for b in bins for item in b.items)
                self.assertEqual(placed, list(range(n)), f"{name} trial {trial}")
                for b in bins:
                    self.assertLessEqual(b.load, capacity, f"{name} trial {trial}")
                    self.assertFalse(b.is_empty())
                self.assertGreaterEqual(len(bins), instance.lower_bound)


if __name__ == '__main__':
    unittest.main()
