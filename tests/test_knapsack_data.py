"""Unit tests for the item catalog, the capacity tracker and the instance loader."""

import numpy as np
import pytest

from knapsack_data import Item, Knapsack, KnapsackInstance, InstanceFormatError


class TestKnapsack:
    """Test the capacity tracker."""

    def test_can_add_respects_capacity(self):
        """Test an item fits only while the used weight allows it."""
        knapsack = Knapsack(10)
        assert knapsack.can_add(Item(0, 10, 1))
        assert not knapsack.can_add(Item(1, 11, 1))

        knapsack.add(Item(2, 6, 1))
        assert knapsack.used_weight == 6
        assert knapsack.remaining == 4
        assert knapsack.can_add(Item(3, 4, 1))
        assert not knapsack.can_add(Item(4, 5, 1))

    def test_fits_mask(self):
        """Test the vectorized check matches can_add."""
        knapsack = Knapsack(10)
        knapsack.add(Item(0, 7, 1))
        mask = knapsack.fits(np.array([1, 3, 4, 100]))
        assert mask.tolist() == [True, True, False, False]

    def test_add_does_not_guard(self):
        """Test add() trusts the caller and simply accumulates."""
        knapsack = Knapsack(5)
        knapsack.add(Item(0, 8, 1))
        assert knapsack.used_weight == 8


class TestKnapsackInstance:
    """Test problem file parsing."""

    def test_parse_lines(self):
        """Test capacity, sequential ids and blank-line skipping."""
        instance = KnapsackInstance.from_lines(["50\n", "10 60\n", "\n", "20 100\n", "  30   120  \n"])

        assert instance.capacity == 50
        assert instance.items == [Item(0, 10, 60), Item(1, 20, 100), Item(2, 30, 120)]
        assert instance.n_items == 3
        assert instance.total_weight == 60

    def test_from_file(self, tmp_path):
        """Test loading from disk names the instance after the file."""
        path = tmp_path / "tiny.txt"
        path.write_text("10\n5 10\n5 10\n100 1\n")

        instance = KnapsackInstance.from_file(str(path))

        assert instance.name == "tiny"
        assert instance.capacity == 10
        assert [item.id for item in instance.items] == [0, 1, 2]

    def test_get_data(self):
        """Test the numpy view of the catalog."""
        instance = KnapsackInstance([Item(0, 3, 4), Item(1, 5, 6)], 7)
        weights, values, capacity = instance.get_data()

        assert weights.tolist() == [3, 5]
        assert values.tolist() == [4, 6]
        assert capacity == 7

    @pytest.mark.parametrize("lines, message", [
        ([], "Line 1"),
        (["abc\n", "1 2\n"], "Line 1"),
        (["10\n", "1 2 3\n"], "Line 2"),
        (["10\n", "1 2\n", "x 2\n"], "Line 3"),
        (["0\n", "5 10\n"], "Line 1: capacity must be positive"),
        (["-4\n", "5 10\n"], "Line 1: capacity must be positive"),
        (["10\n", "0 5\n"], "Line 2: weight must be positive"),
        (["10\n", "3 4\n", "-2 5\n"], "Line 3: weight must be positive"),
        (["10\n", "3 -1\n"], "Line 2: value must be non-negative"),
    ])
    def test_malformed_input(self, lines, message):
        """Test malformed files raise InstanceFormatError with the line number."""
        with pytest.raises(InstanceFormatError, match=message):
            KnapsackInstance.from_lines(lines)

    def test_format_error_is_value_error(self):
        """Test callers can catch ValueError."""
        with pytest.raises(ValueError):
            KnapsackInstance.from_lines(["ten\n"])
