import pytest

from knapsack_data import Item


@pytest.fixture
def scenario_items():
    """Capacity 10: items 0 and 1 fit together, item 2 never fits."""
    return [Item(0, 5, 10), Item(1, 5, 10), Item(2, 100, 1)]


@pytest.fixture
def small_catalog():
    weights = [12, 7, 11, 8, 9, 3, 15, 4, 6, 10]
    values = [24, 13, 23, 15, 16, 5, 31, 9, 10, 18]
    return [Item(i, w, v) for i, (w, v) in enumerate(zip(weights, values))]
