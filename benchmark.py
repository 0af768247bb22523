import numpy as np

from constants import BENCHMARK_ITEMS, BENCHMARK_CAPACITY_FACTOR, BENCHMARK_SEED
from knapsack_data import Item, KnapsackInstance


def generate_hard_problem(item_count=BENCHMARK_ITEMS, capacity_factor=BENCHMARK_CAPACITY_FACTOR,
                          seed=BENCHMARK_SEED):
    """
    Builds a "hard" knapsack instance: value = weight + 10, so every item has
    nearly the same value/weight ratio and the greedy heuristic barely helps.

    capacity_factor is a percentage of the total item weight.
    Pass seed=None for a different instance on every call.
    """
    rng = np.random.default_rng(seed)

    # Weights in [10, 99]
    weights = rng.integers(10, 100, size=item_count)

    items = []
    for i, weight in enumerate(weights):
        weight = int(weight)
        items.append(Item(i, weight, weight + 10))

    instance = KnapsackInstance(items, 0, name=f"hard-{item_count}-{capacity_factor}")
    instance.capacity = int(instance.total_weight * (capacity_factor / 100.0))
    return instance
