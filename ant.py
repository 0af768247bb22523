from typing import NamedTuple, Tuple

import numpy as np

from constants import TAU_FLOOR
from knapsack_data import Item, Knapsack


class Solution(NamedTuple):
    """Items picked by one ant, in selection order, and their total value."""
    items: Tuple[Item, ...]
    value: int

    @property
    def weight(self):
        return sum(item.weight for item in self.items)

    @property
    def item_ids(self):
        return sorted(item.id for item in self.items)


class Ant:
    def __init__(self, items, pheromones, alpha=1.0, beta=2.0, rng=None):
        """
        items: the catalog (ids 0..N-1, in id order)
        pheromones: read-only snapshot, one entry per item
        rng: numpy Generator owned by this ant only
        """
        self.items = items
        self.pheromones = pheromones
        self.alpha = alpha
        self.beta = beta
        self.rng = rng if rng is not None else np.random.default_rng()

        self.weights = np.array([item.weight for item in items], dtype=np.float64)
        self.values = np.array([item.value for item in items], dtype=np.float64)

    def build_solution(self, capacity):
        """
        Fills a knapsack one item at a time with the ACO transition rule.
        Only items that still fit are candidates, so the result is always feasible.
        """
        knapsack = Knapsack(capacity)
        selected = []

        # 1. Candidate pool: every item, ascending id
        remaining = np.arange(len(self.items))

        while remaining.size > 0:
            # 2. Identify Feasible Candidates
            candidates = remaining[knapsack.fits(self.weights[remaining])]
            if candidates.size == 0:
                break

            # 3. Selection (Roulette Wheel)
            idx = self._select_next_item(candidates)

            # 4. Pack the item
            item = self.items[idx]
            knapsack.add(item)
            selected.append(item)
            remaining = remaining[remaining != idx]

        return Solution(tuple(selected), sum(item.value for item in selected))

    def _select_next_item(self, candidates):
        # Pheromone trail (tau), floored so 0 ** alpha cannot collapse the wheel
        tau = self.pheromones[candidates]
        tau = np.where(tau <= 0, TAU_FLOOR, tau)

        # Heuristic information (eta) = value / weight
        eta = self.values[candidates] / self.weights[candidates]

        probabilities = np.power(tau, self.alpha) * np.power(eta, self.beta)
        prob_sum = probabilities.sum()

        draw = self.rng.random()
        if prob_sum == 0:
            # Fallback if numerators are zero: uniform choice
            return int(candidates[int(draw * candidates.size)])

        # Spin the roulette wheel: first candidate whose running sum reaches the pick
        pick = draw * prob_sum
        position = int(np.searchsorted(np.cumsum(probabilities), pick, side='left'))

        # Fallback for floating point errors
        if position >= candidates.size:
            position = candidates.size - 1
        return int(candidates[position])
