import numpy as np
from numba import njit

from ant import Solution


@njit(nogil=True, cache=True)
def fast_build_solution(weights, values, capacity, pheromones, alpha, beta, draws, tau_floor=1e-4):
    """
    Compiled twin of Ant.build_solution(). Returns the selected item indices.

    draws holds one uniform number in [0, 1) per selection step (len(weights)
    is enough), so the caller's generator decides every pick.
    nogil lets a thread pool run several ants truly in parallel.
    """
    n_items = len(weights)
    selected = np.zeros(n_items, dtype=np.bool_)
    picked = np.zeros(n_items, dtype=np.int64)  # Fixed size array

    used_weight = 0
    n_picked = 0

    while n_picked < n_items:
        # --- PASS 1: Calculate Sum of Probabilities ---
        prob_sum = 0.0
        n_feasible = 0

        for i in range(n_items):
            if not selected[i] and used_weight + weights[i] <= capacity:
                n_feasible += 1
                tau = pheromones[i]
                if tau <= 0.0:
                    tau = tau_floor
                eta = values[i] / weights[i]
                prob_sum += (tau ** alpha) * (eta ** beta)

        if n_feasible == 0:
            break

        draw = draws[n_picked]
        next_item = -1

        if prob_sum == 0.0:
            # Uniform choice among the feasible items
            target = int(draw * n_feasible)
            seen = 0
            for i in range(n_items):
                if not selected[i] and used_weight + weights[i] <= capacity:
                    if seen == target:
                        next_item = i
                        break
                    seen += 1
        else:
            # --- PASS 2: Roulette Wheel Selection ---
            pick = draw * prob_sum
            current_sum = 0.0
            for i in range(n_items):
                if not selected[i] and used_weight + weights[i] <= capacity:
                    tau = pheromones[i]
                    if tau <= 0.0:
                        tau = tau_floor
                    eta = values[i] / weights[i]
                    current_sum += (tau ** alpha) * (eta ** beta)
                    if current_sum >= pick:
                        next_item = i
                        break

        # Fallback for floating point errors: the last feasible one
        if next_item == -1:
            for i in range(n_items - 1, -1, -1):
                if not selected[i] and used_weight + weights[i] <= capacity:
                    next_item = i
                    break

        # --- UPDATE STATE ---
        selected[next_item] = True
        used_weight += weights[next_item]
        picked[n_picked] = next_item
        n_picked += 1

    return picked[:n_picked]


def build_fast_solution(items, weights, values, capacity, pheromones, alpha, beta, rng):
    """Runs the compiled construction and wraps the result into a Solution."""
    draws = rng.random(len(items))
    picked = fast_build_solution(weights, values, capacity, pheromones,
                                 float(alpha), float(beta), draws)
    chosen = tuple(items[i] for i in picked)
    return Solution(chosen, sum(item.value for item in chosen))
