import optuna
import numpy as np
from tqdm import tqdm

from benchmark import generate_hard_problem
from solver import ACOEngine

# =============================================================================
#  TUNING CONFIGURATION
# =============================================================================

# Proxy instances: (item_count, capacity_factor, seed)
TUNING_INSTANCES = {
    "small":  (50, 30, 101),
    "medium": (150, 30, 202),
    "tight":  (150, 10, 303),
}

N_TRIALS = 50
REPEATS_PER_TRIAL = 3
MAX_ITERATIONS = 60
N_ANTS = 30

# =============================================================================
#  HELPER FUNCTIONS
# =============================================================================

def load_tuning_suite(instances=TUNING_INSTANCES):
    """Generates every proxy instance once."""
    suite = []
    for key, (item_count, capacity_factor, seed) in instances.items():
        instance = generate_hard_problem(item_count, capacity_factor, seed=seed)
        suite.append({"type": key, "data": instance, "bound": fractional_bound(instance)})
    return suite


def fractional_bound(instance):
    """Upper bound on the reachable value: the greedy fractional-knapsack optimum."""
    weights, values, capacity = instance.get_data()
    order = np.argsort(-(values / weights), kind="stable")
    bound = 0.0
    left = capacity
    for i in order:
        if weights[i] <= left:
            bound += values[i]
            left -= weights[i]
        else:
            bound += values[i] * left / weights[i]
            break
    return float(bound)

# =============================================================================
#  OPTIMIZATION OBJECTIVE
# =============================================================================

def make_objective(suite, repeats=REPEATS_PER_TRIAL, max_iterations=MAX_ITERATIONS, n_ants=N_ANTS):
    def objective(trial):
        """
        Minimizes the average percentage gap to the fractional bound.
        """
        # --- 1. HYPERPARAMETER SEARCH SPACE ---
        alpha = trial.suggest_float("alpha", 0.0, 3.0)
        beta = trial.suggest_float("beta", 0.0, 5.0)
        rho = trial.suggest_float("rho", 0.01, 0.5)

        # --- 2. EVALUATION LOOP ---
        total_gap = 0.0
        for item in suite:
            instance = item["data"]
            avg_value = 0.0
            for repeat in range(repeats):
                engine = ACOEngine(instance.items, instance.capacity, n_ants=n_ants,
                                   alpha=alpha, beta=beta, rho=rho, delay=0.0, seed=repeat)
                best, _ = engine.solve(max_iterations=max_iterations, verbose=False)
                avg_value += best.value
            avg_value /= repeats

            total_gap += (item["bound"] - avg_value) / item["bound"] * 100.0

        return total_gap / len(suite)

    return objective


def tune(n_trials=N_TRIALS, suite=None, **objective_kwargs):
    if suite is None:
        suite = load_tuning_suite()

    study = optuna.create_study(direction="minimize")

    with tqdm(total=n_trials, desc="Hyperparameter Tuning", unit="trial") as pbar:
        def progress_callback(study, trial):
            pbar.update(1)
            pbar.set_postfix({"Best Gap": f"{study.best_value:.2f}%"})

        try:
            study.optimize(make_objective(suite, **objective_kwargs), n_trials=n_trials,
                           callbacks=[progress_callback])
        except KeyboardInterrupt:
            print("\n[STOP] User interrupted tuning. Saving best so far...")

    return study

# =============================================================================
#  MAIN EXECUTION
# =============================================================================

if __name__ == "__main__":
    # Suppress Optuna logging to avoid fighting with the progress bar
    optuna.logging.set_verbosity(optuna.logging.WARNING)

    print("\n" + "=" * 60)
    print(" STARTING TUNING PROTOCOL")
    print(f" Repeats: {REPEATS_PER_TRIAL} | Iterations: {MAX_ITERATIONS} | Ants: {N_ANTS}")
    print("=" * 60)

    study = tune()

    print("\n" + "#" * 60)
    print(" TUNING COMPLETE")
    print("#" * 60)
    print(f"Best Average Gap: {study.best_value:.2f}%")
    print("\n[COPY TO MAIN.PY]")
    print("PARAMS_DEFAULT = {")
    for key, value in study.best_params.items():
        print(f"    '{key}': {value:.4f},")
    print(f"    'n_ants': {N_ANTS}")
    print("}")
