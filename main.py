import os
import time
import json
import argparse
import logging
from queue import Queue, Empty

import pandas as pd
from tqdm import tqdm

from benchmark import generate_hard_problem
from knapsack_data import KnapsackInstance, InstanceFormatError
from solver import ACOEngine

# =============================================================================
#  CONFIGURATION
# =============================================================================

PARAMS_DEFAULT = {
    'alpha': 1.0,
    'beta': 2.0,
    'rho': 0.10,
    'n_ants': 50
}

MAX_ITERS = 300
RESULTS_DIR = "results"

# =============================================================================
#  INSTANCE LOADING
# =============================================================================

def load_instance(dataset=None):
    """Reads ./datasets/<dataset> (or a direct path), else the generated benchmark."""
    if dataset is None:
        return generate_hard_problem()

    file_path = dataset if os.path.exists(dataset) else os.path.join("./datasets", dataset)
    if not os.path.exists(file_path):
        raise FileNotFoundError(file_path)
    return KnapsackInstance.from_file(file_path)


def build_engine(instance, params, **kwargs):
    return ACOEngine(
        instance.items, instance.capacity, n_ants=params['n_ants'],
        alpha=params['alpha'], beta=params['beta'], rho=params['rho'], **kwargs
    )


def describe_solution(solution, capacity):
    if solution is None:
        return "no solution yet"
    fill = 100.0 * solution.weight / capacity
    return (f"value={solution.value}, weight={solution.weight}/{capacity} "
            f"({fill:.1f}% full), items={len(solution.items)}")

# =============================================================================
#  MODE 1: LIVE (background engine, main thread consumes the streams)
# =============================================================================

def run_live_mode(instance, params, seconds, use_numba=False):
    print("\n" + "=" * 60)
    print(f" [LIVE MODE] {instance.name}: {instance.n_items} items, capacity {instance.capacity}")
    print("=" * 60)

    metrics_queue = Queue()
    log_queue = Queue()

    engine = build_engine(instance, params, use_numba=use_numba)
    engine.set_callbacks(metrics_queue.put, log_queue.put)
    engine.start()

    last_metrics = None
    deadline = time.time() + seconds
    with tqdm(desc="Iterations", unit="iter") as pbar:
        while time.time() < deadline:
            try:
                last_metrics = metrics_queue.get(timeout=0.1)
                pbar.update(1)
                pbar.set_postfix({"Best": last_metrics.global_best_value,
                                  "Avg": f"{last_metrics.avg_value:.1f}"})
            except Empty:
                pass
            while not log_queue.empty():
                tqdm.write(log_queue.get())

    engine.stop()

    print("\n" + "-" * 50)
    print(f"Best solution:  {describe_solution(engine.global_best, engine.capacity)}")
    if last_metrics is not None:
        print(f"Iterations:     {last_metrics.iteration}")
    print(f"Elapsed (s):    {engine.elapsed_time():.2f}")
    print("-" * 50)
    return engine.global_best

# =============================================================================
#  MODE 2: TRIALS (repeated synchronous runs, results saved to disk)
# =============================================================================

def run_trial(instance, params, max_iters, seed=None, use_numba=False):
    engine = build_engine(instance, params, seed=seed, use_numba=use_numba, delay=0.0)

    t0 = time.time()
    best, history = engine.solve(max_iterations=max_iters, verbose=False)
    elapsed = time.time() - t0

    return best, elapsed, history


def run_trials_mode(instance, params, n_trials, max_iters, results_dir=RESULTS_DIR, use_numba=False):
    print("\n" + "=" * 60)
    print(f" [TRIALS MODE] Running {n_trials} Trials for: {instance.name}")
    print("=" * 60)

    detailed_data = []
    convergence_data = {'Meta_Max_Iters': max_iters, 'Trials': []}

    for i in tqdm(range(n_trials), desc="ACO Trials", ncols=80):
        best, elapsed, history = run_trial(instance, params, max_iters, seed=i, use_numba=use_numba)
        detailed_data.append({
            'Instance': instance.name,
            'Items': instance.n_items,
            'Capacity': instance.capacity,
            'Seed': i,
            'Value': best.value,
            'Weight': best.weight,
            'Time': elapsed,
            'Iterations': max_iters,
        })
        convergence_data['Trials'].append(history)

    df = pd.DataFrame(detailed_data)
    os.makedirs(results_dir, exist_ok=True)

    csv_path = os.path.join(results_dir, f"{instance.name}_results.csv")
    json_path = os.path.join(results_dir, f"{instance.name}_convergence.json")
    df.to_csv(csv_path, index=False)
    with open(json_path, "w") as f:
        json.dump(convergence_data, f)
    print(f"\n[Data Saved] to '{results_dir}' folder")

    print("\n[Summary]")
    print(df[['Value', 'Weight', 'Time']].describe().loc[['mean', 'std', 'min', 'max']].to_string())
    return df

# =============================================================================
#  MAIN ENTRY POINT
# =============================================================================

def main(argv=None):
    parser = argparse.ArgumentParser(description="Ant Colony Optimization for the 0/1 Knapsack Problem")

    parser.add_argument("--dataset", type=str, default=None,
                        help="Knapsack file inside ./datasets/ (default: generated hard benchmark)")
    parser.add_argument("--mode", type=str, choices=['live', 'trials'], default='live',
                        help="'live' = background engine for --seconds. 'trials' = N seeded runs saved to CSV.")
    parser.add_argument("--seconds", type=float, default=10.0,
                        help="Duration of live mode (default: 10)")
    parser.add_argument("--trials", type=int, default=10,
                        help="Number of trials for trials mode (default: 10)")
    parser.add_argument("--iterations", type=int, default=MAX_ITERS,
                        help=f"Iterations per trial (default: {MAX_ITERS})")
    parser.add_argument("--alpha", type=float, default=PARAMS_DEFAULT['alpha'])
    parser.add_argument("--beta", type=float, default=PARAMS_DEFAULT['beta'])
    parser.add_argument("--rho", type=float, default=PARAMS_DEFAULT['rho'])
    parser.add_argument("--ants", type=int, default=PARAMS_DEFAULT['n_ants'])
    parser.add_argument("--numba", action="store_true", help="Use the compiled ant")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        instance = load_instance(args.dataset)
    except FileNotFoundError as e:
        print(f"[Error] File not found: {e}")
        return 1
    except InstanceFormatError as e:
        print(f"[Error] Failed to load instance: {e}")
        return 1

    params = {'alpha': args.alpha, 'beta': args.beta, 'rho': args.rho, 'n_ants': args.ants}

    if args.mode == 'live':
        run_live_mode(instance, params, args.seconds, use_numba=args.numba)
    else:
        run_trials_mode(instance, params, args.trials, args.iterations, use_numba=args.numba)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
