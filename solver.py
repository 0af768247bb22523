import logging
import time
from concurrent.futures import ThreadPoolExecutor
from threading import Event, RLock, Thread, current_thread
from typing import NamedTuple, List

import numpy as np
from tqdm import tqdm

import constants
from ant import Ant
from fast_ant import build_fast_solution

logger = logging.getLogger(__name__)


class SimulationMetrics(NamedTuple):
    """Snapshot published once per finished iteration. Holds copies only."""
    iteration: int
    avg_value: float
    best_in_iteration_value: int
    global_best_value: int
    best_item_ids: List[int]
    pheromones: np.ndarray
    best_weight: int
    capacity: int

    @property
    def fill_ratio(self):
        return self.best_weight / self.capacity if self.capacity else 0.0


class ACOEngine:
    def __init__(self, items, capacity, n_ants=constants.N_ANTS, alpha=constants.ALPHA,
                 beta=constants.BETA, rho=constants.RHO, tau_init=constants.TAU_INIT,
                 tau_min=constants.TAU_MIN, tau_max=constants.TAU_MAX, q_batch=constants.Q_BATCH,
                 q_elite=constants.Q_ELITE, max_stagnation=constants.MAX_STAGNATION,
                 delay=constants.ITERATION_DELAY, n_workers=None, use_numba=False, seed=None):
        """
        Ant Colony Optimization engine for the 0/1 knapsack problem.

        The pheromone vector and the global best are owned by this object and
        only mutated between batches, under self._lock. Ants read a copy.
        """
        self.items = list(items)
        self._validate_catalog(self.items, capacity)
        self._capacity = capacity

        self.weights = np.array([item.weight for item in self.items], dtype=np.int64)
        self.values = np.array([item.value for item in self.items], dtype=np.int64)

        # Hyperparameters
        if n_ants < 1:
            raise ValueError("n_ants must be at least 1")
        self.n_ants = n_ants
        self._check_parameters(alpha, beta, rho)
        self.alpha = alpha   # Pheromone importance
        self.beta = beta     # Heuristic importance
        self.rho = rho       # Evaporation rate

        # Pheromone limits and deposit scaling
        if not 0 < tau_min <= tau_init <= tau_max:
            raise ValueError("Expected 0 < tau_min <= tau_init <= tau_max")
        self.tau_init = tau_init
        self.tau_min = tau_min
        self.tau_max = tau_max
        self.q_batch = q_batch
        self.q_elite = q_elite
        self.max_stagnation = max_stagnation

        self.delay = delay
        self.n_workers = n_workers
        self.use_numba = use_numba
        self.seed = seed

        self._on_metrics = None
        self._on_log = None

        self._lock = RLock()
        self._stop_event = Event()
        self._stop_event.set()
        self._worker = None
        self._start_time = None

        self.pheromones_vector = np.empty(len(self.items), dtype=np.float64)
        self.reset()

    # =========================================================================
    #  VALIDATION
    # =========================================================================
    @staticmethod
    def _validate_catalog(items, capacity):
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        for position, item in enumerate(items):
            if item.id != position:
                raise ValueError(f"Item ids must be 0..N-1 in order, found id {item.id} at position {position}")
            if item.weight <= 0:
                raise ValueError(f"Item {item.id}: weight must be positive")
            if item.value < 0:
                raise ValueError(f"Item {item.id}: value must be non-negative")

    @staticmethod
    def _check_parameters(alpha, beta, rho):
        if alpha < 0 or beta < 0:
            raise ValueError("alpha and beta must be >= 0")
        if not 0 <= rho < 1:
            raise ValueError("rho must be in [0, 1)")

    # =========================================================================
    #  CONFIGURATION & QUERIES
    # =========================================================================
    def update_parameters(self, alpha, beta, rho):
        """Takes effect on the next iteration, even while running."""
        self._check_parameters(alpha, beta, rho)
        with self._lock:
            self.alpha = alpha
            self.beta = beta
            self.rho = rho

    def set_callbacks(self, on_metrics=None, on_log=None):
        """Both callbacks run on the engine thread; dispatching is up to the caller."""
        self._on_metrics = on_metrics
        self._on_log = on_log

    @property
    def capacity(self):
        return self._capacity

    @property
    def global_best(self):
        return self.global_best_solution

    @property
    def pheromones(self):
        with self._lock:
            return self.pheromones_vector.copy()

    @property
    def is_running(self):
        return not self._stop_event.is_set()

    def elapsed_time(self):
        """Seconds since the last start(), 0.0 if never started."""
        if self._start_time is None:
            return 0.0
        return time.monotonic() - self._start_time

    # =========================================================================
    #  CONTROL
    # =========================================================================
    def reset(self):
        """Stops the loop, then clears pheromones, global best and counters."""
        self.stop()
        self._join_worker()
        with self._lock:
            self.global_best_solution = None
            self.stagnation_counter = 0
            self.iteration = 0
            self.pheromones_vector.fill(self.tau_init)
            self._seed_sequence = np.random.SeedSequence(self.seed)

    def start(self):
        """Runs iterations on a background thread until stop(). No-op when running."""
        if self.is_running:
            return
        # A stopping worker may still need the lock to discard its batch
        self._join_worker()

        with self._lock:
            if self.is_running:
                return
            stop_event = Event()
            self._stop_event = stop_event
            self._start_time = time.monotonic()

            self._worker = Thread(target=self._run_loop, args=(stop_event,),
                                  name="aco-engine", daemon=True)
            self._worker.start()

    def stop(self):
        """Cooperative: the current batch finishes but is not published."""
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        self._log("SYSTEM: Simulation stopped.")

    def _join_worker(self):
        worker = self._worker
        if worker is not None and worker is not current_thread():
            worker.join()
        if worker is not None and not worker.is_alive():
            self._worker = None

    def _run_loop(self, stop_event):
        self._log("SYSTEM: Starting the ACO engine. Parallel ant workers active.")
        try:
            with ThreadPoolExecutor(max_workers=self.n_workers) as pool:
                while not stop_event.is_set():
                    self._iterate(pool, stop_event)
                    # Sleep unless stop() arrives first
                    stop_event.wait(self.delay)
        finally:
            # Idle again even if an iteration raised
            stop_event.set()

    # =========================================================================
    #  ITERATION
    # =========================================================================
    def run_iteration(self):
        """Runs one iteration synchronously on the calling thread."""
        if self.is_running:
            raise RuntimeError("The engine is running in the background; stop() it before run_iteration()")
        return self._iterate(None, None)

    def solve(self, max_iterations=100, verbose=True):
        """
        Synchronous run of a fixed number of iterations.
        Returns the global best and the per-iteration best values.
        """
        if self.is_running:
            raise RuntimeError("The engine is running in the background; stop() it before solve()")
        history = []

        if verbose:
            iterator = tqdm(range(max_iterations), desc="ACO Progress", unit="iter")
        else:
            iterator = range(max_iterations)

        with ThreadPoolExecutor(max_workers=self.n_workers) as pool:
            for _ in iterator:
                metrics = self._iterate(pool, None)
                history.append(metrics.global_best_value)
                if verbose:
                    iterator.set_postfix({"Best Value": metrics.global_best_value})

        return self.global_best_solution, history

    def _iterate(self, pool, stop_event):
        with self._lock:
            # All ants of the batch read the same snapshot
            pheromones = self.pheromones_vector.copy()
            alpha, beta, rho = self.alpha, self.beta, self.rho
            ant_seeds = self._seed_sequence.spawn(self.n_ants)

        # 1. Construction Phase
        if pool is None:
            solutions = [self._build_solution(pheromones, alpha, beta, s) for s in ant_seeds]
        else:
            futures = [pool.submit(self._build_solution, pheromones, alpha, beta, s) for s in ant_seeds]
            solutions = [future.result() for future in futures]

        events = []
        with self._lock:
            # Nothing from a stopped run reaches the shared state
            if stop_event is not None and stop_event.is_set():
                return None

            self.iteration += 1
            iteration = self.iteration

            # 2. Iteration best (first maximum in ant order)
            best_ant_iter = max(solutions, key=lambda s: s.value)

            # 3. Update Global Best
            if self.global_best_solution is None or best_ant_iter.value > self.global_best_solution.value:
                self.global_best_solution = best_ant_iter
                self.stagnation_counter = 0
                events.append(f"SUCCESS: New record in iteration {iteration}: {best_ant_iter.value} points")
            else:
                self.stagnation_counter += 1

            # 4. Stagnation Control or regular Pheromone Update
            if self.stagnation_counter >= self.max_stagnation:
                events.append(f"ALARM: Stagnation detected. Resetting pheromones to {self.tau_init} "
                              f"to force new exploration!")
                self.pheromones_vector.fill(self.tau_init)
                self.stagnation_counter = 0
            else:
                self._update_pheromones(solutions, rho)

            snapshot = self.pheromones_vector.copy()
            global_best_value = self.global_best_solution.value

        for message in events:
            self._log(message)

        snapshot.flags.writeable = False
        metrics = SimulationMetrics(
            iteration=iteration,
            avg_value=float(np.mean([s.value for s in solutions])),
            best_in_iteration_value=best_ant_iter.value,
            global_best_value=global_best_value,
            best_item_ids=best_ant_iter.item_ids,
            pheromones=snapshot,
            best_weight=best_ant_iter.weight,
            capacity=self._capacity,
        )
        self._notify(self._on_metrics, metrics)
        return metrics

    def _build_solution(self, pheromones, alpha, beta, seed_sequence):
        rng = np.random.default_rng(seed_sequence)
        if self.use_numba:
            return build_fast_solution(self.items, self.weights, self.values, self._capacity,
                                       pheromones, alpha, beta, rng)
        ant = Ant(self.items, pheromones, alpha, beta, rng=rng)
        return ant.build_solution(self._capacity)

    def _update_pheromones(self, solutions, rho):
        """
        Applies Evaporation, Batch and Elitist Deposits, then Clamps values.
        """
        # A. Evaporation
        self.pheromones_vector *= (1.0 - rho)
        np.clip(self.pheromones_vector, self.tau_min, self.tau_max, out=self.pheromones_vector)

        # B. All Ants Deposit (Q / value scaling)
        for solution in solutions:
            if solution.items:
                ids = [item.id for item in solution.items]
                self.pheromones_vector[ids] += solution.value / self.q_batch

        # C. Elitist Deposit: the best-so-far solution is rewarded every iteration
        best = self.global_best_solution
        if best is not None and best.items:
            ids = [item.id for item in best.items]
            self.pheromones_vector[ids] += best.value / self.q_elite

        np.clip(self.pheromones_vector, self.tau_min, self.tau_max, out=self.pheromones_vector)

    # =========================================================================
    #  OBSERVERS
    # =========================================================================
    def _log(self, message):
        logger.info(message)
        self._notify(self._on_log, message)

    def _notify(self, callback, payload):
        if callback is None:
            return
        try:
            callback(payload)
        except Exception:
            logger.exception("Observer callback failed; the optimization loop keeps running")
