# =============================================================================
#  ENGINE DEFAULTS
# =============================================================================
# Empirical values. Every one of them can be overridden per ACOEngine instance.

N_ANTS = 50
ALPHA = 1.0          # Pheromone importance
BETA = 2.0           # Heuristic importance
RHO = 0.1            # Evaporation rate

# Pheromone bounds (MMAS style clamping)
TAU_INIT = 1.0       # Uniform prior
TAU_MIN = 0.05
TAU_MAX = 100.0

# Floor applied to non-positive pheromone before exponentiation
TAU_FLOOR = 1e-4

# Deposit scaling: batch deposit = value / Q_BATCH, elitist = value / Q_ELITE
Q_BATCH = 2000.0
Q_ELITE = 1000.0

# Consecutive non-improving iterations before pheromones are reset
MAX_STAGNATION = 60

# Pause between iterations (seconds), keeps the loop observable
ITERATION_DELAY = 0.02

# =============================================================================
#  BENCHMARK DEFAULTS
# =============================================================================

BENCHMARK_ITEMS = 150
BENCHMARK_CAPACITY_FACTOR = 30   # percent of the total item weight
BENCHMARK_SEED = 12345
