"""Tests for the command-line driver and the tuning helpers."""

import json
import os

import optuna
import pytest

from ant import Solution
from benchmark import generate_hard_problem
from knapsack_data import Item, KnapsackInstance
import main
import tune_parameters


SMALL_PARAMS = {'alpha': 1.0, 'beta': 2.0, 'rho': 0.1, 'n_ants': 5}


class TestMainHelpers:
    """Test instance loading and reporting."""

    def test_load_instance_from_path(self, tmp_path):
        """Test a direct file path is accepted."""
        path = tmp_path / "demo.txt"
        path.write_text("10\n5 10\n5 10\n100 1\n")

        instance = main.load_instance(str(path))

        assert instance.capacity == 10
        assert instance.n_items == 3

    def test_load_instance_default_benchmark(self):
        """Test no dataset falls back to the generated benchmark."""
        instance = main.load_instance(None)
        assert instance.n_items == 150

    def test_load_instance_missing(self):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            main.load_instance("does-not-exist.txt")

    def test_describe_solution(self):
        """Test the fill percentage in the summary line."""
        solution = Solution((Item(0, 5, 10), Item(1, 3, 4)), 14)

        assert main.describe_solution(solution, 10) == "value=14, weight=8/10 (80.0% full), items=2"
        assert main.describe_solution(None, 10) == "no solution yet"

    def test_main_reports_missing_file(self, capsys):
        """Test the CLI prints an error and returns 1."""
        assert main.main(["--dataset", "does-not-exist.txt"]) == 1
        assert "[Error]" in capsys.readouterr().out

    def test_main_rejects_zero_weight_item(self, tmp_path, capsys):
        """Test an invalid item is reported before any engine is built."""
        path = tmp_path / "zero.txt"
        path.write_text("10\n0 5\n")

        assert main.main(["--dataset", str(path), "--mode", "trials", "--trials", "1", "--iterations", "1"]) == 1
        assert "Line 2: weight must be positive" in capsys.readouterr().out

    def test_main_reports_malformed_file(self, tmp_path, capsys):
        """Test loader errors are reported, not raised."""
        path = tmp_path / "broken.txt"
        path.write_text("ten\n1 2\n")

        assert main.main(["--dataset", str(path)]) == 1
        assert "Failed to load instance" in capsys.readouterr().out


class TestMainModes:
    """Test both driver modes on tiny inputs."""

    def test_trials_mode_writes_results(self, tmp_path):
        """Test CSV and convergence JSON are produced."""
        instance = KnapsackInstance([Item(0, 5, 10), Item(1, 5, 10), Item(2, 100, 1)], 10, name="tiny")

        df = main.run_trials_mode(instance, SMALL_PARAMS, n_trials=2, max_iters=3, results_dir=str(tmp_path))

        assert list(df['Value']) == [20, 20]
        assert os.path.exists(tmp_path / "tiny_results.csv")
        with open(tmp_path / "tiny_convergence.json") as f:
            data = json.load(f)
        assert data['Meta_Max_Iters'] == 3
        assert data['Trials'] == [[20, 20, 20], [20, 20, 20]]

    def test_live_mode(self):
        """Test the background engine finds the scenario optimum."""
        instance = KnapsackInstance([Item(0, 5, 10), Item(1, 5, 10), Item(2, 100, 1)], 10, name="tiny")

        best = main.run_live_mode(instance, SMALL_PARAMS, seconds=0.3)

        assert best.value == 20


class TestTuning:
    """Test the tuning objective."""

    def test_fractional_bound(self):
        """Test the bound takes whole items by ratio then a fraction."""
        instance = KnapsackInstance([Item(0, 10, 60), Item(1, 20, 100), Item(2, 30, 120)], 50)
        assert tune_parameters.fractional_bound(instance) == pytest.approx(240.0)

    def test_objective_returns_gap(self):
        """Test the objective evaluates a fixed trial."""
        instance = generate_hard_problem(20, 30, seed=1)
        suite = [{"type": "tiny", "data": instance, "bound": tune_parameters.fractional_bound(instance)}]
        objective = tune_parameters.make_objective(suite, repeats=1, max_iterations=3, n_ants=5)

        gap = objective(optuna.trial.FixedTrial({"alpha": 1.0, "beta": 2.0, "rho": 0.1}))

        assert 0.0 <= gap < 100.0

    def test_tune_runs_a_study(self):
        """Test a short study completes."""
        instance = generate_hard_problem(15, 30, seed=2)
        suite = [{"type": "tiny", "data": instance, "bound": tune_parameters.fractional_bound(instance)}]

        study = tune_parameters.tune(n_trials=2, suite=suite, repeats=1, max_iterations=2, n_ants=3)

        assert len(study.trials) == 2
        assert set(study.best_params) == {"alpha", "beta", "rho"}
