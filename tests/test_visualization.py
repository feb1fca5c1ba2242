"""
Tests for the MPC plotting utilities.
"""

from pathlib import Path

import pytest

from models import PathModel, VehicleParams
from mpc import MPCConfig, TrajectorySolver, VehicleState
from utils.visualization import MPCVisualizer


@pytest.fixture(scope="module")
def solved():
    path = PathModel.from_coefficients([0.5, 0.0, 0.02, 0.0])
    solver = TrajectorySolver(MPCConfig(time_budget_s=10.0), VehicleParams())
    return solver.solve(VehicleState(0.0, 0.0, 0.0, 10.0, 0.5, 0.0), path), path


def test_full_report_writes_files(tmp_path, solved):
    solution, path = solved
    visualizer = MPCVisualizer(output_dir=str(tmp_path / "plots"))

    plots = visualizer.generate_full_report(solution, path, prefix="seed", dt=0.1)

    assert set(plots) == {"prediction", "controls"}
    for plot_file in plots.values():
        assert Path(plot_file).exists()
        assert Path(plot_file).stat().st_size > 0


def test_closed_loop_plot(tmp_path):
    path = PathModel.from_coefficients([1.0, 0.0, 0.0])
    history = {
        'x': [0.0, 1.0, 2.0],
        'y': [0.0, 0.4, 0.7],
        'cte': [1.0, 0.6, 0.3],
        'steering': [0.1, 0.05, 0.0],
        'throttle': [1.0, 0.5, 0.2],
    }

    out = MPCVisualizer(output_dir=str(tmp_path)).plot_closed_loop(history, path)

    assert Path(out).name == "closed_loop.png"
    assert Path(out).exists()
