"""
Tests for the IPOPT trajectory solver adapter.

These run real solves on the default N=10 problem. The time budget is raised
in most tests so a slow machine does not turn them into time-limit failures.
"""

import numpy as np
import pytest

from models import PathModel, VehicleParams
from mpc import (
    MPCConfig,
    NumericDegeneracy,
    SolveFailure,
    TrajectorySolver,
    VehicleState,
)

SEED_STATE = VehicleState(0.0, 0.0, 0.0, 10.0, 0.5, 0.0)
MILD_CURVE = PathModel.from_coefficients([0.5, 0.0, 0.02, 0.0])
STRAIGHT = PathModel.from_coefficients([0.0, 0.0, 0.0, 0.0])
TEST_BUDGET_S = 10.0


@pytest.fixture(scope="module")
def vehicle():
    return VehicleParams()


@pytest.fixture(scope="module")
def solver(vehicle):
    return TrajectorySolver(MPCConfig(time_budget_s=TEST_BUDGET_S), vehicle)


@pytest.fixture(scope="module")
def seed_solution(solver):
    return solver.solve(SEED_STATE, MILD_CURVE)


def test_seed_solve_succeeds(seed_solution):
    assert seed_solution.status == "Solve_Succeeded"
    assert seed_solution.iterations > 0
    assert np.isfinite(seed_solution.cost)


@pytest.mark.parametrize("state, coeffs", [
    ((0.0, 0.0, 0.0, 10.0, 0.5, 0.0), [0.5, 0.0, 0.02, 0.0]),
    ((0.0, 0.0, 0.0, 30.0, -2.0, 0.2), [-2.0, 0.1, -0.01, 0.0005]),
    ((0.0, 0.0, 0.0, 40.0, 1.5, 0.1), [1.5, -0.1, 0.005, -0.0001]),
    ((0.0, 0.0, 0.0, 5.0, 0.0, 0.0), [0.0, 0.0, 0.1, 0.0]),
])
def test_commands_within_actuator_limits(solver, vehicle, state, coeffs):
    solution = solver.solve(VehicleState.from_sequence(state), PathModel.from_coefficients(coeffs))
    traj = solution.trajectory

    assert abs(solution.steering) <= vehicle.max_delta_rad
    assert -1.0 <= solution.throttle <= 1.0
    assert np.all(np.abs(traj.delta) <= vehicle.max_delta_rad)
    assert np.all(np.abs(traj.a) <= vehicle.max_throttle)
    assert -1.0 <= solution.normalized_steering() <= 1.0


def test_straight_path_at_reference_speed_needs_no_correction(solver):
    state = VehicleState(0.0, 0.0, 0.0, solver.config.ref_v, 0.0, 0.0)

    solution = solver.solve(state, STRAIGHT)

    assert solution.steering == pytest.approx(0.0, abs=1e-3)
    assert solution.throttle == pytest.approx(0.0, abs=1e-3)


def test_steers_toward_path(seed_solution):
    """Path lies to the left (cte > 0): steer left, i.e. positive delta."""
    assert seed_solution.steering > 0.0


def test_identical_inputs_give_identical_outputs(solver, seed_solution):
    again = solver.solve(SEED_STATE, MILD_CURVE)

    assert again.steering == pytest.approx(seed_solution.steering, abs=1e-9)
    assert again.throttle == pytest.approx(seed_solution.throttle, abs=1e-9)
    assert again.predicted_x == pytest.approx(seed_solution.predicted_x, abs=1e-9)
    assert again.predicted_y == pytest.approx(seed_solution.predicted_y, abs=1e-9)


def test_no_state_carried_between_solves(solver, seed_solution):
    solver.solve(VehicleState(0.0, 0.0, 0.0, 40.0, -1.0, 0.1), PathModel.from_coefficients([-1.0, 0.1, 0.0]))

    after = solver.solve(SEED_STATE, MILD_CURVE)

    assert after.steering == pytest.approx(seed_solution.steering, abs=1e-9)
    assert after.throttle == pytest.approx(seed_solution.throttle, abs=1e-9)


def test_predicted_waypoints(solver, seed_solution):
    N = solver.config.horizon

    assert len(seed_solution.waypoints) == N - 1
    assert seed_solution.predicted_x == pytest.approx(seed_solution.trajectory.x[1:])
    assert seed_solution.predicted_y == pytest.approx(seed_solution.trajectory.y[1:])
    # Moving forward along +x
    assert np.all(np.diff(np.concatenate([[0.0], seed_solution.predicted_x])) > 0)


def test_flat_output_vector(solver, seed_solution):
    vec = seed_solution.as_vector()

    assert len(vec) == 2 + 2 * (solver.config.horizon - 1)
    assert vec[0] == seed_solution.steering
    assert vec[1] == seed_solution.throttle
    assert vec[2:4] == [seed_solution.predicted_x[0], seed_solution.predicted_y[0]]


def test_solution_satisfies_dynamics(solver, seed_solution):
    formulator = solver.formulator
    w = formulator.layout.pack(seed_solution.trajectory)

    residuals = formulator.constraint_residuals(w, SEED_STATE, MILD_CURVE)

    assert residuals == pytest.approx(np.zeros(residuals.size), abs=1e-6)


def test_first_state_is_pinned(seed_solution):
    traj = seed_solution.trajectory

    assert traj.state_at(0) == pytest.approx(tuple(SEED_STATE.as_array()), abs=1e-8)


def test_tiny_time_budget_signals_failure(vehicle):
    solver = TrajectorySolver(MPCConfig(time_budget_s=1e-6), vehicle)

    with pytest.raises(SolveFailure) as excinfo:
        solver.solve(SEED_STATE, MILD_CURVE)

    assert excinfo.value.time_limit_exceeded
    assert excinfo.value.status != "Solve_Succeeded"
    assert excinfo.value.solve_time is not None


def test_actuator_delay_changes_steering(vehicle, seed_solution):
    no_delay = TrajectorySolver(
        MPCConfig(time_budget_s=TEST_BUDGET_S, actuator_delay_steps=0), vehicle
    ).solve(SEED_STATE, MILD_CURVE)

    assert abs(no_delay.steering - seed_solution.steering) > 1e-6


def test_lower_degree_path_is_padded(solver):
    solution = solver.solve(SEED_STATE, PathModel.from_coefficients([0.5, 0.0, 0.02]))
    reference = solver.solve(SEED_STATE, MILD_CURVE)

    assert solution.steering == pytest.approx(reference.steering, abs=1e-9)


def test_non_finite_state_aborts_before_solving(solver):
    with pytest.raises(NumericDegeneracy):
        solver.solve(VehicleState(0.0, 0.0, np.inf, 10.0, 0.0, 0.0), MILD_CURVE)


def test_overflowing_cost_is_numeric_degeneracy(solver):
    """A finite state whose speed error overflows the cost is not a plain solve failure."""
    with pytest.raises(NumericDegeneracy):
        solver.solve(VehicleState(0.0, 0.0, 0.0, 1e200, 0.0, 0.0), STRAIGHT)


def test_solver_options_carry_time_budget(vehicle):
    solver = TrajectorySolver(MPCConfig(time_budget_s=0.5), vehicle)
    opts = solver.solver_options()

    assert opts["ipopt.max_cpu_time"] == pytest.approx(0.5)
    assert opts["ipopt.max_wall_time"] == pytest.approx(0.5)
    assert opts["ipopt.print_level"] == 0
    assert opts["ipopt.bound_relax_factor"] == 0.0
