#!/usr/bin/env python3
"""
Kinematic MPC path-tracking demo.

Solves one MPC cycle for a given state and path polynomial, or runs a
closed receding-horizon loop on a fixed path polynomial with --cycles.

Usage:
    python run_mpc_demo.py
    python run_mpc_demo.py --state 0 0 0 10 0.5 0 --coeffs 0.5 0 0.02 0
    python run_mpc_demo.py --cycles 50 --plot
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from models import KinematicBicycleModel, PathModel, VehicleParams
from mpc import MPCConfig, MPCController, SolveFailure, VehicleState
from utils.visualization import MPCVisualizer


def parse_args():
    parser = argparse.ArgumentParser(description="Run the kinematic MPC path-tracking demo.")
    parser.add_argument("--config", type=str, default=str(project_root / "config" / "mpc_params.yaml"),
                        help="YAML config with 'vehicle' and 'mpc' sections.")
    parser.add_argument("--state", type=float, nargs=6, default=[0.0, 0.0, 0.0, 10.0, 0.5, 0.0],
                        metavar=("X", "Y", "PSI", "V", "CTE", "EPSI"), help="Initial vehicle state.")
    parser.add_argument("--coeffs", type=float, nargs="+", default=[0.5, 0.0, 0.02, 0.0],
                        help="Path polynomial coefficients, lowest order first.")
    parser.add_argument("--cycles", type=int, default=0, help="Closed-loop cycles to run (0 = single solve).")
    parser.add_argument("--time-budget", type=float, default=None, help="Override solver time budget [s].")
    parser.add_argument("--plot", action="store_true", help="Save plots to results/mpc.")
    parser.add_argument("--verbose", action="store_true", help="Debug logging and IPOPT output.")
    return parser.parse_args()


def path_errors(path: PathModel, x: float, y: float, psi: float):
    """Cross-track and heading error of a global-frame pose."""
    cte = path.evaluate(x) - y
    epsi = psi - float(np.arctan(path.derivative(x)))
    return float(cte), epsi


def run_closed_loop(controller: MPCController, path: PathModel, state: VehicleState, cycles: int):
    """
    Receding-horizon loop on a fixed path.

    The vehicle is advanced with the kinematic model. On SolveFailure the
    previous command is held for the cycle.
    """
    model = KinematicBicycleModel(controller.vehicle)
    dt = controller.config.dt
    history = {'x': [], 'y': [], 'cte': [], 'steering': [], 'throttle': []}
    steering, throttle = 0.0, 0.0
    failures = 0

    for cycle in range(cycles):
        try:
            solution = controller.run_step(state, path)
            steering, throttle = solution.steering, solution.throttle
            note = f"{solution.iterations} iters, {1000 * solution.solve_time:.1f} ms"
        except SolveFailure as err:
            failures += 1
            note = f"FAILED ({err.status}), holding previous command"

        print(f"  [{cycle:3d}] x={state.x:7.2f} y={state.y:6.2f} v={state.v:6.2f} "
              f"cte={state.cte:+.3f} -> steer={steering:+.4f} thr={throttle:+.3f}  {note}")

        for key, value in (('x', state.x), ('y', state.y), ('cte', state.cte),
                           ('steering', steering), ('throttle', throttle)):
            history[key].append(value)

        x, y, psi, v, _, _ = (float(s) for s in model.step(
            state.as_array(), steering, throttle, path, dt))
        cte, epsi = path_errors(path, x, y, psi)
        state = VehicleState(x, y, psi, v, cte, epsi)

    return history, failures


def build_controller(config_file, time_budget=None, verbose=False) -> MPCController:
    """Load config and vehicle, apply CLI overrides, then build the solver once."""
    overrides = {}
    if time_budget is not None:
        overrides["time_budget_s"] = time_budget
    if verbose:
        overrides["verbose"] = True
    config = MPCConfig.load_from_yaml(config_file).with_overrides(**overrides)
    return MPCController(config, VehicleParams.load_from_yaml(config_file))


def run_demo(args):
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    print("=" * 70)
    print("KINEMATIC MPC PATH TRACKING DEMO")
    print("=" * 70)

    controller = build_controller(args.config, args.time_budget, args.verbose)

    cfg = controller.config
    print(f"\n1. Config: {args.config}")
    print(f"   N = {cfg.horizon}, dt = {cfg.dt} s, ref_v = {cfg.ref_v}")
    print(f"   actuator delay = {cfg.actuator_delay_steps} step(s), time budget = {cfg.time_budget_s} s")
    print(f"   vehicle: {controller.vehicle.name}, Lf = {controller.vehicle.lf_m} m, "
          f"max steering = {controller.vehicle.max_delta_deg} deg")

    path = PathModel.from_coefficients(args.coeffs)
    state = VehicleState.from_sequence(args.state)
    print(f"\n2. Path coefficients: {list(path.coefficients)}")
    print(f"   Initial state: {state}")

    visualizer = MPCVisualizer(output_dir=str(project_root / "results" / "mpc")) if args.plot else None

    if args.cycles > 0:
        print(f"\n3. Closed loop ({args.cycles} cycles)")
        history, failures = run_closed_loop(controller, path, state, args.cycles)
        print(f"\n   Solve failures: {failures}/{args.cycles}")
        print(f"   Final |cte| = {abs(history['cte'][-1]):.4f} m")
        if visualizer is not None:
            print(f"   Saved: {visualizer.plot_closed_loop(history, path)}")
        return

    print("\n3. Single solve")
    try:
        solution = controller.run_step(state, path)
    except SolveFailure as err:
        print(f"   Solve failed: status={err.status}, iterations={err.iterations}")
        return

    print(f"   Status: {solution.status} ({solution.iterations} iterations, "
          f"{1000 * solution.solve_time:.1f} ms)")
    print(f"   Cost: {solution.cost:.4f}")
    print(f"   Steering: {solution.steering:+.5f} rad ({solution.normalized_steering():+.4f} normalized)")
    print(f"   Throttle: {solution.throttle:+.5f}")
    print("   Predicted waypoints:")
    for i, (x, y) in enumerate(solution.waypoints, start=1):
        print(f"     t+{i}: ({x:8.3f}, {y:7.3f})")

    if visualizer is not None:
        for _, plot_path in visualizer.generate_full_report(solution, path, dt=cfg.dt).items():
            print(f"   Saved: {plot_path}")


if __name__ == "__main__":
    run_demo(parse_args())
