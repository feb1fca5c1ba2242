"""
Trajectory solver: hands the formulated NLP to IPOPT (through CasADi) and
extracts the first actuation command.

The CasADi solver object is created once per configuration. Each call to
solve() is an independent optimization from a fresh zero-initialized guess;
nothing is carried between cycles. CasADi supplies exact sparse Jacobians and
Hessians of the SX expressions, so no derivative options are needed.
"""

import logging
import time
from typing import Dict, Optional

import numpy as np
import casadi as ca

from models import PathModel, VehicleParams
from .config import MPCConfig
from .errors import NumericDegeneracy, SolveFailure
from .formulation import ProblemFormulator
from .types import MPCSolution, VehicleState

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = {"Solve_Succeeded"}
ACCEPTABLE_STATUSES = {"Solved_To_Acceptable_Level"}
NUMERIC_FAILURE_STATUSES = {"Invalid_Number_Detected"}


class TrajectorySolver:
    """
    IPOPT adapter for the MPC problem.

    On success returns an MPCSolution with the first steering/throttle pair and
    the predicted (x, y) waypoints for steps 1..N-1. A non-success status,
    including an exceeded time budget, raises SolveFailure; the caller owns
    the fallback (e.g. hold the previous command or brake) and any retry.
    """

    def __init__(
        self,
        config: MPCConfig,
        vehicle: VehicleParams,
        formulator: Optional[ProblemFormulator] = None,
    ):
        self.config = config
        self.vehicle = vehicle
        self.formulator = formulator or ProblemFormulator(config, vehicle)
        self.layout = self.formulator.layout

        self._solver = ca.nlpsol("mpc", "ipopt", self.formulator.symbolic(), self.solver_options())

    def solver_options(self) -> Dict:
        """IPOPT options, including the CPU and wall-clock time budget."""
        verbose = self.config.verbose
        return {
            "ipopt.print_level": 5 if verbose else 0,
            "ipopt.sb": "yes",
            "print_time": verbose,
            "ipopt.max_iter": int(self.config.max_iter),
            "ipopt.tol": float(self.config.tol),
            "ipopt.max_cpu_time": float(self.config.time_budget_s),
            "ipopt.max_wall_time": float(self.config.time_budget_s),
            # Actuator limits are hard; IPOPT relaxes bounds by 1e-8 by default
            "ipopt.bound_relax_factor": 0.0,
            "error_on_fail": False,
        }

    def _accepted(self, status: str) -> bool:
        accepted = set(SUCCESS_STATUSES)
        if self.config.accept_acceptable:
            accepted |= ACCEPTABLE_STATUSES
        return status in accepted

    def solve(self, state: VehicleState, path: PathModel) -> MPCSolution:
        """
        Solve one MPC cycle.

        Args:
            state: Current vehicle state
            path: Reference path polynomial in the state's frame

        Returns:
            MPCSolution for the first timestep

        Raises:
            ConfigurationError: path polynomial does not fit the configuration
            NumericDegeneracy: non-finite inputs, cost or constraint values
            SolveFailure: solver did not converge within the budget
        """
        problem = self.formulator.formulate(state, path)
        # Overflowing inputs show up as non-finite f/g at the initial guess
        self.formulator.evaluate(problem.x0, path)

        t_start = time.perf_counter()
        sol = self._solver(
            x0=problem.x0,
            lbx=problem.lbx,
            ubx=problem.ubx,
            lbg=problem.lbg,
            ubg=problem.ubg,
            p=problem.p,
        )
        solve_time = time.perf_counter() - t_start

        stats = self._solver.stats()
        status = str(stats.get("return_status", "unknown"))
        iterations = int(stats.get("iter_count", -1))

        if status in NUMERIC_FAILURE_STATUSES:
            raise NumericDegeneracy(f"Solver hit a non-finite value ({status})")

        if not self._accepted(status):
            logger.warning(
                "MPC solve failed: status=%s, iterations=%d, time=%.3fs",
                status, iterations, solve_time,
            )
            raise SolveFailure(
                f"MPC solve failed with status {status}",
                status=status,
                iterations=iterations,
                solve_time=solve_time,
            )

        w_opt = np.array(sol["x"]).ravel()
        cost = float(sol["f"])
        if not np.isfinite(cost) or not np.all(np.isfinite(w_opt)):
            raise NumericDegeneracy("Solver returned non-finite cost or decision values")

        traj = self.layout.unpack(np.clip(w_opt, problem.lbx, problem.ubx))
        logger.debug(
            "MPC solve: status=%s, iterations=%d, cost=%.4f, time=%.3fs",
            status, iterations, cost, solve_time,
        )

        return MPCSolution(
            steering=float(traj.delta[0]),
            throttle=float(traj.a[0]),
            predicted_x=np.array(traj.x[1:], dtype=float),
            predicted_y=np.array(traj.y[1:], dtype=float),
            cost=cost,
            status=status,
            iterations=iterations,
            solve_time=solve_time,
            trajectory=traj,
            max_steering=self.vehicle.max_delta_rad,
        )
