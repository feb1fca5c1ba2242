"""
MPC problem formulation.

Builds, for the kinematic bicycle model, the NLP

    min_w  J(w)
    s.t.   lbg <= g(w) <= ubg
           lbx <=  w   <= ubx

where w is the flat decision vector (see layout.py), J the weighted tracking
and actuator cost and g the dynamics residuals. The first entry of every
state block of g is the state variable itself; pinning its bounds to the
measured state fixes the initial condition without a separate code path.

Cost and constraints are written once against a Trajectory record and are
evaluated either symbolically (CasADi SX, for the solver) or numerically.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np
import casadi as ca

from models import KinematicBicycleModel, PathModel, VehicleParams
from .config import MPCConfig
from .errors import ConfigurationError, NumericDegeneracy
from .layout import DecisionLayout, Trajectory, STATE_FIELDS
from .types import VehicleState

logger = logging.getLogger(__name__)


@dataclass
class Problem:
    """Numeric data of one cycle's NLP, ready for the solver."""
    n_vars: int
    x0: np.ndarray            # Initial guess (zeros, current state at t=0)
    lbx: np.ndarray           # Variable bounds
    ubx: np.ndarray
    lbg: np.ndarray           # Constraint bounds
    ubg: np.ndarray
    p: np.ndarray             # Path coefficients (NLP parameters)
    nlp: Dict                 # Symbolic {'x', 'p', 'f', 'g'}


class ProblemFormulator:
    """
    Translates {VehicleState, PathModel} into an NLP for a fixed configuration.

    Holds no per-cycle state; the symbolic problem is built once and the path
    coefficients enter as parameters.
    """

    def __init__(self, config: MPCConfig, vehicle: VehicleParams):
        self.config = config
        self.vehicle = vehicle
        self.model = KinematicBicycleModel(vehicle)
        self.layout = DecisionLayout(config.horizon)
        self.n_params = config.path_degree + 1

        self._nlp = None
        self._fg = None

    # -------------------------------------------------------------------------
    # Cost and constraints (generic over numeric / symbolic trajectories)
    # -------------------------------------------------------------------------

    def actuator_index(self, t: int) -> int:
        """Actuator applied on the transition out of step t."""
        return max(t - self.config.actuator_delay_steps, 0)

    def cost(self, traj: Trajectory):
        """
        Weighted sum of tracking, actuator-magnitude and smoothness terms.
        """
        N = self.config.horizon
        w = self.config.weights
        ref_v = self.config.ref_v

        cost = 0.0

        # Reference state tracking
        for t in range(N):
            cost += w.cte * traj.cte[t] ** 2
            cost += w.epsi * traj.epsi[t] ** 2
            cost += w.v * (traj.v[t] - ref_v) ** 2

        # Actuator use; steering is penalized harder at speed
        for t in range(N - 1):
            cost += w.delta * traj.delta[t] ** 2
            cost += w.a * traj.a[t] ** 2
            cost += w.delta_a * (traj.delta[t] * traj.v[t]) ** 2

        # Gap between sequential actuations
        for t in range(N - 2):
            cost += w.delta_smooth * (traj.delta[t + 1] - traj.delta[t]) ** 2
            cost += w.a_smooth * (traj.a[t + 1] - traj.a[t]) ** 2

        return cost

    def constraints(self, traj: Trajectory, path: PathModel) -> List:
        """
        Constraint vector in state-block order (6*N entries).

        Entry t=0 of each block is the state itself, entries t>0 are
        actual_t - predicted_t from the kinematic model.
        """
        N = self.config.horizon
        dt = self.config.dt

        blocks = {name: [getattr(traj, name)[0]] for name in STATE_FIELDS}
        for t in range(N - 1):
            k = self.actuator_index(t)
            predicted = self.model.step(
                traj.state_at(t), traj.delta[k], traj.a[k], path, dt
            )
            for name, pred in zip(STATE_FIELDS, predicted):
                blocks[name].append(getattr(traj, name)[t + 1] - pred)

        return [g for name in STATE_FIELDS for g in blocks[name]]

    # -------------------------------------------------------------------------
    # Symbolic problem
    # -------------------------------------------------------------------------

    def symbolic(self) -> Dict:
        """NLP dict {'x', 'p', 'f', 'g'} in CasADi SX, built on first use."""
        if self._nlp is None:
            w = ca.SX.sym("w", self.layout.n_vars)
            p = ca.SX.sym("p", self.n_params)
            traj = self.layout.unpack(w)
            path = PathModel(tuple(p[i] for i in range(self.n_params)))

            self._nlp = {
                "x": w,
                "p": p,
                "f": self.cost(traj),
                "g": ca.vertcat(*self.constraints(traj, path)),
            }
            logger.debug(
                "Built MPC NLP: N=%d, n_vars=%d, n_constraints=%d",
                self.config.horizon, self.layout.n_vars, self.layout.n_constraints,
            )
        return self._nlp

    # -------------------------------------------------------------------------
    # Numeric problem data
    # -------------------------------------------------------------------------

    def path_parameters(self, path: PathModel) -> np.ndarray:
        """Validate the path and pad it to the configured degree."""
        if not path.is_finite():
            raise NumericDegeneracy(f"Non-finite path coefficients: {path.coefficients}")
        try:
            return path.padded(self.config.path_degree)
        except ValueError as err:
            raise ConfigurationError(str(err)) from err

    def initial_guess(self, state: VehicleState) -> np.ndarray:
        x0 = np.zeros(self.layout.n_vars)
        x0[self.layout.state_offsets(0)] = state.as_array()
        return x0

    def variable_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        big = self.config.state_bound
        lbx = np.full(self.layout.n_vars, -big)
        ubx = np.full(self.layout.n_vars, big)

        delta = self.layout.blocks["delta"]
        lbx[delta] = -self.vehicle.max_delta_rad
        ubx[delta] = self.vehicle.max_delta_rad

        a = self.layout.blocks["a"]
        lbx[a] = -self.vehicle.max_throttle
        ubx[a] = self.vehicle.max_throttle
        return lbx, ubx

    def constraint_bounds(self, state: VehicleState) -> Tuple[np.ndarray, np.ndarray]:
        lbg = np.zeros(self.layout.n_constraints)
        lbg[self.layout.state_offsets(0)] = state.as_array()
        return lbg, lbg.copy()

    def formulate(self, state: VehicleState, path: PathModel) -> Problem:
        """Assemble the NLP data for the current state and path."""
        state.check_finite()
        p = self.path_parameters(path)
        lbx, ubx = self.variable_bounds()
        lbg, ubg = self.constraint_bounds(state)

        return Problem(
            n_vars=self.layout.n_vars,
            x0=self.initial_guess(state),
            lbx=lbx,
            ubx=ubx,
            lbg=lbg,
            ubg=ubg,
            p=p,
            nlp=self.symbolic(),
        )

    # -------------------------------------------------------------------------
    # Numeric evaluation
    # -------------------------------------------------------------------------

    def evaluate(self, w: np.ndarray, path: PathModel) -> Tuple[float, np.ndarray]:
        """
        Evaluate cost and constraint vector at a flat decision vector.

        Raises:
            NumericDegeneracy: if the cost or any constraint is not finite
        """
        if self._fg is None:
            nlp = self.symbolic()
            self._fg = ca.Function("fg", [nlp["x"], nlp["p"]], [nlp["f"], nlp["g"]],
                                   ["w", "p"], ["f", "g"])

        f_out, g_out = self._fg(np.asarray(w, dtype=float).ravel(), self.path_parameters(path))
        cost = float(f_out)
        g = np.array(g_out).ravel()

        if not np.isfinite(cost):
            raise NumericDegeneracy(f"Non-finite cost: {cost}")
        if not np.all(np.isfinite(g)):
            raise NumericDegeneracy(
                f"Non-finite constraint values at indices {np.flatnonzero(~np.isfinite(g)).tolist()}"
            )
        return cost, g

    def constraint_residuals(self, w: np.ndarray, state: VehicleState, path: PathModel) -> np.ndarray:
        """g(w) minus its (equality) bounds; zero at a feasible point."""
        _, g = self.evaluate(w, path)
        lbg, _ = self.constraint_bounds(state)
        return g - lbg
