"""
MPC controller facade.

Receding-horizon use: call run_step() once per control cycle with the latest
state and path fit, apply solution.steering / solution.throttle, and discard
the rest of the horizon.

Required caller behavior on SolveFailure: the controller never retries and
never invents a command. The caller must apply its own fallback (hold the
previous command, or brake) and solve again on the next cycle.
ConfigurationError and NumericDegeneracy abort the cycle and must not be
answered with a command derived from this solve.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from models import PathModel, VehicleParams
from .config import MPCConfig
from .solver import TrajectorySolver
from .types import MPCSolution, VehicleState

logger = logging.getLogger(__name__)


class MPCController:
    """Combines the problem formulator and the IPOPT adapter."""

    def __init__(self, config: Optional[MPCConfig] = None, vehicle: Optional[VehicleParams] = None):
        self.config = config or MPCConfig()
        self.vehicle = vehicle or VehicleParams()
        self.solver = TrajectorySolver(self.config, self.vehicle)

    @classmethod
    def from_yaml(cls, yaml_file: Union[str, Path]) -> "MPCController":
        return cls(MPCConfig.load_from_yaml(yaml_file), VehicleParams.load_from_yaml(yaml_file))

    def run_step(
        self,
        state: Union[VehicleState, Sequence[float]],
        coeffs: Union[PathModel, Sequence[float]],
    ) -> MPCSolution:
        """
        Compute the command for the current cycle.

        Args:
            state: VehicleState or (x, y, psi, v, cte, epsi)
            coeffs: PathModel or polynomial coefficients, lowest order first

        Returns:
            MPCSolution; errors from the solver propagate unchanged
        """
        if not isinstance(state, VehicleState):
            state = VehicleState.from_sequence(state)
        path = coeffs if isinstance(coeffs, PathModel) else PathModel.from_coefficients(coeffs)

        solution = self.solver.solve(state, path)
        logger.info(
            "MPC command: steering=%.4f rad, throttle=%.4f (%s, %d iters, %.1f ms)",
            solution.steering, solution.throttle, solution.status,
            solution.iterations, 1000.0 * solution.solve_time,
        )
        return solution
