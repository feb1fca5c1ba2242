"""
MPC configuration: horizon, cost weights and solver limits.

Reference tuning: tracking error (cte/epsi) outweighs the actuator penalties
by roughly an order of magnitude.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Union

import numpy as np
from yaml import safe_load

from .errors import ConfigurationError


@dataclass(frozen=True)
class CostWeights:
    """Weights of the MPC cost terms."""

    # Reference tracking
    cte: float = 2500.0
    epsi: float = 500.0
    v: float = 1.0

    # Actuator magnitude
    delta: float = 500.0
    a: float = 1.0
    delta_a: float = 100.0      # steering * speed coupling

    # Actuator smoothness
    delta_smooth: float = 10.0
    a_smooth: float = 10.0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not (np.isfinite(value) and value >= 0):
                raise ConfigurationError(
                    f"Cost weight '{f.name}' must be finite and >= 0, got {value}"
                )


@dataclass(frozen=True)
class MPCConfig:
    """
    Immutable MPC configuration.

    Attributes:
        horizon: Number of discretization steps N
        dt: Timestep duration [s]
        ref_v: Reference speed
        weights: Cost weights
        path_degree: Degree of the path polynomial the solver is built for
        actuator_delay_steps: Actuator latency in whole timesteps
        state_bound: Bound used for the otherwise unconstrained states
        time_budget_s: CPU/wall time limit handed to IPOPT [s]
        max_iter: IPOPT iteration limit
        tol: IPOPT convergence tolerance
        accept_acceptable: Treat "Solved_To_Acceptable_Level" as success
        verbose: Enable IPOPT console output
    """

    horizon: int = 10
    dt: float = 0.1
    ref_v: float = 70.0
    weights: CostWeights = field(default_factory=CostWeights)
    path_degree: int = 3
    actuator_delay_steps: int = 1
    state_bound: float = 1e10
    time_budget_s: float = 0.5
    max_iter: int = 3000
    tol: float = 1e-8
    accept_acceptable: bool = False
    verbose: bool = False

    def __post_init__(self):
        if int(self.horizon) != self.horizon or self.horizon < 3:
            raise ConfigurationError(
                f"horizon must be an integer >= 3 (smoothness terms need N-2 >= 1), got {self.horizon}"
            )
        if not (np.isfinite(self.dt) and self.dt > 0):
            raise ConfigurationError(f"dt must be positive, got {self.dt}")
        if not np.isfinite(self.ref_v):
            raise ConfigurationError(f"ref_v must be finite, got {self.ref_v}")
        if int(self.path_degree) != self.path_degree or self.path_degree < 2:
            raise ConfigurationError(
                f"path_degree must be an integer >= 2, got {self.path_degree}"
            )
        if int(self.actuator_delay_steps) != self.actuator_delay_steps:
            raise ConfigurationError(
                f"actuator_delay_steps must be a whole number of steps, got {self.actuator_delay_steps}"
            )
        if not 0 <= self.actuator_delay_steps < self.horizon - 1:
            raise ConfigurationError(
                f"actuator_delay_steps must lie in [0, {self.horizon - 1}), "
                f"got {self.actuator_delay_steps}"
            )
        if not self.state_bound > 0:
            raise ConfigurationError(f"state_bound must be positive, got {self.state_bound}")
        if not (np.isfinite(self.time_budget_s) and self.time_budget_s > 0):
            raise ConfigurationError(
                f"time_budget_s must be positive, got {self.time_budget_s}"
            )
        if self.max_iter < 1:
            raise ConfigurationError(f"max_iter must be >= 1, got {self.max_iter}")
        if not self.tol > 0:
            raise ConfigurationError(f"tol must be positive, got {self.tol}")
        if not isinstance(self.weights, CostWeights):
            raise ConfigurationError(
                f"weights must be a CostWeights instance, got {type(self.weights).__name__}"
            )

    @property
    def n_actuator_steps(self) -> int:
        return self.horizon - 1

    def with_overrides(self, **kwargs) -> MPCConfig:
        """Copy with some fields replaced; ``weights`` may be given as a dict."""
        weights = kwargs.get("weights")
        if isinstance(weights, dict):
            kwargs["weights"] = replace(self.weights, **weights)
        return replace(self, **kwargs)

    @staticmethod
    def load_from_yaml(yaml_file: Union[str, Path]) -> MPCConfig:
        """
        Load MPC configuration from YAML file.

        Args:
            yaml_file: Path to YAML config file with an ``mpc`` section

        Returns:
            MPCConfig instance
        """
        with open(yaml_file, "r") as stream:
            data = safe_load(stream) or {}
        mpc_dict = dict(data.get("mpc", {}) or {})

        weights_dict = mpc_dict.pop("weights", None) or {}
        valid_weights = {f.name for f in fields(CostWeights)}
        weights = CostWeights(**{k: v for k, v in weights_dict.items() if k in valid_weights})

        # Filter to only include fields that MPCConfig accepts
        valid_fields = {f.name for f in fields(MPCConfig)} - {"weights"}
        filtered_dict = {k: v for k, v in mpc_dict.items() if k in valid_fields}

        return MPCConfig(weights=weights, **filtered_dict)
