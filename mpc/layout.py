"""
Decision vector layout.

The solver works on one flat vector:
    [x(N), y(N), psi(N), v(N), cte(N), epsi(N), delta(N-1), a(N-1)]

Everything else in the package works on a Trajectory record with named
per-timestep arrays. DecisionLayout is the only place that knows the block
offsets; pack/unpack convert at the solver boundary.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np
import casadi as ca

STATE_FIELDS = ("x", "y", "psi", "v", "cte", "epsi")
ACTUATOR_FIELDS = ("delta", "a")


@dataclass
class Trajectory:
    """Per-timestep states (length N) and actuators (length N-1)."""

    x: object
    y: object
    psi: object
    v: object
    cte: object
    epsi: object
    delta: object
    a: object

    def state_at(self, t: int) -> Tuple:
        return tuple(getattr(self, name)[t] for name in STATE_FIELDS)

    def states(self) -> np.ndarray:
        """Numeric states as array [6, N]."""
        return np.vstack([np.asarray(getattr(self, name), dtype=float).ravel()
                          for name in STATE_FIELDS])


class DecisionLayout:
    """Block offsets of the flat decision vector for a horizon N."""

    def __init__(self, horizon: int):
        self.horizon = horizon
        self.n_states = len(STATE_FIELDS) * horizon
        self.n_actuators = len(ACTUATOR_FIELDS) * (horizon - 1)
        self.n_vars = self.n_states + self.n_actuators
        self.n_constraints = self.n_states

        self.blocks: Dict[str, slice] = {}
        start = 0
        for name in STATE_FIELDS:
            self.blocks[name] = slice(start, start + horizon)
            start += horizon
        for name in ACTUATOR_FIELDS:
            self.blocks[name] = slice(start, start + horizon - 1)
            start += horizon - 1

    def start(self, name: str) -> int:
        return self.blocks[name].start

    def unpack(self, w) -> Trajectory:
        """
        Split a flat vector (numpy array or CasADi column) into a Trajectory.
        """
        if isinstance(w, (ca.DM, list, tuple, np.ndarray)):
            w = np.asarray(w, dtype=float).ravel()
            length = w.size
        else:
            length = w.shape[0]
        if length != self.n_vars:
            raise ValueError(f"Decision vector must have {self.n_vars} entries, got {length}")
        return Trajectory(**{name: w[sl] for name, sl in self.blocks.items()})

    def pack(self, traj: Trajectory) -> np.ndarray:
        """Flatten a numeric Trajectory into the solver vector."""
        parts = []
        for name, sl in self.blocks.items():
            block = np.asarray(getattr(traj, name), dtype=float).ravel()
            if block.size != sl.stop - sl.start:
                raise ValueError(
                    f"Block '{name}' must have {sl.stop - sl.start} entries, got {block.size}"
                )
            parts.append(block)
        return np.concatenate(parts)

    def state_offsets(self, t: int) -> np.ndarray:
        """Flat indices of the six state channels at timestep t."""
        return np.array([self.blocks[name].start + t for name in STATE_FIELDS])

    def __repr__(self):
        return f"DecisionLayout(N={self.horizon}, n_vars={self.n_vars})"
