"""Input and output records of one MPC cycle."""

from __future__ import annotations
from dataclasses import dataclass, fields
from typing import List, Sequence, Tuple

import numpy as np

from .errors import NumericDegeneracy
from .layout import Trajectory


@dataclass(frozen=True)
class VehicleState:
    """Measured vehicle state for the current control cycle."""

    x: float
    y: float
    psi: float       # heading [rad]
    v: float         # speed
    cte: float       # cross-track error
    epsi: float      # heading error [rad]

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> VehicleState:
        values = np.asarray(values, dtype=float).ravel()
        if values.size != 6:
            raise ValueError(f"Vehicle state needs 6 values, got {values.size}")
        return cls(*(float(v) for v in values))

    def as_array(self) -> np.ndarray:
        """State channels in decision-vector order."""
        return np.array([getattr(self, f.name) for f in fields(self)], dtype=float)

    def check_finite(self) -> None:
        arr = self.as_array()
        if not np.all(np.isfinite(arr)):
            bad = [f.name for f, v in zip(fields(self), arr) if not np.isfinite(v)]
            raise NumericDegeneracy(f"Non-finite vehicle state channel(s): {', '.join(bad)}")


@dataclass
class MPCSolution:
    """Result of one successful solve."""

    steering: float             # first-step steering angle [rad]
    throttle: float             # first-step normalized acceleration
    predicted_x: np.ndarray     # x at steps 1..N-1
    predicted_y: np.ndarray     # y at steps 1..N-1
    cost: float
    status: str
    iterations: int
    solve_time: float           # wall clock [s]
    trajectory: Trajectory
    max_steering: float

    @property
    def waypoints(self) -> List[Tuple[float, float]]:
        return [(float(x), float(y)) for x, y in zip(self.predicted_x, self.predicted_y)]

    def normalized_steering(self) -> float:
        """Steering as a fraction of the physical limit, in [-1, 1]."""
        return float(np.clip(self.steering / self.max_steering, -1.0, 1.0))

    def as_vector(self) -> List[float]:
        """Flat output [delta, a, x1, y1, x2, y2, ...]."""
        out = [self.steering, self.throttle]
        for x, y in self.waypoints:
            out.extend((x, y))
        return out
