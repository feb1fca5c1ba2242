"""
Discrete-time kinematic bicycle model with path-error states.

State: [x, y, psi, v, cte, epsi] (6 states)
Control: [delta, a] (2 inputs)

Forward-Euler integration over one timestep dt:
    x'    = x + v*cos(psi)*dt
    y'    = y + v*sin(psi)*dt
    psi'  = psi + v*delta/Lf*dt
    v'    = v + a*dt
    cte'  = (f(x) - y) + v*sin(epsi)*dt
    epsi' = (psi - atan(f'(x))) + v*delta/Lf*dt

where f is the reference path polynomial. The step is written with CasADi
math so it works on floats and on symbolic variables.
"""

from __future__ import annotations
from typing import Sequence, Tuple

import numpy as np
import casadi as ca

from .path import PathModel
from .vehicle import VehicleParams


class StateIndex:
    """Index definitions for the state vector."""

    X = 0
    Y = 1
    PSI = 2
    V = 3
    CTE = 4
    EPSI = 5
    SIZE = 6



class KinematicBicycleModel:
    """
    Kinematic single-track model (no tire slip).

    Lf calibrates the turning radius produced by a given steering angle.
    """

    def __init__(self, params: VehicleParams):
        self.params = params

    @property
    def lf_m(self) -> float:
        return self.params.lf_m

    def step(self, state: Sequence, delta, a, path: PathModel, dt: float) -> Tuple:
        """
        Propagate one timestep.

        Args:
            state: (x, y, psi, v, cte, epsi)
            delta: steering angle [rad]
            a: normalized acceleration
            path: reference path polynomial
            dt: timestep [s]

        Returns:
            Tuple: (x, y, psi, v, cte, epsi) at the next step
        """
        x0, y0, psi0, v0, _, epsi0 = state
        yaw_rate = v0 * delta / self.params.lf_m

        x1 = x0 + v0 * ca.cos(psi0) * dt
        y1 = y0 + v0 * ca.sin(psi0) * dt
        psi1 = psi0 + yaw_rate * dt
        v1 = v0 + a * dt
        cte1 = (path.evaluate(x0) - y0) + v0 * ca.sin(epsi0) * dt
        epsi1 = (psi0 - path.desired_heading(x0)) + yaw_rate * dt

        return x1, y1, psi1, v1, cte1, epsi1

    def rollout(
        self,
        state: Sequence[float],
        path: PathModel,
        delta: Sequence[float],
        a: Sequence[float],
        dt: float,
        delay_steps: int = 0,
    ) -> np.ndarray:
        """
        Forward-simulate a state trajectory from actuator sequences.

        The transition out of step t uses actuator index max(t - delay_steps, 0),
        the same lookback the optimizer applies.

        Args:
            state: initial (x, y, psi, v, cte, epsi)
            path: reference path polynomial
            delta: steering sequence, length N-1
            a: acceleration sequence, length N-1
            dt: timestep [s]
            delay_steps: actuator latency in whole timesteps

        Returns:
            states: array [6, N]
        """
        delta = np.asarray(delta, dtype=float).ravel()
        a = np.asarray(a, dtype=float).ravel()
        if delta.shape != a.shape:
            raise ValueError(f"delta and a must match, got {delta.shape} and {a.shape}")

        n_nodes = delta.size + 1
        states = np.zeros((StateIndex.SIZE, n_nodes))
        states[:, 0] = np.asarray(state, dtype=float).ravel()

        for t in range(n_nodes - 1):
            k = max(t - delay_steps, 0)
            nxt = self.step(states[:, t], delta[k], a[k], path, dt)
            states[:, t + 1] = [float(v) for v in nxt]

        return states

    def __repr__(self):
        return f"KinematicBicycleModel({self.params.name}, lf={self.params.lf_m:.2f}m)"
