"""
Reference path model: a polynomial y = f(x) fitted to the path ahead.

Coefficients are stored lowest order first:
    f(x) = c0 + c1*x + c2*x^2 + ...

All evaluation methods use plain arithmetic plus CasADi math, so they accept
Python floats, numpy arrays and CasADi SX/MX symbols alike. The optimizer
builds its constraints against the same code that tests evaluate numerically.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
import casadi as ca


@dataclass(frozen=True)
class PathModel:
    """Immutable polynomial approximation of the reference path."""

    coefficients: Tuple

    @classmethod
    def from_coefficients(cls, coeffs: Sequence[float]) -> PathModel:
        """
        Build a numeric path model from any 1-D sequence of coefficients.

        Raises:
            ValueError: if the sequence is empty
        """
        values = np.asarray(coeffs, dtype=float).ravel()
        if values.size == 0:
            raise ValueError("Path polynomial needs at least one coefficient.")
        return cls(tuple(float(c) for c in values))

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def evaluate(self, x):
        """f(x) by Horner's rule."""
        result = 0.0
        for c in reversed(self.coefficients):
            result = result * x + c
        return result

    def derivative(self, x):
        """f'(x)."""
        result = 0.0
        for k in range(self.degree, 0, -1):
            result = result * x + k * self.coefficients[k]
        return result

    def desired_heading(self, x):
        """Path tangent direction atan(f'(x)) [rad]."""
        return ca.atan(self.derivative(x))

    def padded(self, degree: int) -> np.ndarray:
        """
        Coefficients zero-padded up to a fixed polynomial degree.

        Raises:
            ValueError: if this polynomial has a higher degree than requested
        """
        if self.degree > degree:
            raise ValueError(
                f"Path polynomial has degree {self.degree}, expected at most {degree}."
            )
        out = np.zeros(degree + 1)
        out[:len(self.coefficients)] = np.asarray(self.coefficients, dtype=float)
        return out

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(np.asarray(self.coefficients, dtype=float))))
