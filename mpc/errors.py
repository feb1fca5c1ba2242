"""
Error types raised by the MPC core.

- ConfigurationError: invalid horizon/weights/path shape, raised before solving
- SolveFailure: solver returned a non-success status or ran out of time;
  the caller decides the fallback command
- NumericDegeneracy: non-finite inputs or solver values; the cycle is aborted
"""

from typing import Optional


class MPCError(Exception):
    """Base class for MPC errors."""


class ConfigurationError(MPCError, ValueError):
    """Invalid configuration, detected before any solve."""


class SolveFailure(MPCError, RuntimeError):
    """The NLP solver did not return a usable solution."""

    def __init__(
        self,
        message: str,
        status: str = "unknown",
        iterations: int = -1,
        solve_time: Optional[float] = None,
    ):
        super().__init__(message)
        self.status = status
        self.iterations = iterations
        self.solve_time = solve_time

    @property
    def time_limit_exceeded(self) -> bool:
        return "Time" in self.status


class NumericDegeneracy(MPCError, ArithmeticError):
    """Non-finite value encountered in the inputs, cost or constraints."""
