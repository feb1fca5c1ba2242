from .errors import MPCError, ConfigurationError, SolveFailure, NumericDegeneracy
from .config import MPCConfig, CostWeights
from .layout import DecisionLayout, Trajectory
from .types import VehicleState, MPCSolution
from .formulation import ProblemFormulator, Problem
from .solver import TrajectorySolver
from .controller import MPCController

__all__ = [
    'MPCError',
    'ConfigurationError',
    'SolveFailure',
    'NumericDegeneracy',
    'MPCConfig',
    'CostWeights',
    'DecisionLayout',
    'Trajectory',
    'VehicleState',
    'MPCSolution',
    'ProblemFormulator',
    'Problem',
    'TrajectorySolver',
    'MPCController',
]
