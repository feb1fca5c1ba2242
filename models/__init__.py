"""
Vehicle and reference-path models for kinematic MPC path tracking.
"""

from pathlib import Path
from typing import Union

from .vehicle import VehicleParams
from .path import PathModel
from .kinematic import KinematicBicycleModel, StateIndex

__all__ = [
    'VehicleParams',
    'PathModel',
    'KinematicBicycleModel',
    'StateIndex',
    'load_vehicle_from_yaml',
]


def load_vehicle_from_yaml(yaml_file: Union[str, Path]) -> KinematicBicycleModel:
    """
    Load the kinematic vehicle model from a YAML config file.

    Args:
        yaml_file: Path to YAML config file (e.g., config/mpc_params.yaml)

    Returns:
        KinematicBicycleModel ready for simulation/optimization

    Example:
        >>> from models import load_vehicle_from_yaml
        >>> vehicle = load_vehicle_from_yaml("config/mpc_params.yaml")
        >>> print(vehicle)
        KinematicBicycleModel(udacity_sim, lf=2.67m)
    """
    params = VehicleParams.load_from_yaml(yaml_file)
    return KinematicBicycleModel(params)
