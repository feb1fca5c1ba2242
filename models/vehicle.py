"""
Vehicle parameters for the kinematic path-tracking model.

Only the quantities the kinematic bicycle model and the actuator bounds need
are kept here:
- lf_m: distance from center of gravity to front axle [m]
- max_delta_deg: physical steering limit [deg]
- max_throttle: normalized throttle/brake limit (symmetric)

The default Lf of 2.67 m was obtained by driving the simulator in a circle at
constant steering and speed and tuning Lf until the model reproduced the
measured turning radius.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
from yaml import safe_load


@dataclass(frozen=True)
class VehicleParams:
    """
    Vehicle parameters - immutable dataclass.
    """

    name: str = "kinematic_default"

    # Geometry
    lf_m: float = 2.67            # CG to front axle [m]

    # Actuator limits
    max_delta_deg: float = 25.0   # max steering angle [deg]
    max_throttle: float = 1.0     # normalized throttle/brake limit

    def __post_init__(self):
        if not (np.isfinite(self.lf_m) and self.lf_m > 0):
            raise ValueError(f"lf_m must be positive, got {self.lf_m}")
        if not (np.isfinite(self.max_delta_deg) and 0 < self.max_delta_deg < 90):
            raise ValueError(
                f"max_delta_deg must lie in (0, 90), got {self.max_delta_deg}"
            )
        if not (np.isfinite(self.max_throttle) and self.max_throttle > 0):
            raise ValueError(
                f"max_throttle must be positive, got {self.max_throttle}"
            )

    @property
    def max_delta_rad(self) -> float:
        return float(np.radians(self.max_delta_deg))

    @staticmethod
    def load_from_yaml(yaml_file: Union[str, Path]) -> VehicleParams:
        """
        Load vehicle parameters from YAML file.

        Args:
            yaml_file: Path to YAML config file with a ``vehicle`` section

        Returns:
            VehicleParams instance
        """
        with open(yaml_file, "r") as stream:
            data = safe_load(stream) or {}
        veh_dict = data.get("vehicle", {}) or {}

        # Filter to only include fields that VehicleParams accepts
        valid_fields = {f.name for f in VehicleParams.__dataclass_fields__.values()}
        filtered_dict = {k: v for k, v in veh_dict.items() if k in valid_fields}

        return VehicleParams(**filtered_dict)
