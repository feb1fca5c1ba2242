"""
Visualization utilities for MPC results.

All functions save outputs to files instead of displaying them.
"""

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for saving
import matplotlib.pyplot as plt
from pathlib import Path
from typing import Dict, Optional, Sequence
from dataclasses import dataclass

from models import PathModel


@dataclass
class PlotConfig:
    """Configuration for plot styling."""
    figsize_trajectory: tuple = (8, 6)
    figsize_controls: tuple = (10, 5)

    dpi: int = 150
    line_width: float = 1.5
    marker_size: float = 3

    # Colors
    reference_color: str = 'tab:orange'
    prediction_color: str = 'tab:green'
    trajectory_color: str = 'tab:blue'


class MPCVisualizer:
    """
    Visualization class for MPC solutions and closed-loop runs.

    All plots are saved to files, not displayed.
    """

    def __init__(
        self,
        output_dir: str = "results",
        config: Optional[PlotConfig] = None
    ):
        """
        Initialize visualizer.

        Args:
            output_dir: Directory to save outputs
            config: Plot configuration
        """
        self.output_dir = Path(output_dir)
        self.config = config or PlotConfig()

        # Create output directory
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _reference_curve(self, path: PathModel, x_values: np.ndarray, margin: float = 5.0):
        x_ref = np.linspace(min(0.0, x_values.min()) - margin, x_values.max() + margin, 200)
        return x_ref, path.evaluate(x_ref)

    def _save(self, fig, filename: str) -> str:
        filepath = self.output_dir / filename
        fig.savefig(filepath, dpi=self.config.dpi, bbox_inches='tight')
        plt.close(fig)
        return str(filepath)

    def plot_prediction(
        self,
        solution,
        path: PathModel,
        filename: str = "prediction.png",
        title: Optional[str] = None
    ) -> str:
        """
        Plot predicted waypoints against the reference polynomial.

        Args:
            solution: MPCSolution
            path: Reference path polynomial (same frame as the solution)
            filename: Output filename
            title: Plot title

        Returns:
            Path to saved file
        """
        fig, ax = plt.subplots(figsize=self.config.figsize_trajectory)

        x_all = np.asarray(solution.trajectory.x, dtype=float)
        y_all = np.asarray(solution.trajectory.y, dtype=float)
        x_ref, y_ref = self._reference_curve(path, x_all)

        ax.plot(x_ref, y_ref, color=self.config.reference_color,
                linewidth=self.config.line_width, linestyle='--', label='Reference')
        ax.plot(solution.predicted_x, solution.predicted_y, marker='o',
                markersize=self.config.marker_size, color=self.config.prediction_color,
                linewidth=self.config.line_width, label='MPC prediction')
        ax.scatter(x_all[0], y_all[0], s=80, c='black', marker='o', zorder=10, label='Vehicle')

        ax.set_xlabel('x [m]')
        ax.set_ylabel('y [m]')
        ax.legend(loc='best')
        ax.grid(True, alpha=0.3)
        ax.set_title(title or (
            f"Prediction: steering={solution.steering:.3f} rad, "
            f"throttle={solution.throttle:.3f}"
        ))

        return self._save(fig, filename)

    def plot_controls(
        self,
        solution,
        filename: str = "controls.png",
        dt: Optional[float] = None
    ) -> str:
        """
        Plot the optimized actuator sequences over the horizon.

        Returns:
            Path to saved file
        """
        fig, axes = plt.subplots(2, 1, figsize=self.config.figsize_controls, sharex=True)

        delta = np.asarray(solution.trajectory.delta, dtype=float)
        accel = np.asarray(solution.trajectory.a, dtype=float)
        steps = np.arange(len(delta))
        t = steps * dt if dt else steps

        axes[0].step(t, np.degrees(delta), where='post', color=self.config.trajectory_color)
        axes[0].axhline(np.degrees(solution.max_steering), color='gray', linestyle=':')
        axes[0].axhline(-np.degrees(solution.max_steering), color='gray', linestyle=':')
        axes[0].set_ylabel('Steering [deg]')
        axes[0].grid(True, alpha=0.3)

        axes[1].step(t, accel, where='post', color=self.config.trajectory_color)
        axes[1].set_ylabel('Throttle [-]')
        axes[1].set_xlabel('Time [s]' if dt else 'Step')
        axes[1].grid(True, alpha=0.3)

        return self._save(fig, filename)

    def plot_closed_loop(
        self,
        history: Dict[str, Sequence[float]],
        path: PathModel,
        filename: str = "closed_loop.png"
    ) -> str:
        """
        Plot a closed-loop run.

        Args:
            history: dict with 'x', 'y', 'cte', 'steering', 'throttle' lists
            path: Reference path polynomial (global frame)
            filename: Output filename

        Returns:
            Path to saved file
        """
        fig, axes = plt.subplots(3, 1, figsize=(10, 10))

        x = np.asarray(history['x'], dtype=float)
        y = np.asarray(history['y'], dtype=float)
        x_ref, y_ref = self._reference_curve(path, x)

        axes[0].plot(x_ref, y_ref, color=self.config.reference_color, linestyle='--', label='Reference')
        axes[0].plot(x, y, color=self.config.trajectory_color, linewidth=self.config.line_width, label='Vehicle')
        axes[0].set_xlabel('x [m]')
        axes[0].set_ylabel('y [m]')
        axes[0].legend(loc='best')
        axes[0].grid(True, alpha=0.3)

        axes[1].plot(history['cte'], color='tab:red')
        axes[1].set_ylabel('CTE [m]')
        axes[1].grid(True, alpha=0.3)

        axes[2].plot(history['steering'], label='Steering [rad]')
        axes[2].plot(history['throttle'], label='Throttle [-]')
        axes[2].set_xlabel('Cycle')
        axes[2].legend(loc='best')
        axes[2].grid(True, alpha=0.3)

        return self._save(fig, filename)

    def generate_full_report(self, solution, path: PathModel, prefix: str = "mpc", dt: Optional[float] = None) -> Dict[str, str]:
        """Generate prediction and control plots for one solution."""
        return {
            'prediction': self.plot_prediction(solution, path, filename=f"{prefix}_prediction.png"),
            'controls': self.plot_controls(solution, filename=f"{prefix}_controls.png", dt=dt),
        }
