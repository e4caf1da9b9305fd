"""
RaceDyn - Real-time vehicle dynamics and powertrain core for racing games.

This package turns per-tick driver commands into vehicle motion with:
- Four-wheel load-transfer and single-track dynamics models
- Engine torque curve, RPM tracking and engine braking
- Automatic and manual gear selection
- Speed-sensitive steering shaping
- Fixed-step multi-car simulation loop and telemetry recording
"""

__version__ = "0.1.0"

from racedyn.simulation.simulator import Simulator
from racedyn.car.car import Car, CarConfig, CarInputs

__all__ = ["Simulator", "Car", "CarConfig", "CarInputs", "__version__"]
