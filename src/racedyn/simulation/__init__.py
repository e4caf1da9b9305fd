"""
Simulation module - Fixed-step multi-car simulation loop.

This module contains:
- Simulator: Main simulation loop stepping every car once per frame
- World: Car ownership, surfaces and the simulation clock
"""

from racedyn.simulation.simulator import Simulator, SimulatorConfig, StepRecord
from racedyn.simulation.world import World

__all__ = [
    "Simulator",
    "SimulatorConfig",
    "StepRecord",
    "World",
]
