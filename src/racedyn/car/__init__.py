"""
Car module - Vehicle dynamics and powertrain simulation.

This module contains all car-related components:
- Steering: Rate-limited, speed-sensitive steering shaper
- Engine: Torque curve parameters, RPM tracking, odometer
- Transmission: Gear ratios, automatic and manual shifting
- Powertrain: Drive, brake and engine-braking forces, gear selection
- Dynamics: Four-wheel and bicycle planar motion models
- Aero, Chassis, Tires: Force primitives and vehicle geometry
"""

from racedyn.car.car import Car, CarConfig, CarInputs, SurfaceConditions
from racedyn.car.dynamics import (
    BicycleDynamics,
    DynamicsModelType,
    DynamicsState,
    FourWheelDynamics,
    TickResult,
    create_dynamics_model,
)
from racedyn.car.engine import Engine, EngineConfig
from racedyn.car.steering import Steering, SteeringConfig
from racedyn.car.transmission import GearDecision, Transmission, TransmissionConfig

__all__ = [
    "Car",
    "CarConfig",
    "CarInputs",
    "SurfaceConditions",
    "DynamicsModelType",
    "DynamicsState",
    "FourWheelDynamics",
    "BicycleDynamics",
    "TickResult",
    "create_dynamics_model",
    "Engine",
    "EngineConfig",
    "Steering",
    "SteeringConfig",
    "GearDecision",
    "Transmission",
    "TransmissionConfig",
]
