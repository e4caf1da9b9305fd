"""
Vehicle presets - Ready-made car configurations.

Provides a small catalog of road vehicles with real gear ratio sets:
- gtr: all-wheel-drive sports coupe
- fiat_500: front-wheel-drive city car
- sprinter: rear-wheel-drive delivery van
"""

from typing import Callable, Dict

from racedyn.car.aero import AeroConfig
from racedyn.car.car import CarConfig
from racedyn.car.chassis import ChassisConfig
from racedyn.car.dynamics import DynamicsModelType
from racedyn.car.engine import EngineConfig
from racedyn.car.powertrain import BrakeConfig
from racedyn.car.steering import SteeringConfig
from racedyn.car.tires import TireConfig
from racedyn.car.transmission import TransmissionConfig
from racedyn.utils.exceptions import ConfigurationError


def tire_radius_m(width_mm: int, aspect_percent: int, rim_inches: int) -> float:
    """Rolling radius of a tire from its size code (e.g. 285/35 R20).

    Args:
        width_mm: Section width in millimeters
        aspect_percent: Sidewall height as percent of width
        rim_inches: Rim diameter in inches

    Returns:
        Radius in meters
    """
    sidewall_mm = width_mm * aspect_percent / 100.0
    diameter_mm = rim_inches * 25.4 + 2.0 * sidewall_mm
    return diameter_mm / 2000.0


def gtr(dynamics_model: DynamicsModelType = DynamicsModelType.FOUR_WHEEL) -> CarConfig:
    """Nissan GT-R Nismo."""
    return CarConfig(
        name="Nissan GT-R Nismo",
        engine=EngineConfig(),
        transmission=TransmissionConfig(
            gear_ratios=[4.06, 2.30, 1.59, 1.25, 1.00, 0.80],
            final_drive=3.70,
            wheel_radius_m=tire_radius_m(285, 35, 20),
            front_drive_bias=0.35,
        ),
        aero=AeroConfig(frontal_area_m2=2.2, drag_coefficient=0.26, downforce_coefficient=0.25),
        chassis=ChassisConfig(mass_kg=1750.0, max_speed_kph=315.0),
        tires=TireConfig(),
        steering=SteeringConfig(),
        brakes=BrakeConfig(strength=1.1, front_bias=0.62),
        dynamics_model=dynamics_model,
    )


def fiat_500(dynamics_model: DynamicsModelType = DynamicsModelType.FOUR_WHEEL) -> CarConfig:
    """Fiat 500 1.2."""
    return CarConfig(
        name="Fiat 500",
        engine=EngineConfig(
            idle_rpm=750.0,
            max_rpm=6000.0,
            rev_limiter_rpm=5500.0,
            launch_rpm=2200.0,
            idle_torque_nm=60.0,
            peak_torque_nm=102.0,
            redline_torque_nm=80.0,
            peak_torque_rpm=3000.0,
            engine_braking=0.40,
            engine_braking_torque_nm=40.0,
        ),
        transmission=TransmissionConfig(
            gear_ratios=[3.909, 2.238, 1.520, 1.156, 0.872],
            final_drive=3.353,
            wheel_radius_m=tire_radius_m(195, 45, 16),
            front_drive_bias=1.0,
        ),
        aero=AeroConfig(frontal_area_m2=2.1, drag_coefficient=0.33, downforce_coefficient=0.0),
        chassis=ChassisConfig(
            mass_kg=940.0,
            wheelbase_m=2.30,
            track_width_m=1.41,
            cg_height_m=0.55,
            front_weight_bias=0.62,
            max_speed_kph=160.0,
        ),
        tires=TireConfig(
            grip_coefficient=0.8,
            cornering_stiffness_front=60000.0,
            cornering_stiffness_rear=65000.0,
        ),
        steering=SteeringConfig(low_deg=38.0, high_deg=8.0, limit_speed_kph=110.0),
        brakes=BrakeConfig(strength=0.9, front_bias=0.68),
        dynamics_model=dynamics_model,
    )


def sprinter(dynamics_model: DynamicsModelType = DynamicsModelType.FOUR_WHEEL) -> CarConfig:
    """Mercedes Sprinter van."""
    return CarConfig(
        name="Mercedes Sprinter",
        engine=EngineConfig(
            idle_rpm=600.0,
            max_rpm=4500.0,
            rev_limiter_rpm=4000.0,
            launch_rpm=1600.0,
            idle_torque_nm=200.0,
            peak_torque_nm=360.0,
            redline_torque_nm=250.0,
            peak_torque_rpm=1800.0,
            engine_braking=0.45,
            engine_braking_torque_nm=120.0,
        ),
        transmission=TransmissionConfig(
            gear_ratios=[4.3772, 2.8586, 1.9206, 1.3684, 1.0000, 0.8204, 0.7276],
            final_drive=3.923,
            wheel_radius_m=tire_radius_m(245, 75, 16),
            front_drive_bias=0.0,
        ),
        aero=AeroConfig(frontal_area_m2=4.6, drag_coefficient=0.36, downforce_coefficient=0.0),
        chassis=ChassisConfig(
            mass_kg=2600.0,
            wheelbase_m=3.66,
            track_width_m=1.72,
            cg_height_m=0.85,
            front_weight_bias=0.50,
            max_speed_kph=160.0,
        ),
        tires=TireConfig(
            grip_coefficient=0.75,
            cornering_stiffness_front=130000.0,
            cornering_stiffness_rear=150000.0,
            load_sensitivity=0.10,
        ),
        steering=SteeringConfig(turn_rate=2.0, return_rate=1.5, low_deg=36.0, high_deg=7.0,
                                limit_speed_kph=100.0),
        brakes=BrakeConfig(strength=0.8, front_bias=0.65),
        dynamics_model=dynamics_model,
    )


PRESETS: Dict[str, Callable[..., CarConfig]] = {
    "gtr": gtr,
    "fiat_500": fiat_500,
    "sprinter": sprinter,
}


def get_preset(
    name: str,
    dynamics_model: DynamicsModelType = DynamicsModelType.FOUR_WHEEL,
) -> CarConfig:
    """Build a fresh configuration for a named preset.

    Args:
        name: Preset key (see PRESETS)
        dynamics_model: Dynamics model to use

    Returns:
        A new CarConfig

    Raises:
        ConfigurationError: If the preset does not exist.
    """
    try:
        factory = PRESETS[name]
    except KeyError:
        raise ConfigurationError(
            f"unknown vehicle preset {name!r}; available: {', '.join(sorted(PRESETS))}"
        ) from None
    return factory(dynamics_model)
