"""
Tire component - Per-wheel force primitives.

Simulates:
- Load-sensitive friction coefficient
- Saturating longitudinal force (tanh model, no slip-ratio state)
- Linear slip-angle lateral force
- Combined slip via a friction circle
"""

from dataclasses import dataclass
import numpy as np

from racedyn.utils.exceptions import ConfigurationError
from racedyn.utils.numeric import clamp

# Limits on the load-sensitivity grip multiplier
MIN_LOAD_FACTOR = 0.4
MAX_LOAD_FACTOR = 1.4

# Longitudinal wheel-point speed below which slip angles use a fixed denominator
MIN_SLIP_SPEED_MPS = 0.5


@dataclass
class TireConfig:
    """Configuration for the tire set.

    Cornering stiffness is given per axle (N/rad); each wheel of the
    four-wheel model gets half of it.
    """
    # Friction coefficients
    grip_coefficient: float = 0.9
    lateral_grip_coefficient: float = 1.0

    # Lateral stiffness per axle (N/rad)
    cornering_stiffness_front: float = 110000.0
    cornering_stiffness_rear: float = 120000.0

    # Longitudinal stiffness (force per unit load before saturation)
    longitudinal_stiffness_front: float = 9.0
    longitudinal_stiffness_rear: float = 10.0

    # Relative grip loss per unit of relative overload
    load_sensitivity: float = 0.15

    rolling_resistance_coefficient: float = 0.015

    def validate(self) -> None:
        """Validate tire parameters.

        Raises:
            ConfigurationError: If grip or stiffness values are invalid.
        """
        if self.grip_coefficient <= 0.0 or self.lateral_grip_coefficient <= 0.0:
            raise ConfigurationError("tire grip coefficients must be positive")
        if self.cornering_stiffness_front <= 0.0 or self.cornering_stiffness_rear <= 0.0:
            raise ConfigurationError("cornering stiffness must be positive")
        if self.longitudinal_stiffness_front < 0.0 or self.longitudinal_stiffness_rear < 0.0:
            raise ConfigurationError("longitudinal stiffness must be non-negative")
        if self.load_sensitivity < 0.0:
            raise ConfigurationError("load_sensitivity must be non-negative")
        if self.rolling_resistance_coefficient < 0.0:
            raise ConfigurationError("rolling_resistance_coefficient must be non-negative")


@dataclass
class WheelForces:
    """Force state of one tire for a single tick."""
    position: str = "FL"
    load_n: float = 0.0
    mu: float = 0.0
    force_x: float = 0.0
    force_y: float = 0.0

    @property
    def capacity_n(self) -> float:
        """Total friction force available (mu * load)."""
        return self.mu * self.load_n

    def get_state(self) -> dict:
        """Get wheel force state for telemetry."""
        return {
            "position": self.position,
            "load_n": self.load_n,
            "mu": self.mu,
            "force_x_n": self.force_x,
            "force_y_n": self.force_y,
        }


def adjust_mu_for_load(
    mu: float,
    load_n: float,
    nominal_load_n: float,
    sensitivity: float,
) -> float:
    """Scale friction for tire load sensitivity.

    Wheels loaded above nominal lose relative grip, lighter wheels gain it.

    Args:
        mu: Base friction coefficient
        load_n: Wheel vertical load
        nominal_load_n: Reference load (uniform share of total load)
        sensitivity: Relative grip change per unit relative overload

    Returns:
        Adjusted friction coefficient, within [0.4, 1.4] x mu
    """
    if sensitivity <= 0.0 or nominal_load_n <= 0.0:
        return mu
    load_factor = 1.0 - sensitivity * ((load_n - nominal_load_n) / nominal_load_n)
    return mu * clamp(load_factor, MIN_LOAD_FACTOR, MAX_LOAD_FACTOR)


def saturate_longitudinal_force(
    commanded_fx: float,
    load_n: float,
    mu: float,
    stiffness: float,
) -> float:
    """Apply a smooth saturation to a commanded wheel force.

    Fx = k * N * tanh(Fcmd / (k * N)), then clamped to the friction limit.

    Args:
        commanded_fx: Drive minus brake force requested at the wheel
        load_n: Wheel vertical load
        mu: Wheel friction coefficient
        stiffness: Longitudinal stiffness k (<= 0 disables the tanh shaping)

    Returns:
        Longitudinal force actually transmitted in N
    """
    max_force = mu * load_n
    if stiffness <= 0.0:
        return clamp(commanded_fx, -max_force, max_force)

    denom = max(1.0, stiffness * load_n)
    fx = denom * float(np.tanh(commanded_fx / denom))
    return clamp(fx, -max_force, max_force)


def lateral_force(
    vel_long: float,
    vel_lat: float,
    yaw_rate: float,
    x: float,
    y: float,
    steer_angle: float,
    stiffness: float,
) -> float:
    """Linear slip-angle lateral force at a wheel.

    Args:
        vel_long: Body longitudinal velocity (m/s)
        vel_lat: Body lateral velocity (m/s)
        yaw_rate: Body yaw rate (rad/s)
        x: Wheel position ahead of CG (m)
        y: Wheel position right of CG (m)
        steer_angle: Wheel steer angle (rad)
        stiffness: Cornering stiffness for this wheel (N/rad)

    Returns:
        Lateral force in N (opposes the slip angle)
    """
    vx = vel_long - yaw_rate * y
    vy = vel_lat + yaw_rate * x
    if abs(vx) < MIN_SLIP_SPEED_MPS:
        vx = MIN_SLIP_SPEED_MPS if vx >= 0.0 else -MIN_SLIP_SPEED_MPS
    slip = float(np.arctan2(vy, vx)) - steer_angle
    return -stiffness * slip


def clamp_to_friction_circle(fy: float, fx: float, max_force: float) -> float:
    """Limit lateral force to what the friction circle leaves after fx.

    Args:
        fy: Lateral force request
        fx: Already committed longitudinal force
        max_force: Friction limit mu * load

    Returns:
        Lateral force with |fy| <= sqrt(max(0, max_force^2 - fx^2))
    """
    max_fy = float(np.sqrt(max(0.0, max_force * max_force - fx * fx)))
    return clamp(fy, -max_fy, max_fy)
