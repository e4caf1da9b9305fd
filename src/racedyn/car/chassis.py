"""
Chassis component - Vehicle mass properties and geometry.

Defines:
- Total vehicle mass
- Wheelbase and track width
- Center of gravity position and height
- Yaw inertia
- Roll stiffness distribution
"""

from dataclasses import dataclass

from racedyn.utils.constants import GRAVITY
from racedyn.utils.exceptions import ConfigurationError


@dataclass
class ChassisConfig:
    """Configuration for the vehicle chassis.

    Default values describe a heavy all-wheel-drive sports coupe.
    CG offsets and yaw inertia are derived when left as None.
    """
    # Mass properties
    mass_kg: float = 1750.0

    # Geometry (meters)
    wheelbase_m: float = 2.78
    track_width_m: float = 1.60
    cg_height_m: float = 0.48

    # Static weight on the front axle (0-1)
    front_weight_bias: float = 0.54

    # Distances from CG to each axle (derived from weight bias if None)
    cg_to_front_m: float | None = None
    cg_to_rear_m: float | None = None

    # Yaw moment of inertia; approximated as mass * factor * wheelbase^2 if None
    yaw_inertia_kg_m2: float | None = None
    yaw_inertia_factor: float = 0.25

    # Share of lateral load transfer carried by the front axle (<= 0 uses weight bias)
    roll_stiffness_front_fraction: float = 0.55

    # Speed cap applied by the integrator (<= 0 disables)
    max_speed_kph: float = 315.0

    @property
    def weight_n(self) -> float:
        """Static vehicle weight in Newtons."""
        return self.mass_kg * GRAVITY

    @property
    def cg_to_front(self) -> float:
        """Distance from CG to front axle in meters."""
        if self.cg_to_front_m is not None:
            return self.cg_to_front_m
        return self.wheelbase_m * (1.0 - self.front_weight_bias)

    @property
    def cg_to_rear(self) -> float:
        """Distance from CG to rear axle in meters."""
        if self.cg_to_rear_m is not None:
            return self.cg_to_rear_m
        return self.wheelbase_m * self.front_weight_bias

    @property
    def yaw_inertia(self) -> float:
        """Yaw moment of inertia in kg*m^2."""
        if self.yaw_inertia_kg_m2 is not None:
            return self.yaw_inertia_kg_m2
        return self.mass_kg * self.yaw_inertia_factor * self.wheelbase_m ** 2

    def validate(self) -> None:
        """Validate chassis parameters.

        Raises:
            ConfigurationError: If mass, geometry or biases are out of range.
        """
        if self.mass_kg < 1.0:
            raise ConfigurationError("mass_kg must be at least 1 kg")
        if self.wheelbase_m <= 0.0 or self.track_width_m <= 0.0:
            raise ConfigurationError("wheelbase_m and track_width_m must be positive")
        if self.cg_height_m < 0.0:
            raise ConfigurationError("cg_height_m must be non-negative")
        if not 0.0 < self.front_weight_bias < 1.0:
            raise ConfigurationError("front_weight_bias must be in (0, 1)")
        if self.yaw_inertia <= 0.0:
            raise ConfigurationError("yaw inertia must be positive")
