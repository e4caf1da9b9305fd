"""
Aerodynamics component - Drag and downforce.

Simulates:
- Speed-squared drag opposing motion
- Speed-squared downforce adding tire load
- Front/rear downforce split
"""

from dataclasses import dataclass

from racedyn.utils.constants import AIR_DENSITY
from racedyn.utils.exceptions import ConfigurationError
from racedyn.utils.numeric import clamp


@dataclass
class AeroConfig:
    """Configuration for vehicle aerodynamics."""
    air_density_kg_m3: float = AIR_DENSITY

    frontal_area_m2: float = 2.2

    # Coefficients
    drag_coefficient: float = 0.30
    downforce_coefficient: float = 0.25

    # Share of downforce on the front axle (<= 0 follows static weight bias)
    downforce_front_bias: float = 0.0

    def validate(self) -> None:
        """Validate aero parameters.

        Raises:
            ConfigurationError: If area or coefficients are negative.
        """
        if self.frontal_area_m2 <= 0.0:
            raise ConfigurationError("frontal_area_m2 must be positive")
        if self.drag_coefficient < 0.0 or self.downforce_coefficient < 0.0:
            raise ConfigurationError("aero coefficients must be non-negative")
        if self.air_density_kg_m3 <= 0.0:
            raise ConfigurationError("air_density_kg_m3 must be positive")


class Aero:
    """Aerodynamic force calculator.

    Stateless: forces are pure functions of speed so both dynamics models
    and the gear selector can share one instance.
    """

    def __init__(self, config: AeroConfig | None = None):
        """Initialize aerodynamics with optional configuration.

        Args:
            config: Aero configuration. Uses defaults if None.
        """
        self.config = config or AeroConfig()

    def _get_dynamic_pressure(self, speed: float) -> float:
        """Dynamic pressure in Pa at speed (m/s)."""
        return 0.5 * self.config.air_density_kg_m3 * speed * speed

    def calculate_drag(self, speed: float) -> float:
        """Calculate drag force at given speed.

        Args:
            speed: Vehicle speed in m/s (absolute value used)

        Returns:
            Drag force in Newtons (always positive)
        """
        q = self._get_dynamic_pressure(abs(speed))
        return q * self.config.drag_coefficient * self.config.frontal_area_m2

    def calculate_downforce(self, speed: float) -> float:
        """Calculate total downforce at given speed.

        Args:
            speed: Vehicle speed in m/s (absolute value used)

        Returns:
            Downforce in Newtons (positive = pushing down)
        """
        q = self._get_dynamic_pressure(abs(speed))
        return q * self.config.downforce_coefficient * self.config.frontal_area_m2

    def front_fraction(self, front_weight_bias: float) -> float:
        """Share of downforce acting on the front axle.

        Args:
            front_weight_bias: Static front weight bias used when no
                explicit downforce bias is configured

        Returns:
            Front downforce fraction in [0, 1]
        """
        if self.config.downforce_front_bias > 0.0:
            return clamp(self.config.downforce_front_bias, 0.0, 1.0)
        return front_weight_bias
