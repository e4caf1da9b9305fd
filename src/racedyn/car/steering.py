"""
Steering component - Driver steering command shaping.

Converts a normalized steering command into a front-wheel angle:
- Rate-limited follow of the command (turn-in vs. self-centering rates)
- Self-centering that strengthens with speed
- Non-linear response curve (gamma)
- Speed-sensitive steering lock
"""

from dataclasses import dataclass
import numpy as np

from racedyn.utils.exceptions import ConfigurationError
from racedyn.utils.numeric import approach, clamp, lerp, smoothstep

# Self-centering scale at standstill and at the limit speed
RETURN_SCALE_AT_ZERO_SPEED = 0.05
RETURN_SCALE_AT_LIMIT_SPEED = 1.8

# Below this speed the steering behaves as if parked
STANDSTILL_SPEED_KPH = 5.0


@dataclass
class SteeringConfig:
    """Configuration for steering response.

    Rates are in normalized steering units per second (full lock = 1.0).
    """
    turn_rate: float = 3.0
    return_rate: float = 2.0

    # Response curve exponent (1.0 = linear)
    gamma: float = 1.3

    # Wheel angle limit at standstill and at/above limit speed (degrees)
    low_deg: float = 35.0
    high_deg: float = 6.0

    # Speed where the lock reaches high_deg; <= 0 disables the blend
    limit_speed_kph: float = 140.0

    # Optional exponent applied to the smoothstep blend (<= 0 disables)
    speed_exponent: float = 1.0

    def validate(self) -> None:
        """Validate steering parameters.

        Raises:
            ConfigurationError: If a rate, gamma or angle limit is invalid.
        """
        if self.turn_rate <= 0.0 or self.return_rate <= 0.0:
            raise ConfigurationError("steering rates must be positive")
        if self.gamma <= 0.0:
            raise ConfigurationError("steering gamma must be positive")
        if self.low_deg <= 0.0 or self.high_deg <= 0.0:
            raise ConfigurationError("steering angle limits must be positive")


class Steering:
    """Steering shaper.

    Owns no state of its own: the steer input and resulting wheel angle live
    on the vehicle's dynamics state so the integrator can read them.

    Usage:
        steering = Steering()
        steering.update(state, steering_command=50, speed_kph=80.0, dt=0.01)
        angle = state.steer_angle_rad
    """

    def __init__(self, config: SteeringConfig | None = None):
        """Initialize steering with optional configuration.

        Args:
            config: Steering configuration. Uses defaults if None.
        """
        self.config = config or SteeringConfig()

    def speed_blend(self, speed_kph: float) -> float:
        """Blend factor t in [0, 1] between low-speed and high-speed behavior.

        Args:
            speed_kph: Vehicle speed in km/h

        Returns:
            Smoothstep blend, optionally raised to the speed exponent
        """
        cfg = self.config
        if cfg.limit_speed_kph <= 0.0:
            return 1.0
        t = smoothstep(clamp(speed_kph / cfg.limit_speed_kph, 0.0, 1.0))
        if cfg.speed_exponent > 0.0:
            t = t ** cfg.speed_exponent
        return t

    def angle_limit_deg(self, speed_kph: float) -> float:
        """Maximum wheel angle in degrees at the given speed."""
        cfg = self.config
        if cfg.limit_speed_kph <= 0.0:
            return cfg.low_deg
        return lerp(cfg.low_deg, cfg.high_deg, self.speed_blend(speed_kph))

    def update(
        self,
        state,
        steering_command: float,
        speed_kph: float,
        dt: float,
    ) -> float:
        """Advance steer input toward the command and recompute wheel angle.

        Args:
            state: Dynamics state holding steer_input and steer angles
            steering_command: Command in -100 (left) .. 100 (right)
            speed_kph: Vehicle speed in km/h
            dt: Time step in seconds

        Returns:
            Wheel angle in radians
        """
        cfg = self.config
        desired = clamp(steering_command / 100.0, -1.0, 1.0)
        if speed_kph < STANDSTILL_SPEED_KPH:
            speed_kph = 0.0

        t = self.speed_blend(speed_kph)
        if abs(desired) > abs(state.steer_input):
            rate = cfg.turn_rate
        else:
            rate = cfg.return_rate * lerp(
                RETURN_SCALE_AT_ZERO_SPEED, RETURN_SCALE_AT_LIMIT_SPEED, t
            )
        state.steer_input = approach(state.steer_input, desired, rate * dt)

        magnitude = abs(state.steer_input)
        shaped = 0.0 if magnitude <= 0.0 else float(np.sign(state.steer_input)) * magnitude ** cfg.gamma

        state.steer_angle_deg = shaped * self.angle_limit_deg(speed_kph)
        state.steer_angle_rad = float(np.radians(state.steer_angle_deg))
        return state.steer_angle_rad
