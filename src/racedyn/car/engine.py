"""
Engine component - Torque curve parameters and RPM tracking.

Simulates:
- Per-gear speed ranges derived from the gearing
- RPM following road speed with throttle-dependent response
- Engine-braking feel when coasting (clutch engaged)
- Odometer

The engine does not produce force itself; drive and engine-braking forces
are computed by racedyn.car.powertrain from the configuration and the
current RPM.
"""

import logging
from dataclasses import dataclass

import numpy as np

from racedyn.car.transmission import TransmissionConfig
from racedyn.utils.constants import KPH_PER_MPS
from racedyn.utils.exceptions import ConfigurationError
from racedyn.utils.numeric import clamp

logger = logging.getLogger(__name__)

# Fraction of the idle-to-limiter range where the engine lands after an upshift
POST_UPSHIFT_RPM_FRACTION = 0.35

# Default auto-shift point relative to the rev limiter
DEFAULT_AUTO_SHIFT_FRACTION = 0.92

# RPM response rates (RPM per second)
THROTTLE_RISE_RATE = 3000.0
COAST_DECAY_RATE = 4000.0
COAST_RISE_RATE = 1500.0

# Throttle fraction above which the engine is considered driven
THROTTLE_ENGAGED = 0.1


@dataclass
class EngineConfig:
    """Configuration for the engine.

    Default values describe a twin-turbo 3.8L V6 road car.
    """
    # RPM limits
    idle_rpm: float = 900.0
    max_rpm: float = 8000.0
    rev_limiter_rpm: float = 7600.0

    # Automatic upshift point; None uses 92% of the rev limiter
    auto_shift_rpm: float | None = None

    # RPM the clutch holds the engine at for a full-throttle launch
    launch_rpm: float = 3000.0

    # Torque curve (Nm)
    idle_torque_nm: float = 250.0
    peak_torque_nm: float = 650.0
    redline_torque_nm: float = 520.0
    peak_torque_rpm: float = 4000.0

    # Overall multiplier on delivered torque
    power_factor: float = 1.0

    # Engine braking
    engine_braking: float = 0.25
    engine_braking_torque_nm: float = 150.0

    @property
    def shift_rpm(self) -> float:
        """RPM at which automatic upshifts are scheduled."""
        if self.auto_shift_rpm is not None and self.auto_shift_rpm > 0.0:
            return min(self.auto_shift_rpm, self.rev_limiter_rpm)
        return self.rev_limiter_rpm * DEFAULT_AUTO_SHIFT_FRACTION

    @property
    def post_upshift_rpm(self) -> float:
        """RPM floor below which a gear is considered lugging."""
        return self.idle_rpm + POST_UPSHIFT_RPM_FRACTION * (self.rev_limiter_rpm - self.idle_rpm)

    def validate(self) -> None:
        """Validate engine parameters.

        Raises:
            ConfigurationError: If RPM limits are inconsistent or torques negative.
        """
        if self.idle_rpm <= 0.0:
            raise ConfigurationError("idle_rpm must be positive")
        if self.max_rpm <= self.idle_rpm:
            raise ConfigurationError("max_rpm must exceed idle_rpm")
        if not self.idle_rpm < self.rev_limiter_rpm <= self.max_rpm:
            raise ConfigurationError("rev_limiter_rpm must be in (idle_rpm, max_rpm]")
        if self.launch_rpm < self.idle_rpm:
            raise ConfigurationError("launch_rpm must not be below idle_rpm")
        if min(self.idle_torque_nm, self.peak_torque_nm, self.redline_torque_nm) < 0.0:
            raise ConfigurationError("torque values must be non-negative")
        if self.power_factor < 0.0:
            raise ConfigurationError("power_factor must be non-negative")
        if self.engine_braking < 0.0 or self.engine_braking_torque_nm < 0.0:
            raise ConfigurationError("engine braking values must be non-negative")


class Engine:
    """Engine RPM tracker.

    Keeps RPM and distance in step with the simulated road speed. Speed
    ranges per gear are computed once from the gearing:
    - max: speed at the rev limiter
    - shift: speed at the auto-shift RPM
    - min: speed at the post-upshift RPM (0 for first gear)
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        transmission: TransmissionConfig | None = None,
    ):
        """Initialize engine with optional configuration.

        Args:
            config: Engine configuration. Uses defaults if None.
            transmission: Gearing used for the per-gear speed tables.
        """
        self.config = config or EngineConfig()
        self.transmission = transmission or TransmissionConfig()

        self._rpm: float = self.config.idle_rpm
        self._distance_m: float = 0.0
        self._speed_kph: float = 0.0

        cfg = self.config
        gears = range(1, self.gear_count + 1)
        self._max_speeds = np.array(
            [self.transmission.speed_at_rpm_kph(cfg.rev_limiter_rpm, g) for g in gears]
        )
        self._shift_speeds = np.array(
            [self.transmission.speed_at_rpm_kph(cfg.shift_rpm, g) for g in gears]
        )
        self._min_speeds = np.array(
            [0.0 if g == 1 else self.transmission.speed_at_rpm_kph(cfg.post_upshift_rpm, g)
             for g in gears]
        )

    @property
    def gear_count(self) -> int:
        return self.transmission.gear_count

    @property
    def rpm(self) -> float:
        """Current engine RPM."""
        return self._rpm

    @rpm.setter
    def rpm(self, value: float) -> None:
        """Set engine RPM, clamped to valid range."""
        self._rpm = clamp(value, self.config.idle_rpm, self.config.max_rpm)

    @property
    def distance_m(self) -> float:
        """Distance covered since the last reset in meters."""
        return self._distance_m

    @property
    def speed_kph(self) -> float:
        """Speed passed to the last sync."""
        return self._speed_kph

    def _clamp_gear(self, gear: int) -> int:
        return int(np.clip(gear, 1, self.gear_count))

    def get_gear_ratio(self, gear: int) -> float:
        return self.transmission.gear_ratio(gear)

    def gear_min_speed_kph(self, gear: int) -> float:
        return float(self._min_speeds[self._clamp_gear(gear) - 1])

    def gear_shift_speed_kph(self, gear: int) -> float:
        return float(self._shift_speeds[self._clamp_gear(gear) - 1])

    def gear_max_speed_kph(self, gear: int) -> float:
        return float(self._max_speeds[self._clamp_gear(gear) - 1])

    def gear_range_kph(self, gear: int) -> float:
        return self.gear_max_speed_kph(gear) - self.gear_min_speed_kph(gear)

    def get_gear_for_speed(self, speed_kph: float) -> int:
        """Lowest gear that can carry the given speed.

        Non-final gears are judged by their auto-shift speed, the final
        gear by its rev-limiter speed.

        Args:
            speed_kph: Road speed in km/h

        Returns:
            Gear number in [1, gear_count]
        """
        for gear in range(1, self.gear_count + 1):
            if gear < self.gear_count:
                limit = self._shift_speeds[gear - 1]
            else:
                limit = self._max_speeds[gear - 1]
            if limit >= speed_kph:
                return gear
        return self.gear_count

    def target_rpm(self, speed_kph: float, gear: int) -> float:
        """RPM the engine settles at for a speed in a gear.

        First gear spans idle to limiter over [0, gear max]. Higher gears
        span post-upshift RPM to limiter over [gear min, gear max].
        """
        cfg = self.config
        gear = self._clamp_gear(gear)
        gear_max = self.gear_max_speed_kph(gear)

        if gear == 1:
            progress = speed_kph / gear_max if gear_max > 0.0 else 0.0
            low_rpm = cfg.idle_rpm
        else:
            gear_min = self.gear_min_speed_kph(gear)
            span = gear_max - gear_min
            progress = (speed_kph - gear_min) / span if span > 0.0 else 0.0
            low_rpm = cfg.post_upshift_rpm

        progress = clamp(progress, 0.0, 1.0)
        target = low_rpm + (cfg.rev_limiter_rpm - low_rpm) * progress
        return clamp(target, cfg.idle_rpm, cfg.max_rpm)

    def sync_from_speed(
        self,
        speed_kph: float,
        gear: int,
        dt: float,
        throttle_input: float = 0.0,
    ) -> float:
        """Move RPM toward the speed-derived target and accumulate distance.

        Args:
            speed_kph: Road speed in km/h
            gear: Selected gear
            dt: Time step in seconds
            throttle_input: Throttle pedal 0-100

        Returns:
            Updated RPM
        """
        if dt <= 0.0:
            return self._rpm
        speed_kph = max(0.0, speed_kph)
        target = self.target_rpm(speed_kph, gear)
        throttle = max(0.0, throttle_input) / 100.0

        if throttle > THROTTLE_ENGAGED:
            rise_rate = THROTTLE_RISE_RATE * throttle
            fall_rate = rise_rate * 0.5
        else:
            rise_rate = COAST_RISE_RATE * self.config.engine_braking
            fall_rate = COAST_DECAY_RATE * self.config.engine_braking

        if self._rpm < target:
            rpm = min(target, self._rpm + rise_rate * dt)
        else:
            rpm = max(target, self._rpm - fall_rate * dt)
        self.rpm = rpm

        self._speed_kph = speed_kph
        self._distance_m += speed_kph / KPH_PER_MPS * dt
        return self._rpm

    def override_rpm(self, rpm: float) -> None:
        """Raise RPM to a powertrain-demanded value (clutch slip at launch)."""
        if rpm > self._rpm:
            self.rpm = rpm

    def reset(self) -> None:
        """Reset to idle with a zeroed odometer."""
        self._rpm = self.config.idle_rpm
        self._distance_m = 0.0
        self._speed_kph = 0.0

    def reset_for_crash(self) -> None:
        """Reset to idle, keeping the distance covered."""
        logger.debug("engine reset after crash at %.1f m", self._distance_m)
        self._rpm = self.config.idle_rpm
        self._speed_kph = 0.0

    def get_state(self) -> dict:
        """Get engine state for telemetry."""
        return {
            "rpm": self._rpm,
            "distance_m": self._distance_m,
            "speed_kph": self._speed_kph,
        }
