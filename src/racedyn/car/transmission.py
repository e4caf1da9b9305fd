"""
Transmission component - Gear ratios and the gear state machine.

Simulates:
- Per-gear ratios with final drive
- Automatic shifting gated by a post-shift cooldown
- Sequential manual shifting
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Optional
import numpy as np

from racedyn.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_GEAR_COUNT = 6

# First and last gear of the generated ratio set
GENERATED_FIRST_RATIO = 2.5
GENERATED_RATIO_SPAN = 1.7


def default_gear_ratios(gear_count: int = DEFAULT_GEAR_COUNT) -> list[float]:
    """Evenly spaced ratios from 2.5 (first gear) down to 0.8 (top gear).

    Args:
        gear_count: Number of forward gears (at least 1)

    Returns:
        List of gear ratios
    """
    gear_count = max(1, gear_count)
    progress = np.arange(gear_count) / max(1, gear_count - 1)
    return [float(r) for r in GENERATED_FIRST_RATIO - GENERATED_RATIO_SPAN * progress]


@dataclass
class TransmissionConfig:
    """Configuration for the drivetrain.

    An empty gear_ratios list is replaced by a generated six-speed set.
    """
    gear_ratios: list[float] = field(
        default_factory=lambda: [4.06, 2.30, 1.59, 1.25, 1.00, 0.80]
    )
    final_drive: float = 3.70

    wheel_radius_m: float = 0.35
    drivetrain_efficiency: float = 0.85

    # Share of drive force sent to the front axle (0 = RWD, 1 = FWD)
    front_drive_bias: float = 0.35

    manual: bool = False

    # Automatic shift tuning
    shift_hysteresis: float = 0.05
    shift_cooldown_s: float = 0.15

    def __post_init__(self):
        if not self.gear_ratios:
            self.gear_ratios = default_gear_ratios()

    @property
    def gear_count(self) -> int:
        """Number of forward gears."""
        return len(self.gear_ratios)

    @property
    def wheel_circumference_m(self) -> float:
        """Rolling circumference of the driven wheels."""
        return 2.0 * np.pi * self.wheel_radius_m

    def gear_ratio(self, gear: int) -> float:
        """Ratio of a gear, with the gear number clamped to [1, gear_count]."""
        gear = int(np.clip(gear, 1, self.gear_count))
        return self.gear_ratios[gear - 1]

    def rpm_at_speed(self, speed_mps: float, gear: int) -> float:
        """Engine RPM implied by road speed in a gear (no slip, clutch closed)."""
        circumference = self.wheel_circumference_m
        if circumference <= 0.0:
            return 0.0
        return abs(speed_mps) / circumference * 60.0 * self.gear_ratio(gear) * self.final_drive

    def speed_at_rpm_kph(self, rpm: float, gear: int) -> float:
        """Road speed in km/h reached at an engine RPM in a gear."""
        overall = self.gear_ratio(gear) * self.final_drive
        if overall <= 0.0:
            return 0.0
        return rpm / overall * self.wheel_circumference_m / 60.0 * 3.6

    def validate(self) -> None:
        """Validate drivetrain parameters.

        Raises:
            ConfigurationError: If ratios, radius or biases are invalid.
        """
        if any(r <= 0.0 for r in self.gear_ratios):
            raise ConfigurationError("gear ratios must be positive")
        if self.final_drive <= 0.0:
            raise ConfigurationError("final_drive must be positive")
        if self.wheel_radius_m <= 0.0:
            raise ConfigurationError("wheel_radius_m must be positive")
        if not 0.0 < self.drivetrain_efficiency <= 1.0:
            raise ConfigurationError("drivetrain_efficiency must be in (0, 1]")
        if not 0.0 <= self.front_drive_bias <= 1.0:
            raise ConfigurationError("front_drive_bias must be in [0, 1]")
        if self.shift_cooldown_s < 0.0 or self.shift_hysteresis < 0.0:
            raise ConfigurationError("shift cooldown and hysteresis must be non-negative")


class GearDecision(NamedTuple):
    """Outcome of one automatic gear evaluation."""
    should_shift: bool
    target_gear: int
    reason: str = ""


class Transmission:
    """Gear state machine.

    States are gears 1..N. Automatic transitions only fire while no
    cooldown is pending; every shift restarts the cooldown.

    Usage:
        transmission = Transmission()
        transmission.update_automatic(dt, lambda gear: decide(gear))
    """

    def __init__(self, config: TransmissionConfig | None = None):
        """Initialize transmission with optional configuration.

        Args:
            config: Transmission configuration. Uses defaults if None.
        """
        self.config = config or TransmissionConfig()

        self.current_gear = 1
        self.cooldown_remaining = 0.0
        self.shift_count = 0

    @property
    def gear_count(self) -> int:
        return self.config.gear_count

    @property
    def current_ratio(self) -> float:
        return self.config.gear_ratio(self.current_gear)

    @property
    def in_cooldown(self) -> bool:
        return self.cooldown_remaining > 0.0

    def update_automatic(
        self,
        dt: float,
        decide: Callable[[int], GearDecision],
    ) -> Optional[GearDecision]:
        """Run one automatic-shift evaluation.

        Args:
            dt: Time step in seconds
            decide: Called with the current gear when no cooldown is pending

        Returns:
            The applied decision if a shift happened, else None
        """
        if self.gear_count <= 1:
            return None

        if self.cooldown_remaining > 0.0:
            self.cooldown_remaining -= dt
            return None

        decision = decide(self.current_gear)
        if not decision.should_shift or decision.target_gear == self.current_gear:
            return None

        self._apply_shift(decision.target_gear, decision.reason)
        self.cooldown_remaining = self.config.shift_cooldown_s
        return decision

    def shift_up(self) -> bool:
        """Shift up one gear. Returns False if already in top gear."""
        if self.current_gear >= self.gear_count:
            return False
        self._apply_shift(self.current_gear + 1, "manual")
        return True

    def shift_down(self) -> bool:
        """Shift down one gear. Returns False if already in first gear."""
        if self.current_gear <= 1:
            return False
        self._apply_shift(self.current_gear - 1, "manual")
        return True

    def set_gear(self, gear: int) -> None:
        """Select a gear directly, clamped to the valid range."""
        self.current_gear = int(np.clip(gear, 1, self.gear_count))

    def _apply_shift(self, gear: int, reason: str) -> None:
        gear = int(np.clip(gear, 1, self.gear_count))
        logger.debug("shift %d -> %d (%s)", self.current_gear, gear, reason)
        self.current_gear = gear
        self.shift_count += 1

    def reset(self) -> None:
        """Return to first gear with no pending cooldown."""
        self.current_gear = 1
        self.cooldown_remaining = 0.0
        self.shift_count = 0

    def get_state(self) -> dict:
        """Get transmission state for telemetry."""
        return {
            "gear": self.current_gear,
            "gear_ratio": self.current_ratio,
            "cooldown_s": max(0.0, self.cooldown_remaining),
            "shift_count": self.shift_count,
            "manual": self.config.manual,
        }
