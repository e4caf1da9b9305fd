"""
Telemetry recorder - Samples one car into typed frames.

Provides:
- Fixed-rate sampling on the simulator clock
- Gear-change events and time spent in each gear
- Peak values and time-to-speed milestones for the run
- Per-field numpy arrays over the buffered frames
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional, Tuple

import numpy as np

from racedyn.car.car import Car
from racedyn.telemetry.frame import FRAME_FIELDS, ShiftEvent, TelemetryFrame
from racedyn.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class RecorderConfig:
    """Recorder configuration."""
    sample_rate_hz: float = 100.0  # Recording frequency
    buffer_size: int = 100000      # Frames kept; the oldest are dropped first

    # Speeds whose first crossing is timed from the start of the recording
    speed_milestones_kph: Tuple[float, ...] = (100.0, 200.0)

    def validate(self) -> None:
        """Validate recorder settings.

        Raises:
            ConfigurationError: If the rate, buffer or milestones are not positive.
        """
        if self.sample_rate_hz <= 0.0:
            raise ConfigurationError("sample_rate_hz must be positive")
        if self.buffer_size < 1:
            raise ConfigurationError("buffer_size must be at least 1")
        if any(speed <= 0.0 for speed in self.speed_milestones_kph):
            raise ConfigurationError("speed milestones must be positive")


class TelemetryRecorder:
    """Records one car's run as a bounded sequence of frames.

    Shift events, time in gear, peaks and milestones cover the whole run,
    including frames that have already left the buffer. Gear changes are
    seen between samples, so a sample rate below the tick rate can merge
    consecutive shifts.

    Usage:
        recorder = TelemetryRecorder(car=car)
        simulator.add_post_step_callback(recorder.as_callback())
        ...
        speeds = recorder.channel("speed_kph")
    """

    def __init__(
        self,
        config: RecorderConfig | None = None,
        car: Car | None = None,
    ):
        """Initialize recorder.

        Args:
            config: Recorder configuration
            car: Car to record (can be set later)

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self.config = config or RecorderConfig()
        self.config.validate()
        self._car = car
        self._sample_interval: float = 1.0 / self.config.sample_rate_hz

        self._frames: Deque[TelemetryFrame] = deque(maxlen=self.config.buffer_size)
        self._shifts: List[ShiftEvent] = []
        self._time_in_gear: Dict[int, float] = {}
        self._milestones: Dict[float, float] = {}
        self._first: Optional[TelemetryFrame] = None
        self._last: Optional[TelemetryFrame] = None
        self._count: int = 0

        self._peak_speed_kph: float = 0.0
        self._peak_rpm: float = 0.0
        self._peak_lateral_usage: float = 0.0

    def set_car(self, car: Car) -> None:
        self._car = car

    @property
    def frames(self) -> List[TelemetryFrame]:
        """Buffered frames, oldest first."""
        return list(self._frames)

    @property
    def frame_count(self) -> int:
        """Frames recorded since the last clear (including dropped ones)."""
        return self._count

    @property
    def last_frame(self) -> Optional[TelemetryFrame]:
        return self._last

    @property
    def shifts(self) -> List[ShiftEvent]:
        return list(self._shifts)

    def record(self, time: float) -> bool:
        """Sample the car at the current simulation time.

        Samples closer together than the sample interval are skipped.

        Args:
            time: Current simulation time

        Returns:
            True if a frame was recorded
        """
        if self._car is None:
            return False
        # Small tolerance so float time steps don't drop samples
        if self._last is not None and time - self._last.time_s < self._sample_interval - 1e-9:
            return False

        self.add_frame(TelemetryFrame.from_car(self._car, time))
        return True

    def add_frame(self, frame: TelemetryFrame) -> None:
        """Append a frame and update the run statistics.

        Args:
            frame: Frame stamped later than the previous one
        """
        previous = self._last
        if previous is None:
            self._first = frame
        else:
            # The interval up to this frame was driven in the previous gear
            elapsed = max(0.0, frame.time_s - previous.time_s)
            self._time_in_gear[previous.gear] = self._time_in_gear.get(previous.gear, 0.0) + elapsed
            if frame.gear != previous.gear:
                self._shifts.append(ShiftEvent(
                    frame.time_s, previous.gear, frame.gear, frame.speed_kph, frame.rpm))
                logger.debug("gear %d -> %d at %.1f km/h", previous.gear, frame.gear,
                             frame.speed_kph)

        for speed in self.config.speed_milestones_kph:
            if speed not in self._milestones and frame.speed_kph >= speed:
                self._milestones[speed] = frame.time_s - self._first.time_s

        self._peak_speed_kph = max(self._peak_speed_kph, frame.speed_kph)
        self._peak_rpm = max(self._peak_rpm, frame.rpm)
        self._peak_lateral_usage = max(self._peak_lateral_usage, frame.lateral_usage)

        self._frames.append(frame)
        self._last = frame
        self._count += 1

    def as_callback(self) -> Callable:
        """Post-step callback recording at the simulator's clock."""
        def _callback(simulator, dt):
            self.record(simulator.time)
        return _callback

    def channel(self, name: str) -> np.ndarray:
        """One frame field over the buffered frames.

        Raises:
            KeyError: If name is not a frame field.
        """
        if name not in FRAME_FIELDS:
            raise KeyError(f"unknown telemetry field: {name}")
        return np.array([getattr(frame, name) for frame in self._frames], dtype=float)

    def to_arrays(self) -> Dict[str, np.ndarray]:
        """Every frame field over the buffered frames."""
        return {name: self.channel(name) for name in FRAME_FIELDS}

    def time_in_gear(self) -> Dict[int, float]:
        """Seconds spent in each gear, by gear."""
        return dict(sorted(self._time_in_gear.items()))

    def time_to_speed(self, speed_kph: float) -> Optional[float]:
        """Seconds from the first frame until a milestone speed was reached.

        Returns:
            Elapsed time, or None if the speed is not a configured
            milestone or was never reached
        """
        return self._milestones.get(speed_kph)

    def get_summary(self) -> dict:
        """Summary of the whole run."""
        first, last = self._first, self._last
        return {
            "frames": self._count,
            "duration_s": last.time_s - first.time_s if last else 0.0,
            "distance_m": last.distance_m - first.distance_m if last else 0.0,
            "peak_speed_kph": self._peak_speed_kph,
            "peak_rpm": self._peak_rpm,
            "peak_lateral_usage": self._peak_lateral_usage,
            "upshifts": sum(1 for shift in self._shifts if shift.is_upshift),
            "downshifts": sum(1 for shift in self._shifts if not shift.is_upshift),
            "time_in_gear_s": self.time_in_gear(),
            "time_to_speed_s": {
                speed: self._milestones.get(speed) for speed in self.config.speed_milestones_kph
            },
        }

    def clear(self) -> None:
        """Drop all frames and restart the run."""
        self._frames.clear()
        self._shifts.clear()
        self._time_in_gear.clear()
        self._milestones.clear()
        self._first = None
        self._last = None
        self._count = 0
        self._peak_speed_kph = 0.0
        self._peak_rpm = 0.0
        self._peak_lateral_usage = 0.0

    def get_state(self) -> dict:
        """Get recorder state."""
        return {
            "sample_rate_hz": self.config.sample_rate_hz,
            "buffered_frames": len(self._frames),
            "summary": self.get_summary(),
        }
