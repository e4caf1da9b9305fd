"""
Telemetry frames - Typed samples of a car's driving state.

Provides:
- TelemetryFrame: motion, powertrain, pedal and grip state at one time
- ShiftEvent: a gear change seen between two consecutive frames
"""

from dataclasses import dataclass, fields

from racedyn.car.car import Car
from racedyn.utils.numeric import clamp, finite_or


@dataclass(frozen=True)
class TelemetryFrame:
    """Snapshot of one car at one simulation time."""
    time_s: float

    # Motion
    speed_kph: float
    speed_delta_kph: float           # Change over the last tick
    yaw_rate: float                  # rad/s, positive turning right
    steer_angle_deg: float
    distance_m: float

    # Powertrain
    rpm: float
    gear: int

    # Pedals as commanded, 0-100
    throttle: float
    brake: float

    # Grip
    lateral_usage: float
    grip_factor: float

    @classmethod
    def from_car(cls, car: Car, time_s: float) -> "TelemetryFrame":
        """Sample a car after its last tick.

        Args:
            car: Car to sample
            time_s: Simulation time stamped on the frame

        Returns:
            TelemetryFrame of the car's current state
        """
        result, inputs = car.last_result, car.last_inputs
        return cls(
            time_s=time_s,
            speed_kph=car.speed_kph,
            speed_delta_kph=result.speed_delta_kph,
            yaw_rate=car.state.yaw_rate,
            steer_angle_deg=car.steer_angle_deg,
            distance_m=car.distance_m,
            rpm=car.rpm,
            gear=car.gear,
            throttle=clamp(finite_or(inputs.throttle, 0.0), 0.0, 100.0),
            brake=clamp(abs(finite_or(inputs.brake, 0.0)), 0.0, 100.0),
            lateral_usage=result.lateral_usage,
            grip_factor=result.longitudinal_grip_factor,
        )


# Frame fields available as numeric series
FRAME_FIELDS = tuple(f.name for f in fields(TelemetryFrame))


@dataclass(frozen=True)
class ShiftEvent:
    """Gear change between two frames."""
    time_s: float
    from_gear: int
    to_gear: int
    speed_kph: float
    rpm: float  # After the shift

    @property
    def is_upshift(self) -> bool:
        return self.to_gear > self.from_gear
