"""
Dynamics component - Planar vehicle motion for one simulation tick.

Two interchangeable models share one step() contract:
- FourWheelDynamics: per-wheel loads with longitudinal and lateral load
  transfer, load-sensitive grip, Ackermann steering and a friction circle
  per tire
- BicycleDynamics: the same force pipeline collapsed to one tire per axle

Both integrate longitudinal velocity, lateral velocity and yaw rate in the
vehicle body frame, with a kinematic fallback near standstill.
"""

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

import numpy as np

from racedyn.car.aero import Aero
from racedyn.car.steering import Steering
from racedyn.car.tires import (
    WheelForces,
    adjust_mu_for_load,
    clamp_to_friction_circle,
    lateral_force,
    saturate_longitudinal_force,
)
from racedyn.utils.constants import GRAVITY, KPH_PER_MPS
from racedyn.utils.numeric import approach, clamp, finite_or, is_finite, sign

if TYPE_CHECKING:
    from racedyn.car.car import CarConfig

logger = logging.getLogger(__name__)

# Full-stop rule: below this speed, braking with no drive holds the car still
STOP_SPEED_MPS = 0.05
STOP_DRIVE_FORCE_N = 1.0

# Below this forward speed resistive and brake forces have no direction
MOTION_SIGN_SPEED_MPS = 0.01

# Below this forward speed yaw and lateral motion follow the kinematic model
KINEMATIC_SPEED_MPS = 0.5
KINEMATIC_YAW_RESPONSE = 4.0
KINEMATIC_LATERAL_DECAY = 2.5

# Load floors as fractions of static weight
AXLE_LOAD_FLOOR = 0.1
WHEEL_LOAD_FLOOR = 0.02

# Roll stiffness split limits
MIN_ROLL_FRONT = 0.2
MAX_ROLL_FRONT = 0.8

MIN_MU = 0.05
MIN_LENGTH_M = 0.01
MIN_STEER_RAD = 1e-4


class DynamicsModelType(Enum):
    """Available planar dynamics models."""
    FOUR_WHEEL = "four_wheel"
    BICYCLE = "bicycle"


@dataclass
class DynamicsState:
    """Body-frame motion state of one vehicle.

    Velocities are in m/s, yaw in radians (positive turns right).
    """
    vel_long: float = 0.0
    vel_lat: float = 0.0
    yaw: float = 0.0
    yaw_rate: float = 0.0
    steer_input: float = 0.0
    steer_angle_rad: float = 0.0
    steer_angle_deg: float = 0.0

    @property
    def speed_mps(self) -> float:
        """Planar speed magnitude in m/s."""
        return float(np.hypot(self.vel_long, self.vel_lat))

    @property
    def speed_kph(self) -> float:
        """Planar speed magnitude in km/h."""
        return self.speed_mps * KPH_PER_MPS

    def sanitize(self) -> bool:
        """Reset every non-finite field to zero.

        Returns:
            True if any field was reset
        """
        changed = False
        for f in fields(self):
            if not is_finite(getattr(self, f.name)):
                setattr(self, f.name, 0.0)
                changed = True
        return changed

    def reset(self) -> None:
        """Zero all motion and steering state."""
        for f in fields(self):
            setattr(self, f.name, 0.0)

    def get_state(self) -> dict:
        """Get dynamics state for telemetry."""
        return {
            "vel_long_mps": self.vel_long,
            "vel_lat_mps": self.vel_lat,
            "yaw_rad": self.yaw,
            "yaw_rate_rad_s": self.yaw_rate,
            "steer_input": self.steer_input,
            "steer_angle_deg": self.steer_angle_deg,
        }


@dataclass
class DynamicsInputs:
    """Per-tick forces and grip figures handed to the integrator.

    Forces are magnitudes in Newtons; brake and engine-brake forces always
    oppose the direction of travel.
    """
    dt: float = 0.0
    steering_command: float = 0.0
    drive_force: float = 0.0
    brake_force: float = 0.0
    engine_brake_force: float = 0.0
    surface_traction_mod: float = 1.0
    tire_grip: float = 0.9
    lateral_grip: float = 1.0


@dataclass
class TickResult:
    """Outcome of one dynamics step."""
    speed_kph: float = 0.0
    speed_delta_kph: float = 0.0
    lateral_usage: float = 0.0
    longitudinal_grip_factor: float = 1.0


class _AxleLoads(NamedTuple):
    front: float
    rear: float
    total: float


class _TireSpec(NamedTuple):
    position: str
    x: float
    y: float
    load: float
    steer: float
    cornering_stiffness: float
    longitudinal_stiffness: float
    commanded_fx: float


def ackermann_angles(steer_angle: float, wheelbase: float, track_width: float) -> tuple[float, float]:
    """Left and right front wheel angles for a single steer angle.

    The inner wheel turns tighter than the outer one so both follow
    circles around the same center.

    Args:
        steer_angle: Reference steer angle in radians (positive = right)
        wheelbase: Wheelbase in meters
        track_width: Track width in meters

    Returns:
        (left_angle, right_angle) in radians
    """
    if abs(steer_angle) <= MIN_STEER_RAD or wheelbase <= 0.0:
        return steer_angle, steer_angle

    radius = abs(wheelbase / np.tan(steer_angle))
    half_track = track_width * 0.5
    inner = float(np.arctan(wheelbase / max(MIN_LENGTH_M, radius - half_track)))
    outer = float(np.arctan(wheelbase / (radius + half_track)))
    if steer_angle > 0.0:
        return outer, inner
    return -inner, -outer


class DynamicsModel:
    """Base class for planar dynamics models.

    Subclasses only describe their tires; sanitizing, the full-stop rule,
    resistive forces, axle loads, integration and the exit clamp are shared.

    Usage:
        model = create_dynamics_model(DynamicsModelType.FOUR_WHEEL)
        result = model.step(state, car_config, inputs)
    """

    model_type: DynamicsModelType

    def __init__(self):
        # Tire forces of the last step, for diagnostics
        self.wheels: list[WheelForces] = []

        # Built from the first config stepped with, rebuilt if it is swapped
        self.steering: Steering | None = None
        self.aero: Aero | None = None

    def _bind(self, config: "CarConfig") -> None:
        if self.steering is None or self.steering.config is not config.steering:
            self.steering = Steering(config.steering)
        if self.aero is None or self.aero.config is not config.aero:
            self.aero = Aero(config.aero)

    def step(self, state: DynamicsState, config: "CarConfig", inputs: DynamicsInputs) -> TickResult:
        """Advance the vehicle state by one tick.

        Never raises: bad inputs degrade to zero force or zero motion.

        Args:
            state: Vehicle motion state, mutated in place
            config: Vehicle configuration
            inputs: Forces and grip for this tick

        Returns:
            TickResult with speed and grip diagnostics
        """
        dt = finite_or(inputs.dt, 0.0)
        if dt <= 0.0:
            return TickResult(speed_kph=finite_or(state.speed_kph, 0.0))

        if state.sanitize():
            logger.debug("non-finite dynamics state reset to zero")

        prev_speed_kph = state.speed_kph
        self._bind(config)
        self.steering.update(state, inputs.steering_command, prev_speed_kph, dt)

        drive = max(0.0, finite_or(inputs.drive_force, 0.0))
        brake = max(0.0, finite_or(inputs.brake_force, 0.0))
        engine_brake = max(0.0, finite_or(inputs.engine_brake_force, 0.0))

        if (prev_speed_kph / KPH_PER_MPS < STOP_SPEED_MPS
                and drive <= STOP_DRIVE_FORCE_N and brake + engine_brake > 0.0):
            state.vel_long = 0.0
            state.vel_lat = 0.0
            state.yaw_rate = 0.0
            self.wheels = []
            return TickResult(speed_kph=0.0, speed_delta_kph=-prev_speed_kph)

        chassis, tires = config.chassis, config.tires
        aero = self.aero
        mass = max(1.0, chassis.mass_kg)
        weight = mass * GRAVITY

        forward_speed = abs(state.vel_long)
        travel_sign = sign(state.vel_long) if forward_speed > MOTION_SIGN_SPEED_MPS else 0.0
        resist = (aero.calculate_drag(forward_speed)
                  + tires.rolling_resistance_coefficient * mass * GRAVITY) * travel_sign

        # Longitudinal load transfer, limited so neither axle drops below its floor
        fx_estimate = drive - (brake + engine_brake) * travel_sign - resist
        downforce = aero.calculate_downforce(state.speed_mps)
        downforce_front = downforce * aero.front_fraction(chassis.front_weight_bias)
        front_static = weight * chassis.front_weight_bias + downforce_front
        rear_static = weight * (1.0 - chassis.front_weight_bias) + downforce - downforce_front
        transfer = fx_estimate * chassis.cg_height_m / max(MIN_LENGTH_M, chassis.wheelbase_m)
        floor = weight * AXLE_LOAD_FLOOR
        transfer = clamp(transfer, -max(0.0, rear_static - floor), max(0.0, front_static - floor))
        loads = _AxleLoads(
            front=max(floor, front_static - transfer),
            rear=max(floor, rear_static + transfer),
            total=weight + downforce,
        )

        mu_base = max(MIN_MU, finite_or(
            inputs.tire_grip * inputs.surface_traction_mod * inputs.lateral_grip, 0.0))

        # Engine braking acts through the driven wheels
        drive_bias = config.transmission.front_drive_bias
        brake_bias = config.brakes.front_bias
        retard_front = (brake * brake_bias + engine_brake * drive_bias) * travel_sign
        retard_rear = (brake * (1.0 - brake_bias) + engine_brake * (1.0 - drive_bias)) * travel_sign
        axle_fx_front = drive * drive_bias - retard_front
        axle_fx_rear = drive * (1.0 - drive_bias) - retard_rear

        specs = self._tire_specs(state, config, loads, axle_fx_front, axle_fx_rear)
        nominal_load = max(1.0, loads.total / len(specs))
        fx_tires, fy_sum, mz = self._sum_tire_forces(state, specs, mu_base, nominal_load,
                                                     tires.load_sensitivity)

        self._integrate(state, config, dt, fx_tires - resist, fy_sum, mz, drive)
        return self._finish(state, config, prev_speed_kph, fy_sum, mu_base, weight)

    def _tire_specs(
        self,
        state: DynamicsState,
        config: "CarConfig",
        loads: _AxleLoads,
        axle_fx_front: float,
        axle_fx_rear: float,
    ) -> list[_TireSpec]:
        raise NotImplementedError

    def _sum_tire_forces(
        self,
        state: DynamicsState,
        specs: list[_TireSpec],
        mu_base: float,
        nominal_load: float,
        load_sensitivity: float,
    ) -> tuple[float, float, float]:
        """Resolve each tire and return (sum Fx, sum Fy, yaw moment)."""
        self.wheels = []
        fx_sum = fy_sum = mz = 0.0
        for spec in specs:
            mu = adjust_mu_for_load(mu_base, spec.load, nominal_load, load_sensitivity)
            fx = saturate_longitudinal_force(spec.commanded_fx, spec.load, mu,
                                             spec.longitudinal_stiffness)
            fy = lateral_force(state.vel_long, state.vel_lat, state.yaw_rate,
                               spec.x, spec.y, spec.steer, spec.cornering_stiffness)
            fy = clamp_to_friction_circle(fy, fx, mu * spec.load)

            self.wheels.append(WheelForces(spec.position, spec.load, mu, fx, fy))
            fx_sum += fx
            fy_sum += fy
            mz += spec.x * fy - spec.y * fx
        return fx_sum, fy_sum, mz

    def _integrate(
        self,
        state: DynamicsState,
        config: "CarConfig",
        dt: float,
        fx: float,
        fy: float,
        mz: float,
        drive: float,
    ) -> None:
        chassis = config.chassis
        mass = max(1.0, chassis.mass_kg)
        wheelbase = max(MIN_LENGTH_M, chassis.wheelbase_m)

        dvx = fx / mass + state.yaw_rate * state.vel_lat
        dvy = fy / mass - state.yaw_rate * state.vel_long
        dr = mz / max(1.0, chassis.yaw_inertia)

        previous = state.vel_long
        state.vel_long += dvx * dt
        # Resistance and brakes stop the car, they never reverse it
        if previous > 0.0 > state.vel_long or (
                previous < 0.0 < state.vel_long and drive <= STOP_DRIVE_FORCE_N):
            state.vel_long = 0.0
        if abs(state.vel_long) < MOTION_SIGN_SPEED_MPS and drive < STOP_DRIVE_FORCE_N:
            state.vel_long = 0.0

        if abs(state.vel_long) < KINEMATIC_SPEED_MPS:
            kinematic_yaw = state.vel_long * float(np.tan(state.steer_angle_rad)) / wheelbase
            state.yaw_rate = approach(state.yaw_rate, kinematic_yaw, KINEMATIC_YAW_RESPONSE * dt)
            state.vel_lat = approach(state.vel_lat, 0.0, KINEMATIC_LATERAL_DECAY * dt)
        else:
            state.vel_lat += dvy * dt
            state.yaw_rate += dr * dt

        state.yaw += state.yaw_rate * dt

    def _finish(
        self,
        state: DynamicsState,
        config: "CarConfig",
        prev_speed_kph: float,
        fy_sum: float,
        mu_base: float,
        weight: float,
    ) -> TickResult:
        if state.sanitize():
            logger.debug("non-finite dynamics state after integration reset to zero")

        speed = state.speed_mps
        max_speed_kph = config.chassis.max_speed_kph
        if max_speed_kph > 0.0:
            max_speed = max_speed_kph / KPH_PER_MPS
            if speed > max_speed and speed > MIN_LENGTH_M:
                scale = max_speed / speed
                state.vel_long *= scale
                state.vel_lat *= scale
                speed = max_speed

        speed_kph = speed * KPH_PER_MPS
        usage = min(1.0, finite_or(abs(fy_sum) / max(1.0, mu_base * weight), 1.0))
        return TickResult(
            speed_kph=speed_kph,
            speed_delta_kph=speed_kph - prev_speed_kph,
            lateral_usage=usage,
            longitudinal_grip_factor=float(np.sqrt(max(0.0, 1.0 - usage * usage))),
        )


class FourWheelDynamics(DynamicsModel):
    """Four-wheel model with lateral load transfer and Ackermann steering."""

    model_type = DynamicsModelType.FOUR_WHEEL

    def _tire_specs(self, state, config, loads, axle_fx_front, axle_fx_rear):
        chassis, tires = config.chassis, config.tires
        mass = max(1.0, chassis.mass_kg)
        weight = mass * GRAVITY
        half_track = chassis.track_width_m * 0.5

        # Load moves to the outside of the turn (left when turning right)
        lateral_accel = state.vel_long * state.yaw_rate
        lat_transfer = mass * lateral_accel * chassis.cg_height_m / max(MIN_LENGTH_M, chassis.track_width_m)
        if chassis.roll_stiffness_front_fraction > 0.0:
            roll_front = clamp(chassis.roll_stiffness_front_fraction, MIN_ROLL_FRONT, MAX_ROLL_FRONT)
        else:
            roll_front = chassis.front_weight_bias

        wheel_floor = max(1.0, weight * WHEEL_LOAD_FLOOR)
        front_lat = lat_transfer * roll_front * 0.5
        rear_lat = lat_transfer * (1.0 - roll_front) * 0.5
        front_room = max(0.0, loads.front * 0.5 - wheel_floor)
        rear_room = max(0.0, loads.rear * 0.5 - wheel_floor)
        front_lat = clamp(front_lat, -front_room, front_room)
        rear_lat = clamp(rear_lat, -rear_room, rear_room)

        steer_left, steer_right = ackermann_angles(
            state.steer_angle_rad, chassis.wheelbase_m, chassis.track_width_m)

        a, b = chassis.cg_to_front, chassis.cg_to_rear
        cf = tires.cornering_stiffness_front * 0.5
        cr = tires.cornering_stiffness_rear * 0.5
        kf, kr = tires.longitudinal_stiffness_front, tires.longitudinal_stiffness_rear
        return [
            _TireSpec("FL", a, -half_track, max(wheel_floor, loads.front * 0.5 + front_lat),
                      steer_left, cf, kf, axle_fx_front * 0.5),
            _TireSpec("FR", a, half_track, max(wheel_floor, loads.front * 0.5 - front_lat),
                      steer_right, cf, kf, axle_fx_front * 0.5),
            _TireSpec("RL", -b, -half_track, max(wheel_floor, loads.rear * 0.5 + rear_lat),
                      0.0, cr, kr, axle_fx_rear * 0.5),
            _TireSpec("RR", -b, half_track, max(wheel_floor, loads.rear * 0.5 - rear_lat),
                      0.0, cr, kr, axle_fx_rear * 0.5),
        ]


class BicycleDynamics(DynamicsModel):
    """Single-track model: one tire per axle on the centerline.

    No lateral load transfer and no Ackermann split; each axle tire carries
    the full axle cornering stiffness.
    """

    model_type = DynamicsModelType.BICYCLE

    def _tire_specs(self, state, config, loads, axle_fx_front, axle_fx_rear):
        chassis, tires = config.chassis, config.tires
        return [
            _TireSpec("F", chassis.cg_to_front, 0.0, loads.front, state.steer_angle_rad,
                      tires.cornering_stiffness_front, tires.longitudinal_stiffness_front,
                      axle_fx_front),
            _TireSpec("R", -chassis.cg_to_rear, 0.0, loads.rear, 0.0,
                      tires.cornering_stiffness_rear, tires.longitudinal_stiffness_rear,
                      axle_fx_rear),
        ]


def create_dynamics_model(model_type: DynamicsModelType = DynamicsModelType.FOUR_WHEEL) -> DynamicsModel:
    """Build the dynamics model for a vehicle.

    Args:
        model_type: Which model to build

    Returns:
        A fresh DynamicsModel instance
    """
    if model_type == DynamicsModelType.BICYCLE:
        return BicycleDynamics()
    return FourWheelDynamics()
