"""
Car - Complete vehicle simulation for one racer.

Integrates all car components:
- Steering shaper
- Engine RPM tracker
- Transmission (automatic or sequential manual)
- Brakes
- Aerodynamics, chassis and tires through the dynamics model

The same Car serves human, AI and network-replicated vehicles: each one is
driven only through CarInputs.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

import numpy as np

from racedyn.car.aero import AeroConfig
from racedyn.car.chassis import ChassisConfig
from racedyn.car.dynamics import (
    DynamicsInputs,
    DynamicsModelType,
    DynamicsState,
    TickResult,
    create_dynamics_model,
)
from racedyn.car.engine import Engine, EngineConfig
from racedyn.car.powertrain import (
    BrakeConfig,
    brake_decel_kph_per_s,
    drive_force,
    drive_rpm,
    engine_braking_decel_kph_per_s,
    select_automatic_gear,
)
from racedyn.car.steering import SteeringConfig
from racedyn.car.tires import TireConfig
from racedyn.car.transmission import Transmission, TransmissionConfig
from racedyn.utils.constants import KPH_PER_MPS
from racedyn.utils.exceptions import ConfigurationError
from racedyn.utils.numeric import clamp, finite_or

logger = logging.getLogger(__name__)

# Net pedal command (percent) above which the engine drives the wheels
DRIVE_THRUST_THRESHOLD = 10.0


@dataclass
class CarConfig:
    """Complete car configuration.

    Default values create a Nissan GT-R-like all-wheel-drive road car.
    """
    name: str = "GT-R"

    engine: EngineConfig = field(default_factory=EngineConfig)
    transmission: TransmissionConfig = field(default_factory=TransmissionConfig)
    aero: AeroConfig = field(default_factory=AeroConfig)
    chassis: ChassisConfig = field(default_factory=ChassisConfig)
    tires: TireConfig = field(default_factory=TireConfig)
    steering: SteeringConfig = field(default_factory=SteeringConfig)
    brakes: BrakeConfig = field(default_factory=BrakeConfig)

    dynamics_model: DynamicsModelType = DynamicsModelType.FOUR_WHEEL

    def validate(self) -> None:
        """Validate every component configuration.

        Raises:
            ConfigurationError: On the first invalid component.
        """
        components = (
            ("engine", self.engine),
            ("transmission", self.transmission),
            ("aero", self.aero),
            ("chassis", self.chassis),
            ("tires", self.tires),
            ("steering", self.steering),
            ("brakes", self.brakes),
        )
        for label, component in components:
            try:
                component.validate()
            except ConfigurationError as exc:
                logger.warning("rejected %s configuration for %r: %s", label, self.name, exc)
                raise


@dataclass
class CarInputs:
    """Driver control inputs for the car."""
    steering: float = 0.0      # -100 (left) to 100 (right)
    throttle: float = 0.0      # 0 to 100
    brake: float = 0.0         # 0 to -100 (a positive magnitude is accepted too)
    shift_up: bool = False     # Request upshift (manual transmission)
    shift_down: bool = False   # Request downshift (manual transmission)


@dataclass
class SurfaceConditions:
    """Grip multipliers of the surface under the car."""
    traction_mod: float = 1.0
    decel_mod: float = 1.0


class Car:
    """Complete vehicle simulation.

    Each tick:
    1. Pedals and gear requests are read
    2. Drive, brake and engine-brake forces come from the powertrain math
    3. The dynamics model advances velocity, yaw and steering
    4. The automatic gearbox picks a gear
    5. The engine resyncs RPM and distance from the new speed

    The longitudinal grip factor of each tick limits drive force on the next.

    Usage:
        car = Car()
        inputs = CarInputs(throttle=100, steering=20)
        result = car.step(inputs, dt=0.01)
        telemetry = car.get_telemetry()
    """

    def __init__(
        self,
        config: CarConfig | None = None,
        car_id: int = 0,
    ):
        """Initialize car with optional configuration.

        Args:
            config: Car configuration. Uses defaults if None.
            car_id: Unique identifier for this car instance

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self.config = config or CarConfig()
        self.config.validate()
        self.car_id = car_id

        self.engine = Engine(self.config.engine, self.config.transmission)
        self.transmission = Transmission(self.config.transmission)
        self.dynamics = create_dynamics_model(self.config.dynamics_model)
        self.state = DynamicsState()

        # World position (x east, y north), meters
        self.x: float = 0.0
        self.y: float = 0.0

        self.reset()

    def reset(
        self,
        x: float = 0.0,
        y: float = 0.0,
        heading: float = 0.0,
    ) -> None:
        """Reset car to a standing start.

        Args:
            x: Starting X position
            y: Starting Y position
            heading: Starting heading in radians (0 = north, clockwise)
        """
        self.state.reset()
        self.state.yaw = heading
        self.x, self.y = x, y

        self.engine.reset()
        self.transmission.reset()
        self._clear_tick_state()
        logger.debug("car %d reset", self.car_id)

    def restart_after_crash(self) -> None:
        """Stop the car where it is, in first gear, keeping its odometer."""
        heading = self.state.yaw
        self.state.reset()
        self.state.yaw = heading

        self.engine.reset_for_crash()
        self.transmission.reset()
        self._clear_tick_state()
        logger.debug("car %d restarted after crash", self.car_id)

    def _clear_tick_state(self) -> None:
        self.last_result = TickResult()
        self.last_inputs = CarInputs()
        self.elapsed = 0.0
        self._grip_factor = 1.0
        self._last_drive_rpm = 0.0
        self._drive_force = 0.0
        self._brake_force = 0.0
        self._engine_brake_force = 0.0
        self._shift_up_held = False
        self._shift_down_held = False

    @property
    def speed(self) -> float:
        """Current speed in m/s."""
        return self.state.speed_mps

    @property
    def speed_kph(self) -> float:
        """Current speed in km/h."""
        return self.state.speed_kph

    @property
    def rpm(self) -> float:
        return self.engine.rpm

    @property
    def gear(self) -> int:
        return self.transmission.current_gear

    @property
    def distance_m(self) -> float:
        return self.engine.distance_m

    @property
    def heading(self) -> float:
        """Current heading in radians."""
        return self.state.yaw

    @property
    def position(self) -> tuple[float, float]:
        """Current (x, y) position."""
        return (self.x, self.y)

    @property
    def steer_angle_deg(self) -> float:
        return self.state.steer_angle_deg

    @property
    def longitudinal_grip_factor(self) -> float:
        """Share of tire grip left for driving after cornering."""
        return self._grip_factor

    def _handle_manual_shifts(self, inputs: CarInputs) -> None:
        # A held request shifts once
        if inputs.shift_up and not self._shift_up_held:
            self.transmission.shift_up()
        if inputs.shift_down and not self._shift_down_held:
            self.transmission.shift_down()
        self._shift_up_held = inputs.shift_up
        self._shift_down_held = inputs.shift_down

    def step(
        self,
        inputs: CarInputs,
        dt: float,
        surface: SurfaceConditions | None = None,
    ) -> TickResult:
        """Advance car simulation by one time step.

        Args:
            inputs: Driver control inputs
            dt: Time step in seconds
            surface: Surface under the car. Uses neutral grip if None.

        Returns:
            TickResult from the dynamics model
        """
        if not dt > 0.0:
            return TickResult(speed_kph=finite_or(self.speed_kph, 0.0))
        surface = surface or SurfaceConditions()
        cfg = self.config

        throttle_cmd = clamp(finite_or(inputs.throttle, 0.0), 0.0, 100.0)
        brake_cmd = clamp(abs(finite_or(inputs.brake, 0.0)), 0.0, 100.0)
        # Brake wins only when pressed deeper than the throttle
        thrust = -brake_cmd if brake_cmd > throttle_cmd else throttle_cmd
        throttle = throttle_cmd / 100.0
        brake = brake_cmd / 100.0

        if cfg.transmission.manual:
            self._handle_manual_shifts(inputs)
        gear = self.transmission.current_gear

        forward_speed = abs(self.state.vel_long)
        mass = cfg.chassis.mass_kg
        if thrust > DRIVE_THRUST_THRESHOLD:
            self._drive_force = drive_force(cfg.engine, cfg.transmission, gear,
                                            forward_speed, throttle, self._grip_factor)
            self._last_drive_rpm = drive_rpm(cfg.engine, cfg.transmission, gear,
                                             forward_speed, throttle)
        else:
            self._drive_force = 0.0
            self._last_drive_rpm = 0.0

        self._brake_force = mass * brake_decel_kph_per_s(
            brake, cfg.tires.grip_coefficient, surface.decel_mod, cfg.brakes) / KPH_PER_MPS
        self._engine_brake_force = mass * engine_braking_decel_kph_per_s(
            self.engine.rpm, gear, throttle, surface.decel_mod, mass,
            cfg.engine, cfg.transmission) / KPH_PER_MPS

        result = self.dynamics.step(self.state, cfg, DynamicsInputs(
            dt=dt,
            steering_command=clamp(finite_or(inputs.steering, 0.0), -100.0, 100.0),
            drive_force=self._drive_force,
            brake_force=self._brake_force,
            engine_brake_force=self._engine_brake_force,
            surface_traction_mod=surface.traction_mod,
            tire_grip=cfg.tires.grip_coefficient,
            lateral_grip=cfg.tires.lateral_grip_coefficient,
        ))
        self._grip_factor = result.longitudinal_grip_factor

        speed_for_gear_kph = abs(self.state.vel_long) * KPH_PER_MPS
        if cfg.transmission.manual:
            speed_for_gear_kph = min(speed_for_gear_kph, self.engine.gear_max_speed_kph(gear))
        else:
            self.transmission.update_automatic(dt, lambda current: select_automatic_gear(
                cfg, current, speed_for_gear_kph / KPH_PER_MPS, throttle,
                surface.traction_mod, self._grip_factor))

        self.engine.sync_from_speed(speed_for_gear_kph, self.transmission.current_gear,
                                    dt, throttle_cmd)
        if self._last_drive_rpm > 0.0:
            self.engine.override_rpm(self._last_drive_rpm)

        self._integrate_position(dt)
        self.last_result = result
        self.last_inputs = inputs
        self.elapsed += dt
        return result

    def _integrate_position(self, dt: float) -> None:
        """Move the car in world coordinates using body-frame velocity."""
        sin_h = np.sin(self.state.yaw)
        cos_h = np.cos(self.state.yaw)
        self.x += float(self.state.vel_long * sin_h + self.state.vel_lat * cos_h) * dt
        self.y += float(self.state.vel_long * cos_h - self.state.vel_lat * sin_h) * dt

    def get_telemetry(self) -> Dict[str, Any]:
        """Get complete car telemetry.

        Returns:
            Dictionary containing all car telemetry data
        """
        return {
            "car_id": self.car_id,
            "name": self.config.name,
            "time_s": self.elapsed,
            "state": {
                "x": self.x,
                "y": self.y,
                "heading_rad": self.heading,
                "heading_deg": float(np.degrees(self.heading)),
                "speed_mps": self.speed,
                "speed_kph": self.speed_kph,
                **self.state.get_state(),
            },
            "inputs": {
                "steering": self.last_inputs.steering,
                "throttle": self.last_inputs.throttle,
                "brake": abs(self.last_inputs.brake),
            },
            "forces": {
                "drive_n": self._drive_force,
                "brake_n": self._brake_force,
                "engine_brake_n": self._engine_brake_force,
            },
            "grip": {
                "lateral_usage": self.last_result.lateral_usage,
                "longitudinal_grip_factor": self.last_result.longitudinal_grip_factor,
            },
            "engine": self.engine.get_state(),
            "transmission": self.transmission.get_state(),
            "wheels": [wheel.get_state() for wheel in self.dynamics.wheels],
        }
