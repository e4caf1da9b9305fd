"""Basic tests for the RaceDyn car module."""

import pytest
import numpy as np

from racedyn.car.car import Car, CarConfig, CarInputs, SurfaceConditions
from racedyn.car.chassis import ChassisConfig
from racedyn.car.dynamics import DynamicsModelType
from racedyn.car.engine import EngineConfig
from racedyn.car.presets import PRESETS, get_preset, tire_radius_m
from racedyn.car.transmission import TransmissionConfig
from racedyn.utils.exceptions import ConfigurationError


def _drive(car: Car, inputs: CarInputs, seconds: float, dt: float = 0.01) -> None:
    for _ in range(int(round(seconds / dt))):
        car.step(inputs, dt)


class TestCarConfig:
    """Test car configuration handling."""

    def test_default_config_valid(self):
        """Test the default car builds."""
        car = Car()
        assert car.gear == 1
        assert car.speed == 0.0
        assert car.rpm == car.config.engine.idle_rpm

    def test_invalid_chassis_rejected(self):
        """Test a massless car is rejected at construction."""
        with pytest.raises(ConfigurationError):
            Car(CarConfig(chassis=ChassisConfig(mass_kg=0.0)))

    def test_invalid_engine_rejected(self):
        """Test a limiter above max RPM is rejected."""
        with pytest.raises(ConfigurationError):
            Car(CarConfig(engine=EngineConfig(rev_limiter_rpm=9000.0)))


class TestCarDriving:
    """Test the full per-tick pipeline."""

    def test_full_throttle_acceleration(self):
        """Test full throttle accelerates and works up the gears."""
        car = Car()
        cfg = car.config
        dt = 0.01
        shift_times = []
        gear = car.gear
        previous_speed = 0.0
        for i in range(1000):
            car.step(CarInputs(throttle=100), dt)
            assert cfg.engine.idle_rpm <= car.rpm <= cfg.engine.max_rpm
            assert car.speed_kph <= cfg.chassis.max_speed_kph + 1e-6
            assert car.speed >= previous_speed - 1e-9
            previous_speed = car.speed
            if car.gear != gear:
                shift_times.append(i * dt)
                gear = car.gear

        assert car.speed_kph > 80.0
        assert car.gear >= 2
        assert np.all(np.diff(shift_times) >= cfg.transmission.shift_cooldown_s - 1e-9)

    def test_part_throttle_does_not_hunt(self):
        """Test no automatic shift is undone within a second at part throttle."""
        car = Car()
        changes = []
        gear = car.gear
        for i in range(3000):
            car.step(CarInputs(throttle=40), 0.01)
            if car.gear != gear:
                changes.append(((i + 1) * 0.01, gear, car.gear))
                gear = car.gear

        assert len(changes) >= 3
        for (t0, from_gear, _), (t1, _, to_gear) in zip(changes, changes[1:]):
            if to_gear == from_gear:
                assert t1 - t0 >= 1.0

    def test_full_brake_at_rest(self):
        """Test full brake at rest holds speed at exactly zero."""
        car = Car()
        for _ in range(200):
            result = car.step(CarInputs(brake=-100), 0.01)
            assert result.speed_kph == 0.0
            assert car.speed == 0.0

    def test_brake_beats_lighter_throttle(self):
        """Test the deeper pedal wins when both are pressed."""
        car = Car()
        _drive(car, CarInputs(throttle=30, brake=-80), 1.0)
        assert car.speed == 0.0

        car = Car()
        _drive(car, CarInputs(throttle=80, brake=-30), 1.0)
        assert car.speed > 0.0

    def test_brake_sign_ignored(self):
        """Test brake magnitude is read from either sign."""
        cars = [Car(), Car()]
        for car in cars:
            car.state.vel_long = 20.0
        for _ in range(50):
            cars[0].step(CarInputs(brake=-100), 0.01)
            cars[1].step(CarInputs(brake=100), 0.01)
        assert cars[0].speed == pytest.approx(cars[1].speed)
        assert cars[0].speed < 20.0

    def test_braking_to_standstill(self):
        """Test braking from speed stops the car without reversing."""
        car = Car()
        _drive(car, CarInputs(throttle=100), 4.0)
        for _ in range(600):
            car.step(CarInputs(brake=-100), 0.01)
            assert car.state.vel_long >= 0.0
        assert car.speed == 0.0
        assert car.gear == 1

    def test_zero_dt_is_noop(self):
        """Test a zero or negative time step changes nothing."""
        car = Car()
        _drive(car, CarInputs(throttle=100, steering=20), 2.0)
        snapshot = (car.speed, car.rpm, car.gear, car.distance_m, car.position,
                    car.heading, car.steer_angle_deg)
        for dt in (0.0, -0.01):
            result = car.step(CarInputs(throttle=100, steering=-100), dt)
            assert result.speed_kph == pytest.approx(car.speed_kph)
        assert (car.speed, car.rpm, car.gear, car.distance_m, car.position,
                car.heading, car.steer_angle_deg) == snapshot

    def test_zero_dt_reports_finite_speed(self):
        """Test a skipped tick never reports a non-finite speed."""
        car = Car()
        car.state.vel_long = float("nan")
        result = car.step(CarInputs(throttle=100), 0.0)
        assert result.speed_kph == 0.0

    def test_non_finite_inputs(self):
        """Test NaN commands are treated as released controls."""
        car = Car()
        _drive(car, CarInputs(throttle=float("nan"), steering=float("nan"),
                              brake=float("nan")), 0.5)
        assert np.isfinite(car.speed)
        assert car.speed == 0.0

    def test_low_traction_surface(self):
        """Test a slippery surface limits acceleration."""
        grippy, icy = Car(), Car()
        ice = SurfaceConditions(traction_mod=0.3, decel_mod=0.3)
        for _ in range(200):
            grippy.step(CarInputs(throttle=100), 0.01)
            icy.step(CarInputs(throttle=100), 0.01, ice)
        assert icy.speed < grippy.speed

    def test_position_follows_heading(self):
        """Test heading 0 drives north and heading pi/2 drives east."""
        north = Car()
        _drive(north, CarInputs(throttle=100), 2.0)
        assert north.position[1] > 5.0
        assert abs(north.position[0]) < 1e-6

        east = Car()
        east.reset(heading=np.pi / 2)
        _drive(east, CarInputs(throttle=100), 2.0)
        assert east.position[0] > 5.0
        assert abs(east.position[1]) < 1e-6

    def test_distance_tracks_travel(self):
        """Test the odometer matches distance driven in a straight line."""
        car = Car()
        _drive(car, CarInputs(throttle=100), 3.0)
        assert car.distance_m == pytest.approx(car.position[1], rel=0.02)


class TestManualTransmission:
    """Test sequential manual shifting."""

    def _manual_car(self) -> Car:
        return Car(CarConfig(transmission=TransmissionConfig(manual=True)))

    def test_held_request_shifts_once(self):
        """Test holding the paddle shifts a single gear."""
        car = self._manual_car()
        for _ in range(10):
            car.step(CarInputs(shift_up=True), 0.01)
        assert car.gear == 2

    def test_repeated_presses(self):
        """Test each new press shifts again."""
        car = self._manual_car()
        for _ in range(3):
            car.step(CarInputs(shift_up=True), 0.01)
            car.step(CarInputs(), 0.01)
        assert car.gear == 4
        car.step(CarInputs(shift_down=True), 0.01)
        assert car.gear == 3

    def test_no_automatic_shifts(self):
        """Test a manual car stays in gear under full throttle."""
        car = self._manual_car()
        _drive(car, CarInputs(throttle=100), 5.0)
        assert car.gear == 1
        assert car.rpm <= car.config.engine.max_rpm


class TestCarLifecycle:
    """Test resets and telemetry."""

    def test_restart_after_crash(self):
        """Test a crash restart stops the car and keeps the odometer."""
        car = Car()
        _drive(car, CarInputs(throttle=100, steering=30), 3.0)
        distance = car.distance_m
        heading = car.heading
        position = car.position

        car.restart_after_crash()
        assert car.speed == 0.0
        assert car.gear == 1
        assert car.rpm == car.config.engine.idle_rpm
        assert car.distance_m == pytest.approx(distance)
        assert car.heading == pytest.approx(heading)
        assert car.position == position

    def test_reset(self):
        """Test a full reset clears distance and places the car."""
        car = Car()
        _drive(car, CarInputs(throttle=100), 2.0)
        car.reset(x=5.0, y=-10.0, heading=1.0)
        assert car.distance_m == 0.0
        assert car.position == (5.0, -10.0)
        assert car.heading == 1.0
        assert car.speed == 0.0

    def test_telemetry(self):
        """Test telemetry exposes state, inputs and wheels."""
        car = Car(car_id=7)
        car.step(CarInputs(throttle=100, brake=0), 0.01)
        telemetry = car.get_telemetry()
        assert telemetry["car_id"] == 7
        for key in ("state", "inputs", "forces", "grip", "engine", "transmission", "wheels"):
            assert key in telemetry
        assert telemetry["inputs"]["throttle"] == 100
        assert telemetry["forces"]["drive_n"] > 0.0
        assert len(telemetry["wheels"]) == 4

    def test_bicycle_model(self):
        """Test a car on the single-track model drives and turns."""
        car = Car(CarConfig(dynamics_model=DynamicsModelType.BICYCLE))
        _drive(car, CarInputs(throttle=60, steering=40), 4.0)
        assert car.speed > 5.0
        assert car.heading > 0.0
        assert len(car.get_telemetry()["wheels"]) == 2


class TestPresets:
    """Test the vehicle catalog."""

    @pytest.mark.parametrize("name", sorted(PRESETS))
    @pytest.mark.parametrize("model", [DynamicsModelType.FOUR_WHEEL, DynamicsModelType.BICYCLE])
    def test_presets_drive(self, name, model):
        """Test every preset builds and accelerates."""
        car = Car(get_preset(name, model))
        _drive(car, CarInputs(throttle=100), 3.0)
        assert car.speed_kph > 20.0
        assert car.speed_kph <= car.config.chassis.max_speed_kph + 1e-6

    def test_unknown_preset(self):
        """Test unknown names are rejected."""
        with pytest.raises(ConfigurationError):
            get_preset("delorean")

    def test_tire_radius(self):
        """Test tire size codes convert to rolling radius."""
        assert tire_radius_m(205, 55, 16) == pytest.approx((16 * 25.4 + 2 * 112.75) / 2000.0)
