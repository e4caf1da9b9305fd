"""Integration tests for the planar dynamics models."""

from dataclasses import replace

import numpy as np
import pytest

from racedyn.car.car import CarConfig
from racedyn.car.chassis import ChassisConfig
from racedyn.car.dynamics import (
    BicycleDynamics,
    DynamicsInputs,
    DynamicsModelType,
    DynamicsState,
    FourWheelDynamics,
    ackermann_angles,
    create_dynamics_model,
)
from racedyn.car.tires import TireConfig
from racedyn.utils.constants import GRAVITY

MODEL_TYPES = [DynamicsModelType.FOUR_WHEEL, DynamicsModelType.BICYCLE]


def _corner(model_type: DynamicsModelType, steering: float = 100.0, ticks: int = 300):
    model = create_dynamics_model(model_type)
    config = CarConfig()
    state = DynamicsState(vel_long=25.0)
    results = []
    for _ in range(ticks):
        results.append(model.step(state, config, DynamicsInputs(
            dt=0.01, steering_command=steering, drive_force=3000.0)))
    return model, state, results


def test_factory_builds_requested_model():
    """The factory should return the matching model class."""
    assert isinstance(create_dynamics_model(DynamicsModelType.FOUR_WHEEL), FourWheelDynamics)
    assert isinstance(create_dynamics_model(DynamicsModelType.BICYCLE), BicycleDynamics)


@pytest.mark.parametrize("model_type", MODEL_TYPES)
def test_traction_limit_from_rest(model_type):
    """Applied wheel force must not exceed mu * m * g for a 1200 kg car."""
    mass = 1200.0
    config = CarConfig(
        chassis=ChassisConfig(mass_kg=mass),
        tires=TireConfig(grip_coefficient=0.9),
    )
    model = create_dynamics_model(model_type)
    state = DynamicsState()
    dt = 0.01
    model.step(state, config, DynamicsInputs(dt=dt, drive_force=50000.0, tire_grip=0.9))

    bound = 0.9 * mass * GRAVITY
    applied = sum(abs(wheel.force_x) for wheel in model.wheels)
    assert bound == pytest.approx(10591.18, abs=0.1)
    assert 0.0 < applied <= bound + 1e-6
    assert state.vel_long * mass / dt <= bound + 1e-6


@pytest.mark.parametrize("model_type", MODEL_TYPES)
def test_full_brake_at_rest_stays_still(model_type):
    """Braking at rest should hold speed at exactly zero."""
    model = create_dynamics_model(model_type)
    config = CarConfig()
    state = DynamicsState()
    for _ in range(100):
        result = model.step(state, config, DynamicsInputs(dt=0.01, brake_force=20000.0))
        assert result.speed_kph == 0.0
        assert state.vel_long == 0.0
        assert state.vel_lat == 0.0


@pytest.mark.parametrize("dt", [0.0, -0.01, float("nan")])
def test_non_positive_dt_is_noop(dt):
    """A zero, negative or NaN time step must not change the state."""
    model = FourWheelDynamics()
    state = DynamicsState(vel_long=20.0, vel_lat=0.5, yaw=0.3, yaw_rate=0.1, steer_input=0.2)
    before = replace(state)
    result = model.step(state, CarConfig(), DynamicsInputs(
        dt=dt, drive_force=5000.0, steering_command=100.0))
    assert state == before
    assert result.speed_kph == pytest.approx(before.speed_kph)


@pytest.mark.parametrize("model_type", MODEL_TYPES)
def test_coasting_comes_to_rest(model_type):
    """Coasting should slow monotonically and stop exactly at zero."""
    model = create_dynamics_model(model_type)
    config = CarConfig()
    state = DynamicsState(vel_long=30.0)
    previous = state.vel_long
    for _ in range(5000):
        model.step(state, config, DynamicsInputs(dt=0.05))
        assert 0.0 <= state.vel_long <= previous
        previous = state.vel_long
    assert state.vel_long == 0.0
    assert state.vel_lat == 0.0


@pytest.mark.parametrize("model_type", MODEL_TYPES)
def test_braking_never_reverses(model_type):
    """Hard braking should stop the car without rolling it backwards."""
    model = create_dynamics_model(model_type)
    config = CarConfig()
    state = DynamicsState(vel_long=15.0)
    for _ in range(500):
        model.step(state, config, DynamicsInputs(
            dt=0.01, brake_force=15000.0, engine_brake_force=2000.0))
        assert state.vel_long >= 0.0
    assert state.vel_long == 0.0


def test_speed_capped():
    """Speed must not exceed the chassis maximum."""
    model = FourWheelDynamics()
    config = CarConfig()
    state = DynamicsState(vel_long=100.0)
    result = model.step(state, config, DynamicsInputs(dt=0.01, drive_force=100000.0))
    assert result.speed_kph <= config.chassis.max_speed_kph + 1e-6
    assert state.speed_kph <= config.chassis.max_speed_kph + 1e-6


def test_non_finite_state_sanitized():
    """NaN or infinite state values should be reset, never propagated."""
    model = FourWheelDynamics()
    state = DynamicsState(vel_long=float("nan"), yaw=float("inf"), yaw_rate=3.0)
    result = model.step(state, CarConfig(), DynamicsInputs(
        dt=0.01, drive_force=float("nan"), steering_command=50.0))
    for value in (state.vel_long, state.vel_lat, state.yaw, state.yaw_rate,
                  state.steer_angle_rad, result.speed_kph, result.lateral_usage):
        assert np.isfinite(value)


@pytest.mark.parametrize("model_type", MODEL_TYPES)
def test_grip_usage_and_factor(model_type):
    """Lateral usage stays in [0, 1] and the drive factor follows the circle."""
    _, _, results = _corner(model_type)
    for result in results:
        assert 0.0 <= result.lateral_usage <= 1.0
        assert result.longitudinal_grip_factor == pytest.approx(
            np.sqrt(1.0 - result.lateral_usage ** 2))
    assert max(r.lateral_usage for r in results) > 0.1


@pytest.mark.parametrize("model_type", MODEL_TYPES)
def test_right_steer_turns_right(model_type):
    """Positive steering should yaw the car clockwise."""
    _, state, _ = _corner(model_type, steering=50.0, ticks=100)
    assert state.yaw_rate > 0.0
    assert state.yaw > 0.0


@pytest.mark.parametrize("model_type", MODEL_TYPES)
def test_left_steer_turns_left(model_type):
    """Negative steering should yaw the car counter-clockwise."""
    _, state, _ = _corner(model_type, steering=-50.0, ticks=100)
    assert state.yaw_rate < 0.0


def test_lateral_load_transfer():
    """A right turn should load the left wheels."""
    model, _, _ = _corner(DynamicsModelType.FOUR_WHEEL, steering=60.0, ticks=150)
    loads = {wheel.position: wheel.load_n for wheel in model.wheels}
    assert loads["FL"] > loads["FR"]
    assert loads["RL"] > loads["RR"]


def test_loads_sum_to_weight():
    """Load transfer should move load around without creating it."""
    model = FourWheelDynamics()
    config = CarConfig()
    state = DynamicsState()
    model.step(state, config, DynamicsInputs(dt=0.01, drive_force=8000.0))
    total = sum(wheel.load_n for wheel in model.wheels)
    assert total == pytest.approx(config.chassis.weight_n, rel=1e-6)


def test_wheel_sets():
    """Each model should report its own tires."""
    four = FourWheelDynamics()
    bike = BicycleDynamics()
    config = CarConfig()
    four.step(DynamicsState(vel_long=10.0), config, DynamicsInputs(dt=0.01))
    bike.step(DynamicsState(vel_long=10.0), config, DynamicsInputs(dt=0.01))
    assert [w.position for w in four.wheels] == ["FL", "FR", "RL", "RR"]
    assert [w.position for w in bike.wheels] == ["F", "R"]


def test_components_built_once():
    """Steering and aero should be reused until the config changes."""
    model = FourWheelDynamics()
    config = CarConfig()
    state = DynamicsState(vel_long=10.0)
    model.step(state, config, DynamicsInputs(dt=0.01, steering_command=20.0))
    steering, aero = model.steering, model.aero
    assert steering.config is config.steering
    assert aero.config is config.aero

    for _ in range(5):
        model.step(state, config, DynamicsInputs(dt=0.01, steering_command=20.0))
    assert model.steering is steering
    assert model.aero is aero

    other = CarConfig()
    model.step(state, other, DynamicsInputs(dt=0.01))
    assert model.aero.config is other.aero
    assert model.steering.config is other.steering


def test_ackermann_inner_wheel_turns_more():
    """The inside wheel of a turn should steer tighter."""
    left, right = ackermann_angles(0.2, 2.78, 1.60)
    assert right > 0.2 > left > 0.0

    left, right = ackermann_angles(-0.2, 2.78, 1.60)
    assert left < -0.2 < right < 0.0

    assert ackermann_angles(0.0, 2.78, 1.60) == (0.0, 0.0)


def test_kinematic_yaw_at_low_speed():
    """Near standstill yaw rate should follow the kinematic model."""
    model = FourWheelDynamics()
    config = CarConfig()
    state = DynamicsState(vel_long=0.3, steer_input=1.0)
    for _ in range(10):
        model.step(state, config, DynamicsInputs(
            dt=0.01, steering_command=100.0, drive_force=300.0))
    expected = state.vel_long * np.tan(state.steer_angle_rad) / config.chassis.wheelbase_m
    assert state.yaw_rate == pytest.approx(expected, abs=0.02)
    assert state.yaw_rate > 0.0


def test_state_telemetry():
    """Dynamics state telemetry should expose body-frame motion."""
    state = DynamicsState(vel_long=3.0, vel_lat=4.0)
    assert state.speed_mps == pytest.approx(5.0)
    assert state.speed_kph == pytest.approx(18.0)
    assert set(state.get_state()) == {
        "vel_long_mps", "vel_lat_mps", "yaw_rad", "yaw_rate_rad_s",
        "steer_input", "steer_angle_deg",
    }
