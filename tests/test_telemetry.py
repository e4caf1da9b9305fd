"""Tests for telemetry frames and the recorder."""

import pytest
import numpy as np

from racedyn.car.car import Car, CarInputs
from racedyn.simulation.simulator import Simulator
from racedyn.telemetry.frame import FRAME_FIELDS, ShiftEvent, TelemetryFrame
from racedyn.telemetry.recorder import RecorderConfig, TelemetryRecorder
from racedyn.utils.exceptions import ConfigurationError


def _frame(time_s: float, gear: int, speed_kph: float, rpm: float = 3000.0,
           lateral_usage: float = 0.0, distance_m: float = 0.0) -> TelemetryFrame:
    return TelemetryFrame(
        time_s=time_s, speed_kph=speed_kph, speed_delta_kph=0.0, yaw_rate=0.0,
        steer_angle_deg=0.0, distance_m=distance_m, rpm=rpm, gear=gear,
        throttle=100.0, brake=0.0, lateral_usage=lateral_usage, grip_factor=1.0,
    )


class TestTelemetryFrame:
    """Test sampling a car into a frame."""

    def test_from_car(self):
        """Test a frame mirrors the car after its last tick."""
        car = Car()
        for _ in range(100):
            car.step(CarInputs(throttle=60, steering=25), 0.01)
        frame = TelemetryFrame.from_car(car, 1.0)
        assert frame.time_s == 1.0
        assert frame.speed_kph == pytest.approx(car.speed_kph)
        assert frame.rpm == pytest.approx(car.rpm)
        assert frame.gear == car.gear
        assert frame.throttle == 60.0
        assert frame.steer_angle_deg == pytest.approx(car.steer_angle_deg)
        assert frame.distance_m == pytest.approx(car.distance_m)
        assert frame.grip_factor == pytest.approx(car.longitudinal_grip_factor)

    def test_brake_magnitude(self):
        """Test the brake pedal is stored as a magnitude."""
        car = Car()
        car.step(CarInputs(brake=-80), 0.01)
        frame = TelemetryFrame.from_car(car, 0.01)
        assert frame.brake == 80.0
        assert frame.speed_kph == 0.0

    def test_shift_direction(self):
        """Test shift events know their direction."""
        assert ShiftEvent(1.0, 2, 3, 80.0, 4000.0).is_upshift
        assert not ShiftEvent(1.0, 3, 2, 60.0, 5000.0).is_upshift


class TestTelemetryRecorder:
    """Test run recording and statistics."""

    def test_sample_rate(self):
        """Test samples closer than the sample interval are skipped."""
        recorder = TelemetryRecorder(RecorderConfig(sample_rate_hz=10.0), Car())
        recorded = [recorder.record(i * 0.01) for i in range(1, 101)]
        assert sum(recorded) == 10
        assert recorder.frame_count == 10

    def test_no_car(self):
        """Test recording without a car records nothing."""
        recorder = TelemetryRecorder()
        assert not recorder.record(0.0)
        recorder.set_car(Car())
        assert recorder.record(0.0)

    @pytest.mark.parametrize("config", [
        RecorderConfig(sample_rate_hz=0.0),
        RecorderConfig(buffer_size=0),
        RecorderConfig(speed_milestones_kph=(100.0, -1.0)),
    ])
    def test_invalid_config(self, config):
        """Test invalid recorder settings are rejected."""
        with pytest.raises(ConfigurationError):
            TelemetryRecorder(config)

    def test_shifts_and_time_in_gear(self):
        """Test gear changes between frames become events and gear time."""
        recorder = TelemetryRecorder()
        for frame in [_frame(0.0, 1, 0.0), _frame(1.0, 1, 50.0), _frame(2.0, 2, 90.0),
                      _frame(3.0, 2, 110.0), _frame(4.0, 1, 40.0)]:
            recorder.add_frame(frame)

        assert [(s.time_s, s.from_gear, s.to_gear) for s in recorder.shifts] == [
            (2.0, 1, 2), (4.0, 2, 1)]
        assert recorder.time_in_gear() == {1: pytest.approx(2.0), 2: pytest.approx(2.0)}

        summary = recorder.get_summary()
        assert summary["upshifts"] == 1
        assert summary["downshifts"] == 1
        assert summary["peak_speed_kph"] == 110.0
        assert summary["duration_s"] == 4.0

    def test_speed_milestones(self):
        """Test milestones are timed from the first frame."""
        recorder = TelemetryRecorder(RecorderConfig(speed_milestones_kph=(100.0, 200.0)))
        for i, speed in enumerate([20.0, 60.0, 99.9, 100.0, 140.0, 90.0]):
            recorder.add_frame(_frame(5.0 + i, 2, speed))
        assert recorder.time_to_speed(100.0) == pytest.approx(3.0)
        assert recorder.time_to_speed(200.0) is None
        assert recorder.time_to_speed(50.0) is None
        assert recorder.get_summary()["time_to_speed_s"] == {100.0: pytest.approx(3.0), 200.0: None}

    def test_buffer_bounded(self):
        """Test old frames are dropped but the run statistics keep them."""
        recorder = TelemetryRecorder(RecorderConfig(buffer_size=5))
        for i in range(12):
            recorder.add_frame(_frame(float(i), 1 + i // 6, 10.0 * i,
                                      lateral_usage=0.9 if i == 0 else 0.1,
                                      distance_m=5.0 * i))
        assert len(recorder.frames) == 5
        assert recorder.frame_count == 12
        assert list(recorder.channel("time_s")) == [7.0, 8.0, 9.0, 10.0, 11.0]
        assert sum(recorder.time_in_gear().values()) == pytest.approx(11.0)

        summary = recorder.get_summary()
        assert summary["peak_lateral_usage"] == 0.9
        assert summary["distance_m"] == pytest.approx(55.0)
        assert len(recorder.shifts) == 1

    def test_unknown_channel(self):
        """Test asking for a field frames do not have fails."""
        recorder = TelemetryRecorder()
        with pytest.raises(KeyError):
            recorder.channel("boost_pressure")
        assert set(recorder.to_arrays()) == set(FRAME_FIELDS)

    def test_shifts_match_gearbox(self):
        """Test recording every tick sees every automatic shift."""
        car = Car()
        recorder = TelemetryRecorder(RecorderConfig(sample_rate_hz=100.0), car)
        for i in range(2000):
            car.step(CarInputs(throttle=100), 0.01)
            assert recorder.record((i + 1) * 0.01)

        assert len(recorder.shifts) == car.transmission.shift_count
        assert recorder.shifts[0].from_gear == 1
        assert recorder.last_frame.gear == car.gear

        reached = recorder.get_summary()["peak_speed_kph"] >= 100.0
        assert (recorder.time_to_speed(100.0) is not None) == reached

    def test_records_simulation(self):
        """Test the recorder follows a car through the simulator."""
        sim = Simulator()
        sim.spawn_cars(1)
        car = sim.get_car(0)
        recorder = TelemetryRecorder(car=car)
        sim.add_post_step_callback(recorder.as_callback())
        sim.start()
        for _ in range(200):
            sim.step({0: CarInputs(throttle=100)})

        arrays = recorder.to_arrays()
        speeds = arrays["speed_kph"]
        assert len(speeds) == 200
        assert speeds[-1] > speeds[0]
        assert np.all(arrays["throttle"] == 100.0)
        assert recorder.last_frame.rpm == pytest.approx(car.rpm)
        assert sum(recorder.time_in_gear().values()) == pytest.approx(1.99)
        assert recorder.get_state()["buffered_frames"] == 200

    def test_clear(self):
        """Test clearing restarts the run."""
        recorder = TelemetryRecorder(car=Car())
        recorder.record(1.0)
        recorder.clear()
        assert recorder.frame_count == 0
        assert recorder.last_frame is None
        assert recorder.get_summary()["duration_s"] == 0.0
        assert recorder.record(1.0)
