#!/usr/bin/env python3
"""
Telemetry Analysis Example

This example demonstrates how to:
1. Attach a telemetry recorder to the simulator
2. Drive a repeating accelerate/brake/corner pattern
3. Read the run summary, shift events and per-field arrays

Run with: python record_telemetry.py
"""

import logging

import numpy as np

from racedyn import Simulator
from racedyn.car import CarInputs
from racedyn.car.presets import fiat_500
from racedyn.telemetry import RecorderConfig, TelemetryRecorder
from racedyn.utils import configure_logging


def main():
    configure_logging(logging.INFO)

    print("=" * 60)
    print("RaceDyn Telemetry Recording Example")
    print("=" * 60)

    # Step 1: Setup simulation
    print("\n1. Setting up simulation...")
    sim = Simulator()
    car_id = sim.spawn_cars(1, config_factory=fiat_500)[0]
    car = sim.get_car(car_id)
    print(f"   Car: {car.config.name}")

    # Step 2: Create telemetry recorder
    print("\n2. Setting up telemetry recorder...")
    recorder = TelemetryRecorder(
        RecorderConfig(sample_rate_hz=50.0, speed_milestones_kph=(50.0, 100.0)), car=car)
    sim.add_post_step_callback(recorder.as_callback())
    print(f"   Sample rate: {recorder.config.sample_rate_hz} Hz")

    # Step 3: Run simulation with telemetry recording
    print("\n3. Running simulation (3000 steps = 30 seconds)...")
    sim.start()

    for step in range(3000):
        phase = step % 900
        if phase < 500:
            inputs = CarInputs(throttle=100)
        elif phase < 650:
            inputs = CarInputs(brake=-70)
        elif phase < 800:
            inputs = CarInputs(throttle=40, steering=60)
        else:
            inputs = CarInputs(throttle=70, steering=15)

        sim.step({car_id: inputs})

        if (step + 1) % 750 == 0:
            print(f"   Step {step + 1}: {car.speed_kph:.1f} km/h")

    sim.stop()

    # Step 4: Run summary
    print("\n4. Run summary:")
    summary = recorder.get_summary()
    print(f"   Frames: {summary['frames']} over {summary['duration_s']:.1f} s")
    print(f"   Distance: {summary['distance_m']:.0f} m")
    print(f"   Peak speed: {summary['peak_speed_kph']:.1f} km/h")
    print(f"   Peak RPM: {summary['peak_rpm']:.0f}")
    for speed, elapsed in summary["time_to_speed_s"].items():
        label = f"{elapsed:.2f} s" if elapsed is not None else "not reached"
        print(f"   0-{speed:.0f} km/h: {label}")

    # Step 5: Gearbox behavior
    print("\n5. Gearbox:")
    print(f"   Upshifts: {summary['upshifts']}, downshifts: {summary['downshifts']}")
    for gear, seconds in summary["time_in_gear_s"].items():
        print(f"   Gear {gear}: {seconds:.1f} s")
    for shift in recorder.shifts[:5]:
        print(f"   t={shift.time_s:.2f}s {shift.from_gear}->{shift.to_gear} "
              f"at {shift.speed_kph:.0f} km/h")

    # Step 6: Analyze the buffered arrays
    print("\n6. Analysis:")
    arrays = recorder.to_arrays()
    print(f"   Mean speed: {np.mean(arrays['speed_kph']):.1f} km/h")
    print(f"   Peak lateral usage: {arrays['lateral_usage'].max():.2f}")
    print(f"   Time on the brakes: {np.mean(arrays['brake'] > 0) * 100:.0f}%")

    print("\n" + "=" * 60)
    print("Telemetry recording complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
