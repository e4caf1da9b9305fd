#!/usr/bin/env python3
"""
Basic Simulation Example

This example demonstrates how to:
1. Pick a car from the preset catalog
2. Run a simulation loop with scripted inputs
3. Change the surface under a car mid-run
4. Access car telemetry data

Run with: python run_simulation.py
"""

import logging

from racedyn import Simulator
from racedyn.car import CarInputs, SurfaceConditions
from racedyn.car.presets import gtr
from racedyn.utils import configure_logging


def main():
    configure_logging(logging.INFO)

    print("=" * 60)
    print("RaceDyn Basic Simulation Example")
    print("=" * 60)

    # Step 1: Create simulator and spawn car
    print("\n1. Setting up simulation...")
    sim = Simulator()
    car_id = sim.spawn_cars(1, config_factory=gtr)[0]
    car = sim.get_car(car_id)
    print(f"   Spawned {car.config.name} with ID: {car_id}")

    # Step 2: Run simulation
    print("\n2. Running simulation (1000 steps at 100Hz = 10 seconds)...")
    sim.start()

    for step in range(1000):
        if step < 500:
            inputs = CarInputs(throttle=100, steering=0)
        elif step < 650:
            # Brake into a right-hander
            inputs = CarInputs(brake=-80, steering=30)
        else:
            # Accelerate out of the corner onto a damp section
            if step == 650:
                sim.world.set_surface(car_id, SurfaceConditions(traction_mod=0.7, decel_mod=0.8))
            inputs = CarInputs(throttle=80, steering=10)

        sim.step({car_id: inputs})

        if (step + 1) % 100 == 0:
            print(f"   Step {step + 1}: Speed = {car.speed_kph:.1f} km/h, "
                  f"Gear = {car.gear}, "
                  f"RPM = {car.rpm:.0f}")

    # Step 3: Get final telemetry
    print("\n3. Final telemetry snapshot:")
    telemetry = car.get_telemetry()

    print(f"   Position: ({telemetry['state']['x']:.1f}, {telemetry['state']['y']:.1f})")
    print(f"   Heading: {telemetry['state']['heading_deg']:.1f} deg")
    print(f"   Speed: {telemetry['state']['speed_kph']:.1f} km/h")
    print(f"   Engine RPM: {telemetry['engine']['rpm']:.0f}")
    print(f"   Distance: {telemetry['engine']['distance_m']:.0f} m")
    print(f"   Gear: {telemetry['transmission']['gear']} "
          f"({telemetry['transmission']['shift_count']} shifts)")
    print(f"   Lateral usage: {telemetry['grip']['lateral_usage']:.2f}")
    for wheel in telemetry["wheels"]:
        print(f"   {wheel['position']}: load {wheel['load_n']:.0f} N, "
              f"Fx {wheel['force_x_n']:.0f} N, Fy {wheel['force_y_n']:.0f} N")

    # Step 4: Get simulation statistics
    print("\n4. Simulation statistics:")
    print(f"   Simulation time: {sim.time:.2f} seconds")
    print(f"   Recorded frames: {len(sim.history)}")

    sim.stop()
    print("\n" + "=" * 60)
    print("Simulation complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
