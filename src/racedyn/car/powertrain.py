"""
Powertrain math - Forces and gear choice from engine state.

Provides:
- Drive RPM with a throttle-weighted launch floor
- Two-segment smoothstep torque curve
- Drive force at the contact patch
- Brake and engine-braking deceleration
- Automatic gear selection by achievable acceleration

All functions are pure: they read configuration and explicit arguments and
keep no state between calls.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from racedyn.car.aero import Aero
from racedyn.car.engine import EngineConfig
from racedyn.car.transmission import GearDecision, TransmissionConfig
from racedyn.utils.constants import GRAVITY, KPH_PER_MPS
from racedyn.utils.exceptions import ConfigurationError
from racedyn.utils.numeric import clamp, is_finite, smoothstep_between

if TYPE_CHECKING:
    from racedyn.car.car import CarConfig

# Current RPM at which an upshift is forced, relative to the rev limiter
FORCED_UPSHIFT_FRACTION = 0.995

# Throttle above which engine braking is disengaged
ENGINE_BRAKE_THROTTLE_CUTOFF = 0.05

# Floor on effective brake grip so brakes keep working on any surface
MIN_BRAKE_GRIP = 0.1


@dataclass
class BrakeConfig:
    """Configuration for the brake system."""
    # Deceleration in g at full pedal on a grip-1.0 surface
    strength: float = 1.0

    # Share of brake force on the front axle
    front_bias: float = 0.6

    def validate(self) -> None:
        """Validate brake parameters.

        Raises:
            ConfigurationError: If strength is negative or bias outside [0, 1].
        """
        if self.strength < 0.0:
            raise ConfigurationError("brake strength must be non-negative")
        if not 0.0 <= self.front_bias <= 1.0:
            raise ConfigurationError("brake front_bias must be in [0, 1]")


def drive_rpm(
    engine: EngineConfig,
    transmission: TransmissionConfig,
    gear: int,
    speed_mps: float,
    throttle: float,
) -> float:
    """Engine RPM while driving.

    The higher of the speed-implied RPM and the launch floor
    idle + throttle * (launch - idle), clamped to [idle, limiter].

    Args:
        engine: Engine configuration
        transmission: Gearing
        gear: Selected gear
        speed_mps: Forward speed in m/s
        throttle: Throttle fraction 0-1

    Returns:
        RPM used to evaluate the torque curve
    """
    speed_rpm = transmission.rpm_at_speed(speed_mps, gear)
    launch_floor = engine.idle_rpm + throttle * (engine.launch_rpm - engine.idle_rpm)
    return clamp(max(speed_rpm, launch_floor), engine.idle_rpm, engine.rev_limiter_rpm)


def engine_torque_nm(rpm: float, engine: EngineConfig) -> float:
    """Full-throttle torque at an RPM.

    Smoothstep from idle torque to peak torque over [idle, peak RPM], then
    from peak torque to redline torque over [peak RPM, limiter].

    Args:
        rpm: Engine RPM (clamped to [idle, limiter])
        engine: Engine configuration

    Returns:
        Torque in Nm
    """
    if engine.peak_torque_nm <= 0.0:
        return 0.0
    rpm = clamp(rpm, engine.idle_rpm, engine.rev_limiter_rpm)

    if rpm <= engine.peak_torque_rpm:
        span = engine.peak_torque_rpm - engine.idle_rpm
        t = (rpm - engine.idle_rpm) / span if span > 0.0 else 0.0
        return smoothstep_between(engine.idle_torque_nm, engine.peak_torque_nm, t)

    span = engine.rev_limiter_rpm - engine.peak_torque_rpm
    t = (rpm - engine.peak_torque_rpm) / span if span > 0.0 else 0.0
    return smoothstep_between(engine.peak_torque_nm, engine.redline_torque_nm, t)


def wheel_force_from_torque(
    torque_nm: float,
    gear: int,
    transmission: TransmissionConfig,
) -> float:
    """Force at the contact patch for an engine torque in a gear."""
    if transmission.wheel_radius_m <= 0.0:
        return 0.0
    wheel_torque = (torque_nm * transmission.gear_ratio(gear) * transmission.final_drive
                    * transmission.drivetrain_efficiency)
    return wheel_torque / transmission.wheel_radius_m


def drive_force(
    engine: EngineConfig,
    transmission: TransmissionConfig,
    gear: int,
    speed_mps: float,
    throttle: float,
    grip_factor: float = 1.0,
) -> float:
    """Tractive force requested from the tires.

    Args:
        engine: Engine configuration
        transmission: Gearing
        gear: Selected gear
        speed_mps: Forward speed in m/s
        throttle: Throttle fraction 0-1
        grip_factor: Longitudinal grip factor from the previous tick

    Returns:
        Drive force in Newtons (>= 0)
    """
    rpm = drive_rpm(engine, transmission, gear, speed_mps, throttle)
    torque = engine_torque_nm(rpm, engine) * throttle * engine.power_factor
    force = wheel_force_from_torque(torque, gear, transmission) * clamp(grip_factor, 0.0, 1.0)
    return max(0.0, force)


def brake_decel_kph_per_s(
    brake: float,
    tire_grip: float,
    surface_decel_mod: float,
    brakes: BrakeConfig,
) -> float:
    """Deceleration produced by the brake pedal.

    Args:
        brake: Brake fraction 0-1
        tire_grip: Tire grip coefficient
        surface_decel_mod: Surface deceleration multiplier
        brakes: Brake configuration

    Returns:
        Deceleration in km/h per second (>= 0)
    """
    if brake <= 0.0:
        return 0.0
    grip = max(MIN_BRAKE_GRIP, tire_grip * surface_decel_mod)
    return brake * brakes.strength * grip * GRAVITY * KPH_PER_MPS


def engine_braking_decel_kph_per_s(
    rpm: float,
    gear: int,
    throttle: float,
    surface_decel_mod: float,
    mass_kg: float,
    engine: EngineConfig,
    transmission: TransmissionConfig,
) -> float:
    """Deceleration from closed-throttle engine drag.

    Scales with how far RPM sits above idle. Zero while the throttle is
    open or when any parameter would make the result meaningless.

    Returns:
        Deceleration in km/h per second (>= 0)
    """
    if throttle > ENGINE_BRAKE_THROTTLE_CUTOFF:
        return 0.0
    if engine.engine_braking_torque_nm <= 0.0 or mass_kg <= 0.0:
        return 0.0
    if transmission.wheel_radius_m <= 0.0:
        return 0.0
    rpm_range = engine.rev_limiter_rpm - engine.idle_rpm
    if rpm_range <= 0.0:
        return 0.0
    rpm_factor = (rpm - engine.idle_rpm) / rpm_range
    if rpm_factor <= 0.0:
        return 0.0
    rpm_factor = min(1.0, rpm_factor)

    drag_torque = engine.engine_braking_torque_nm * engine.engine_braking * rpm_factor
    wheel_force = wheel_force_from_torque(drag_torque, gear, transmission)
    return max(0.0, wheel_force / mass_kg * surface_decel_mod * KPH_PER_MPS)


def _net_acceleration(
    config: "CarConfig",
    aero: Aero,
    gear: int,
    speed_mps: float,
    throttle: float,
    surface_traction_mod: float,
    grip_factor: float,
) -> float:
    """Achievable forward acceleration in a gear, or -inf if it cannot be used."""
    engine, transmission = config.engine, config.transmission
    if transmission.gear_ratio(gear) * transmission.final_drive <= 0.0:
        return float("-inf")
    implied_rpm = transmission.rpm_at_speed(speed_mps, gear)
    if implied_rpm > engine.rev_limiter_rpm:
        return float("-inf")

    mass = config.chassis.mass_kg
    rpm = drive_rpm(engine, transmission, gear, speed_mps, throttle)
    torque = engine_torque_nm(rpm, engine) * throttle * engine.power_factor
    traction_limit = (config.tires.grip_coefficient * surface_traction_mod
                      * clamp(grip_factor, 0.0, 1.0) * mass * GRAVITY)
    force = min(wheel_force_from_torque(torque, gear, transmission), traction_limit)

    drag = aero.calculate_drag(speed_mps)
    rolling = config.tires.rolling_resistance_coefficient * mass * GRAVITY
    return (force - drag - rolling) / mass


def select_automatic_gear(
    config: "CarConfig",
    gear: int,
    speed_mps: float,
    throttle: float,
    surface_traction_mod: float = 1.0,
    grip_factor: float = 1.0,
) -> GearDecision:
    """Choose the gear an automatic gearbox should be in.

    Rules, in order:
    1. Upshift when the engine is at 99.5% of the rev limiter.
    2. Downshift when RPM has fallen below the post-upshift RPM.
    3. Otherwise move to the neighbouring gear with the best achievable
       acceleration, but only if it beats the current gear by more than
       the hysteresis margin.

    An upshift that would land below the post-upshift RPM is never chosen,
    and a downshift that would land above the auto-shift RPM is never
    chosen, so no rule can undo the previous shift.

    Args:
        config: Car configuration
        gear: Current gear
        speed_mps: Forward speed in m/s
        throttle: Throttle fraction 0-1
        surface_traction_mod: Surface traction multiplier
        grip_factor: Longitudinal grip factor from the last dynamics tick

    Returns:
        GearDecision describing whether and where to shift
    """
    engine, transmission = config.engine, config.transmission
    gear_count = transmission.gear_count
    gear = int(clamp(gear, 1, gear_count))
    if gear_count <= 1:
        return GearDecision(False, gear, "single gear")

    speed_mps = abs(speed_mps)
    rpm = transmission.rpm_at_speed(speed_mps, gear)
    lug_rpm = engine.post_upshift_rpm
    # Highest RPM a downshift may land on, below the forced-upshift point
    downshift_ceiling = min(engine.shift_rpm, FORCED_UPSHIFT_FRACTION * engine.rev_limiter_rpm)

    if rpm >= FORCED_UPSHIFT_FRACTION * engine.rev_limiter_rpm and gear < gear_count:
        return GearDecision(True, gear + 1, "rev limiter")
    if rpm < lug_rpm and gear > 1:
        if transmission.rpm_at_speed(speed_mps, gear - 1) <= downshift_ceiling:
            return GearDecision(True, gear - 1, "lugging")

    aero = Aero(config.aero)

    def accel(candidate: int) -> float:
        return _net_acceleration(config, aero, candidate, speed_mps, throttle,
                                 surface_traction_mod, grip_factor)

    current_accel = accel(gear)
    best_gear, best_accel = gear, current_accel
    for candidate in (gear + 1, gear - 1):
        if candidate < 1 or candidate > gear_count:
            continue
        candidate_rpm = transmission.rpm_at_speed(speed_mps, candidate)
        if candidate > gear and candidate_rpm < lug_rpm:
            continue
        if candidate < gear and candidate_rpm > downshift_ceiling:
            continue
        candidate_accel = accel(candidate)
        if candidate_accel > best_accel:
            best_gear, best_accel = candidate, candidate_accel

    if best_gear == gear:
        return GearDecision(False, gear, "")

    reason = "upshift" if best_gear > gear else "downshift"
    if not is_finite(current_accel):
        return GearDecision(True, best_gear, reason)

    margin = abs(current_accel) * transmission.shift_hysteresis
    if best_accel > current_accel + margin:
        return GearDecision(True, best_gear, reason)
    return GearDecision(False, gear, "within hysteresis")
