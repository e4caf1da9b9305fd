"""Physical constants and unit conversions."""

# Standard gravity (m/s^2)
GRAVITY = 9.80665

# Sea-level air density (kg/m^3)
AIR_DENSITY = 1.225

KPH_PER_MPS = 3.6
