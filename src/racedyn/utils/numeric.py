"""
Numeric helpers shared by the steering, powertrain and dynamics code.

All helpers operate on plain floats and return plain floats so that the
per-tick math stays deterministic and cheap.
"""

import numpy as np


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return float(min(max(value, low), high))


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation between a and b."""
    return a + (b - a) * t


def smoothstep(t: float) -> float:
    """Cubic ease 3t^2 - 2t^3 on t clamped to [0, 1]."""
    t = clamp(t, 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def smoothstep_between(a: float, b: float, t: float) -> float:
    """Blend from a to b with a smoothstep curve."""
    return lerp(a, b, smoothstep(t))


def approach(current: float, target: float, step: float) -> float:
    """Move current toward target by at most step without overshooting."""
    step = abs(step)
    if current < target:
        return min(target, current + step)
    return max(target, current - step)


def is_finite(value: float) -> bool:
    """True if value is neither NaN nor infinite."""
    return bool(np.isfinite(value))


def finite_or(value: float, fallback: float) -> float:
    """Return value if finite, otherwise fallback."""
    return float(value) if is_finite(value) else fallback


def sign(value: float) -> float:
    """Sign of value as -1.0, 0.0 or 1.0."""
    return float(np.sign(value))
