"""
Utilities - Shared constants, numeric helpers and exceptions.
"""

from racedyn.utils.constants import GRAVITY, AIR_DENSITY, KPH_PER_MPS
from racedyn.utils.exceptions import RaceDynError, ConfigurationError
from racedyn.utils.logging import configure_logging

__all__ = [
    "GRAVITY",
    "AIR_DENSITY",
    "KPH_PER_MPS",
    "RaceDynError",
    "ConfigurationError",
    "configure_logging",
]
