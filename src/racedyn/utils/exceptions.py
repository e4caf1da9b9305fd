"""Custom exceptions for the vehicle simulation."""


class RaceDynError(Exception):
    """Base exception for simulation errors."""


class ConfigurationError(RaceDynError):
    """Raised when a vehicle configuration is invalid."""
