"""
Telemetry module - Car data collection over time.

This module contains:
- TelemetryRecorder: Samples a car into frames and run statistics
- TelemetryFrame: One typed sample of a car
- ShiftEvent: A gear change between two frames
"""

from racedyn.telemetry.recorder import RecorderConfig, TelemetryRecorder
from racedyn.telemetry.frame import ShiftEvent, TelemetryFrame

__all__ = [
    "TelemetryRecorder",
    "RecorderConfig",
    "TelemetryFrame",
    "ShiftEvent",
]
