"""
Error, configuration and message types shared across lasersweep.

- `errors`: device-level (`IoError`, `ParseError`, `NotConnected`) and
  sweep-level (`InvalidParameters`, `SafetyViolation`, `SweepCancelled`)
  exceptions.
- `config`: `SweepParameters`.
- `messages`: `MeasurementRecord` and the notifications a sweep emits.
"""

from .config import MAX_SWEEP_POINTS, SweepParameters
from .errors import (
    DeviceError,
    InvalidParameters,
    IoError,
    NotConnected,
    ParseError,
    SafetyViolation,
    SweepCancelled,
    SweepError,
)
from .messages import (
    RECORD_FIELDS,
    MeasurementRecord,
    Notification,
    SweepFinished,
    SweepPoint,
    SweepStateUpdate,
)

__all__ = [
    "DeviceError",
    "IoError",
    "ParseError",
    "NotConnected",
    "SweepError",
    "InvalidParameters",
    "SafetyViolation",
    "SweepCancelled",
    "MAX_SWEEP_POINTS",
    "SweepParameters",
    "RECORD_FIELDS",
    "MeasurementRecord",
    "Notification",
    "SweepPoint",
    "SweepStateUpdate",
    "SweepFinished",
]
