"""Error taxonomy for instrument communication and sweeps.

Device-level errors (`DeviceError` and subclasses) are raised by transports,
sessions and drivers. They are never retried and propagate to whoever issued
the command. Sweep-level errors (`SweepError` and subclasses) are raised by
the sweep orchestrator and carry a human-readable cause.
"""

from __future__ import annotations

from pathlib import Path


class DeviceError(Exception):
    """Base exception for all instrument communication failures."""

    pass


class IoError(DeviceError):
    """Transport-level failure: timeout, refused, reset, short write."""

    pass


class ParseError(DeviceError):
    """A response (or address) could not be interpreted as the expected type."""

    pass


class NotConnected(DeviceError):
    """Operation attempted on a device without an open session."""

    def __init__(self, msg: str = "Device not connected"):
        super().__init__(msg)


class SweepError(Exception):
    """A sweep did not complete.

    Attributes
    ----------
    path : Path | None
        Artifact holding any records gathered before the failure, if one was
        written.
    """

    def __init__(self, msg: str, path: Path | None = None):
        super().__init__(msg)
        self.path = path


class InvalidParameters(SweepError):
    """Sweep bounds violate the ordering/positivity invariant."""

    pass


class SafetyViolation(SweepError):
    """TEC inactive when laser arming was requested."""

    pass


class SweepCancelled(SweepError):
    """The sweep was cancelled through its cancellation token."""

    pass
