"""Data records and live notifications produced by a sweep."""

from __future__ import annotations

from dataclasses import dataclass

from mashumaro import DataClassDictMixin
from mashumaro.mixins.msgpack import DataClassMessagePackMixin

# column order of the persisted artifact
RECORD_FIELDS = ("timestamp", "current_mA", "power", "module")


@dataclass(frozen=True)
class MeasurementRecord(DataClassDictMixin):
    """One sweep step.

    `power` is the power meter's raw reply and is never re-formatted.
    """

    timestamp: str  # ISO-8601, UTC
    current_mA: float
    power: str
    module: int

    def as_row(self) -> dict[str, str | float | int]:
        return {name: getattr(self, name) for name in RECORD_FIELDS}


@dataclass
class Notification(DataClassMessagePackMixin):
    """Base class for everything put on a sweep's notification queue."""

    def __repr__(self):
        msg = self.__class__.__name__ + "("
        msg += ", ".join(f"{k}={v}" for k, v in self.__dict__.items())
        return msg + ")"


@dataclass(kw_only=True, repr=False)
class SweepPoint(Notification):
    """Live update carrying one completed step."""

    meas_id: str
    index: int
    total: int
    record: MeasurementRecord


@dataclass(kw_only=True, repr=False)
class SweepStateUpdate(Notification):
    meas_id: str
    old_state: str
    new_state: str


@dataclass(kw_only=True, repr=False)
class SweepFinished(Notification):
    """Sent once when the sweep reaches a terminal state."""

    meas_id: str
    state: str
    path: str = ""
    n_records: int = 0
    error: str = ""
