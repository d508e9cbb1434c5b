"""Configuration types for sweeps."""

import math
from dataclasses import dataclass

import numpy as np
from mashumaro import DataClassDictMixin

from .errors import InvalidParameters

MAX_SWEEP_POINTS = 100_000


def _is_real(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(kw_only=True)
class SweepParameters(DataClassDictMixin):
    """Parameters of a single current sweep.

    Currents are in milliamps; conversion to amps happens at the device
    boundary.
    """

    start_mA: float
    stop_mA: float
    step_mA: float
    module_index: int = 0
    stabilization_delay_ms: float = 500.0

    def validate(self) -> None:
        """Raise `InvalidParameters` if the sweep cannot be run.

        Performs no I/O.
        """
        numeric = ("start_mA", "stop_mA", "step_mA", "stabilization_delay_ms")
        for param in numeric:
            value = getattr(self, param)
            if not _is_real(value) or not math.isfinite(value):
                self._reject(param, "Value must be a finite number")
        module = self.module_index
        if isinstance(module, bool) or not isinstance(module, int):
            self._reject("module_index", "Module index must be an integer")

        validators = {
            "step_mA": (self.step_mA > 0, "Step must be positive"),
            "start_mA": (
                self.start_mA <= self.stop_mA,
                "Start current must not exceed stop current",
            ),
            "stabilization_delay_ms": (
                self.stabilization_delay_ms >= 0,
                "Stabilization delay cannot be negative",
            ),
            "module_index": (self.module_index >= 0, "Module index cannot be negative"),
        }
        for param, (valid, message) in validators.items():
            if not valid:
                self._reject(param, message)

        if (self.stop_mA - self.start_mA) / self.step_mA >= MAX_SWEEP_POINTS:
            self._reject("step_mA", f"Sweep exceeds {MAX_SWEEP_POINTS} points")

    def _reject(self, param: str, message: str):
        raise InvalidParameters(
            f"Invalid sweep parameters: {message} (got {param}="
            + f"{getattr(self, param)!r})"
        )

    def n_points(self) -> int:
        """Number of setpoints, `floor((stop - start) / step) + 1`.

        A small tolerance absorbs floating point error so that e.g.
        0 -> 0.3 in steps of 0.1 yields 4 points, not 3.
        """
        span = (self.stop_mA - self.start_mA) / self.step_mA
        return int(span + 1e-9) + 1

    def setpoints(self) -> list[float]:
        """Current setpoints in mA, computed from an integer step count."""
        setpoints = self.start_mA + self.step_mA * np.arange(self.n_points())
        return np.minimum(setpoints, self.stop_mA).tolist()
