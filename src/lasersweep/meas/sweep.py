"""Laser current sweep (L-I characterisation).

The sweep steps the CLD1015 laser current from `start_mA` to `stop_mA`, waits
for the laser and detector to stabilise at each step, and records the optical
power read by one MPM210H module. It runs as a sequential state machine:

    VALIDATING -> SAFETY_CHECK -> ZEROING -> PRIMING -> STEPPING -> FINALIZING
               -> COMPLETED | ABORTED

Safety: the laser output is never enabled unless the TEC reports on, and on
every abort after priming has started the laser is switched off (best effort).

The sweep holds both instrument locks from SAFETY_CHECK until it finishes, so
no other command reaches either instrument in between. It blocks (sleeps and
instrument I/O) and should be run off any latency-sensitive thread; see
`LaserSystem.start_sweep`.

Every sleep and every instrument command is a cancellation point: setting the
cancel event (or calling `cancel`) aborts the sweep with `SweepCancelled`.
"""

from __future__ import annotations

import queue
import types
import uuid
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from threading import Event
from typing import TYPE_CHECKING, Callable, Optional

from loguru import logger

from lasersweep.types import (
    DeviceError,
    MeasurementRecord,
    Notification,
    SafetyViolation,
    SweepCancelled,
    SweepError,
    SweepFinished,
    SweepParameters,
    SweepPoint,
    SweepStateUpdate,
)
from lasersweep.util.defaults import (
    DEFAULT_OPERATING_WAVELENGTH_NM,
    DEFAULT_SAVE_DIR,
    ZEROING_SETTLE_TIME,
)
from lasersweep.util.save import save_sweep_metadata, save_sweep_records

if TYPE_CHECKING:
    from lasersweep.device import CLD1015, MPM210H

# ----------------
# Available States
# ----------------

SWEEP_STATE = types.SimpleNamespace()
SWEEP_STATE.VALIDATING = "VALIDATING"
SWEEP_STATE.SAFETY_CHECK = "SAFETY_CHECK"
SWEEP_STATE.ZEROING = "ZEROING"
SWEEP_STATE.PRIMING = "PRIMING"
SWEEP_STATE.STEPPING = "STEPPING"
SWEEP_STATE.FINALIZING = "FINALIZING"
SWEEP_STATE.COMPLETED = "COMPLETED"
SWEEP_STATE.ABORTED = "ABORTED"

TERMINAL_STATES = (SWEEP_STATE.COMPLETED, SWEEP_STATE.ABORTED)


@dataclass
class SweepResult:
    """Outcome of one sweep run."""

    state: str
    records: list[MeasurementRecord] = field(default_factory=list)
    path: Optional[Path] = None
    error: Optional[SweepError] = None

    @property
    def ok(self) -> bool:
        return self.state == SWEEP_STATE.COMPLETED


class CurrentSweep:
    """One current sweep over a CLD1015 and an MPM210H.

    Parameters
    ----------
    cld : CLD1015
        Laser diode / TEC controller, already connected.
    mpm : MPM210H
        Power meter, already connected.
    params : SweepParameters
        Sweep bounds, module and per-step delay.
    notif_queue : queue.Queue, optional
        Receives `SweepStateUpdate`, `SweepPoint` and `SweepFinished`
        notifications. Delivery is best effort.
    on_point : Callable[[MeasurementRecord], None], optional
        Called with each record as it is acquired. Exceptions are logged and
        ignored.
    save_dir : str | Path
        Directory for the CSV artifact.
    operating_wavelength_nm : int
        Wavelength of the laser, written to the power meter before stepping.
    zeroing_settle_s : float
        Hard wait after the power meter zeroing command.
    cancel_event : threading.Event, optional
        Set to cancel the sweep. A private event is used if not given.
    """

    def __init__(
        self,
        cld: CLD1015,
        mpm: MPM210H,
        params: SweepParameters,
        notif_queue: Optional[queue.Queue[Notification]] = None,
        on_point: Optional[Callable[[MeasurementRecord], None]] = None,
        save_dir: str | Path = DEFAULT_SAVE_DIR,
        operating_wavelength_nm: int = DEFAULT_OPERATING_WAVELENGTH_NM,
        zeroing_settle_s: float = ZEROING_SETTLE_TIME,
        cancel_event: Optional[Event] = None,
    ):
        self.cld = cld
        self.mpm = mpm
        self.params = params
        self.notif_queue = notif_queue
        self.on_point = on_point
        self.save_dir = save_dir
        self.operating_wavelength_nm = operating_wavelength_nm
        self.zeroing_settle_s = zeroing_settle_s
        self._cancel_event = cancel_event if cancel_event is not None else Event()

        self.meas_id = str(uuid.uuid4())
        self.state = SWEEP_STATE.VALIDATING
        self.records: list[MeasurementRecord] = []
        self.path: Optional[Path] = None
        self._setpoints: list[float] = []
        self._primed = False
        self._persisted = False

    # ----------------------------------------------------------------------------------
    # API
    # ----------------------------------------------------------------------------------

    def run(self) -> Path:
        """Run the sweep to completion.

        Returns
        -------
        Path
            The CSV artifact.

        Raises
        ------
        SweepError
            On any abort. `InvalidParameters`, `SafetyViolation` and
            `SweepCancelled` are raised as such; any other failure is wrapped
            with the underlying error chained.
        """
        result = self.execute()
        if not result.ok:
            raise result.error
        return result.path

    def execute(self) -> SweepResult:
        """Run the sweep and return its outcome instead of raising."""
        try:
            self.params.validate()
        except SweepError as e:
            logger.error("Sweep {} rejected: {}", self.meas_id, e)
            self._set_state(SWEEP_STATE.ABORTED)
            return self._finish(e)

        self._setpoints = self.params.setpoints()
        logger.info(
            "Starting current sweep {}: {} mA to {} mA, step {} mA, module {} "
            + "({} points)",
            self.meas_id,
            self.params.start_mA,
            self.params.stop_mA,
            self.params.step_mA,
            self.params.module_index,
            len(self._setpoints),
        )

        error = None
        with ExitStack() as stack:
            # lock order: current source, then power meter
            stack.enter_context(self.cld.lock)
            stack.enter_context(self.mpm.lock)
            self._set_state(SWEEP_STATE.SAFETY_CHECK)
            while self.state not in TERMINAL_STATES:
                try:
                    next_state = self._router(self.state)
                except SweepError as e:
                    error = e
                    next_state = self._abort(e)
                except DeviceError as e:
                    error = SweepError(f"{self._describe(self.state)} failed: {e}")
                    error.__cause__ = e
                    next_state = self._abort(error)
                except Exception as e:
                    logger.exception("Error in sweep state machine.")
                    error = SweepError(f"{self._describe(self.state)} failed: {e}")
                    error.__cause__ = e
                    next_state = self._abort(error)
                self._set_state(next_state)
        return self._finish(error)

    def cancel(self) -> None:
        """Request cancellation; honoured at the next suspension point."""
        logger.warning("Cancellation requested for sweep {}", self.meas_id)
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def get_records(self) -> list[MeasurementRecord]:
        return list(self.records)

    def get_metadata(self) -> dict:
        return {
            "meas_id": self.meas_id,
            "state": self.state,
            "params": self.params.to_dict(),
            "n_records": len(self.records),
            "operating_wavelength_nm": self.operating_wavelength_nm,
            "zeroing_settle_s": self.zeroing_settle_s,
            "current_source": self.cld.unroll_metadata(),
            "power_meter": self.mpm.unroll_metadata(),
        }

    # ----------------------------------------------------------------------------------
    # State machine
    # ----------------------------------------------------------------------------------

    def _router(self, state: str) -> str:
        match state:
            case SWEEP_STATE.SAFETY_CHECK:
                return self._safety_check()
            case SWEEP_STATE.ZEROING:
                return self._zeroing()
            case SWEEP_STATE.PRIMING:
                return self._priming()
            case SWEEP_STATE.STEPPING:
                return self._stepping()
            case SWEEP_STATE.FINALIZING:
                return self._finalizing()
            case _:
                raise ValueError(f"Invalid sweep state: {state}")

    def _safety_check(self) -> str:
        self._checkpoint()
        if not self.cld.get_tec_state():
            raise SafetyViolation("TEC must be ON before starting the experiment")
        return SWEEP_STATE.ZEROING

    def _zeroing(self) -> str:
        self._checkpoint()
        logger.info("Performing zeroing to remove electrical offsets")
        self.mpm.perform_zeroing()
        self._sleep(self.zeroing_settle_s)
        logger.info("Zeroing completed, proceeding with sweep")
        return SWEEP_STATE.PRIMING

    def _priming(self) -> str:
        self._primed = True
        self._checkpoint()
        self.cld.set_laser_output(False)
        self._checkpoint()
        self.mpm.set_wavelength(self.operating_wavelength_nm)
        self._checkpoint()
        self.cld.set_laser_output(True)
        return SWEEP_STATE.STEPPING

    def _stepping(self) -> str:
        total = len(self._setpoints)
        module = self.params.module_index
        for index, current_mA in enumerate(self._setpoints):
            self._checkpoint()
            self.cld.set_current(current_mA / 1000.0)
            self._sleep(self.params.stabilization_delay_ms / 1000.0)
            power = self.mpm.read_power(module)
            record = MeasurementRecord(
                timestamp=datetime.now(timezone.utc).isoformat(),
                current_mA=current_mA,
                power=power,
                module=module,
            )
            self.records.append(record)
            logger.debug(
                "Sweep point {}/{}: {} mA -> {}", index + 1, total, current_mA, power
            )
            self._emit_point(index, total, record)
        return SWEEP_STATE.FINALIZING

    def _finalizing(self) -> str:
        self._laser_off()
        path = self._persist()
        if path is None:
            raise SweepError("Failed to save CSV")
        logger.info("Sweep completed. Data saved to: {}", path)
        return SWEEP_STATE.COMPLETED

    # ----------------------------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------------------------

    def _abort(self, error: SweepError) -> str:
        logger.error("Sweep {} aborted in {}: {}", self.meas_id, self.state, error)
        if self._primed:
            if self.state != SWEEP_STATE.FINALIZING:
                self._laser_off()
            if not self._persisted:
                error.path = self._persist()
            else:
                error.path = self.path
        return SWEEP_STATE.ABORTED

    def _laser_off(self) -> None:
        """Best-effort laser off; failures are logged, never raised."""
        try:
            self.cld.set_laser_output(False)
        except DeviceError as e:
            logger.error("Failed to switch laser off: {}", e)

    def _persist(self) -> Optional[Path]:
        self._persisted = True
        try:
            self.path = save_sweep_records(self.records, self.save_dir)
        except OSError as e:
            logger.error("Failed to save sweep records: {}", e)
            return None
        try:
            save_sweep_metadata(self.path, self.get_metadata())
        except (OSError, TypeError) as e:
            logger.error("Failed to save sweep metadata: {}", e)
        return self.path

    def _checkpoint(self) -> None:
        if self._cancel_event.is_set():
            raise SweepCancelled("Sweep cancelled")

    def _sleep(self, seconds: float) -> None:
        if seconds > 0 and self._cancel_event.wait(seconds):
            raise SweepCancelled("Sweep cancelled")
        self._checkpoint()

    def _describe(self, state: str) -> str:
        return {
            SWEEP_STATE.SAFETY_CHECK: "Reading TEC state",
            SWEEP_STATE.ZEROING: "Zeroing",
            SWEEP_STATE.PRIMING: "Priming laser",
            SWEEP_STATE.STEPPING: "Sweep step",
            SWEEP_STATE.FINALIZING: "Finalizing",
        }.get(state, state)

    def _set_state(self, next_state: str) -> None:
        if self.state != next_state:
            logger.info(
                "Sweep state: {} {} -> {}", self.meas_id, self.state, next_state
            )
            self._notify(
                SweepStateUpdate(
                    meas_id=self.meas_id, old_state=self.state, new_state=next_state
                )
            )
        self.state = next_state

    def _emit_point(self, index: int, total: int, record: MeasurementRecord) -> None:
        self._notify(
            SweepPoint(meas_id=self.meas_id, index=index, total=total, record=record)
        )
        if self.on_point is not None:
            try:
                self.on_point(record)
            except Exception:
                logger.exception("Failed to emit sweep-point")

    def _notify(self, notif: Notification) -> None:
        if self.notif_queue is None:
            return
        try:
            self.notif_queue.put_nowait(notif)
        except queue.Full:
            logger.error("Notification queue full, dropped {}", notif)

    def _finish(self, error: Optional[SweepError]) -> SweepResult:
        self._notify(
            SweepFinished(
                meas_id=self.meas_id,
                state=self.state,
                path=str(self.path) if self.path else "",
                n_records=len(self.records),
                error=str(error) if error else "",
            )
        )
        return SweepResult(
            state=self.state, records=list(self.records), path=self.path, error=error
        )
