# -*- coding: utf-8 -*-
"""
The experimental system: one current source and one power meter.

`LaserSystem` owns both device drivers (and through them the per-instrument
locks) and exposes the operations a front end or command dispatcher needs.
Sweeps receive the drivers by reference from here; nothing is global.
"""

from __future__ import annotations

import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from functools import wraps
from typing import Callable, Optional, ParamSpec, TypeVar

from loguru import logger

from lasersweep.device import CLD1015, MPM210H, MockCLD1015, MockMPM210H, SCPIDevice
from lasersweep.meas import CurrentSweep, SweepResult
from lasersweep.system.base_config import SystemConfig
from lasersweep.system.sysconfig import load_system_config
from lasersweep.types import (
    DeviceError,
    MeasurementRecord,
    Notification,
    NotConnected,
    SafetyViolation,
    SweepError,
    SweepParameters,
)
from lasersweep.util.defaults import DEFAULT_STABILIZATION_DELAY_MS

P = ParamSpec("P")
T = TypeVar("T")

CURRENT_SOURCE = "current_source"
POWER_METER = "power_meter"


def requires_connected_devices(
    *device_names: str,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator raising `NotConnected` unless the named devices are connected.

    Examples
    --------
    @requires_connected_devices(CURRENT_SOURCE, POWER_METER)
    def run_sweep(self, ...):
        ...
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(self: LaserSystem, *args: P.args, **kwargs: P.kwargs) -> T:
            for name in device_names:
                if not self.get_device(name).is_connected():
                    raise NotConnected(
                        f"Cannot call {func.__name__}: {name} is not connected"
                    )
            return func(self, *args, **kwargs)

        return wrapper

    return decorator


class LaserSystem(object):
    """A CLD1015 current source and an MPM210H power meter.

    Parameters
    ----------
    sys_config : str | SystemConfig
        A system name to load from the INI configuration, or a config object.
    notif_queue : queue.Queue, optional
        Receives sweep notifications (state changes and points).
    """

    cld: CLD1015
    mpm: MPM210H
    hardware_started_up: bool = False

    def __init__(
        self,
        sys_config: str | SystemConfig,
        notif_queue: Optional[queue.Queue[Notification]] = None,
    ):
        if isinstance(sys_config, str):
            logger.info(f"Loading system configuration '{sys_config}'")
            sys_config = load_system_config(sys_config)
        is_valid, msg = sys_config.validate()
        if not is_valid:
            raise ValueError(f"Invalid system configuration: {msg}")
        self.config = sys_config
        self.system_name = sys_config.system_name
        self.save_dir = sys_config.save_dir
        self.notif_queue = notif_queue if notif_queue is not None else queue.Queue()

        self.cld, self.mpm = self._init_devices(sys_config)
        self.device_status: dict[str, dict[str, bool | str]] = dict()

        self._executor: Optional[ThreadPoolExecutor] = None
        self._sweep_guard = threading.Lock()
        self._active_sweep: Optional[CurrentSweep] = None

    @staticmethod
    def _init_devices(config: SystemConfig) -> tuple[CLD1015, MPM210H]:
        if config.current_source_type == "MockCLD1015":
            cld = MockCLD1015(max_error_reads=config.max_error_reads)
        else:
            cld = CLD1015(
                visa_addr=config.current_source_resource,
                timeout=config.current_source_timeout,
                max_error_reads=config.max_error_reads,
            )
        if config.power_meter_type == "MockMPM210H":
            laser = cld if isinstance(cld, MockCLD1015) else None
            mpm = MockMPM210H(laser=laser, max_error_reads=config.max_error_reads)
        else:
            mpm = MPM210H(
                host=config.power_meter_host,
                port=config.power_meter_port,
                timeout=config.power_meter_timeout,
                max_error_reads=config.max_error_reads,
            )
        return cld, mpm

    # ==================================================================================
    # Lifecycle
    # ==================================================================================

    def get_device(self, name: str) -> SCPIDevice:
        match name:
            case "current_source":
                return self.cld
            case "power_meter":
                return self.mpm
            case _:
                raise ValueError(f"Unknown device: {name}")

    def connect_devices(self) -> dict[str, dict[str, bool | str]]:
        """Connect both instruments; a failure on one does not stop the other."""
        dev_status: dict[str, dict[str, bool | str]] = dict()
        for name in (CURRENT_SOURCE, POWER_METER):
            try:
                idn = self.get_device(name).open()
                dev_status[name] = {"status": True, "message": idn}
            except DeviceError as e:
                logger.error("Failed to connect {}: {}", name, e)
                dev_status[name] = {"status": False, "message": str(e)}
        self.device_status = dev_status
        return dev_status

    def disconnect_devices(self):
        for name in (CURRENT_SOURCE, POWER_METER):
            self.get_device(name).close()

    def startup(self) -> dict[str, dict[str, bool | str]]:
        ret = self.connect_devices()
        self.hardware_started_up = True
        return ret

    def packdown(self):
        self.cancel_sweep()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self.disconnect_devices()
        self.hardware_started_up = False

    def get_metadata(self):
        return {
            "system_name": self.system_name,
            "save_dir": self.save_dir,
            CURRENT_SOURCE: self.cld.unroll_metadata(),
            POWER_METER: self.mpm.unroll_metadata(),
        }

    # ==================================================================================
    # Current source
    # ==================================================================================

    def connect_current_source(self) -> str:
        return self.cld.open()

    def is_current_source_connected(self) -> bool:
        return self.cld.is_connected()

    def get_current_mA(self) -> float:
        return self.cld.get_current() * 1000.0

    def set_current_mA(self, current_mA: float) -> None:
        self.cld.set_current(current_mA / 1000.0)

    def get_laser_output(self) -> bool:
        return self.cld.get_laser_output()

    def set_laser_output(self, enabled: bool) -> None:
        with self.cld.lock:
            if enabled and not self.cld.get_tec_state():
                raise SafetyViolation("TEC must be ON before enabling the laser")
            self.cld.set_laser_output(enabled)

    def get_tec_state(self) -> bool:
        return self.cld.get_tec_state()

    def enable_tec(self) -> None:
        self.cld.enable_tec()

    # ==================================================================================
    # Power meter
    # ==================================================================================

    def connect_power_meter(self) -> str:
        return self.mpm.open()

    def is_power_meter_connected(self) -> bool:
        return self.mpm.is_connected()

    def get_wavelength(self) -> str:
        return self.mpm.get_wavelength()

    def set_wavelength(self, wavelength_nm: int) -> None:
        self.mpm.set_wavelength(wavelength_nm)

    def get_recognized_modules(self) -> str:
        return self.mpm.get_recognized_modules()

    def read_power(self, module: int) -> str:
        return self.mpm.read_power(module)

    def perform_zeroing(self) -> None:
        self.mpm.perform_zeroing()

    # ==================================================================================
    # Error queues
    # ==================================================================================

    def get_errors(self, device: str) -> str:
        """Single error queue entry of `device` ("current_source"/"power_meter")."""
        return self.get_device(device).get_errors()

    def clear_errors(self, device: str) -> list[str]:
        """Drain the error queue of `device`, returning what was in it."""
        return self.get_device(device).drain_error_queue()

    # ==================================================================================
    # Sweeps
    # ==================================================================================

    def _new_sweep(
        self,
        module: int,
        start_mA: float,
        stop_mA: float,
        step_mA: float,
        stabilization_delay_ms: float,
        on_point: Optional[Callable[[MeasurementRecord], None]],
    ) -> CurrentSweep:
        params = SweepParameters(
            start_mA=start_mA,
            stop_mA=stop_mA,
            step_mA=step_mA,
            module_index=module,
            stabilization_delay_ms=stabilization_delay_ms,
        )
        with self._sweep_guard:
            if self._active_sweep is not None:
                raise SweepError("A sweep is already running")
            self._active_sweep = CurrentSweep(
                self.cld,
                self.mpm,
                params,
                notif_queue=self.notif_queue,
                on_point=on_point,
                save_dir=self.save_dir,
                operating_wavelength_nm=self.config.operating_wavelength_nm,
                zeroing_settle_s=self.config.zeroing_settle_s,
            )
            return self._active_sweep

    def _run_active(self, sweep: CurrentSweep) -> SweepResult:
        try:
            return sweep.execute()
        finally:
            with self._sweep_guard:
                self._active_sweep = None

    @requires_connected_devices(CURRENT_SOURCE, POWER_METER)
    def start_sweep(
        self,
        module: int,
        start_mA: float,
        stop_mA: float,
        step_mA: float,
        stabilization_delay_ms: float = DEFAULT_STABILIZATION_DELAY_MS,
        on_point: Optional[Callable[[MeasurementRecord], None]] = None,
    ) -> Future[SweepResult]:
        """Run a sweep on the worker thread.

        Returns
        -------
        Future[SweepResult]
            Resolves when the sweep reaches COMPLETED or ABORTED.

        Raises
        ------
        SweepError
            If a sweep is already running.
        """
        sweep = self._new_sweep(
            module, start_mA, stop_mA, step_mA, stabilization_delay_ms, on_point
        )
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="sweep"
            )
        try:
            return self._executor.submit(self._run_active, sweep)
        except RuntimeError:
            with self._sweep_guard:
                self._active_sweep = None
            raise

    @requires_connected_devices(CURRENT_SOURCE, POWER_METER)
    def run_sweep(
        self,
        module: int,
        start_mA: float,
        stop_mA: float,
        step_mA: float,
        stabilization_delay_ms: float = DEFAULT_STABILIZATION_DELAY_MS,
        on_point: Optional[Callable[[MeasurementRecord], None]] = None,
    ) -> tuple[bool, str]:
        """Run a sweep in the calling thread.

        Returns
        -------
        tuple[bool, str]
            (True, artifact path) or (False, error message).
        """
        try:
            sweep = self._new_sweep(
                module, start_mA, stop_mA, step_mA, stabilization_delay_ms, on_point
            )
        except SweepError as e:
            return False, str(e)
        result = self._run_active(sweep)
        if result.ok:
            return True, str(result.path)
        return False, str(result.error)

    def is_sweeping(self) -> bool:
        return self._active_sweep is not None

    def cancel_sweep(self) -> bool:
        """Cancel the running sweep, if any. Returns whether one was running."""
        with self._sweep_guard:
            sweep = self._active_sweep
        if sweep is None:
            return False
        sweep.cancel()
        return True
