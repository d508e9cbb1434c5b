"""Class for controlling the Santec MPM-210H optical power meter.

Talks to the mainframe over a raw TCP socket (port 5000 by default). The
instrument needs a short pause between receiving a query and having its reply
ready, so queries wait `MPM_QUERY_DELAY` between write and read.

Power readings are returned as the instrument's own text (e.g. dBm values);
numeric interpretation is left to the caller.
"""

from typing import Optional

from loguru import logger

from lasersweep.util.defaults import (
    DEFAULT_MAX_ERROR_READS,
    DEFAULT_MPM_HOST,
    DEFAULT_MPM_PORT,
    DEFAULT_MPM_TIMEOUT,
    MPM_QUERY_DELAY,
)

from .device import SCPIDevice
from .session import InstrumentSession
from .transport import SocketTransport, Transport

# Command vocabulary
QRY_MODULES = "IDIS?"
QRY_POWER = "READ? {module}"
QRY_WAVELENGTH = "WAV?"
CMD_WAVELENGTH = "WAV {nm}"
CMD_ZERO = "ZERO"
QRY_ERROR = "ERR?"


class MPM210H(SCPIDevice):
    """Santec MPM-210H multi-port optical power meter.

    Parameters
    ----------
    host : str, optional
        IP address of the mainframe.
    port : int, optional
        TCP port.
    timeout : float, optional
        Connect/read timeout in seconds.
    max_error_reads : int, optional
        Bound on `drain_error_queue`.
    transport : Transport, optional
        Replaces the socket transport (used for mock instruments).
    """

    host: str
    port: int
    required_config = {"host": str, "port": int, "timeout": (int, float)}
    error_query = QRY_ERROR

    def __init__(
        self,
        host: str = DEFAULT_MPM_HOST,
        port: int = DEFAULT_MPM_PORT,
        timeout: float = DEFAULT_MPM_TIMEOUT,
        max_error_reads: int = DEFAULT_MAX_ERROR_READS,
        transport: Optional[Transport] = None,
        query_delay: float = MPM_QUERY_DELAY,
    ):
        super().__init__(
            max_error_reads=max_error_reads, host=host, port=port, timeout=timeout
        )
        if transport is None:
            transport = SocketTransport(host, port, timeout=timeout)
        self.session = InstrumentSession(transport, "MPM210H", settle_delay=query_delay)

    def get_recognized_modules(self) -> str:
        """Bit mask / list of the modules the mainframe has recognised."""
        return self.session.query(QRY_MODULES)

    def read_power(self, module: int) -> str:
        """Raw power reading of one module."""
        if not isinstance(module, int) or isinstance(module, bool) or module < 0:
            raise ValueError(
                f"Module index must be a non-negative int (got {module!r})"
            )
        return self.session.query(QRY_POWER.format(module=module))

    def get_wavelength(self) -> str:
        return self.session.query(QRY_WAVELENGTH)

    def set_wavelength(self, wavelength_nm: int) -> None:
        """Set the calibration wavelength in nm."""
        self.session.write(CMD_WAVELENGTH.format(nm=int(wavelength_nm)))
        logger.debug("MPM210H wavelength -> {} nm", int(wavelength_nm))

    def perform_zeroing(self) -> None:
        """Start offset zeroing.

        Returns as soon as the command is sent. Readings are not valid until
        the instrument has settled (see `ZEROING_SETTLE_TIME`); waiting is
        the caller's job.
        """
        self.session.write(CMD_ZERO)
        logger.info("MPM210H zeroing command sent")
