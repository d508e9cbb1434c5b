"""Class for controlling the Thorlabs CLD1015 laser diode / TEC controller.

Uses a VISA (USB-TMC) session and the instrument's SCPI command set. Every
getter issues a live query; no instrument state is cached locally.

Currents are in amps at this level. Range checking is left to the
instrument: an out-of-range setpoint is rejected by the CLD1015 and shows up
in its error queue.
"""

from typing import Optional

import pyvisa
from loguru import logger

from lasersweep.util.defaults import (
    DEFAULT_CLD_RESOURCE,
    DEFAULT_CLD_TIMEOUT,
    DEFAULT_MAX_ERROR_READS,
)

from .device import SCPIDevice, parse_on_off
from .session import InstrumentSession
from .transport import Transport, VisaTransport

# Command vocabulary
CMD_MODE_CURRENT = "SOURce:FUNCtion:MODE CURRent"
QRY_MODE = "SOURce:FUNCtion:MODE?"
CMD_CURRENT = "SOURce:CURRent:LEVel:IMMediate:AMPLitude {amps}"
QRY_CURRENT = "SOURce:CURRent:LEVel:IMMediate:AMPLitude?"
CMD_LASER_OUTPUT = "OUTPut:STATe {state}"
QRY_LASER_OUTPUT = "OUTPut:STATe?"
CMD_TEC_OUTPUT = "OUTPut2:STATe {state}"
QRY_TEC_OUTPUT = "OUTPut2:STATe?"
QRY_ERROR = "SYSTem:ERRor?"


class CLD1015(SCPIDevice):
    """Thorlabs CLD1015 compact laser diode and TEC controller.

    Parameters
    ----------
    visa_addr : str, optional
        VISA resource string of the instrument.
    timeout : float, optional
        I/O timeout in seconds.
    max_error_reads : int, optional
        Bound on `drain_error_queue`.
    resource_manager : pyvisa.ResourceManager, optional
        Shared resource manager; one is created if not given.
    transport : Transport, optional
        Replaces the VISA transport (used for mock instruments).
    """

    visa_addr: str
    required_config = {"visa_addr": str, "timeout": (int, float)}
    error_query = QRY_ERROR

    def __init__(
        self,
        visa_addr: str = DEFAULT_CLD_RESOURCE,
        timeout: float = DEFAULT_CLD_TIMEOUT,
        max_error_reads: int = DEFAULT_MAX_ERROR_READS,
        resource_manager: Optional[pyvisa.ResourceManager] = None,
        transport: Optional[Transport] = None,
    ):
        super().__init__(
            max_error_reads=max_error_reads, visa_addr=visa_addr, timeout=timeout
        )
        if transport is None:
            transport = VisaTransport(
                visa_addr, timeout=timeout, resource_manager=resource_manager
            )
        # the VISA read blocks until a full message, no settle delay needed
        self.session = InstrumentSession(transport, "CLD1015")

    ###################################################################
    # set/get
    ###################################################################

    def set_current_mode(self) -> None:
        """Put the source in constant-current mode."""
        self.session.write(CMD_MODE_CURRENT)

    def get_current_mode(self) -> str:
        return self.session.query(QRY_MODE)

    def set_current(self, current_amps: float) -> None:
        """Set the laser diode current setpoint in amps."""
        self.session.write(CMD_CURRENT.format(amps=current_amps))

    def get_current(self) -> float:
        """Laser diode current setpoint in amps.

        Raises
        ------
        ParseError
            If the reply is not a number.
        """
        return self.session.query_float(QRY_CURRENT)

    def set_laser_output(self, enabled: bool) -> None:
        self.session.write(CMD_LASER_OUTPUT.format(state="ON" if enabled else "OFF"))
        logger.debug("CLD1015 laser output -> {}", "ON" if enabled else "OFF")

    def get_laser_output(self) -> bool:
        return parse_on_off(self.session.query(QRY_LASER_OUTPUT))

    def get_tec_state(self) -> bool:
        """Whether the temperature controller output is on."""
        return parse_on_off(self.session.query(QRY_TEC_OUTPUT))

    def enable_tec(self) -> None:
        self.session.write(CMD_TEC_OUTPUT.format(state="ON"))
        logger.info("CLD1015 TEC enabled")
