from __future__ import annotations

from collections import deque

from lasersweep.device.transport import Transport
from lasersweep.types.errors import IoError, NotConnected


class MockTransport(Transport):
    """In-memory transport that answers commands through `handle`.

    Every command written is appended to `log`. Commands starting with any
    prefix in `fail_on` raise `IoError` instead of being handled, which is how
    tests inject transport faults.
    """

    def __init__(self, address: str = "MOCK", timeout: float = 1.0):
        self.address = address
        self.timeout = timeout
        self.log: list[str] = []
        self.fail_on: set[str] = set()
        self.fail_open = False
        self._open = False
        self._replies: deque[str] = deque()

    def describe(self) -> str:
        return self.address

    def open(self) -> None:
        if self.fail_open:
            raise NotConnected(f"Failed to connect to {self.address}: refused")
        self._open = True

    def close(self) -> None:
        self._open = False
        self._replies.clear()

    def is_open(self) -> bool:
        return self._open

    def write_line(self, command: str) -> None:
        if not self._open:
            raise NotConnected()
        self.log.append(command)
        if any(command.startswith(prefix) for prefix in self.fail_on):
            raise IoError(f"Write to {self.address} failed: injected fault")
        reply = self.handle(command)
        if reply is not None:
            self._replies.append(reply)

    def read_line(self) -> str:
        if not self._open:
            raise NotConnected()
        if not self._replies:
            raise IoError(f"Read from {self.address} failed: timeout")
        return self._replies.popleft()

    def handle(self, command: str) -> str | None:
        """Return the reply to `command`, or None for a plain write."""
        if command == "*IDN?":
            return "MOCK,INSTRUMENT,0,0"
        return None


class MockCLD1015Transport(MockTransport):
    """Simulated CLD1015: laser current, laser output and TEC state."""

    def __init__(self, address: str = "MOCK::CLD1015", timeout: float = 1.0):
        super().__init__(address, timeout)
        self.current = 0.0
        self.laser_on = False
        self.tec_on = True
        self.mode = "CURR"
        self.errors: list[str] = []

    def handle(self, command: str) -> str | None:
        verb, _, arg = command.partition(" ")
        match verb:
            case "*IDN?":
                return "Thorlabs,CLD1015,M00000000,1.0.0"
            case "SOURce:FUNCtion:MODE":
                self.mode = "CURR"
            case "SOURce:FUNCtion:MODE?":
                return self.mode
            case "SOURce:CURRent:LEVel:IMMediate:AMPLitude":
                self.current = float(arg)
            case "SOURce:CURRent:LEVel:IMMediate:AMPLitude?":
                return f"{self.current:.6E}"
            case "OUTPut:STATe":
                self.laser_on = arg.upper() == "ON"
            case "OUTPut:STATe?":
                return "1" if self.laser_on else "0"
            case "OUTPut2:STATe":
                self.tec_on = arg.upper() == "ON"
            case "OUTPut2:STATe?":
                return "1" if self.tec_on else "0"
            case "SYSTem:ERRor?":
                if self.errors:
                    return self.errors.pop(0)
                return '+0,"No error"'
            case _:
                self.errors.append('-113,"Undefined header"')
        return None


class MockMPM210HTransport(MockTransport):
    """Simulated MPM-210H with a linear power response to the laser current.

    If `laser` is given, readings follow its current and output state.
    """

    def __init__(
        self,
        address: str = "MOCK::MPM210H",
        timeout: float = 2.0,
        laser: MockCLD1015Transport | None = None,
    ):
        super().__init__(address, timeout)
        self.laser = laser
        self.wavelength = 1550
        self.modules = "1,0,0,0,0"
        self.zero_count = 0
        self.errors: list[str] = []
        self.slope_dbm_per_amp = 100.0

    def _power(self) -> str:
        if self.laser is None or not self.laser.laser_on:
            return "-60.000"
        return f"{-60.0 + self.slope_dbm_per_amp * self.laser.current:.3f}"

    def handle(self, command: str) -> str | None:
        verb, _, arg = command.partition(" ")
        match verb:
            case "*IDN?":
                return "santec,MPM-210H,00000000,1.00"
            case "IDIS?":
                return self.modules
            case "READ?":
                return self._power()
            case "WAV?":
                return str(self.wavelength)
            case "WAV":
                self.wavelength = int(arg)
            case "ZERO":
                self.zero_count += 1
            case "ERR?":
                if self.errors:
                    return self.errors.pop(0)
                return "0,No error"
            case _:
                self.errors.append("1,Command error")
        return None
