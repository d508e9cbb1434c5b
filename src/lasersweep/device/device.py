"""Device base classes.

`Device` is the foundation of the hardware layer: it validates configuration
keyword arguments against `required_config` and defines the connection
contract (`open`, `close`, `is_connected`).

`SCPIDevice` adds what both instruments share on top of an
`InstrumentSession`: identification, boolean state parsing and the error
queue.
"""

from __future__ import annotations

import re
from typing import Type

from loguru import logger

from lasersweep.types.errors import IoError, NotConnected
from lasersweep.util.defaults import DEFAULT_MAX_ERROR_READS

from .session import InstrumentSession

# "0,No error", "+0,\"No error\"", "0"
_NO_ERROR_RE = re.compile(r"^[+-]?0+(\D|$)")


def is_no_error(response: str) -> bool:
    """Whether an error-queue reply is the "no error" sentinel."""
    text = response.strip()
    return bool(_NO_ERROR_RE.match(text)) or "no error" in text.lower()


def parse_on_off(response: str) -> bool:
    """Interpret an instrument state reply ("ON"/"1" are true)."""
    text = response.strip()
    return text.upper() == "ON" or text == "1"


class Device:
    """Base class for all hardware devices.

    Required Methods
    --------------
    All device implementations must override these methods:

    - open(): Connect to the hardware
    - close(): Disconnect from the hardware
    - is_connected(): Check connection status

    Attributes
    ----------
    required_config : dict[str, Type]
        Required configuration parameters and their types
    """

    required_config: dict[str, Type | tuple[Type, ...]] = {}

    def __init__(self, **config_kwargs):
        for key, value in config_kwargs.items():
            setattr(self, key, value)
        for key, value in self.required_config.items():
            if not hasattr(self, key):
                logger.error(
                    f"Device {self.__class__.__name__} missing required config key: "
                    + f"{key}"
                )
                raise ValueError(
                    f"Device {self.__class__.__name__} missing required config "
                    + f"key: {key}"
                )
            if not isinstance(getattr(self, key), value):
                logger.error(
                    f"Device {self.__class__.__name__} config key {key} "
                    + f"has wrong type: {type(getattr(self, key))} (expected {value})"
                )
                raise ValueError(
                    f"Device {self.__class__.__name__} config key {key} has "
                    + f"wrong type: {type(getattr(self, key))} (expected {value})"
                )

    def open(self) -> str:
        raise NotImplementedError()

    def close(self):
        raise NotImplementedError()

    def is_connected(self) -> bool:
        raise NotImplementedError()

    def unroll_metadata(self) -> dict:
        """Configuration the device was created with."""
        return {key: getattr(self, key) for key in self.required_config}


class SCPIDevice(Device):
    """A device driven by text commands over an `InstrumentSession`.

    Subclasses set `error_query` and build `self.session` in `__init__`.

    Attributes
    ----------
    session : InstrumentSession
        The command/response channel. Its `lock` guards the instrument.
    max_error_reads : int
        Upper bound on error-queue reads in `drain_error_queue`.
    """

    error_query: str = "SYST:ERR?"
    session: InstrumentSession

    def __init__(self, max_error_reads: int = DEFAULT_MAX_ERROR_READS, **config_kwargs):
        super().__init__(**config_kwargs)
        self.max_error_reads = max_error_reads
        self._idn = ""

    @property
    def lock(self):
        return self.session.lock

    def open(self) -> str:
        """Connect and return the instrument identity."""
        self._idn = self.session.connect()
        return self._idn

    def close(self) -> None:
        self.session.disconnect()

    def is_connected(self) -> bool:
        return self.session.is_connected()

    def get_idn(self) -> str:
        if not self.is_connected():
            raise NotConnected(f"{self.session.name} not connected")
        return self._idn

    def unroll_metadata(self) -> dict:
        return {"idn": self._idn, **super().unroll_metadata()}

    def get_errors(self) -> str:
        """Read a single entry from the instrument's error queue."""
        return self.session.query(self.error_query)

    def drain_error_queue(self) -> list[str]:
        """Read the error queue until the instrument reports "no error".

        Returns
        -------
        list[str]
            Every non-empty, non-sentinel entry, in the order read.

        Raises
        ------
        IoError
            If the sentinel has not been seen after `max_error_reads` reads.
        """
        errors = []
        with self.lock:
            for _ in range(self.max_error_reads):
                response = self.get_errors()
                if is_no_error(response):
                    if errors:
                        logger.warning(
                            "{} error queue drained: {}", self.session.name, errors
                        )
                    return errors
                if response:
                    errors.append(response)
        raise IoError(
            f"{self.session.name} error queue did not report 'no error' after "
            + f"{self.max_error_reads} reads, errors seen: {errors}"
        )
