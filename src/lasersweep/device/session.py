"""Instrument session: lifecycle and command/response primitives over a transport."""

from __future__ import annotations

import threading
import time

from loguru import logger

from lasersweep.types.errors import DeviceError, NotConnected, ParseError

from .transport import Transport


class InstrumentSession:
    """Uniform write/read/query protocol on top of a `Transport`.

    A session is `Disconnected` until `connect` succeeds and never reconnects
    on its own. The session owns a re-entrant lock; every primitive takes it,
    so at most one command is in flight per instrument. Callers that need a
    sequence of commands to run uninterrupted (e.g. a sweep) hold `lock`
    themselves for the duration.

    Parameters
    ----------
    transport : Transport
        The physical link.
    name : str
        Name used in log messages.
    settle_delay : float, optional
        Seconds to wait between the write and the read of a query, by
        default 0.
    """

    def __init__(self, transport: Transport, name: str, settle_delay: float = 0.0):
        self.transport = transport
        self.name = name
        self.settle_delay = settle_delay
        self.lock = threading.RLock()
        self._connected = False

    def connect(self) -> str:
        """Open the transport and identify the instrument.

        Returns
        -------
        str
            Reply to ``*IDN?``.

        Raises
        ------
        NotConnected
            If the transport cannot be opened.
        DeviceError
            If identification fails; the transport is closed again.
        """
        with self.lock:
            if self._connected:
                self.disconnect()
            self.transport.open()
            self._connected = True
            try:
                idn = self.query("*IDN?")
            except DeviceError:
                self.disconnect()
                raise
            logger.info(
                "{} connected at {}: {}", self.name, self.transport.describe(), idn
            )
            return idn

    def disconnect(self) -> None:
        with self.lock:
            self._connected = False
            self.transport.close()

    def is_connected(self) -> bool:
        return self._connected and self.transport.is_open()

    def _check_connected(self) -> None:
        if not self.is_connected():
            raise NotConnected(f"{self.name} not connected")

    def write(self, command: str) -> None:
        with self.lock:
            self._check_connected()
            logger.trace("{} write: {}", self.name, command)
            self.transport.write_line(command)

    def read(self) -> str:
        with self.lock:
            self._check_connected()
            response = self.transport.read_line()
            logger.trace("{} read: {}", self.name, response)
            return response

    def query(self, command: str) -> str:
        with self.lock:
            self.write(command)
            if self.settle_delay > 0:
                time.sleep(self.settle_delay)
            return self.read()

    def query_float(self, command: str) -> float:
        response = self.query(command)
        try:
            return float(response)
        except ValueError as e:
            raise ParseError(
                f"{self.name}: could not parse {response!r} from {command} as a number"
            ) from e
