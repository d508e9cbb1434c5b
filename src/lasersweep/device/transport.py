"""Byte-stream transports used by instrument sessions.

Two physical links are supported:

- `VisaTransport`: a message-based VISA session (USB-TMC, GPIB, ...) opened
  through pyvisa.
- `SocketTransport`: a raw TCP socket.

Both expose the same contract: `write_line` sends one newline-terminated
command, `read_line` returns exactly one logical message with the terminator
and trailing whitespace stripped. The socket implementation buffers received
bytes and frames on the terminator itself, so callers never see partial or
concatenated replies.

All failures are raised as `lasersweep.types.errors.DeviceError` subclasses.
"""

from __future__ import annotations

import ipaddress
import socket
from typing import Optional

import pyvisa
from loguru import logger

from lasersweep.types.errors import IoError, NotConnected, ParseError

TERMINATOR = "\n"
SOCKET_CHUNK_SIZE = 1024


class Transport:
    """Base class for one blocking connection to an instrument.

    Attributes
    ----------
    timeout : float
        Per-operation timeout in seconds, fixed when the transport is opened.
    """

    timeout: float

    def open(self) -> None:
        raise NotImplementedError()

    def close(self) -> None:
        raise NotImplementedError()

    def is_open(self) -> bool:
        raise NotImplementedError()

    def write_line(self, command: str) -> None:
        raise NotImplementedError()

    def read_line(self) -> str:
        raise NotImplementedError()

    def describe(self) -> str:
        """Human readable address, used in log and error messages."""
        return self.__class__.__name__


class VisaTransport(Transport):
    """Message-based VISA session.

    Parameters
    ----------
    resource : str
        VISA resource string, e.g. ``USB0::4883::32847::M01053290::0::INSTR``.
    timeout : float, optional
        Timeout in seconds, by default 1.0.
    resource_manager : pyvisa.ResourceManager, optional
        If None, one is created on `open` and closed on `close`.
    """

    def __init__(
        self,
        resource: str,
        timeout: float = 1.0,
        resource_manager: Optional[pyvisa.ResourceManager] = None,
    ):
        self.resource = resource
        self.timeout = timeout
        self.rm = resource_manager
        self._owns_rm = False
        self.inst = None

    def describe(self) -> str:
        return self.resource

    def open(self) -> None:
        if self.inst is not None:
            return
        try:
            if self.rm is None:
                self.rm = pyvisa.ResourceManager()
                self._owns_rm = True
            inst = self.rm.open_resource(self.resource)
            inst.timeout = int(self.timeout * 1000)  # pyvisa wants ms
            inst.write_termination = TERMINATOR
            inst.read_termination = TERMINATOR
        except (pyvisa.errors.Error, OSError, ValueError) as e:
            self._release_rm()
            raise NotConnected(
                f"Failed to open VISA resource {self.resource}: {e}"
            ) from e
        self.inst = inst
        logger.debug("Opened VISA resource {}", self.resource)

    def close(self) -> None:
        if self.inst is not None:
            try:
                self.inst.close()
            except pyvisa.errors.Error as e:
                logger.error(f"Error closing VISA resource {self.resource}: {e}")
            finally:
                self.inst = None
        self._release_rm()

    def _release_rm(self) -> None:
        # only close the resource manager if we created it
        if self._owns_rm and self.rm is not None:
            try:
                self.rm.close()
            except pyvisa.errors.Error as e:
                logger.error(f"Error closing resource manager: {e}")
            finally:
                self.rm = None
                self._owns_rm = False

    def is_open(self) -> bool:
        return self.inst is not None

    def write_line(self, command: str) -> None:
        if self.inst is None:
            raise NotConnected()
        try:
            self.inst.write(command)
        except (pyvisa.errors.Error, OSError, ValueError) as e:
            raise IoError(f"Write to {self.resource} failed: {e}") from e

    def read_line(self) -> str:
        if self.inst is None:
            raise NotConnected()
        try:
            return self.inst.read().rstrip()
        except (pyvisa.errors.Error, OSError, ValueError) as e:
            raise IoError(f"Read from {self.resource} failed: {e}") from e


class SocketTransport(Transport):
    """Raw TCP socket with newline framing.

    Parameters
    ----------
    host : str
        IPv4/IPv6 address of the instrument.
    port : int
        TCP port.
    timeout : float, optional
        Connect and per-read timeout in seconds, by default 2.0.
    """

    def __init__(self, host: str, port: int, timeout: float = 2.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.sock: Optional[socket.socket] = None
        self._buffer = bytearray()

    def describe(self) -> str:
        return f"{self.host}:{self.port}"

    def _validate_address(self) -> None:
        try:
            ipaddress.ip_address(self.host)
        except ValueError as e:
            raise ParseError(f"Invalid instrument address {self.host!r}: {e}") from e
        if not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ParseError(f"Invalid instrument port {self.port!r}")

    def open(self) -> None:
        if self.sock is not None:
            return
        self._validate_address()
        try:
            sock = socket.create_connection(
                (self.host, self.port), timeout=self.timeout
            )
        except OSError as e:
            # covers refused, unreachable and socket.timeout
            raise NotConnected(f"Failed to connect to {self.describe()}: {e}") from e
        sock.settimeout(self.timeout)
        self.sock = sock
        self._buffer.clear()
        logger.debug("Opened socket to {}", self.describe())

    def close(self) -> None:
        if self.sock is not None:
            try:
                self.sock.close()
            except OSError as e:
                logger.error(f"Error closing socket {self.describe()}: {e}")
            finally:
                self.sock = None
                self._buffer.clear()

    def is_open(self) -> bool:
        return self.sock is not None

    def write_line(self, command: str) -> None:
        if self.sock is None:
            raise NotConnected()
        try:
            self.sock.sendall((command + TERMINATOR).encode("ascii"))
        except (OSError, UnicodeEncodeError) as e:
            raise IoError(f"Write to {self.describe()} failed: {e}") from e

    def read_line(self) -> str:
        if self.sock is None:
            raise NotConnected()
        terminator = TERMINATOR.encode("ascii")
        while terminator not in self._buffer:
            try:
                chunk = self.sock.recv(SOCKET_CHUNK_SIZE)
            except OSError as e:
                raise IoError(f"Read from {self.describe()} failed: {e}") from e
            if not chunk:
                # EOF terminates the pending message
                if not self._buffer:
                    raise IoError(f"Connection to {self.describe()} closed")
                line = bytes(self._buffer)
                self._buffer.clear()
                return line.decode("utf-8", errors="replace").rstrip()
            self._buffer.extend(chunk)
        idx = self._buffer.index(terminator)
        line = bytes(self._buffer[:idx])
        del self._buffer[: idx + len(terminator)]
        return line.decode("utf-8", errors="replace").rstrip()
