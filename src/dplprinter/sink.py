"""
Byte sinks for DPL output.

A sink stands for one open print job on the printer's raw data channel.
Each write is handed straight to the underlying transport; nothing is
buffered across calls.
"""

import re
import socket
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .errors import TransportError

# Raw TCP printing port (JetDirect)
DEFAULT_PORT = 9100

# Target that writes the job to standard output
STDOUT_TARGET = "-"

# tcp://host or tcp://host:port
TCP_TARGET_PATTERN = re.compile(r"^tcp://([^:/\s]+)(?::(\d{1,5}))?/?$")


class Sink(ABC):
    """Destination for encoded printer commands."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Append raw bytes to the open job.

        Returns:
            Number of bytes written

        Raises:
            TransportError: If the transport fails
        """
        pass

    def start_page(self) -> None:
        """Page boundary hint. Emits no bytes."""
        pass

    def end_page(self) -> None:
        """Page boundary hint. Emits no bytes."""
        pass

    def flush(self) -> None:
        """Push written data to the device."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Finish the job and release the transport. Safe to call twice."""
        pass

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class MemorySink(Sink):
    """Collects output in memory. Used for dry runs and tests."""

    def __init__(self):
        self._buffer = bytearray()
        self._closed = False
        self.pages = 0
        self._in_page = False

    def write(self, data: bytes) -> int:
        if self._closed:
            raise TransportError("Sink is closed")
        self._buffer.extend(data)
        return len(data)

    def start_page(self) -> None:
        self._in_page = True

    def end_page(self) -> None:
        if self._in_page:
            self.pages += 1
        self._in_page = False

    def close(self) -> None:
        self._closed = True

    @property
    def is_closed(self) -> bool:
        return self._closed

    def getvalue(self) -> bytes:
        """Everything written so far."""
        return bytes(self._buffer)

    def __repr__(self):
        return f"MemorySink({len(self._buffer)} bytes)"


class FileSink(Sink):
    """
    Writes to a file or character device such as /dev/usb/lp0.

    Accepts either a path, opened on first write, or an already open
    binary stream, which is flushed but left open on close.
    """

    def __init__(self, target: Union[str, Path, BinaryIO]):
        if isinstance(target, (str, Path)):
            self.path: Optional[Path] = Path(target)
            self._file: Optional[BinaryIO] = None
            self._owns_file = True
        else:
            self.path = None
            self._file = target
            self._owns_file = False
        self._closed = False

    def _open(self) -> BinaryIO:
        if self._file is None:
            try:
                self._file = open(self.path, "wb")
            except OSError as e:
                raise TransportError(f"Failed to open {self.path}: {e}") from e
        return self._file

    def write(self, data: bytes) -> int:
        if self._closed:
            raise TransportError("Sink is closed")
        f = self._open()
        try:
            f.write(data)
            # Devices get each command as soon as it is encoded
            f.flush()
        except OSError as e:
            raise TransportError(f"Failed to write data: {e}") from e
        return len(data)

    def flush(self) -> None:
        if self._file is not None and not self._closed:
            try:
                self._file.flush()
            except OSError as e:
                raise TransportError(f"Failed to flush data: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._file is None:
            return
        try:
            if self._owns_file:
                self._file.close()
            else:
                self._file.flush()
        except OSError as e:
            raise TransportError(f"Failed to close {self}: {e}") from e
        finally:
            self._file = None

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __repr__(self):
        return f"FileSink({self.path if self.path else '<stream>'})"


class NetworkSink(Sink):
    """Raw TCP connection to a network printer."""

    def __init__(self, host: str, port: int = DEFAULT_PORT, timeout: float = 5.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._socket: Optional[socket.socket] = None
        self._closed = False

    def connect(self) -> None:
        """Open the connection. Called implicitly by the first write."""
        if self._socket is not None:
            return
        try:
            self._socket = socket.create_connection(
                (self.host, self.port), timeout=self.timeout
            )
        except OSError as e:
            self._socket = None
            raise TransportError(
                f"Failed to connect to {self.host}:{self.port}: {e}"
            ) from e

    def write(self, data: bytes) -> int:
        if self._closed:
            raise TransportError("Sink is closed")
        self.connect()
        try:
            self._socket.sendall(data)
        except OSError as e:
            raise TransportError(f"Failed to send data: {e}") from e
        return len(data)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

    @property
    def is_connected(self) -> bool:
        return self._socket is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __repr__(self):
        return f"NetworkSink({self.host}:{self.port})"


def parse_tcp_target(target: str) -> Optional[tuple[str, int]]:
    """
    Split a tcp://host[:port] target.

    Returns:
        (host, port), or None if the target is not a TCP target

    Raises:
        ValueError: If the target starts with tcp:// but is malformed
    """
    if not target.startswith("tcp://"):
        return None
    match = TCP_TARGET_PATTERN.match(target)
    if not match:
        raise ValueError(f"Invalid TCP target: '{target}'")
    port = int(match.group(2)) if match.group(2) else DEFAULT_PORT
    if not 0 < port < 65536:
        raise ValueError(f"Invalid TCP port: {port}")
    return match.group(1), port


def open_sink(target: str, timeout: float = 5.0) -> Sink:
    """
    Create a sink from a target string.

    Args:
        target: tcp://host[:port], "-" for stdout, or a file/device path
        timeout: Network timeout in seconds

    Returns:
        Sink for the target
    """
    if not target:
        raise ValueError("Empty printer target")
    tcp = parse_tcp_target(target)
    if tcp:
        host, port = tcp
        return NetworkSink(host, port, timeout=timeout)
    if target == STDOUT_TARGET:
        return FileSink(sys.stdout.buffer)
    return FileSink(target)
