"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the small API the rest of the
server needs: recv() for the byte buffer, sendall() for the response,
and a close() that shuts the TCP connection down properly.

=============================================================================
ONE CONNECTION = ONE REQUEST
=============================================================================

There is no keep-alive here. The lifecycle is strictly linear:

    ┌─────┐   recv()   ┌─────────┐  parsed  ┌────────────┐
    │ NEW │ ─────────► │ READING │ ───────► │ PROCESSING │
    └─────┘            └─────────┘          └─────┬──────┘
                                                  │ sendall()
                                                  ▼
    ┌────────┐  close()  ┌─────────┐        ┌─────────┐
    │ CLOSED │ ◄──────── │ CLOSING │ ◄───── │ WRITING │
    └────────┘           └─────────┘        └─────────┘

A connection never goes back to READING once it has left it.

=============================================================================
BYTE STREAMS
=============================================================================

The request-handling code never touches a socket directly. It talks to
a ByteStream: anything with recv(n) and sendall(data). A Connection is
one; so is a plain socket.socket, a socket.socketpair() end, or the fake
stream the tests use. That keeps the whole parse/dispatch/respond path
testable without opening a port.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Protocol
import uuid

from ..exceptions import RequestTimeout


logger = logging.getLogger(__name__)


class ByteStream(Protocol):
    """A bidirectional, blocking byte stream."""

    def recv(self, bufsize: int) -> bytes:
        """Return up to ``bufsize`` bytes, or b"" once the peer is done."""

    def sendall(self, data: bytes) -> None:
        """Write every byte of ``data`` or raise."""


class ConnectionState(Enum):
    """Where a connection is in its one-request lifecycle."""
    NEW = "new"                # Accepted, nothing read yet
    READING = "reading"        # Pulling request bytes off the socket
    PROCESSING = "processing"  # Request parsed, resolving the resource
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    An accepted client socket.

    Attributes:
        socket: The client socket returned by accept().
        address: Client's (ip, port) tuple.
        id: Short random identifier used to tag log lines.
        state: Current lifecycle state.
        timeout: Per-recv timeout in seconds. None blocks forever, which is
                 what a minimal server does and why a silent client can hang
                 it. Set one in ServerConfig to get a 408 instead.
        bytes_received: Total bytes read so far.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    timeout: Optional[float] = None
    bytes_received: int = 0

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def client_port(self) -> int:
        """Get the client port."""
        return self.address[1]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # BYTE STREAM INTERFACE
    # =========================================================================

    def recv(self, bufsize: int) -> bytes:
        """
        Receive up to ``bufsize`` bytes.

        A reset from the peer is reported the same way as an orderly close
        (b""), so the buffer above only has one end-of-stream case to handle.

        Raises:
            RequestTimeout: No data arrived within ``timeout`` seconds.
        """
        self.state = ConnectionState.READING
        try:
            data = self.socket.recv(bufsize)
        except socket.timeout:
            raise RequestTimeout(
                f"No data from {self.client_ip}:{self.client_port} "
                f"within {self.timeout}s"
            )
        except ConnectionResetError:
            return b""

        self.bytes_received += len(data)
        return data

    def sendall(self, data: bytes) -> None:
        """Send every byte of ``data``. Socket errors propagate."""
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)

    # =========================================================================
    # CLEANUP
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN so the client sees end of response
        2. close(): release the file descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed after {self.age:.3f}s, "
            f"{self.bytes_received} bytes received"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
