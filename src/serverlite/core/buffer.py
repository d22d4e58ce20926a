"""
=============================================================================
BYTE STREAM BUFFER
=============================================================================

Turns a sequence of arbitrarily-sized reads into something you can pull
lines out of.

=============================================================================
WHY A BUFFER AT ALL?
=============================================================================

TCP is a byte stream, not a message protocol. The client might send

    GET /foo.txt HTTP/1.1\r\nHost: localhost\r\n\r\n

and the server might see it arrive as:

    recv(7) → b"GET /fo"
    recv(7) → b"o.txt H"
    recv(7) → b"TTP/1.1"
    recv(7) → b"\r\nHost:"      ← end of line 1 AND start of line 2
    recv(7) → b" localh"
    recv(7) → b"ost\r"          ← CR here...
    recv(7) → b"\n\r\n"         ← ...LF here: one delimiter, two reads

Two things can go wrong if you are careless:

1. A delimiter split across two reads is never found because you only
   searched the newest chunk.
2. Bytes belonging to the NEXT line are thrown away because they arrived
   in the same read as the end of the current one.

=============================================================================
THE ALGORITHM
=============================================================================

    consume_until(b"\r\n")

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   while delimiter not in buffer:                                     │
    │       buffer += source.recv(read_size)     (b"" → ConnectionClosed)  │
    │                                                                      │
    │   buffer = b"GET / HTTP/1.1\r\nHo"                                   │
    │              └─── result ───┘    └┬┘                                 │
    │                                   └── kept for the next call         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Only the FIRST occurrence of the delimiter is split on. Whatever follows
it stays in the buffer, untouched, for the next call.

The default read size is a tiny 7 bytes. Nothing depends on it: any size
of 1 or more produces the same lines, it just makes partial reads happen
on every request instead of almost never.

=============================================================================
"""

import logging
from typing import Optional, Protocol

from ..exceptions import BufferOverflow, ConnectionClosed


logger = logging.getLogger(__name__)


CRLF = b"\r\n"

DEFAULT_READ_SIZE = 7


class ByteSource(Protocol):
    """Anything with a blocking socket-style recv()."""

    def recv(self, bufsize: int) -> bytes:
        """Return up to ``bufsize`` bytes, or b"" at end of stream."""


class ByteStreamBuffer:
    """
    Accumulates bytes from a source and hands them out delimiter by delimiter.

    Invariants:
        - The buffer only grows between extractions (append_from_source).
        - It only shrinks through consume_until, which removes exactly the
          returned bytes plus one delimiter.

    Usage:
        buffer = ByteStreamBuffer(conn)
        request_line = buffer.read_line()
        first_header = buffer.read_line()
    """

    def __init__(
        self,
        source: ByteSource,
        read_size: int = DEFAULT_READ_SIZE,
        max_size: Optional[int] = None,
    ):
        """
        Args:
            source: Where bytes come from (a socket or socket-like object).
            read_size: Bytes requested per recv() call. Must be >= 1.
            max_size: Longest accepted line, delimiter excluded. Longer lines
                      raise BufferOverflow however the reads are cut.
                      None = no limit.
        """
        if read_size < 1:
            raise ValueError(f"read_size must be >= 1, got {read_size}")
        if max_size is not None and max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")

        self.source = source
        self.read_size = read_size
        self.max_size = max_size
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def pending(self) -> bytes:
        """Bytes received but not consumed yet."""
        return bytes(self._buffer)

    def append_from_source(self) -> int:
        """
        Read one chunk from the source and append it.

        Returns:
            Number of bytes appended (always >= 1).

        Raises:
            ConnectionClosed: The source reported end of stream.
        """
        chunk = self.source.recv(self.read_size)
        if not chunk:
            raise ConnectionClosed(self.pending)

        self._buffer += chunk
        return len(chunk)

    def consume_until(self, delimiter: bytes) -> bytes:
        """
        Return everything before the first ``delimiter`` and drop the delimiter.

        Reads from the source as many times as needed. Bytes after the
        delimiter stay buffered.

        Raises:
            ValueError: Empty delimiter.
            ConnectionClosed: Source ran dry before the delimiter showed up.
            BufferOverflow: The bytes before the delimiter exceed max_size.
        """
        if not delimiter:
            raise ValueError("delimiter must not be empty")

        # Bytes before `start` were already searched. Back up by
        # len(delimiter) - 1 so a delimiter straddling two reads is found.
        start = 0
        index = self._buffer.find(delimiter)
        while index == -1:
            start = max(0, len(self._buffer) - len(delimiter) + 1)

            # Everything before `start` belongs to the line; the tail may be
            # the first half of a delimiter.
            self._check_line_size(start)

            self.append_from_source()
            index = self._buffer.find(delimiter, start)

        self._check_line_size(index)

        result = bytes(self._buffer[:index])
        del self._buffer[:index + len(delimiter)]

        logger.debug(f"Consumed {len(result)} bytes, {len(self._buffer)} left over")
        return result

    def _check_line_size(self, line_length: int) -> None:
        if self.max_size is not None and line_length > self.max_size:
            raise BufferOverflow(line_length, self.max_size)

    def read_line(self) -> bytes:
        """Read one CRLF-terminated line, terminator stripped."""
        return self.consume_until(CRLF)
