"""
=============================================================================
SERVERLITE EXCEPTIONS
=============================================================================

Every failure that can happen while serving ONE request is an exception
from this module. None of them should ever take down the accept loop.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      EXCEPTION HIERARCHY                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ServerLiteError                                                    │
    │   ├── RequestError               400  client sent garbage            │
    │   │   ├── MalformedRequestLine        "GET\r\n"                      │
    │   │   ├── MalformedHeaderLine         "Host localhost\r\n"           │
    │   │   └── BufferOverflow              line too long                 │
    │   ├── ConnectionClosed           ---  peer hung up mid-request       │
    │   ├── RequestTimeout             408  peer went silent               │
    │   └── ResourceExecutionFailure   500  executable would not start     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Each class carries the HTTP status code the server answers with.
ConnectionClosed has no status: there is nobody left to answer.

=============================================================================
"""

from typing import Optional


class ServerLiteError(Exception):
    """
    Base class for all per-request failures.

    Attributes:
        status_code: HTTP status to send back, or None if no response
                     can be sent at all.
    """

    status_code: Optional[int] = None

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class RequestError(ServerLiteError):
    """The bytes on the wire are not a request we can parse."""

    status_code = 400


class MalformedRequestLine(RequestError):
    """Request line did not split into method, path and version."""

    def __init__(self, line: str):
        super().__init__(f"Malformed request line: {line!r}")
        self.line = line


class MalformedHeaderLine(RequestError):
    """Header line has no colon separating name from value."""

    def __init__(self, line: str):
        super().__init__(f"Malformed header line: {line!r}")
        self.line = line


class BufferOverflow(RequestError):
    """A line ran past the configured length limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Line of at least {size} bytes exceeds limit of {limit}")
        self.size = size
        self.limit = limit


class ConnectionClosed(ServerLiteError):
    """
    The peer closed the connection before the delimiter arrived.

    ``pending`` holds whatever partial data was buffered.
    """

    def __init__(self, pending: bytes = b""):
        super().__init__(
            f"Connection closed by peer with {len(pending)} unconsumed bytes"
        )
        self.pending = pending


class RequestTimeout(ServerLiteError):
    """The peer did not send the rest of the request in time."""

    status_code = 408


class ResourceExecutionFailure(ServerLiteError):
    """The resolved path is executable but could not be run."""

    status_code = 500

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to execute {path}: {reason}")
        self.path = path
        self.reason = reason
