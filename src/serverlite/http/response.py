"""
=============================================================================
HTTP RESPONSE
=============================================================================

A response here is just a status code and some bytes. On the wire it
always looks like this:

    HTTP/1.1 200 OK\r\n              ← status line
    Content-Length: 12\r\n           ← the ONLY header we send
    \r\n                             ← end of headers
    Hello world\n                    ← exactly Content-Length bytes

=============================================================================
STATUS CODES
=============================================================================

    ┌──────┬───────────────────────┬──────────────────────────────────────┐
    │ Code │ Reason                │ When                                 │
    ├──────┼───────────────────────┼──────────────────────────────────────┤
    │ 200  │ OK                    │ Resource found (file or program)     │
    │ 404  │ NOT FOUND             │ Resolved path does not exist         │
    ├──────┼───────────────────────┼──────────────────────────────────────┤
    │ 400  │ BAD REQUEST           │ Request line / header did not parse  │
    │ 408  │ REQUEST TIMEOUT       │ Client went quiet (timeout set)      │
    │ 500  │ INTERNAL SERVER ERROR │ Executable could not be started      │
    └──────┴───────────────────────┴──────────────────────────────────────┘

The dispatcher only ever produces 200 and 404. The bottom three are the
server's answers to per-request failures. Any other code is a bug, and
serializing it raises ValueError instead of inventing a reason phrase.

=============================================================================
"""

from dataclasses import dataclass
from typing import Dict, Union


STATUS_REASONS: Dict[int, str] = {
    200: "OK",
    400: "BAD REQUEST",
    404: "NOT FOUND",
    408: "REQUEST TIMEOUT",
    500: "INTERNAL SERVER ERROR",
}

HTTP_VERSION = "HTTP/1.1"


@dataclass
class Response:
    """
    Status code plus body bytes.

    Attributes:
        status_code: One of STATUS_REASONS.
        content: Raw body. File contents or a program's stdout.
    """

    status_code: int = 200
    content: bytes = b""

    @property
    def reason(self) -> str:
        """
        Reason phrase for the status line.

        Raises:
            ValueError: status_code has no entry in STATUS_REASONS.
        """
        try:
            return STATUS_REASONS[self.status_code]
        except KeyError:
            raise ValueError(f"Unsupported status code: {self.status_code}") from None

    @property
    def status_line(self) -> str:
        return f"{HTTP_VERSION} {self.status_code} {self.reason}"

    @property
    def content_length(self) -> int:
        return len(self.content)

    def to_bytes(self) -> bytes:
        """Serialize to the exact bytes written to the socket."""
        head = (
            f"{self.status_line}\r\n"
            f"Content-Length: {self.content_length}\r\n"
            "\r\n"
        )
        return head.encode("ascii") + self.content


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(content: Union[str, bytes] = b"") -> Response:
    """200 with ``content`` (strings are UTF-8 encoded)."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return Response(200, content)


def not_found() -> Response:
    """404 with an empty body."""
    return Response(404, b"")


def error_response(status_code: int) -> Response:
    """Empty-bodied response for one of the error statuses."""
    if status_code not in STATUS_REASONS:
        raise ValueError(f"Unsupported status code: {status_code}")
    return Response(status_code, b"")
