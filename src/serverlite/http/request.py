"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads a request line and headers off a ByteStreamBuffer, one CRLF line at
a time, and builds an immutable Request.

=============================================================================
WHAT WE ACCEPT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │    GET /foo.txt HTTP/1.1\r\n           ← request line                │
    │    Host: 127.0.0.1:9000\r\n            ← header                      │
    │    User-Agent: curl/7.64.1\r\n         ← header                      │
    │    Accept: */*\r\n                     ← header                      │
    │    \r\n                                ← empty line: done            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

No body is ever read, even if Content-Length says there is one.

=============================================================================
THE SPLITTING RULES (READ THESE TWICE)
=============================================================================

REQUEST LINE: split on a single space, AT MOST THREE FIELDS.

    "GET /foo.txt HTTP/1.1"     → ("GET", "/foo.txt", "HTTP/1.1")
    "GET /a b.txt HTTP/1.1"     → ("GET", "/a", "b.txt HTTP/1.1")
                                               └──── version! ────┘

    Only the first two spaces are boundaries. A path with a literal space
    in it is therefore misparsed, and that is the intended behaviour.
    The path is NOT URL-decoded and NOT checked for "..".

HEADER LINE: split on ":" plus any whitespace after it, AT MOST TWO FIELDS.

    "Host: 127.0.0.1:9000"      → ("Host", "127.0.0.1:9000")
    "Accept:*/*"                → ("Accept", "*/*")

    The value keeps its own colons. Names keep their case.

=============================================================================
PARSER STATE MACHINE
=============================================================================

    START ──► READING_REQUEST_LINE ──► READING_HEADERS ──► DONE

Strictly linear. A parser produces exactly one Request and is then used
up; asking it for another raises RuntimeError. A parse error leaves the
parser stuck in the state where it failed.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
import logging
import re

from ..core.buffer import ByteSource, ByteStreamBuffer, DEFAULT_READ_SIZE
from ..exceptions import MalformedHeaderLine, MalformedRequestLine
from .headers import Headers


logger = logging.getLogger(__name__)


# Header and request-line bytes are decoded one byte per character so that
# no input can fail to decode.
WIRE_ENCODING = "iso-8859-1"


@dataclass(frozen=True)
class Request:
    """
    A parsed HTTP request.

    Attributes:
        method:  First request-line token, e.g. "GET". Not validated.
        path:    Second token exactly as sent. May contain "..", "%20", etc.
        version: Everything after the second space, e.g. "HTTP/1.1".
        headers: Case-sensitive, last-write-wins header mapping.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Headers = field(default_factory=Headers)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Exact-case header lookup."""
        return self.headers.get(name, default)

    @property
    def request_line(self) -> str:
        return f"{self.method} {self.path} {self.version}"


class ParserState(Enum):
    START = "start"
    READING_REQUEST_LINE = "reading_request_line"
    READING_HEADERS = "reading_headers"
    DONE = "done"


class RequestParser:
    """
    Single-use parser that pulls one Request out of a ByteStreamBuffer.

    Usage:
        buffer = ByteStreamBuffer(conn, read_size=7)
        request = RequestParser(buffer).parse()
    """

    # Colon, then any run of whitespace. Only the first match splits.
    HEADER_SEPARATOR = re.compile(r":\s*")

    def __init__(self, buffer: ByteStreamBuffer):
        self.buffer = buffer
        self.state = ParserState.START

    def _expect(self, state: ParserState) -> None:
        if self.state is not state:
            raise RuntimeError(
                f"Parser is in state {self.state.name}, expected {state.name}"
            )

    def _read_text_line(self) -> str:
        return self.buffer.read_line().decode(WIRE_ENCODING)

    def parse_request_line(self) -> Tuple[str, str, str]:
        """
        Read and split the request line.

        Returns:
            (method, path, version)

        Raises:
            MalformedRequestLine: Fewer than three tokens, or an empty
                                  method or path.
        """
        self._expect(ParserState.START)
        self.state = ParserState.READING_REQUEST_LINE

        line = self._read_text_line()

        # Maximum of three fields: only the first two spaces split.
        parts = line.split(" ", 2)
        if len(parts) < 3 or not parts[0] or not parts[1]:
            raise MalformedRequestLine(line)

        method, path, version = parts
        self.state = ParserState.READING_HEADERS
        return method, path, version

    def parse_headers(self) -> Headers:
        """
        Read header lines until the empty line.

        Raises:
            MalformedHeaderLine: A line with no colon, or an empty name.
        """
        self._expect(ParserState.READING_HEADERS)

        pairs: List[Tuple[str, str]] = []
        while True:
            line = self._read_text_line()
            if not line:
                break

            parts = self.HEADER_SEPARATOR.split(line, maxsplit=1)
            if len(parts) != 2 or not parts[0]:
                raise MalformedHeaderLine(line)

            name, value = parts
            pairs.append((name, value.strip()))

        self.state = ParserState.DONE
        return Headers.from_pairs(pairs)

    def parse(self) -> Request:
        """Parse the request line and the headers."""
        self._expect(ParserState.START)

        method, path, version = self.parse_request_line()
        headers = self.parse_headers()

        logger.debug(f"Parsed {method} {path} with {len(headers)} headers")
        return Request(method=method, path=path, version=version, headers=headers)


def parse_request(
    source: ByteSource,
    read_size: int = DEFAULT_READ_SIZE,
    max_size: Optional[int] = None,
) -> Request:
    """
    Convenience function: wrap ``source`` in a buffer and parse one request.

    Args:
        source: Anything with recv(n).
        read_size: Bytes per recv() call.
        max_size: Per-line buffer limit, see ByteStreamBuffer.
    """
    buffer = ByteStreamBuffer(source, read_size=read_size, max_size=max_size)
    return RequestParser(buffer).parse()
