"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Dict, Generator, Iterable, List, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from serverlite import LiteServer, ServerConfig
from serverlite.exceptions import ResourceExecutionFailure


class ChunkedStream:
    """
    In-memory ByteStream that hands out pre-cut fragments.

    Each recv() returns at most one fragment (cut down to the requested
    size, with the rest kept for the next call), then b"" once everything
    has been delivered. Whatever is sent is collected in ``sent``.
    """

    def __init__(self, fragments: Iterable[bytes]):
        self._fragments: List[bytes] = [f for f in fragments if f]
        self.recv_sizes: List[int] = []
        self.sent = bytearray()

    @classmethod
    def whole(cls, data: bytes) -> "ChunkedStream":
        return cls([data])

    @classmethod
    def every(cls, data: bytes, size: int) -> "ChunkedStream":
        return cls(data[i:i + size] for i in range(0, len(data), size))

    @property
    def exhausted(self) -> bool:
        return not self._fragments

    def recv(self, bufsize: int) -> bytes:
        self.recv_sizes.append(bufsize)
        if not self._fragments:
            return b""
        fragment = self._fragments.pop(0)
        if len(fragment) > bufsize:
            self._fragments.insert(0, fragment[bufsize:])
            fragment = fragment[:bufsize]
        return fragment

    def sendall(self, data: bytes) -> None:
        self.sent += data


class FakeResources:
    """Dictionary-backed resource provider: path → (content, executable)."""

    def __init__(self, entries: Optional[Dict[str, Tuple[bytes, bool]]] = None):
        self.entries = dict(entries or {})
        self.executed: List[str] = []
        self.read: List[str] = []
        self.failing: set = set()

    def exists(self, path: str) -> bool:
        return path in self.entries

    def is_executable(self, path: str) -> bool:
        return self.entries[path][1]

    def read_all(self, path: str) -> bytes:
        self.read.append(path)
        return self.entries[path][0]

    def execute_capturing_stdout(self, path: str) -> bytes:
        if path in self.failing:
            raise ResourceExecutionFailure(path, "exec format error")
        self.executed.append(path)
        return self.entries[path][0]


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample request as curl sends it."""
    return (
        b"GET /foo.txt HTTP/1.1\r\n"
        b"Host: 127.0.0.1:9000\r\n"
        b"User-Agent: curl/7.64.1\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def fake_resources() -> FakeResources:
    return FakeResources({
        "/srv/foo.txt": (b"Hello world\n", False),
        "/srv/cgi/hello": (b"dynamic output\n", True),
    })


@pytest.fixture
def config(tmp_path: Path) -> ServerConfig:
    """Default test configuration rooted at a temporary directory."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        document_root=str(tmp_path),
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def www(tmp_path: Path) -> Path:
    """Document root with a plain file, an executable script and a subdirectory."""
    (tmp_path / "foo.txt").write_bytes(b"Hello world\n")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "data.bin").write_bytes(bytes(range(256)))

    script = tmp_path / "hello"
    script.write_text("#!/bin/sh\necho \"hello from $0\"\n")
    script.chmod(0o755)
    return tmp_path


class RunningServer:
    """LiteServer running on a background thread."""

    def __init__(self, server: LiteServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.socket_server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.socket_server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    @property
    def stopped(self) -> bool:
        return self._thread is not None and not self._thread.is_alive()

    def request(self, raw: bytes) -> bytes:
        """Send ``raw`` and read until the server closes the connection."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as sock:
            sock.sendall(raw)
            chunks = []
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def live_server(www: Path) -> Generator[RunningServer, None, None]:
    """Real server on a free loopback port serving the ``www`` fixture."""
    server = LiteServer(ServerConfig(
        host="127.0.0.1",
        port=0,
        document_root=str(www),
        timeout=5.0,
        log_level="WARNING",
    ))

    running = RunningServer(server)
    running.start()

    yield running

    running.stop()


@pytest.fixture
def chunked():
    """The ChunkedStream class, for tests that build their own streams."""
    return ChunkedStream
