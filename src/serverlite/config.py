"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every knob the server has lives in one dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m serverlite --port 9001                          │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── SERVERLITE_PORT=9001 python -m serverlite                 │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The defaults reproduce the classic toy server: loopback, port 9000, a
zero backlog, 7-byte reads, the current directory as document root, and
no timeout at all.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout

    REQUEST READING
    - read_size, max_line_size

    RESOURCES
    - document_root

    LIFECYCLE
    - max_connections

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """IPv4 address to bind. Loopback keeps the server off the network."""

    port: int = 9000
    """TCP port. 0 lets the OS pick one (handy in tests)."""

    backlog: int = 0
    """
    Queue depth of not-yet-accepted connections before new ones are
    refused. 0 asks for the smallest queue the OS allows.
    """

    timeout: Optional[float] = None
    """
    Per-read timeout on accepted connections, in seconds.
    None = block forever; one silent client stalls the whole server.
    Set it to answer such clients with 408 instead.
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST READING
    # ─────────────────────────────────────────────────────────────────────

    read_size: int = 7
    """
    Bytes requested per recv(). Tiny on purpose so every request arrives
    in pieces; any value >= 1 parses identically.
    """

    max_line_size: Optional[int] = None
    """
    Most bytes buffered while looking for one line ending.
    None = unlimited. Exceeding it answers 400.
    """

    # ─────────────────────────────────────────────────────────────────────
    # RESOURCES
    # ─────────────────────────────────────────────────────────────────────

    document_root: Optional[str] = None
    """Directory request paths are appended to. None = current directory."""

    # ─────────────────────────────────────────────────────────────────────
    # LIFECYCLE
    # ─────────────────────────────────────────────────────────────────────

    max_connections: Optional[int] = None
    """
    Stop after serving this many connections. None = until shutdown.
    1 = answer one request and exit.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    @property
    def root(self) -> str:
        """Absolute document_root, or the working directory if none was given."""
        if self.document_root is None:
            return os.getcwd()
        return os.path.abspath(self.document_root)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        SERVERLITE_HOST        Bind address (default: 127.0.0.1)
        SERVERLITE_PORT        Port (default: 9000)
        SERVERLITE_BACKLOG     Listen backlog (default: 0)
        SERVERLITE_READ_SIZE   Bytes per recv() (default: 7)
        SERVERLITE_ROOT        Document root (default: working directory)
        SERVERLITE_TIMEOUT     Read timeout in seconds (default: none)
        SERVERLITE_LOG_LEVEL   Logging level (default: INFO)

        =====================================================================
        """
        timeout = os.getenv("SERVERLITE_TIMEOUT")
        return cls(
            host=os.getenv("SERVERLITE_HOST", "127.0.0.1"),
            port=int(os.getenv("SERVERLITE_PORT", "9000")),
            backlog=int(os.getenv("SERVERLITE_BACKLOG", "0")),
            read_size=int(os.getenv("SERVERLITE_READ_SIZE", "7")),
            document_root=os.getenv("SERVERLITE_ROOT"),
            timeout=float(timeout) if timeout else None,
            log_level=os.getenv("SERVERLITE_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises ValueError on the first bad field.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 0:
            raise ValueError("backlog must be >= 0")

        if self.read_size < 1:
            raise ValueError("read_size must be >= 1")

        if self.max_line_size is not None and self.max_line_size < 1:
            raise ValueError("max_line_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_connections is not None and self.max_connections < 1:
            raise ValueError("max_connections must be >= 1")

        if not os.path.isdir(self.root):
            raise ValueError(f"document_root is not a directory: {self.root}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}")
