"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket: create it, bind it, listen on it, and accept
connections one at a time until told to stop.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    AF_INET + SOCK_STREAM = IPv4 TCP
    2. setsockopt  SO_REUSEADDR so a restart doesn't hit "Address in use"
    3. bind()      127.0.0.1:9000 by default
    4. listen()    backlog = how many connections may wait in the queue
    5. accept()    BLOCKS until a client connects, returns a NEW socket
    6. close()     release the listening socket

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    └───────────┬───────────┘
                                │ accept()
                                ▼
                    ┌───────────────────────┐
                    │  Connection (1 req)   │ ◄── handled, closed, next
                    └───────────────────────┘

Connections are served strictly one after another on the calling thread.
While one is being handled, the next waits in the backlog queue.

=============================================================================
STOPPING
=============================================================================

accept() gets a 1-second timeout so the loop can notice shutdown() or a
reached max_connections. SIGINT / SIGTERM call shutdown() when the server
runs on the main thread (Python only allows signal handlers there).

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Sequential TCP accept loop.

    Usage:
        def handle(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle)  # Blocks until shutdown or max_connections
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._connections_served = 0

        # Set once the socket is listening; tests wait on it.
        self._ready_event = threading.Event()
        self._shutdown_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def connections_served(self) -> int:
        return self._connections_served

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (ip, port). Reports the real port when config.port is 0."""
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Reuse the address right away after a restart instead of waiting
        # out TIME_WAIT.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Wake up periodically so shutdown() is noticed.
        sock.settimeout(ACCEPT_POLL_INTERVAL)

        return sock

    def _setup_signals(self):
        """Install SIGINT/SIGTERM handlers that trigger a graceful stop."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, leaving signal handlers alone")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. BLOCKS.

        Args:
            connection_handler: Called with each accepted Connection, on this
                                thread. It owns the connection and must close it.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port} (backlog {self.config.backlog})")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _limit_reached(self) -> bool:
        limit = self.config.max_connections
        return limit is not None and self._connections_served >= limit

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running and not self._limit_reached():
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                timeout=self.config.timeout,
            )
            self._connections_served += 1

            try:
                connection_handler(conn)
            except Exception as e:
                # One bad connection must not take the listener down.
                logger.exception(f"[{conn.id}] Unhandled error: {e}")
                conn.close()

        if self._limit_reached():
            logger.info(f"Served {self._connections_served} connection(s), stopping")

    def shutdown(self):
        """Ask the accept loop to stop. Idempotent, callable from any thread."""
        logger.info("Shutting down socket server...")
        self._running = False
        self._shutdown_event.set()

    def _cleanup(self):
        self._running = False
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._ready_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the server has stopped. False on timeout."""
        return self._shutdown_event.wait(timeout)
