"""
=============================================================================
SERVERLITE SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       REQUEST FLOW                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer.accept()                                              │
    │        │                                                             │
    │        ▼                                                             │
    │   Connection ──► ByteStreamBuffer ──► RequestParser ──► Request      │
    │                                                           │          │
    │                                                           ▼          │
    │   sendall(response.to_bytes()) ◄── Response ◄── RequestDispatcher    │
    │        │                                                             │
    │        ▼                                                             │
    │   close, log, accept the next one                                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
handle_connection()
=============================================================================

The whole per-request path is one method that takes any byte stream
(recv + sendall). The accept loop calls it with a Connection; tests call
it with a socketpair or a fake. It handles exactly one request and never
raises for a per-request failure:

    ┌──────────────────────────┬──────────────────────────────────────────┐
    │ Failure                  │ What the client gets                     │
    ├──────────────────────────┼──────────────────────────────────────────┤
    │ MalformedRequestLine     │ 400 BAD REQUEST                          │
    │ MalformedHeaderLine      │ 400 BAD REQUEST                          │
    │ BufferOverflow           │ 400 BAD REQUEST                          │
    │ RequestTimeout           │ 408 REQUEST TIMEOUT                      │
    │ ResourceExecutionFailure │ 500 INTERNAL SERVER ERROR                │
    │ anything else            │ 500 INTERNAL SERVER ERROR (+ traceback)  │
    │ ConnectionClosed         │ nothing, the peer is gone                │
    └──────────────────────────┴──────────────────────────────────────────┘

=============================================================================
"""

import logging
import time
from typing import Optional

from .access_log import RequestLog, log_access, now_timestamp
from .config import ServerConfig
from .core import ByteStream, ByteStreamBuffer, Connection, ConnectionState, SocketServer
from .exceptions import ConnectionClosed, RequestError, RequestTimeout, ServerLiteError
from .handlers import FileSystemResources, RequestDispatcher, ResourceProvider
from .http import Request, RequestParser, Response, error_response


logger = logging.getLogger(__name__)


class LiteServer:
    """
    One-request-per-connection HTTP/1.1 server.

    Usage:
        server = LiteServer(ServerConfig(port=9000, document_root="./www"))
        server.run()  # Blocks until Ctrl+C
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        resources: Optional[ResourceProvider] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults if not provided.
            resources: Resource provider for the dispatcher. Defaults to the
                       real filesystem, running programs from the document root.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        root = self.config.root
        self.dispatcher = RequestDispatcher(
            root,
            resources if resources is not None else FileSystemResources(cwd=root),
        )

        self._socket_server = SocketServer(self.config)

    @property
    def socket_server(self) -> SocketServer:
        return self._socket_server

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start serving (blocking).

        Args:
            host: Override config host.
            port: Override config port.
        """
        if host:
            self.config.host = host
        if port:
            self.config.port = port

        self._setup_logging()
        logger.info(
            f"Serving {self.dispatcher.document_root} on "
            f"{self.config.host}:{self.config.port}"
        )

        try:
            self._socket_server.start(self._process_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")

    def shutdown(self):
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("serverlite").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _process_connection(self, conn: Connection):
        """Accept-loop callback: serve one request, then close."""
        with conn:
            self.handle_connection(conn, client_ip=conn.client_ip, request_id=conn.id)

    def read_request(self, stream: ByteStream) -> Request:
        buffer = ByteStreamBuffer(
            stream,
            read_size=self.config.read_size,
            max_size=self.config.max_line_size,
        )
        return RequestParser(buffer).parse()

    def handle_connection(
        self,
        stream: ByteStream,
        client_ip: str = "-",
        request_id: str = "-",
    ) -> Optional[Response]:
        """
        Read one request from ``stream``, answer it, and log it.

        Does not close the stream; the caller owns it.

        Returns:
            The Response that was written, or None if nothing could be sent.
        """
        started = time.perf_counter()
        request: Optional[Request] = None
        response: Optional[Response] = None
        error: Optional[str] = None

        try:
            request = self.read_request(stream)

            if isinstance(stream, Connection):
                stream.state = ConnectionState.PROCESSING

            response = self.dispatcher.dispatch(request)

        except ConnectionClosed as e:
            logger.info(f"[{request_id}] {e}")
            error = "connection closed"

        except RequestError as e:
            logger.warning(f"[{request_id}] Bad request: {e}")
            response = error_response(e.status_code)
            error = str(e)

        except RequestTimeout as e:
            logger.warning(f"[{request_id}] {e}")
            response = error_response(e.status_code)
            error = str(e)

        except ServerLiteError as e:
            # ResourceExecutionFailure
            logger.error(f"[{request_id}] {e}", exc_info=True)
            response = error_response(e.status_code)
            error = str(e)

        except Exception as e:
            logger.exception(f"[{request_id}] Handler error: {e}")
            response = error_response(500)
            error = str(e)

        if response is not None and not self._send(stream, response, request_id):
            error = error or "send failed"

        self._log_access(request, response, client_ip, request_id, started, error)
        return response

    def _send(self, stream: ByteStream, response: Response, request_id: str) -> bool:
        try:
            stream.sendall(response.to_bytes())
            return True
        except OSError as e:
            # BrokenPipeError, ConnectionResetError, or a send timeout
            logger.warning(f"[{request_id}] Send failed: {e}")
            return False

    def _log_access(
        self,
        request: Optional[Request],
        response: Optional[Response],
        client_ip: str,
        request_id: str,
        started: float,
        error: Optional[str],
    ):
        entry = RequestLog(
            request_id=request_id,
            client_ip=client_ip,
            method=request.method if request else "-",
            path=request.path if request else "-",
            version=request.version if request else "-",
            status_code=response.status_code if response else None,
            content_length=response.content_length if response else 0,
            duration_ms=(time.perf_counter() - started) * 1000,
            timestamp=now_timestamp(),
            error=error,
        )
        level = logging.INFO if error is None else logging.WARNING
        log_access(entry, self.config.log_format, level)


def create_app(
    config: Optional[ServerConfig] = None,
    resources: Optional[ResourceProvider] = None,
) -> LiteServer:
    """Factory for LiteServer instances."""
    return LiteServer(config, resources)
