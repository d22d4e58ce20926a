"""
=============================================================================
CORE - Sockets, connections and the byte buffer
=============================================================================

    socket_server.py   bind / listen / accept, one connection at a time
    connection.py      accepted socket wrapped as a ByteStream
    buffer.py          chunked reads in, delimited lines out

=============================================================================
"""

from .buffer import ByteSource, ByteStreamBuffer, CRLF, DEFAULT_READ_SIZE
from .connection import ByteStream, Connection, ConnectionState
from .socket_server import SocketServer

__all__ = [
    "ByteSource",         # Protocol: recv(n) -> bytes
    "ByteStream",         # Protocol: recv(n) + sendall(data)
    "ByteStreamBuffer",   # Delimiter-driven read buffer
    "CRLF",
    "DEFAULT_READ_SIZE",
    "Connection",         # Accepted client socket
    "ConnectionState",    # Connection lifecycle enum
    "SocketServer",       # Listening socket + accept loop
]
