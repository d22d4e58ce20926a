"""
=============================================================================
SERVERLITE - A Minimal HTTP/1.1 Server Over Raw Sockets
=============================================================================

Accepts a TCP connection, reads a request line and headers off the raw
byte stream, maps the path onto a directory, and writes back a status
line, a Content-Length header and a body.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    SERVERLITE ARCHITECTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. BYTE STREAM BUFFER                                             │
    │      - Reads in tiny chunks (7 bytes by default)                    │
    │      - Finds CRLF even when it straddles two reads                  │
    │      - Never loses bytes that belong to the next line               │
    │                                                                      │
    │   2. REQUEST PARSER                                                 │
    │      - Request line split into at most 3 fields                     │
    │      - Headers split on the first ":" only                          │
    │      - Immutable Request, case-sensitive last-write-wins headers    │
    │                                                                      │
    │   3. DISPATCHER                                                     │
    │      - document_root + path, no sanitizing (do not expose this!)   │
    │      - Missing → 404, executable → its stdout, file → its bytes    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    serverlite/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m serverlite)
    ├── server.py            # LiteServer: handle_connection + run loop
    ├── config.py            # ServerConfig dataclass
    ├── exceptions.py        # Per-request failure types
    ├── access_log.py        # One structured record per request
    ├── core/
    │   ├── buffer.py        # ByteStreamBuffer
    │   ├── connection.py    # Connection wrapper
    │   └── socket_server.py # Listening socket + accept loop
    ├── http/
    │   ├── headers.py       # Headers mapping
    │   ├── request.py       # Request + RequestParser
    │   └── response.py      # Response + serialization
    └── handlers/
        ├── dispatcher.py    # RequestDispatcher
        └── resources.py     # Filesystem / subprocess provider

=============================================================================
QUICK START
=============================================================================

    from serverlite import LiteServer, ServerConfig

    server = LiteServer(ServerConfig(port=9000, document_root="./www"))
    server.run()

    $ curl -i 127.0.0.1:9000/foo.txt
    HTTP/1.1 200 OK
    Content-Length: 12

    Hello world

=============================================================================
"""

__version__ = "1.0.0"

from .server import LiteServer, create_app
from .config import ServerConfig

__all__ = ["LiteServer", "ServerConfig", "create_app", "__version__"]
