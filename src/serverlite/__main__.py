"""
=============================================================================
SERVERLITE CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 127.0.0.1:9000
    python -m serverlite

    # Serve ./www on another port
    python -m serverlite --root ./www --port 9001

    # Answer exactly one request, then exit
    python -m serverlite --once

    # Don't let a silent client hang the server
    python -m serverlite --timeout 5

Command-line flags win over SERVERLITE_* environment variables, which win
over the defaults in ServerConfig.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig
from .server import LiteServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="serverlite",
        description="Minimal HTTP/1.1 server: files are served, executables are run",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m serverlite                       # Serve the working directory on :9000
  python -m serverlite --root ./www -p 9001  # Another root and port
  python -m serverlite --once                # One request, then exit
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Address to bind to (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 9000)"
    )

    parser.add_argument(
        "--backlog",
        type=int,
        default=None,
        help="Listen queue depth before connections are refused (default: 0)"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for request data before answering 408 (default: wait forever)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST HANDLING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Document root request paths are appended to (default: working directory)"
    )

    parser.add_argument(
        "--read-size",
        type=int,
        default=None,
        help="Bytes per socket read (default: 7)"
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Serve a single connection and exit"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"serverlite {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then any flag that was actually given."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.backlog is not None:
        config.backlog = args.backlog
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.root is not None:
        config.document_root = args.root
    if args.read_size is not None:
        config.read_size = args.read_size
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.once:
        config.max_connections = 1
    config.log_format = args.log_format

    return config


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        server = LiteServer(config_from_args(args))
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
