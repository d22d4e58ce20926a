"""
=============================================================================
ACCESS LOGGING
=============================================================================

One log record per connection, written after the response goes out (or
after the request failed).

Records go to the "serverlite.access" logger so they can be routed
separately from the server's own diagnostics:

    logging.getLogger("serverlite.access").addHandler(file_handler)

Two formats:

    text:  127.0.0.1 - - [2026-10-19T12:00:00+00:00] "GET /foo.txt HTTP/1.1" 200 12 0.84ms
    json:  {"request_id": "1f2e3d4c", "method": "GET", "path": "/foo.txt", ...}

=============================================================================
"""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional


logger = logging.getLogger("serverlite.access")


@dataclass
class RequestLog:
    """
    Structured log entry for one connection.

    method/path/version are "-" when the request never parsed.
    """

    request_id: str
    client_ip: str
    method: str
    path: str
    version: str
    status_code: Optional[int]
    content_length: int
    duration_ms: float
    timestamp: str
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        status = self.status_code if self.status_code is not None else "-"
        line = (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path} {self.version}" {status} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )
        if self.error:
            line += f" ({self.error})"
        return line


def now_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def log_access(entry: RequestLog, log_format: str = "text", level: int = logging.INFO) -> None:
    """Emit ``entry`` on the access logger in the requested format."""
    if log_format == "json":
        logger.log(level, json.dumps(entry.to_dict()))
    else:
        logger.log(level, entry.to_text())
