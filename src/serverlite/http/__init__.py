"""
=============================================================================
HTTP - Request parsing and response serialization
=============================================================================
"""

from .headers import Headers
from .request import (
    Request,
    RequestParser,
    ParserState,
    parse_request,
)
from .response import (
    Response,
    STATUS_REASONS,
    ok,
    not_found,
    error_response,
)

__all__ = [
    # Request parsing
    "Headers",
    "Request",
    "RequestParser",
    "ParserState",
    "parse_request",

    # Responses
    "Response",
    "STATUS_REASONS",
    "ok",
    "not_found",
    "error_response",
]
