"""
=============================================================================
REQUEST DISPATCHER
=============================================================================

Maps a parsed Request onto a resource and produces a Response.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   full_path = document_root + request.path                           │
    │                                                                      │
    │   exists?  ──no──►  404, empty body                                  │
    │      │                                                               │
    │     yes                                                              │
    │      │                                                               │
    │   executable?  ──yes──►  200, stdout of running it                   │
    │      │                                                               │
    │      no                                                              │
    │      │                                                               │
    │      └──────────────►  200, raw file contents                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SECURITY WARNING
=============================================================================

The path is glued onto the document root as-is. Nothing is normalized,
nothing is rejected:

    document_root = "/srv/www"
    GET /../../../etc/passwd  →  "/srv/www/../../../etc/passwd"

That request returns /etc/passwd. Never point this server at anything
you would not hand to every process on the machine.

=============================================================================
"""

import logging

from ..http.request import Request
from ..http.response import Response, ok, not_found
from .resources import ResourceProvider


logger = logging.getLogger(__name__)


class RequestDispatcher:
    """
    Resolves requests against a document root.

    Usage:
        dispatcher = RequestDispatcher("/srv/www", FileSystemResources())
        response = dispatcher.dispatch(request)
    """

    def __init__(self, document_root: str, resources: ResourceProvider):
        self.document_root = document_root
        self.resources = resources

    def resolve(self, request: Request) -> str:
        """Plain string concatenation of root and raw request path."""
        return self.document_root + request.path

    def dispatch(self, request: Request) -> Response:
        """
        Raises:
            ResourceExecutionFailure: The path is executable but would not run.
        """
        path = self.resolve(request)

        if not self.resources.exists(path):
            logger.debug(f"{path} does not exist")
            return not_found()

        if self.resources.is_executable(path):
            logger.debug(f"{path} is executable, running it")
            return ok(self.resources.execute_capturing_stdout(path))

        return ok(self.resources.read_all(path))
