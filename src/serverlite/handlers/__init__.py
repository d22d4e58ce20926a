"""
=============================================================================
HANDLERS - From a parsed request to response content
=============================================================================

    dispatcher.py   document_root + path → 404 / file bytes / program output
    resources.py    the filesystem and subprocess behind the dispatcher

=============================================================================
"""

from .dispatcher import RequestDispatcher
from .resources import FileSystemResources, ResourceProvider

__all__ = [
    "RequestDispatcher",
    "FileSystemResources",
    "ResourceProvider",
]
