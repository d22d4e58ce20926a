"""
=============================================================================
RESOURCE PROVIDERS
=============================================================================

The dispatcher never touches the filesystem itself. It asks a resource
provider four questions:

    exists(path)                    → bool
    is_executable(path)             → bool
    read_all(path)                  → bytes
    execute_capturing_stdout(path)  → bytes

FileSystemResources answers them against the real disk. Tests hand the
dispatcher a dictionary-backed fake instead, so no subprocess is spawned
just to check that an executable path returns its output.

=============================================================================
EXECUTABLES (THE CGI IDEA)
=============================================================================

If the resolved file has its executable bit set, it is RUN and its
standard output becomes the response body:

    $ cat www/hello
    #!/bin/sh
    echo "Hello from $(hostname)"

    $ chmod +x www/hello
    $ curl 127.0.0.1:9000/hello
    Hello from devbox

This is how CGI scripts served dynamic pages. It is also a loaded gun:
combined with an unsanitized path, a client can run any executable the
server process can see.

The program inherits the server's environment. Its exit status does not
matter; like shell backticks, we keep whatever it printed. Only a failure
to START it (missing interpreter, bad format, permission denied) is an
error.

=============================================================================
"""

import os
import logging
import subprocess
from typing import Optional, Protocol

from ..exceptions import ResourceExecutionFailure


logger = logging.getLogger(__name__)


class ResourceProvider(Protocol):
    """What the dispatcher needs from the outside world."""

    def exists(self, path: str) -> bool: ...

    def is_executable(self, path: str) -> bool: ...

    def read_all(self, path: str) -> bytes: ...

    def execute_capturing_stdout(self, path: str) -> bytes: ...


class FileSystemResources:
    """
    Resource provider backed by the local filesystem and subprocess.

    Args:
        cwd: Working directory for executed programs. None keeps the
             server's own working directory.
    """

    def __init__(self, cwd: Optional[str] = None):
        self.cwd = cwd

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_executable(self, path: str) -> bool:
        # Directories carry the x bit too, but there is nothing to run.
        return os.path.isfile(path) and os.access(path, os.X_OK)

    def read_all(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def execute_capturing_stdout(self, path: str) -> bytes:
        """
        Run ``path`` with no arguments and return its stdout.

        stderr is left attached to the server's stderr.

        Raises:
            ResourceExecutionFailure: The program could not be started.
        """
        logger.debug(f"Executing {path}")
        try:
            # A relative path would be looked up again from inside cwd.
            completed = subprocess.run(
                [os.path.abspath(path)],
                stdout=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                cwd=self.cwd,
            )
        except OSError as e:
            raise ResourceExecutionFailure(path, str(e)) from e

        if completed.returncode != 0:
            logger.warning(f"{path} exited with status {completed.returncode}")

        return completed.stdout
