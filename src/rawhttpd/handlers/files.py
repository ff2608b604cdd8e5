"""
=============================================================================
FILE HANDLER
=============================================================================

Downloads and uploads files through the FileStore.

    GET  /files/<name>   → 200 application/octet-stream, file bytes
                           404 if the store has no such file
    POST /files/<name>   → 201 Created, request body stored as <name>

=============================================================================
ERROR MAPPING
=============================================================================

    ┌──────────────────────────┬────────────────────────────────────────┐
    │ Store raises             │ Handler does                           │
    ├──────────────────────────┼────────────────────────────────────────┤
    │ FileNotFoundInStore      │ returns 404 Not Found                  │
    │ StorageError (any other) │ raises HandlerError (loop sends 404)   │
    └──────────────────────────┴────────────────────────────────────────┘

Only "not found" is a normal outcome for this handler. Permission and disk
errors are reported as failures and the connection loop decides what the
client sees.

=============================================================================
"""

import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, created, not_found
from ..http.router import HandlerError
from ..storage import FileStore, FileNotFoundInStore, StorageError


logger = logging.getLogger(__name__)


class FileHandler:
    """
    Handler pair for the /files routes.

    Usage:
        files = FileHandler(FileStore("/tmp/data"))
        router.get("/files/:name")(files.download)
        router.post("/files/:name")(files.upload)
    """

    def __init__(self, store: FileStore):
        self.store = store

    def download(self, request: HTTPRequest, name: str) -> HTTPResponse:
        """
        Serve a file from the store.

        Raises:
            HandlerError: If the store fails for a reason other than
                          the file not existing.
        """
        try:
            content = self.store.read(name)
        except FileNotFoundInStore:
            logger.debug(f"File not found: {name}")
            return not_found()
        except StorageError as e:
            raise HandlerError(f"Failed to read file {name!r}") from e

        return ResponseBuilder().octet_stream(content).build()

    def upload(self, request: HTTPRequest, name: str) -> HTTPResponse:
        """
        Store the request body under the given name.

        A request with no body stores an empty file.

        Raises:
            HandlerError: If the store cannot write the file.
        """
        data = request.body if request.body is not None else b""
        try:
            self.store.write(name, data)
        except StorageError as e:
            raise HandlerError(f"Failed to write file {name!r}") from e

        logger.info(f"Stored {len(data)} bytes as {name}")
        return created()
