"""
=============================================================================
FILE STORE
=============================================================================

Byte-oriented read/write access to files under one root directory.
Backs the /files/<name> routes.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

Names come straight from the request path, so a client can try:

    GET /files/..%2F..%2Fetc%2Fpasswd      (not decoded, stays one name)
    POST /files/..                          (escapes the root!)

Every name is resolved against the root and must stay inside it:

    full_path = (root_dir / name).resolve()
    full_path.relative_to(root_dir)        # Raises if outside root!

A name that escapes the root is refused with StorageError, which the
connection loop answers with 404 like any other storage fault.

=============================================================================
ERRORS
=============================================================================

    StorageError              any failure reading or writing
     └── FileNotFoundInStore  the name does not exist (or is not a file)

Handlers map FileNotFoundInStore to a 404 response and let every other
StorageError escape as a HandlerError.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Union


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the store cannot read or write a file."""


class FileNotFoundInStore(StorageError):
    """Raised when the requested file does not exist in the store."""


class FileStore:
    """
    Reads and writes files relative to a root directory.

    Usage:
        store = FileStore("/tmp/uploads")
        store.write("foo.txt", b"hello")
        store.read("foo.txt")  # b"hello"

    The store holds no locks. Two connections writing the same name at once
    race at the filesystem level; last writer wins.
    """

    def __init__(self, root_dir: Union[str, Path]):
        """
        Initialize the file store.

        Args:
            root_dir: Directory files are read from and written to.
                      All paths MUST resolve inside it.
        """
        # Resolve once so the confinement check compares like with like
        self.root_dir = Path(root_dir).resolve()

    def _resolve(self, relative_path: str) -> Path:
        """
        Map a store-relative name to a filesystem path inside the root.

        Raises:
            StorageError: If the name is empty, unusable as a filesystem
                          path, or escapes the root.
        """
        name = relative_path.lstrip("/")
        if not name:
            raise StorageError("Empty file name")

        # The OS cannot represent a NUL inside a path
        if "\x00" in name:
            raise StorageError(f"File name contains a null byte: {relative_path!r}")

        try:
            full_path = (self.root_dir / name).resolve()
        except (OSError, ValueError) as e:
            raise StorageError(f"Invalid file name {relative_path!r}: {e}") from e

        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {relative_path}")
            raise StorageError(f"Path escapes store root: {relative_path}") from None
        return full_path

    def read(self, relative_path: str) -> bytes:
        """
        Read a whole file.

        Returns:
            File contents

        Raises:
            FileNotFoundInStore: If the file does not exist.
            StorageError: For any other failure (permissions, I/O, traversal).
        """
        path = self._resolve(relative_path)
        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise FileNotFoundInStore(f"File not found: {relative_path}") from e
        except OSError as e:
            logger.error(f"Error reading file {path}: {e}")
            raise StorageError(f"Failed to read {relative_path}: {e}") from e

    def write(self, relative_path: str, data: bytes) -> None:
        """
        Create or replace a file with the given bytes.

        Raises:
            StorageError: If the file cannot be written.
        """
        path = self._resolve(relative_path)
        try:
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Error writing file {path}: {e}")
            raise StorageError(f"Failed to write {relative_path}: {e}") from e
        logger.debug(f"Stored {len(data)} bytes at {path}")
