# src/local_todo/errors.py

"""
Error taxonomy.

    TodoError
    ├── StorageError        - the SQLite store failed (I/O, schema, constraint)
    │   └── DuplicateKeyError
    ├── DatabaseError       - repository-level wrapper around StorageError
    ├── NotFoundError       - record with the given key does not exist
    ├── ConflictError       - business rule violation (category in use, bad reorder)
    ├── ImportDataError     - backup document rejected before any mutation
    └── ExportError

Field-level validation is NOT an exception: see data/validation.py.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator

from .constants import ERROR_MESSAGES


class TodoError(Exception):
    """Base class for every error raised by local_todo."""


class StorageError(TodoError):
    """The underlying store operation failed."""


class DuplicateKeyError(StorageError):
    def __init__(self, collection: str, key: str) -> None:
        self.collection = collection
        self.key = key
        super().__init__(f"{collection}: key already exists: {key}")


class DatabaseError(TodoError):
    def __init__(self, message: str = ERROR_MESSAGES["database"]) -> None:
        super().__init__(message)


class NotFoundError(TodoError, LookupError):
    def __init__(self, collection: str, key: str) -> None:
        self.collection = collection
        self.key = key
        super().__init__(f"{collection}: no record with key {key}")


class ConflictError(TodoError):
    pass


class ImportDataError(TodoError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"{ERROR_MESSAGES['import']}: {reason}")


class ExportError(TodoError):
    pass


@contextlib.contextmanager
def database_errors(logger: logging.Logger, what: str) -> Iterator[None]:
    """Log and re-raise StorageError as DatabaseError; business errors pass through."""
    try:
        yield
    except StorageError as e:
        logger.exception("Failed to %s", what)
        raise DatabaseError() from e
