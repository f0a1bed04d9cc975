"""Error taxonomy for the catalog.

Every failure that crosses the store boundary is one of these classes.
Callers dispatch on ``kind`` (or the class) rather than comparing
error instances.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of error kinds raised by the catalog."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    EDIT_CONFLICT = "edit_conflict"
    STORE = "store"


class CatalogError(Exception):
    """Base class for all catalog errors."""

    kind: ErrorKind = ErrorKind.STORE


class ValidationError(CatalogError):
    """Input failed one or more checks.

    Args:
        errors: Mapping of field name to the first message recorded for it.
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(f"{key}: {msg}" for key, msg in self.errors.items())
        super().__init__(f"validation failed ({fields})")


class RecordNotFound(CatalogError):
    """No record matches the requested id."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, record_id: int | None = None):
        self.record_id = record_id
        if record_id is None:
            super().__init__("record not found")
        else:
            super().__init__(f"record not found: {record_id}")


class EditConflict(CatalogError):
    """The (id, version) precondition of an update did not hold.

    Either the record was deleted or another writer updated it first.
    The caller should re-fetch and retry with the fresh version.
    """

    kind = ErrorKind.EDIT_CONFLICT

    def __init__(self, record_id: int, version: int):
        self.record_id = record_id
        self.version = version
        super().__init__(f"edit conflict on record {record_id} at version {version}")


class StoreError(CatalogError):
    """Storage I/O or unexpected storage failure."""

    kind = ErrorKind.STORE

    def __init__(self, message: str, *, timeout: bool = False):
        self.timeout = timeout
        super().__init__(message)


class StoreTimeout(StoreError):
    """The per-call time budget expired before the operation finished."""

    def __init__(self, operation: str, seconds: float):
        self.operation = operation
        self.seconds = seconds
        super().__init__(f"{operation} exceeded its {seconds:g}s budget", timeout=True)
