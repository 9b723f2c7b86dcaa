"""
Error kinds shared by the access layer and the HTTP layer.

The access layer translates driver-specific integrity failures into
``DuplicateKeyError`` / ``ForeignKeyViolationError`` so handlers never look at
SQLSTATE codes or driver messages.
"""

from enum import Enum
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_REFERENCE = "invalid_reference"
    UPLOAD = "upload"
    RATE_LIMIT = "rate_limit"
    INTERNAL = "internal"


class ApiError(HTTPException):
    """HTTPException tagged with the ErrorKind it reports."""

    def __init__(self, status_code: int, detail, kind: ErrorKind, headers=None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.kind = kind


class IntegrityKind(str, Enum):
    DUPLICATE_KEY = "duplicate_key"
    FOREIGN_KEY_VIOLATION = "foreign_key_violation"
    OTHER = "other"


# PostgreSQL SQLSTATE codes
_PG_UNIQUE_VIOLATION = "23505"
_PG_FOREIGN_KEY_VIOLATION = "23503"


class StorageIntegrityError(Exception):
    """A write was refused by a database constraint."""

    kind = IntegrityKind.OTHER

    def __init__(self, message: str, constraint: Optional[str] = None):
        super().__init__(message)
        self.constraint = constraint


class DuplicateKeyError(StorageIntegrityError):
    kind = IntegrityKind.DUPLICATE_KEY


class ForeignKeyViolationError(StorageIntegrityError):
    kind = IntegrityKind.FOREIGN_KEY_VIOLATION


def classify_integrity_error(exc: IntegrityError) -> IntegrityKind:
    """Map a driver IntegrityError onto an IntegrityKind."""
    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode == _PG_UNIQUE_VIOLATION:
        return IntegrityKind.DUPLICATE_KEY
    if pgcode == _PG_FOREIGN_KEY_VIOLATION:
        return IntegrityKind.FOREIGN_KEY_VIOLATION

    # SQLite only reports constraint failures through the message text
    text = str(orig if orig is not None else exc).lower()
    if "unique constraint failed" in text or "duplicate" in text:
        return IntegrityKind.DUPLICATE_KEY
    if "foreign key constraint failed" in text:
        return IntegrityKind.FOREIGN_KEY_VIOLATION
    return IntegrityKind.OTHER


def translate_integrity_error(exc: IntegrityError) -> Exception:
    """Return the access-layer exception to raise in place of ``exc``."""
    kind = classify_integrity_error(exc)
    message = str(getattr(exc, "orig", exc))
    if kind is IntegrityKind.DUPLICATE_KEY:
        return DuplicateKeyError(message)
    if kind is IntegrityKind.FOREIGN_KEY_VIOLATION:
        return ForeignKeyViolationError(message)
    return StorageIntegrityError(message)
