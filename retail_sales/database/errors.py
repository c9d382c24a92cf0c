# retail_sales/database/errors.py
from __future__ import annotations

import sqlite3


class DomainError(Exception):
    """Domain-level error the caller can surface directly (bad input, unknown record)."""
    pass


class StorageError(Exception):
    """The underlying persistence layer failed."""
    pass


class ReferentialIntegrityError(StorageError):
    """A row references a parent that does not exist (e.g. line item -> invoice)."""
    pass


class TransientConflictError(StorageError):
    """Write contention (SQLITE_BUSY / locked). Safe to retry the whole unit of work."""
    pass


_TRANSIENT_MARKERS = ("database is locked", "database table is locked", "database is busy")


def translate_sqlite_error(exc: sqlite3.Error) -> StorageError:
    """
    Map a sqlite3 exception onto the storage error kinds.
    Callers raise the result `from exc` so the original stays chained.
    """
    msg = str(exc)
    low = msg.lower()
    if isinstance(exc, sqlite3.IntegrityError) and "foreign key" in low:
        return ReferentialIntegrityError(msg)
    if isinstance(exc, sqlite3.OperationalError) and any(m in low for m in _TRANSIENT_MARKERS):
        return TransientConflictError(msg)
    return StorageError(msg)


__all__ = [
    "DomainError",
    "StorageError",
    "ReferentialIntegrityError",
    "TransientConflictError",
    "translate_sqlite_error",
]
