# retail_sales/database/tx.py
"""
Unit-of-work helpers.

    with unit_of_work(conn):
        ...   # BEGIN IMMEDIATE ... COMMIT, or ROLLBACK + raise

BEGIN IMMEDIATE takes SQLite's write lock up front, so a reader inside the
unit of work cannot observe a sum that another writer is about to change.
If the connection is already inside a transaction (the caller owns the
boundary, e.g. a test that wraps everything in BEGIN/ROLLBACK), the unit of
work becomes a SAVEPOINT and still rolls back as one piece.
"""
from __future__ import annotations

import itertools
import logging
import sqlite3
import time
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from ..constants import TX_BACKOFF_BASE, TX_MAX_ATTEMPTS
from .errors import TransientConflictError, translate_sqlite_error

_log = logging.getLogger(__name__)

_savepoint_ids = itertools.count(1)

T = TypeVar("T")


@contextmanager
def _savepoint(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    name = f"uow_{next(_savepoint_ids)}"
    conn.execute(f"SAVEPOINT {name}")
    try:
        yield conn
    except sqlite3.Error as e:
        conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
        conn.execute(f"RELEASE SAVEPOINT {name}")
        raise translate_sqlite_error(e) from e
    except BaseException:
        conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
        conn.execute(f"RELEASE SAVEPOINT {name}")
        raise
    conn.execute(f"RELEASE SAVEPOINT {name}")


@contextmanager
def unit_of_work(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Start an IMMEDIATE transaction, commit on success, rollback on error.
    sqlite3 errors come out translated (StorageError family); anything else,
    KeyboardInterrupt included, is re-raised untouched after the rollback.
    """
    if conn.in_transaction:
        with _savepoint(conn):
            yield conn
        return

    try:
        conn.execute("BEGIN IMMEDIATE")
    except sqlite3.Error as e:
        raise translate_sqlite_error(e) from e

    try:
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise translate_sqlite_error(e) from e
    except BaseException:
        conn.rollback()
        raise


def run_in_tx(
    conn: sqlite3.Connection,
    work: Callable[[], T],
    *,
    attempts: int = TX_MAX_ATTEMPTS,
    backoff: float = TX_BACKOFF_BASE,
) -> T:
    """
    Run `work` inside a unit of work, retrying the whole thing on
    TransientConflictError with exponential backoff.

    Retries only happen when this call owns the transaction; inside a
    caller-owned transaction the conflict is raised for the caller to handle.
    """
    nested = conn.in_transaction
    attempt = 0
    while True:
        attempt += 1
        try:
            with unit_of_work(conn):
                return work()
        except TransientConflictError as e:
            if nested or attempt >= attempts:
                raise
            delay = backoff * (2 ** (attempt - 1))
            _log.warning(
                "transient conflict (attempt %d/%d), retrying in %.3fs: %s",
                attempt, attempts, delay, e,
            )
            time.sleep(delay)


__all__ = ["unit_of_work", "run_in_tx"]
