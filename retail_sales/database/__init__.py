# retail_sales/database/__init__.py
from __future__ import annotations

from decimal import Decimal
from pathlib import Path
import sqlite3

from ..config import DB_PATH
from ..constants import DB_TIMEOUT
from . import schema as schema_module
from .money import register_money_functions
from .versioning import ensure_version

# Money goes in as exact Decimal text.
sqlite3.register_adapter(Decimal, str)


def configure_connection(conn: sqlite3.Connection) -> sqlite3.Connection:
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    register_money_functions(conn)
    return conn


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """
    Returns a sqlite3.Connection with:
      - WAL mode (file databases)
      - foreign_keys ON
      - row_factory = sqlite3.Row (so rows behave like dicts and tuples)
      - DECIMAL_SUM() for the TEXT money columns
    Ensures the schema and version stamp are applied idempotently.

    Pass ':memory:' for a throwaway database.
    """
    target = DB_PATH if db_path is None else db_path
    in_memory = str(target) == ":memory:"

    if not in_memory:
        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(target), timeout=DB_TIMEOUT)
    configure_connection(conn)
    if not in_memory:
        conn.execute("PRAGMA journal_mode = WAL;")

    schema_module.apply_schema(conn)
    ensure_version(conn)
    conn.commit()
    return conn


__all__ = [
    "configure_connection",
    "get_connection",
]
