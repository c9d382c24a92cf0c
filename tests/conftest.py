# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - Default: in-memory SQLite with the real schema + demo seed, per test
# - Multi-connection tests get a temp-file DB (WAL) via `db_file`
# - conn.row_factory = sqlite3.Row, PRAGMA foreign_keys=ON (get_connection)
# - Handy ids for the demo rows
# ---------------------------------------------------------------------

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from retail_sales.database import get_connection
from retail_sales.database.repositories import InvoiceLedger, InvoicesRepo, ReportingRepo
from retail_sales.database.seeders.demo_data import DEMO_CUSTOMER_ID, DEMO_INVOICE_ID, seed


@pytest.fixture()
def conn():
    con = get_connection(":memory:")
    seed(con)
    try:
        yield con
    finally:
        con.close()


@pytest.fixture()
def db_file(tmp_path: Path) -> Path:
    """A seeded on-disk database; open your own connections (one per thread)."""
    path = tmp_path / "retail_sales.db"
    con = get_connection(path)
    try:
        seed(con)
    finally:
        con.close()
    return path


@pytest.fixture()
def ledger(conn: sqlite3.Connection) -> InvoiceLedger:
    return InvoiceLedger(conn, backoff=0)


@pytest.fixture()
def invoices(conn: sqlite3.Connection) -> InvoicesRepo:
    return InvoicesRepo(conn)


@pytest.fixture()
def reporting(conn: sqlite3.Connection) -> ReportingRepo:
    return ReportingRepo(conn)


@pytest.fixture()
def ids() -> dict:
    """Ids of the demo rows inserted by the seeder."""
    return {
        "invoice": DEMO_INVOICE_ID,
        "customer": DEMO_CUSTOMER_ID,
        "other_customer": 123,
        "employee": 1,
        "prod_tshirt": 101,
        "prod_jacket": 102,
        "prod_sneakers": 103,
    }
