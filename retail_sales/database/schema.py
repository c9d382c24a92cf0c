from pathlib import Path
import logging
import sqlite3
import sys

_log = logging.getLogger(__name__)

SQL = r"""
PRAGMA foreign_keys = ON;

/* ======================== PARTIES ======================== */

CREATE TABLE IF NOT EXISTS customers (
    customer_id   INTEGER PRIMARY KEY,
    customer_name TEXT NOT NULL,
    email         TEXT,
    city          TEXT,
    country       TEXT
);

CREATE TABLE IF NOT EXISTS stores (
    store_id INTEGER PRIMARY KEY,
    country  TEXT,
    city     TEXT
);

CREATE TABLE IF NOT EXISTS employees (
    employee_id       INTEGER PRIMARY KEY,
    store_id          INTEGER,
    employee_name     TEXT NOT NULL,
    employee_position TEXT,
    FOREIGN KEY (store_id) REFERENCES stores(store_id)
);
CREATE INDEX IF NOT EXISTS idx_employees_store ON employees(store_id);

/* ======================== CATALOGUE ======================== */

/* one discount per (category, sub_category) */
CREATE TABLE IF NOT EXISTS discounts (
    product_category TEXT NOT NULL,
    sub_category     TEXT NOT NULL,
    start_date       DATE,
    end_date         DATE,
    discount         TEXT NOT NULL DEFAULT '0' CHECK (CAST(discount AS REAL) BETWEEN 0 AND 1),
    PRIMARY KEY (product_category, sub_category)
);

CREATE TABLE IF NOT EXISTS products (
    product_id          INTEGER PRIMARY KEY,
    product_description TEXT,
    category            TEXT,
    sub_category        TEXT,
    color               TEXT,
    product_size        TEXT,
    FOREIGN KEY (category, sub_category) REFERENCES discounts(product_category, sub_category)
);
CREATE INDEX IF NOT EXISTS idx_products_category ON products(category, sub_category);

/* ======================== INVOICES ======================== */

/* money columns are TEXT holding exact Decimal strings; sum them with DECIMAL_SUM() */
/* invoice_total is derived: only the reconciler writes it */
CREATE TABLE IF NOT EXISTS transactions (
    invoice_id       TEXT PRIMARY KEY,
    employee_id      INTEGER,
    customer_id      INTEGER,
    transaction_date DATE NOT NULL DEFAULT CURRENT_DATE,
    invoice_total    TEXT NOT NULL DEFAULT '0',
    FOREIGN KEY (employee_id) REFERENCES employees(employee_id),
    FOREIGN KEY (customer_id) REFERENCES customers(customer_id)
);
CREATE INDEX IF NOT EXISTS idx_transactions_customer      ON transactions(customer_id);
CREATE INDEX IF NOT EXISTS idx_transactions_date          ON transactions(transaction_date);
CREATE INDEX IF NOT EXISTS idx_transactions_customer_date ON transactions(customer_id, transaction_date);

/* AUTOINCREMENT: line ids are never reused, even after deletes */
CREATE TABLE IF NOT EXISTS transaction_line_items (
    transaction_line_id INTEGER PRIMARY KEY AUTOINCREMENT,
    invoice_id          TEXT    NOT NULL,
    product_id          INTEGER NOT NULL,
    quantity            NUMERIC NOT NULL CHECK (CAST(quantity AS REAL) > 0),
    unit_price          TEXT    NOT NULL CHECK (CAST(unit_price AS REAL) >= 0),
    line_total          TEXT    NOT NULL,
    FOREIGN KEY (invoice_id) REFERENCES transactions(invoice_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_line_items_invoice ON transaction_line_items(invoice_id);
CREATE INDEX IF NOT EXISTS idx_line_items_product ON transaction_line_items(product_id);
"""


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply the (idempotent) schema on an already-open connection, e.g. ':memory:'."""
    conn.executescript(SQL)


def init_schema(db_path: Path | str) -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute("PRAGMA journal_mode=WAL;")
        apply_schema(conn)
        conn.commit()
    conn.close()
    _log.info("schema applied to %s", db_path)


if __name__ == "__main__":
    from ..config import DB_PATH

    target = sys.argv[1] if len(sys.argv) > 1 else DB_PATH
    init_schema(target)
    print(f"✓ DB applied to {target}")
