# retail_sales/database/money.py
"""
Exact money arithmetic inside SQLite.

Money columns are TEXT holding Decimal strings. SQLite's own SUM() would
coerce them to REAL, so connections get a DECIMAL_SUM() aggregate that adds
them as Decimals and hands back a Decimal string.
"""
from __future__ import annotations

from decimal import Decimal
import sqlite3

from ..utils.helpers import to_decimal


class DecimalSum:
    def __init__(self):
        self.total = Decimal(0)

    def step(self, value):
        if value is not None:
            self.total += to_decimal(value)

    def finalize(self):
        return str(self.total)


def register_money_functions(conn: sqlite3.Connection) -> None:
    """Safe to call repeatedly on the same connection."""
    conn.create_aggregate("DECIMAL_SUM", 1, DecimalSum)


__all__ = ["DecimalSum", "register_money_functions"]
