# retail_sales/database/repositories/reporting_repo.py
from __future__ import annotations

from decimal import Decimal
import logging
import sqlite3
from typing import Optional

from ..money import register_money_functions
from ...utils.helpers import to_decimal

_log = logging.getLogger(__name__)


class ReportingRepo:
    """
    Read-only queries over invoices.

    Notes on date handling:
      • Callers should pass ISO 'YYYY-MM-DD'; both bounds are inclusive.
      • ORDER BY sorts directly on transaction_date (no DATE() wrapper) so the
        (customer_id, transaction_date) index stays usable.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.conn.row_factory = sqlite3.Row
        register_money_functions(conn)

    def total_value(self, customer_id: Optional[int]) -> Optional[Decimal]:
        """
        Sum of invoice_total across all of a customer's invoices.

        Best-effort read with sentinel results:
          - customer_id is None            -> 0
          - customer has no invoices       -> 0 (indistinguishable from a real zero)
          - any unexpected failure         -> None; the error is logged with traceback
        """
        if customer_id is None:
            return Decimal(0)
        try:
            row = self.conn.execute(
                """
                SELECT DECIMAL_SUM(invoice_total) AS total
                FROM transactions
                WHERE customer_id = ?
                """,
                (customer_id,),
            ).fetchone()
            return to_decimal(row["total"])
        except Exception:
            _log.exception("total_value failed for customer_id=%r", customer_id)
            return None

    def transactions_for_customer(
        self,
        customer_id: int,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> list[sqlite3.Row]:
        """
        Invoice headers for one customer, optionally within [start, end].
        """
        where = ["t.customer_id = ?"]
        params: list = [customer_id]
        if start:
            where.append("t.transaction_date >= ?")
            params.append(start)
        if end:
            where.append("t.transaction_date <= ?")
            params.append(end)

        sql = """
        SELECT t.invoice_id,
               t.transaction_date,
               t.employee_id,
               t.invoice_total,
               (SELECT COUNT(*) FROM transaction_line_items li
                 WHERE li.invoice_id = t.invoice_id) AS line_count
        FROM transactions t
        WHERE """ + " AND ".join(where) + """
        ORDER BY t.transaction_date, t.invoice_id
        """
        return list(self.conn.execute(sql, params))
