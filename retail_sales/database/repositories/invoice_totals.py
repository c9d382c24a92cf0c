from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
import logging
import sqlite3

from ..money import register_money_functions
from ...utils.helpers import to_decimal

_log = logging.getLogger(__name__)


@dataclass
class TotalDrift:
    invoice_id: str
    stored_total: Decimal
    computed_total: Decimal


class InvoiceTotalReconciler:
    """
    Recompute transactions.invoice_total from the invoice's current line items.

    Always a full DECIMAL_SUM over the invoice's lines, never a +=/-=
    adjustment, so re-running it repairs any earlier missed update. Amounts
    are exact; nothing is rounded. No commit here; callers
    own the transaction boundary (see tx.unit_of_work).
    """

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        register_money_functions(conn)
        self.conn = conn

    def sum_line_totals(self, invoice_id: str) -> Decimal:
        row = self.conn.execute(
            """
            SELECT DECIMAL_SUM(line_total) AS total
            FROM transaction_line_items
            WHERE invoice_id = ?
            """,
            (invoice_id,),
        ).fetchone()
        return to_decimal(row["total"])

    def reconcile(self, invoice_id: str) -> Decimal:
        """
        Write the recomputed sum into the invoice header and return it.
        An unknown invoice updates zero rows and is not an error.
        """
        total = self.sum_line_totals(invoice_id)
        cur = self.conn.execute(
            "UPDATE transactions SET invoice_total = ? WHERE invoice_id = ?",
            (total, invoice_id),
        )
        if cur.rowcount == 0:
            _log.debug("reconcile: no invoice %r, nothing updated", invoice_id)
        else:
            _log.debug("reconcile: invoice %s total=%s", invoice_id, total)
        return total

    # ---- Drift detection ---------------------------------------------------

    def find_drift(self) -> list[TotalDrift]:
        """Invoices whose stored total no longer matches the sum of their lines."""
        rows = self.conn.execute(
            """
            SELECT t.invoice_id,
                   t.invoice_total                 AS stored_total,
                   DECIMAL_SUM(li.line_total)      AS computed_total
            FROM transactions t
            LEFT JOIN transaction_line_items li ON li.invoice_id = t.invoice_id
            GROUP BY t.invoice_id, t.invoice_total
            ORDER BY t.invoice_id
            """
        ).fetchall()
        drift = []
        for r in rows:
            stored = to_decimal(r["stored_total"])
            computed = to_decimal(r["computed_total"])
            if stored != computed:
                drift.append(TotalDrift(r["invoice_id"], stored, computed))
        return drift

    def verify(self, invoice_id: str) -> bool:
        row = self.conn.execute(
            "SELECT invoice_total FROM transactions WHERE invoice_id = ?",
            (invoice_id,),
        ).fetchone()
        if row is None:
            return True
        return to_decimal(row["invoice_total"]) == self.sum_line_totals(invoice_id)


__all__ = ["InvoiceTotalReconciler", "TotalDrift"]
