from __future__ import annotations
from decimal import Decimal
import logging
import sqlite3

from ...constants import TX_BACKOFF_BASE, TX_MAX_ATTEMPTS
from ..tx import run_in_tx
from .invoice_totals import InvoiceTotalReconciler
from .line_items_repo import LineItemHooks, LineItemsRepo

_log = logging.getLogger(__name__)


class InvoiceLedger:
    """
    Entry point for line-item mutations that keeps invoice totals consistent.

    Shares one reconciler with its line-item store, which recomputes
      - after insert -> reconcile(new.invoice_id)
      - after delete -> reconcile(old.invoice_id)
    inside the same unit of work as the row change. Extra callbacks can be
    registered on `ledger.hooks`; they run after the total is refreshed.

    add_line_item / delete_line_item / reconcile own their transaction and
    retry it on TransientConflictError; any other error rolls back and
    propagates.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        attempts: int = TX_MAX_ATTEMPTS,
        backoff: float = TX_BACKOFF_BASE,
    ):
        self.conn = conn
        self.attempts = attempts
        self.backoff = backoff
        self.hooks = LineItemHooks()
        self.reconciler = InvoiceTotalReconciler(conn)
        self.items = LineItemsRepo(conn, self.hooks, self.reconciler)

    def _run(self, work):
        return run_in_tx(self.conn, work, attempts=self.attempts, backoff=self.backoff)

    # ---------------------------------------------------------------------

    def add_line_item(self, invoice_id: str, product_id: int, quantity, unit_price) -> int:
        """Insert one line and refresh its invoice total atomically. Returns the new line id."""
        line_id = self._run(lambda: self.items.insert(invoice_id, product_id, quantity, unit_price))
        _log.info("added line %d to invoice %s", line_id, invoice_id)
        return line_id

    def delete_line_item(self, line_id: int) -> bool:
        deleted = self._run(lambda: self.items.delete(line_id))
        if deleted:
            _log.info("deleted line %d", line_id)
        return deleted

    def reconcile(self, invoice_id: str) -> Decimal:
        return self._run(lambda: self.reconciler.reconcile(invoice_id))

    def reconcile_all(self) -> list[str]:
        """Repair every invoice whose stored total has drifted. Returns the repaired ids."""
        def work():
            repaired = []
            for d in self.reconciler.find_drift():
                _log.warning(
                    "invoice %s drifted: stored=%s computed=%s",
                    d.invoice_id, d.stored_total, d.computed_total,
                )
                self.reconciler.reconcile(d.invoice_id)
                repaired.append(d.invoice_id)
            return repaired

        return self._run(work)


__all__ = ["InvoiceLedger"]
