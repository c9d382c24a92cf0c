from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
import logging
import sqlite3
from typing import Callable

from ..errors import DomainError, ReferentialIntegrityError
from ..tx import unit_of_work
from ...utils.helpers import to_decimal
from ...utils.validators import try_parse_decimal
from .invoice_totals import InvoiceTotalReconciler

_log = logging.getLogger(__name__)


@dataclass
class LineItem:
    line_id: int | None
    invoice_id: str
    product_id: int
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal


LineItemHook = Callable[[LineItem], None]


@dataclass
class LineItemHooks:
    """
    Synchronous after-insert / after-delete callbacks.

    Hooks run inside the same unit of work as the row change; a hook that
    raises rolls the row change back with it.
    """
    after_insert: list[LineItemHook] = field(default_factory=list)
    after_delete: list[LineItemHook] = field(default_factory=list)

    def on_insert(self, hook: LineItemHook) -> LineItemHook:
        self.after_insert.append(hook)
        return hook

    def on_delete(self, hook: LineItemHook) -> LineItemHook:
        self.after_delete.append(hook)
        return hook


class LineItemsRepo:
    """
    Line items of an invoice (rows in transaction_line_items).

      - insert(...) computes line_total = quantity * unit_price exactly (no rounding).
      - delete(line_id) captures the row first and deletes it. Deleting an unknown id
        is a no-op.
      - Every insert and delete recomputes the affected invoice_total before any
        extra hooks run, all inside one unit of work. There is no way to mutate
        lines through this class without keeping the invoice total in step.
      - Line ids come from AUTOINCREMENT: strictly increasing, never reused.
    """

    _COLUMNS = (
        "transaction_line_id AS line_id, invoice_id, product_id, "
        "quantity, unit_price, line_total"
    )

    def __init__(
        self,
        conn: sqlite3.Connection,
        hooks: LineItemHooks | None = None,
        reconciler: InvoiceTotalReconciler | None = None,
    ):
        conn.row_factory = sqlite3.Row
        self.conn = conn
        self.hooks = hooks if hooks is not None else LineItemHooks()
        self.reconciler = reconciler if reconciler is not None else InvoiceTotalReconciler(conn)

    # ---- Internal helpers -------------------------------------------------

    @staticmethod
    def _row_to_item(r: sqlite3.Row) -> LineItem:
        return LineItem(
            line_id=int(r["line_id"]),
            invoice_id=r["invoice_id"],
            product_id=int(r["product_id"]),
            quantity=to_decimal(r["quantity"]),
            unit_price=to_decimal(r["unit_price"]),
            line_total=to_decimal(r["line_total"]),
        )

    @staticmethod
    def _validate(quantity, unit_price) -> tuple[Decimal, Decimal]:
        ok_q, qty = try_parse_decimal(quantity)
        if not ok_q or qty <= 0:
            raise DomainError(f"Quantity must be a positive number (got {quantity!r}).")
        ok_p, price = try_parse_decimal(unit_price)
        if not ok_p or price < 0:
            raise DomainError(f"Unit price must be a non-negative number (got {unit_price!r}).")
        return qty, price

    def _invoice_exists(self, invoice_id: str) -> bool:
        return self.conn.execute(
            "SELECT 1 FROM transactions WHERE invoice_id = ?", (invoice_id,)
        ).fetchone() is not None

    # ---- Queries ----------------------------------------------------------

    def get(self, line_id: int) -> LineItem | None:
        r = self.conn.execute(
            f"SELECT {self._COLUMNS} FROM transaction_line_items WHERE transaction_line_id = ?",
            (line_id,),
        ).fetchone()
        return self._row_to_item(r) if r else None

    def list_for_invoice(self, invoice_id: str) -> list[LineItem]:
        rows = self.conn.execute(
            f"SELECT {self._COLUMNS} FROM transaction_line_items "
            "WHERE invoice_id = ? ORDER BY transaction_line_id",
            (invoice_id,),
        ).fetchall()
        return [self._row_to_item(r) for r in rows]

    # ---- Mutations --------------------------------------------------------

    def insert(self, invoice_id: str, product_id: int, quantity, unit_price) -> int:
        qty, price = self._validate(quantity, unit_price)
        line_total = qty * price

        with unit_of_work(self.conn):
            if not self._invoice_exists(invoice_id):
                raise ReferentialIntegrityError(f"Invoice '{invoice_id}' does not exist.")
            cur = self.conn.execute(
                """
                INSERT INTO transaction_line_items (
                    invoice_id, product_id, quantity, unit_price, line_total
                ) VALUES (?,?,?,?,?)
                """,
                (invoice_id, product_id, qty, price, line_total),
            )
            item = LineItem(
                line_id=int(cur.lastrowid),
                invoice_id=invoice_id,
                product_id=product_id,
                quantity=qty,
                unit_price=price,
                line_total=line_total,
            )
            _log.debug("line %d inserted on invoice %s (%s)", item.line_id, invoice_id, line_total)
            self.reconciler.reconcile(invoice_id)
            for hook in self.hooks.after_insert:
                hook(item)
        return item.line_id

    def delete(self, line_id: int) -> bool:
        """Returns False when there was nothing to delete."""
        with unit_of_work(self.conn):
            item = self.get(line_id)
            if item is None:
                return False
            self.conn.execute(
                "DELETE FROM transaction_line_items WHERE transaction_line_id = ?",
                (line_id,),
            )
            _log.debug("line %d deleted from invoice %s", line_id, item.invoice_id)
            self.reconciler.reconcile(item.invoice_id)
            for hook in self.hooks.after_delete:
                hook(item)
        return True


__all__ = ["LineItem", "LineItemHook", "LineItemHooks", "LineItemsRepo"]
