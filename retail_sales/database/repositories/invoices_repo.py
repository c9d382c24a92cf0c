from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
import sqlite3

from ..errors import DomainError
from ..tx import unit_of_work
from ...utils.helpers import to_decimal, today_str
from ...utils.validators import non_empty


@dataclass
class Invoice:
    invoice_id: str
    employee_id: int | None
    customer_id: int | None
    transaction_date: str
    invoice_total: Decimal


class InvoicesRepo:
    """
    Invoice headers (rows in `transactions`).

    Headers are created here with a zero total; invoice_total is only ever
    written by InvoiceTotalReconciler.
    """

    _COLUMNS = "invoice_id, employee_id, customer_id, transaction_date, invoice_total"

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    @staticmethod
    def _row_to_invoice(r: sqlite3.Row) -> Invoice:
        return Invoice(
            invoice_id=r["invoice_id"],
            employee_id=r["employee_id"],
            customer_id=r["customer_id"],
            transaction_date=r["transaction_date"],
            invoice_total=to_decimal(r["invoice_total"]),
        )

    def get(self, invoice_id: str) -> Invoice | None:
        r = self.conn.execute(
            f"SELECT {self._COLUMNS} FROM transactions WHERE invoice_id = ?",
            (invoice_id,),
        ).fetchone()
        return self._row_to_invoice(r) if r else None

    def exists(self, invoice_id: str) -> bool:
        return self.conn.execute(
            "SELECT 1 FROM transactions WHERE invoice_id = ?", (invoice_id,)
        ).fetchone() is not None

    def create(
        self,
        invoice_id: str,
        *,
        customer_id: int | None = None,
        employee_id: int | None = None,
        transaction_date: str | None = None,
    ) -> str:
        if not non_empty(invoice_id):
            raise DomainError("Invoice id cannot be empty.")
        invoice_id = invoice_id.strip()

        with unit_of_work(self.conn):
            if self.exists(invoice_id):
                raise DomainError(f"Invoice '{invoice_id}' already exists.")
            self.conn.execute(
                """
                INSERT INTO transactions (
                    invoice_id, employee_id, customer_id, transaction_date, invoice_total
                ) VALUES (?,?,?,?,0)
                """,
                (invoice_id, employee_id, customer_id, transaction_date or today_str()),
            )
        return invoice_id


__all__ = ["Invoice", "InvoicesRepo"]
