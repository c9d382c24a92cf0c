"""Render an invoice (header + lines) to HTML with a Jinja2 template."""
from __future__ import annotations

from decimal import Decimal
from pathlib import Path
import sqlite3

from jinja2 import Template

from ..constants import APP_NAME, INVOICE_TEMPLATE
from ..database.errors import DomainError
from ..utils.helpers import fmt_money, to_decimal

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def prepare_invoice_context(conn: sqlite3.Connection, invoice_id: str) -> dict:
    """Collect header, party and line data for the invoice template."""
    conn.row_factory = sqlite3.Row
    header = conn.execute(
        """
        SELECT t.invoice_id, t.transaction_date, t.invoice_total,
               c.customer_name, c.email AS customer_email, c.city AS customer_city,
               c.country AS customer_country,
               e.employee_name, s.city AS store_city, s.country AS store_country
        FROM transactions t
        LEFT JOIN customers c ON c.customer_id = t.customer_id
        LEFT JOIN employees e ON e.employee_id = t.employee_id
        LEFT JOIN stores s    ON s.store_id    = e.store_id
        WHERE t.invoice_id = ?
        """,
        (invoice_id,),
    ).fetchone()
    if header is None:
        raise DomainError(f"Invoice '{invoice_id}' does not exist.")

    rows = conn.execute(
        """
        SELECT li.transaction_line_id AS line_id, li.product_id,
               p.product_description, li.quantity, li.unit_price, li.line_total,
               ROW_NUMBER() OVER (ORDER BY li.transaction_line_id) AS idx
        FROM transaction_line_items li
        LEFT JOIN products p ON p.product_id = li.product_id
        WHERE li.invoice_id = ?
        ORDER BY li.transaction_line_id
        """,
        (invoice_id,),
    ).fetchall()

    items = []
    for r in rows:
        item = dict(r)
        item["unit_price"] = fmt_money(r["unit_price"])
        item["line_total"] = fmt_money(r["line_total"])
        items.append(item)

    doc = dict(header)
    doc["invoice_total"] = fmt_money(header["invoice_total"])
    return {
        "app_name": APP_NAME,
        "doc": doc,
        "items": items,
        "lines_total": fmt_money(sum((to_decimal(r["line_total"]) for r in rows), Decimal(0))),
    }


def render_invoice_html(
    conn: sqlite3.Connection,
    invoice_id: str,
    template_path: Path | str | None = None,
) -> str:
    path = Path(template_path) if template_path else TEMPLATES_DIR / INVOICE_TEMPLATE
    template_content = path.read_text(encoding="utf-8")
    template = Template(template_content, autoescape=True)
    return template.render(**prepare_invoice_context(conn, invoice_id))
