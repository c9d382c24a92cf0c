"""
Command line for the retail sales database.

    retail-sales --db data/retail_sales.db init-db
    retail-sales seed-demo
    retail-sales add-line INV001 101 5 100
    retail-sales delete-line 1
    retail-sales reconcile INV001      # or --all
    retail-sales customer-total 773773
    retail-sales show-invoice INV001 -o INV001.html
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import DB_PATH
from .database import get_connection
from .database.errors import DomainError, StorageError
from .database.repositories import InvoiceLedger, InvoicesRepo, ReportingRepo
from .database.seeders.demo_data import seed as seed_demo_data
from .documents import render_invoice_html
from .utils.helpers import fmt_money
from .utils.loggers import get_logger


def _cmd_init_db(conn, args) -> int:
    print(f"✓ DB ready at {args.db}")
    return 0


def _cmd_seed_demo(conn, args) -> int:
    seed_demo_data(conn)
    print("Demo data seeded.")
    return 0


def _cmd_add_line(conn, args) -> int:
    ledger = InvoiceLedger(conn)
    line_id = ledger.add_line_item(args.invoice_id, args.product_id, args.quantity, args.unit_price)
    inv = InvoicesRepo(conn).get(args.invoice_id)
    print(f"line {line_id} added; invoice {args.invoice_id} total = {fmt_money(inv.invoice_total)}")
    return 0


def _cmd_delete_line(conn, args) -> int:
    if InvoiceLedger(conn).delete_line_item(args.line_id):
        print(f"line {args.line_id} deleted")
    else:
        print(f"line {args.line_id} not found (nothing deleted)")
    return 0


def _cmd_reconcile(conn, args) -> int:
    ledger = InvoiceLedger(conn)
    if args.all:
        repaired = ledger.reconcile_all()
        print(f"{len(repaired)} invoice(s) repaired" + (f": {', '.join(repaired)}" if repaired else ""))
        return 0
    if not args.invoice_id:
        print("error: give an invoice id or --all", file=sys.stderr)
        return 2
    total = ledger.reconcile(args.invoice_id)
    print(f"invoice {args.invoice_id} total = {fmt_money(total)}")
    return 0


def _cmd_customer_total(conn, args) -> int:
    total = ReportingRepo(conn).total_value(args.customer_id)
    if total is None:
        print("total unavailable (see log)", file=sys.stderr)
        return 1
    print(fmt_money(total))
    return 0


def _cmd_show_invoice(conn, args) -> int:
    html = render_invoice_html(conn, args.invoice_id)
    if args.output:
        Path(args.output).write_text(html, encoding="utf-8")
        print(f"written {args.output}")
    else:
        print(html)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="retail-sales", description="Retail sales database tools")
    parser.add_argument("--db", default=str(DB_PATH), help="Path to SQLite database (default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="Create/upgrade the schema")
    p.set_defaults(func=_cmd_init_db)

    p = sub.add_parser("seed-demo", help="Insert the demo store, customers and invoice INV001")
    p.set_defaults(func=_cmd_seed_demo)

    p = sub.add_parser("add-line", help="Add a line item and refresh the invoice total")
    p.add_argument("invoice_id")
    p.add_argument("product_id", type=int)
    p.add_argument("quantity")
    p.add_argument("unit_price")
    p.set_defaults(func=_cmd_add_line)

    p = sub.add_parser("delete-line", help="Delete a line item (invoice total follows)")
    p.add_argument("line_id", type=int)
    p.set_defaults(func=_cmd_delete_line)

    p = sub.add_parser("reconcile", help="Recompute invoice totals from their line items")
    p.add_argument("invoice_id", nargs="?")
    p.add_argument("--all", action="store_true", help="Repair every drifted invoice")
    p.set_defaults(func=_cmd_reconcile)

    p = sub.add_parser("customer-total", help="Sum of a customer's invoice totals")
    p.add_argument("customer_id", type=int)
    p.set_defaults(func=_cmd_customer_total)

    p = sub.add_parser("show-invoice", help="Render an invoice as HTML")
    p.add_argument("invoice_id")
    p.add_argument("-o", "--output", help="Write to file instead of stdout")
    p.set_defaults(func=_cmd_show_invoice)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    log = get_logger("retail_sales")
    log.setLevel(logging.DEBUG if args.verbose else logging.INFO)

    conn = get_connection(args.db)
    try:
        return args.func(conn, args)
    except (DomainError, StorageError) as e:
        log.error("%s: %s", type(e).__name__, e)
        return 1
    finally:
        conn.close()


if __name__ == "__main__":
    sys.exit(main())
