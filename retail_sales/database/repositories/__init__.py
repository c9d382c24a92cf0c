# retail_sales/database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from retail_sales.database.repositories import (
        # Invoices
        InvoicesRepo, Invoice,
        # Line items + maintenance hooks
        LineItemsRepo, LineItem, LineItemHooks,
        # Reconciliation
        InvoiceTotalReconciler, TotalDrift, InvoiceLedger,
        # Reporting
        ReportingRepo,
    )
"""

# ---------------- Invoices -----------------
from .invoices_repo import InvoicesRepo, Invoice

# --------------- Line items ----------------
from .line_items_repo import LineItemsRepo, LineItem, LineItemHook, LineItemHooks

# ------------- Reconciliation --------------
from .invoice_totals import InvoiceTotalReconciler, TotalDrift
from .ledger import InvoiceLedger

# ---------------- Reporting ----------------
from .reporting_repo import ReportingRepo

__all__ = [
    # invoices_repo
    "InvoicesRepo",
    "Invoice",
    # line_items_repo
    "LineItemsRepo",
    "LineItem",
    "LineItemHook",
    "LineItemHooks",
    # invoice_totals / ledger
    "InvoiceTotalReconciler",
    "TotalDrift",
    "InvoiceLedger",
    # reporting_repo
    "ReportingRepo",
]
