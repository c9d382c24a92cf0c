"""
Invoice ledger: the insertion workflow, the deletion hook and the
invoice_total == SUM(line_total) invariant, including atomicity when a step
fails and retries on write contention.
"""
from __future__ import annotations

from decimal import Decimal
import random
import sqlite3
import threading

import pytest

from retail_sales.database import configure_connection, get_connection
from retail_sales.database.errors import (
    ReferentialIntegrityError,
    StorageError,
    TransientConflictError,
)
from retail_sales.database.repositories import InvoiceLedger, InvoicesRepo
from retail_sales.utils.helpers import to_decimal


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _total(conn, invoice_id) -> Decimal:
    return InvoicesRepo(conn).get(invoice_id).invoice_total


def _line_sum(conn, invoice_id) -> Decimal:
    row = conn.execute(
        "SELECT DECIMAL_SUM(line_total) FROM transaction_line_items WHERE invoice_id=?",
        (invoice_id,),
    ).fetchone()
    return to_decimal(row[0])


def _line_count(conn, invoice_id) -> int:
    return conn.execute(
        "SELECT COUNT(*) FROM transaction_line_items WHERE invoice_id=?", (invoice_id,)
    ).fetchone()[0]


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def test_insert_scenario_running_total(conn, ledger, ids):
    inv = ids["invoice"]
    assert _total(conn, inv) == 0

    first = ledger.add_line_item(inv, 101, 5, 100)
    assert ledger.items.get(first).line_total == Decimal("500")
    assert _total(conn, inv) == Decimal("500")

    second = ledger.add_line_item(inv, 102, 2, 200)
    assert ledger.items.get(second).line_total == Decimal("400")
    assert _total(conn, inv) == Decimal("900")


def test_delete_scenario_recomputes_total(conn, ledger, ids):
    inv = ids["invoice"]
    first = ledger.add_line_item(inv, 101, 5, 100)
    ledger.add_line_item(inv, 102, 2, 200)

    assert ledger.delete_line_item(first) is True
    assert _total(conn, inv) == Decimal("400")


def test_deleting_last_line_reconciles_to_zero_not_null(conn, ledger, ids):
    inv = ids["invoice"]
    line = ledger.add_line_item(inv, 101, 1, 50)
    ledger.delete_line_item(line)

    raw = conn.execute(
        "SELECT invoice_total FROM transactions WHERE invoice_id=?", (inv,)
    ).fetchone()[0]
    assert raw is not None
    assert _total(conn, inv) == 0


def test_delete_missing_line_is_noop(conn, ledger, ids):
    ledger.add_line_item(ids["invoice"], 101, 1, 10)
    assert ledger.delete_line_item(999) is False
    assert _total(conn, ids["invoice"]) == Decimal("10")


def test_direct_store_mutations_also_reconcile(conn, ledger, ids):
    """ledger.items shares the ledger's reconciler."""
    inv = ids["invoice"]
    line = ledger.items.insert(inv, 101, 3, 10)
    assert _total(conn, inv) == Decimal("30")
    ledger.items.delete(line)
    assert _total(conn, inv) == 0


def test_invoices_are_reconciled_independently(conn, ledger, invoices, ids):
    invoices.create("INV002", customer_id=ids["customer"])
    ledger.add_line_item(ids["invoice"], 101, 1, 100)
    line = ledger.add_line_item("INV002", 102, 2, 25)

    ledger.delete_line_item(line)
    assert _total(conn, ids["invoice"]) == Decimal("100")
    assert _total(conn, "INV002") == 0


def test_invariant_holds_after_every_mutation(conn, ledger, invoices, ids):
    rng = random.Random(1234)
    invoice_ids = [ids["invoice"], "INV-B", "INV-C"]
    for iid in invoice_ids[1:]:
        invoices.create(iid)

    live: list[int] = []
    for _ in range(60):
        if live and rng.random() < 0.35:
            line = live.pop(rng.randrange(len(live)))
            ledger.delete_line_item(line)
        else:
            iid = rng.choice(invoice_ids)
            qty = rng.randint(1, 9)
            price = Decimal(rng.randint(0, 50000)) / 100
            live.append(ledger.add_line_item(iid, rng.choice([101, 102, 103]), qty, price))

        for iid in invoice_ids:
            assert _total(conn, iid) == _line_sum(conn, iid)


def test_sub_cent_amounts_are_kept_exact(conn, ledger, ids):
    inv = ids["invoice"]
    line = ledger.add_line_item(inv, 101, 3, Decimal("0.335"))

    item = ledger.items.get(line)
    assert item.unit_price == Decimal("0.335")
    assert item.line_total == Decimal("1.005")
    assert _total(conn, inv) == Decimal("1.005")
    assert _total(conn, inv) == _line_sum(conn, inv)


def test_total_has_no_float_noise(conn, ledger, ids):
    inv = ids["invoice"]
    ledger.add_line_item(inv, 101, 1, Decimal("0.1"))
    ledger.add_line_item(inv, 102, 1, Decimal("0.2"))
    assert _total(conn, inv) == Decimal("0.3")


# ---------------------------------------------------------------------------
# Reconcile
# ---------------------------------------------------------------------------


def test_reconcile_is_idempotent(conn, ledger, ids):
    inv = ids["invoice"]
    ledger.add_line_item(inv, 101, 5, 100)

    a = ledger.reconcile(inv)
    b = ledger.reconcile(inv)
    assert a == b == Decimal("500")
    assert _total(conn, inv) == Decimal("500")


def test_reconcile_unknown_invoice_is_silent(ledger):
    assert ledger.reconcile("GHOST") == 0


def test_reconcile_repairs_drift(conn, ledger, ids):
    inv = ids["invoice"]
    ledger.add_line_item(inv, 101, 5, 100)
    conn.execute("UPDATE transactions SET invoice_total = 12345 WHERE invoice_id=?", (inv,))
    conn.commit()

    assert not ledger.reconciler.verify(inv)
    drift = ledger.reconciler.find_drift()
    assert [(d.invoice_id, d.stored_total, d.computed_total) for d in drift] == [
        (inv, Decimal("12345"), Decimal("500"))
    ]

    assert ledger.reconcile_all() == [inv]
    assert ledger.reconciler.verify(inv)
    assert ledger.reconciler.find_drift() == []
    assert ledger.reconcile_all() == []


# ---------------------------------------------------------------------------
# Atomicity
# ---------------------------------------------------------------------------


def test_failed_reconciliation_rolls_back_insert(conn, ledger, ids, monkeypatch):
    inv = ids["invoice"]
    ledger.add_line_item(inv, 101, 5, 100)

    def boom(invoice_id):
        raise RuntimeError("reconcile failed")

    monkeypatch.setattr(ledger.reconciler, "reconcile", boom)
    with pytest.raises(RuntimeError, match="reconcile failed"):
        ledger.add_line_item(inv, 102, 2, 200)

    assert _line_count(conn, inv) == 1
    assert _total(conn, inv) == Decimal("500")


def test_storage_failure_is_translated_and_rolled_back(conn, ledger, ids, monkeypatch):
    inv = ids["invoice"]

    def broken(invoice_id):
        conn.execute("UPDATE no_such_table SET x = 1")

    monkeypatch.setattr(ledger.reconciler, "reconcile", broken)
    with pytest.raises(StorageError) as excinfo:
        ledger.add_line_item(inv, 101, 1, 10)

    assert isinstance(excinfo.value.__cause__, sqlite3.OperationalError)
    assert _line_count(conn, inv) == 0
    assert _total(conn, inv) == 0


def test_failed_reconciliation_rolls_back_delete(conn, ledger, ids, monkeypatch):
    inv = ids["invoice"]
    line = ledger.add_line_item(inv, 101, 5, 100)

    def boom(invoice_id):
        raise RuntimeError("reconcile failed")

    monkeypatch.setattr(ledger.reconciler, "reconcile", boom)
    with pytest.raises(RuntimeError):
        ledger.delete_line_item(line)

    assert ledger.items.get(line) is not None
    assert _total(conn, inv) == Decimal("500")


def test_unknown_invoice_leaves_nothing_behind(conn, ledger):
    with pytest.raises(ReferentialIntegrityError):
        ledger.add_line_item("INV404", 101, 1, 10)
    assert conn.execute("SELECT COUNT(*) FROM transaction_line_items").fetchone()[0] == 0


def test_inside_caller_transaction_uses_savepoint(conn, ledger, ids):
    inv = ids["invoice"]
    conn.execute("BEGIN")
    ledger.add_line_item(inv, 101, 5, 100)
    assert _total(conn, inv) == Decimal("500")
    conn.rollback()

    assert _line_count(conn, inv) == 0
    assert _total(conn, inv) == 0


def test_failure_inside_caller_transaction_only_undoes_the_unit(conn, ledger, ids, monkeypatch):
    inv = ids["invoice"]
    conn.execute("BEGIN")
    ledger.add_line_item(inv, 101, 1, 10)

    def boom(invoice_id):
        raise RuntimeError("nope")

    monkeypatch.setattr(ledger.reconciler, "reconcile", boom)
    with pytest.raises(RuntimeError):
        ledger.add_line_item(inv, 102, 1, 20)
    monkeypatch.undo()

    assert conn.in_transaction
    assert _line_count(conn, inv) == 1
    conn.commit()
    assert _total(conn, inv) == Decimal("10")


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


def test_concurrent_inserts_on_same_invoice_lose_nothing(db_file, ids):
    inv = ids["invoice"]
    workers, per_worker = 4, 10
    barrier = threading.Barrier(workers)
    errors: list[BaseException] = []

    def worker(n: int):
        con = get_connection(db_file)
        try:
            ledger = InvoiceLedger(con)
            barrier.wait()
            for i in range(per_worker):
                ledger.add_line_item(inv, 101 + (i % 3), n + 1, 10)
        except BaseException as e:  # surfaced by the assert below
            errors.append(e)
        finally:
            con.close()

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    con = get_connection(db_file)
    try:
        expected = sum((n + 1) * 10 * per_worker for n in range(workers))
        assert _line_count(con, inv) == workers * per_worker
        assert _total(con, inv) == Decimal(expected)
    finally:
        con.close()


def test_locked_database_raises_transient_conflict_after_retries(db_file, ids):
    blocker = sqlite3.connect(db_file, timeout=0)
    writer = configure_connection(sqlite3.connect(db_file, timeout=0))
    try:
        blocker.execute("BEGIN IMMEDIATE")
        ledger = InvoiceLedger(writer, attempts=2, backoff=0)
        with pytest.raises(TransientConflictError):
            ledger.add_line_item(ids["invoice"], 101, 1, 10)

        blocker.rollback()
        ledger.add_line_item(ids["invoice"], 101, 1, 10)
        assert _total(writer, ids["invoice"]) == Decimal("10")
    finally:
        blocker.close()
        writer.close()
