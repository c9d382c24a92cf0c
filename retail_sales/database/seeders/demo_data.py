"""
Small idempotent demo dataset: two stores, two employees, two customers,
the discount row for each product category, a handful of products and an
empty invoice INV001 (total 0).

    python -m retail_sales.database.seeders.demo_data --db data/retail_sales.db
"""
import sqlite3

DEMO_INVOICE_ID = "INV001"
DEMO_CUSTOMER_ID = 773773

_STORES = [
    (1, "Canada", "Toronto"),
    (2, "Canada", "Montreal"),
]

_EMPLOYEES = [
    (1, 1, "Alex Martin", "Cashier"),
    (2, 2, "Sam Okafor", "Store Manager"),
]

_CUSTOMERS = [
    (DEMO_CUSTOMER_ID, "Jordan Lee", "jordan.lee@example.com", "Toronto", "Canada"),
    (123, "Riley Chen", "riley.chen@example.com", "Montreal", "Canada"),
]

_DISCOUNTS = [
    ("Apparel", "Tops", "2025-01-01", "2025-12-31", "0.10"),
    ("Apparel", "Outerwear", "2025-01-01", "2025-12-31", "0.15"),
    ("Footwear", "Casual", None, None, "0"),
]

_PRODUCTS = [
    (101, "Cotton T-Shirt", "Apparel", "Tops", "White", "M"),
    (102, "Denim Jacket", "Apparel", "Outerwear", "Blue", "L"),
    (103, "Canvas Sneakers", "Footwear", "Casual", "Black", "42"),
]


def seed(conn: sqlite3.Connection) -> None:
    conn.executemany(
        "INSERT OR IGNORE INTO stores(store_id, country, city) VALUES (?,?,?)",
        _STORES,
    )
    conn.executemany(
        "INSERT OR IGNORE INTO employees(employee_id, store_id, employee_name, employee_position) "
        "VALUES (?,?,?,?)",
        _EMPLOYEES,
    )
    conn.executemany(
        "INSERT OR IGNORE INTO customers(customer_id, customer_name, email, city, country) "
        "VALUES (?,?,?,?,?)",
        _CUSTOMERS,
    )
    conn.executemany(
        "INSERT OR IGNORE INTO discounts(product_category, sub_category, start_date, end_date, "
        "discount) VALUES (?,?,?,?,?)",
        _DISCOUNTS,
    )
    conn.executemany(
        "INSERT OR IGNORE INTO products(product_id, product_description, category, sub_category, "
        "color, product_size) VALUES (?,?,?,?,?,?)",
        _PRODUCTS,
    )
    conn.execute(
        "INSERT OR IGNORE INTO transactions(invoice_id, employee_id, customer_id, "
        "transaction_date, invoice_total) VALUES (?,?,?,?,0)",
        (DEMO_INVOICE_ID, 1, DEMO_CUSTOMER_ID, "2025-01-15"),
    )
    conn.commit()


def main():
    import argparse

    from .. import get_connection

    parser = argparse.ArgumentParser(description="Seed the demo store/customer/invoice rows")
    parser.add_argument("--db", default=None, help="Path to SQLite database")
    args = parser.parse_args()

    conn = get_connection(args.db)
    try:
        seed(conn)
    finally:
        conn.close()
    print("Demo data seeded.")


if __name__ == "__main__":
    main()
