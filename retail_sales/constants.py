APP_NAME = "Retail Sales"

DATA_DIR = "data"
DB_FILE_NAME = "retail_sales.db"
DB_ENV_VAR = "RETAIL_SALES_DB"

SCHEMA_VERSION = "1.0.0"
TABLE_SCHEMA_VERSION = "schema_version"

# Busy-timeout handed to sqlite3.connect (seconds)
DB_TIMEOUT = 5.0

# Retries for whole units of work that hit SQLITE_BUSY / "database is locked"
TX_MAX_ATTEMPTS = 5
TX_BACKOFF_BASE = 0.05

MONEY_PLACES = 2

INVOICE_TEMPLATE = "invoice.html"
