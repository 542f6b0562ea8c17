from pathlib import Path
import sqlite3
import sys

SQL = r"""
PRAGMA foreign_keys = ON;

/* ======================== CORE TABLES ======================== */

/* -------- users -------- */
CREATE TABLE IF NOT EXISTS users (
    user_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    email       TEXT UNIQUE NOT NULL,
    name        TEXT NOT NULL,
    role        TEXT NOT NULL DEFAULT 'seller' CHECK (role IN ('admin','manager','seller')),
    preferences TEXT NOT NULL DEFAULT '{}',
    created_at  TIMESTAMP NOT NULL DEFAULT (datetime('now','localtime'))
);

/* -------- parties -------- */
CREATE TABLE IF NOT EXISTS customers (
    customer_id INTEGER PRIMARY KEY AUTOINCREMENT,
    full_name   TEXT NOT NULL,
    email       TEXT,
    phone       TEXT,
    cpf         TEXT,
    created_at  TIMESTAMP NOT NULL DEFAULT (datetime('now','localtime')),
    updated_at  TIMESTAMP NOT NULL DEFAULT (datetime('now','localtime'))
);
/* at most one customer per non-null email */
CREATE UNIQUE INDEX IF NOT EXISTS idx_customers_email
ON customers(email) WHERE email IS NOT NULL;

CREATE TABLE IF NOT EXISTS employees (
    employee_id INTEGER PRIMARY KEY AUTOINCREMENT,
    full_name   TEXT NOT NULL,
    whatsapp    TEXT NOT NULL,
    age         INTEGER NOT NULL CHECK (age > 0),
    role        TEXT NOT NULL DEFAULT 'seller' CHECK (role IN ('admin','manager','seller')),
    created_at  TIMESTAMP NOT NULL DEFAULT (datetime('now','localtime'))
);

/* -------- catalog -------- */
CREATE TABLE IF NOT EXISTS products (
    product_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name          TEXT NOT NULL,
    code          TEXT NOT NULL UNIQUE,
    memory        TEXT,
    color         TEXT,
    default_price NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(default_price AS REAL) >= 0),
    created_at    TIMESTAMP NOT NULL DEFAULT (datetime('now','localtime'))
);

/* -------- receipts -------- */
CREATE TABLE IF NOT EXISTS receipts (
    receipt_id        INTEGER PRIMARY KEY AUTOINCREMENT,
    customer_id       INTEGER NOT NULL,
    employee_id       INTEGER NOT NULL,
    created_by        INTEGER,
    total_amount      NUMERIC NOT NULL CHECK (CAST(total_amount AS REAL) >= 0),
    payment_method    TEXT NOT NULL,
    installments      INTEGER NOT NULL DEFAULT 1 CHECK (installments >= 1),
    installment_value NUMERIC NOT NULL DEFAULT 0,
    warranty_duration_months INTEGER CHECK (warranty_duration_months IS NULL OR warranty_duration_months >= 0),
    warranty_expires_at DATE,
    created_at        TIMESTAMP NOT NULL DEFAULT (datetime('now','localtime')),
    FOREIGN KEY (customer_id) REFERENCES customers(customer_id),
    FOREIGN KEY (employee_id) REFERENCES employees(employee_id),
    FOREIGN KEY (created_by)  REFERENCES users(user_id)
);
CREATE INDEX IF NOT EXISTS idx_receipts_created_at ON receipts(created_at);
CREATE INDEX IF NOT EXISTS idx_receipts_customer   ON receipts(customer_id);
CREATE INDEX IF NOT EXISTS idx_receipts_warranty   ON receipts(warranty_expires_at);

/* product_id carries no FK: products are hard-deleted and items keep the id */
CREATE TABLE IF NOT EXISTS receipt_items (
    item_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    receipt_id  INTEGER NOT NULL,
    product_id  INTEGER NOT NULL,
    quantity    INTEGER NOT NULL CHECK (quantity > 0),
    price       NUMERIC NOT NULL CHECK (CAST(price AS REAL) >= 0),
    imei        TEXT,
    condition   TEXT NOT NULL DEFAULT 'new' CHECK (condition IN ('new','used')),
    manual_cost NUMERIC CHECK (manual_cost IS NULL OR CAST(manual_cost AS REAL) >= 0),
    CHECK ((condition = 'used' AND manual_cost IS NOT NULL) OR
           (condition = 'new'  AND manual_cost IS NULL)),
    FOREIGN KEY (receipt_id) REFERENCES receipts(receipt_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_receipt_items_receipt ON receipt_items(receipt_id);
CREATE INDEX IF NOT EXISTS idx_receipt_items_product ON receipt_items(product_id);

/* single authoritative receipt number sequence */
CREATE TABLE IF NOT EXISTS receipt_number_sequence (
    id          INTEGER PRIMARY KEY CHECK (id = 1),
    last_number INTEGER NOT NULL DEFAULT 0 CHECK (last_number >= 0)
);
INSERT OR IGNORE INTO receipt_number_sequence(id, last_number) VALUES (1, 0);

/* keep customers.updated_at current on every edit */
DROP TRIGGER IF EXISTS trg_customers_touch;
CREATE TRIGGER trg_customers_touch
AFTER UPDATE OF full_name, email, phone, cpf ON customers
BEGIN
    UPDATE customers SET updated_at = datetime('now','localtime')
    WHERE customer_id = NEW.customer_id;
END;
"""


def init_schema(db_path: Path | str = "retail.db") -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        # Apply (idempotent) schema
        conn.executescript(SQL)
        conn.commit()


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else Path(__file__).resolve().parents[1] / "data" / "retail.db"
    init_schema(target)
    print(f"✓ DB applied to {target}")
