import logging
import sqlite3

import pytest

from retail_manager.constants import SCHEMA_VERSION
from retail_manager.database import get_connection, stored_schema_version


def test_get_connection_applies_schema_and_version(tmp_path):
    conn = get_connection(tmp_path / "nested" / "retail.db")
    try:
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert {"customers", "products", "employees", "users", "receipts", "receipt_items",
                "receipt_number_sequence"} <= tables
        assert stored_schema_version(conn) == SCHEMA_VERSION
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    finally:
        conn.close()


def test_schema_is_idempotent(tmp_path):
    path = tmp_path / "retail.db"
    get_connection(path).close()
    conn = get_connection(path)
    try:
        row = conn.execute("SELECT last_number FROM receipt_number_sequence WHERE id=1").fetchone()
        assert row[0] == 0
    finally:
        conn.close()


def test_older_schema_stamp_is_moved_forward(tmp_path, caplog):
    path = tmp_path / "retail.db"
    conn = get_connection(path)
    conn.execute("UPDATE schema_version SET version='0.9.0' WHERE id=1")
    conn.commit()
    conn.close()

    with caplog.at_level(logging.INFO):
        conn = get_connection(path)
    try:
        assert stored_schema_version(conn) == SCHEMA_VERSION
        assert "upgraded from 0.9.0" in caplog.text
    finally:
        conn.close()


def test_item_condition_rules_enforced_by_schema(conn, seed, make_item):
    rid = seed.receipt([make_item(seed.product())])
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            "INSERT INTO receipt_items(receipt_id, product_id, quantity, price, condition) "
            "VALUES (?, 1, 1, 10, 'used')",
            (rid,),
        )
