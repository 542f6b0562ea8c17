# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - Every test gets its own temp-file SQLite DB built by init_schema
#   (a real file, so WAL, triggers and cascades behave like production)
# - conn.row_factory = sqlite3.Row, PRAGMA foreign_keys=ON
# - `seed` builds customers/employees/products/receipts with sane defaults
# ---------------------------------------------------------------------

from __future__ import annotations

import os
import sqlite3
import tempfile

import pytest

from retail_manager.database.schema import init_schema
from retail_manager.database.repositories import (
    CustomersRepo,
    EmployeesRepo,
    ProductsRepo,
    ReceiptHeader,
    ReceiptItem,
    ReceiptsRepo,
)


@pytest.fixture()
def conn():
    tmp = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    tmp.close()
    c = None
    try:
        init_schema(tmp.name)
        c = sqlite3.connect(tmp.name)
        c.row_factory = sqlite3.Row
        c.execute("PRAGMA foreign_keys=ON;")
        yield c
    finally:
        if c is not None:
            c.close()
        for suffix in ("", "-wal", "-shm"):
            try:
                os.unlink(tmp.name + suffix)
            except FileNotFoundError:
                pass


class Seed:
    """Small factory for rows the tests need over and over."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._n = 0

    def _next(self) -> int:
        self._n += 1
        return self._n

    def customer(self, full_name: str | None = None, **kw) -> int:
        return CustomersRepo(self.conn).create(full_name or f"Customer {self._next()}", **kw)

    def employee(self, full_name: str = "Ana Seller", role: str = "seller") -> int:
        return EmployeesRepo(self.conn).create(full_name, "(11) 90000-0000", 30, role)

    def product(self, name: str | None = None, default_price: float = 100.0, **kw) -> int:
        n = self._next()
        return ProductsRepo(self.conn).create(name or f"Product {n}", f"P-{n:04d}", default_price, **kw)

    def receipt(
        self,
        items: list[ReceiptItem],
        *,
        customer_id: int | None = None,
        employee_id: int | None = None,
        payment_method: str = "Cash",
        installments: int = 1,
        warranty_duration_months: int | None = None,
        created_at: str | None = None,
    ) -> int:
        total = round(sum(it.price * it.quantity for it in items), 2)
        header = ReceiptHeader(
            receipt_id=None,
            customer_id=customer_id or self.customer(),
            employee_id=employee_id or self.employee(),
            total_amount=total,
            payment_method=payment_method,
            installments=installments,
            warranty_duration_months=warranty_duration_months,
            created_at=created_at,
        )
        return ReceiptsRepo(self.conn).create_receipt(header, items)


def item(product_id: int, quantity: int = 1, price: float = 100.0, **kw) -> ReceiptItem:
    return ReceiptItem(item_id=None, receipt_id=None, product_id=product_id, quantity=quantity, price=price, **kw)


@pytest.fixture()
def seed(conn):
    return Seed(conn)


@pytest.fixture()
def make_item():
    return item

