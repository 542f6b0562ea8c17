# retail_manager/database/repositories/products_repo.py
from dataclasses import dataclass
from typing import Dict
import logging
import sqlite3
from contextlib import contextmanager

from ...utils.validators import is_non_negative_number
from .errors import DomainError

_log = logging.getLogger(__name__)

_COLUMNS = (
    "product_id, name, code, memory, color, "
    "CAST(default_price AS REAL) AS default_price, created_at"
)


@dataclass
class Product:
    product_id: int | None
    name: str
    code: str
    memory: str | None
    color: str | None
    default_price: float
    created_at: str | None = None

    @property
    def display_name(self) -> str:
        """Name plus the memory/color variant tags, e.g. 'iPhone 13 128GB Blue'."""
        parts = [self.name, self.memory, self.color]
        return " ".join(p for p in parts if p)


class ProductsRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        # Use Row for named access; we normalize to dataclasses on return.
        self.conn.row_factory = sqlite3.Row

    # ---------------------------- TX helper ----------------------------

    @contextmanager
    def _immediate_tx(self):
        """
        Start an IMMEDIATE transaction (write lock once first write happens),
        commit on success, rollback on error.
        """
        cur = self.conn.cursor()
        try:
            cur.execute("BEGIN IMMEDIATE")
            yield
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        finally:
            cur.close()

    # ---------------------------- Validation ----------------------------

    @staticmethod
    def _clean(s: str | None) -> str | None:
        if s is None:
            return None
        s = s.strip()
        return s or None

    def _validate(
        self,
        name: str,
        code: str,
        default_price: float,
        *,
        product_id: int | None = None,
    ) -> tuple[str, str, float]:
        name_n = self._clean(name)
        code_n = self._clean(code)
        if not name_n:
            raise DomainError("Product name cannot be empty.")
        if not code_n:
            raise DomainError("Product code cannot be empty.")
        if not is_non_negative_number(default_price):
            raise DomainError("Default price must be a number >= 0.")
        row = self.conn.execute(
            "SELECT product_id FROM products WHERE code = ?", (code_n,)
        ).fetchone()
        if row and row["product_id"] != product_id:
            raise DomainError("A product with this code already exists.")
        return name_n, code_n, float(default_price)

    # ---------------------------- Products ----------------------------

    def list_products(self) -> list[Product]:
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM products ORDER BY name COLLATE NOCASE, product_id"
        ).fetchall()
        return [Product(**r) for r in rows]

    def search(self, term: str) -> list[Product]:
        pattern = f"%{term.strip().lower()}%"
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM products "
            "WHERE lower(name) LIKE ? OR lower(code) LIKE ? "
            "ORDER BY name COLLATE NOCASE, product_id",
            (pattern, pattern),
        ).fetchall()
        return [Product(**r) for r in rows]

    def get(self, product_id: int) -> Product | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM products WHERE product_id=?",
            (product_id,),
        ).fetchone()
        return Product(**r) if r else None

    def sold_between(self, start_ts: str, end_ts: str) -> Dict[int, Product]:
        """
        Products keyed by id that appear on receipts with
        start_ts <= created_at < end_ts. Hard-deleted products are absent.
        """
        rows = self.conn.execute(
            f"""
            SELECT {_COLUMNS} FROM products
            WHERE product_id IN (
                SELECT ri.product_id
                FROM receipt_items ri
                JOIN receipts r ON r.receipt_id = ri.receipt_id
                WHERE r.created_at >= ? AND r.created_at < ?
            )
            """,
            (start_ts, end_ts),
        ).fetchall()
        return {int(r["product_id"]): Product(**r) for r in rows}

    def create(
        self,
        name: str,
        code: str,
        default_price: float,
        memory: str | None = None,
        color: str | None = None,
    ) -> int:
        name_n, code_n, price = self._validate(name, code, default_price)
        with self._immediate_tx():
            cur = self.conn.execute(
                "INSERT INTO products(name, code, memory, color, default_price) "
                "VALUES (?, ?, ?, ?, ?)",
                (name_n, code_n, self._clean(memory), self._clean(color), price),
            )
            return int(cur.lastrowid)

    def update(
        self,
        product_id: int,
        name: str,
        code: str,
        default_price: float,
        memory: str | None = None,
        color: str | None = None,
    ) -> None:
        if self.get(product_id) is None:
            raise DomainError(f"Product {product_id} not found.")
        name_n, code_n, price = self._validate(name, code, default_price, product_id=product_id)
        with self._immediate_tx():
            self.conn.execute(
                "UPDATE products "
                "SET name=?, code=?, memory=?, color=?, default_price=? "
                "WHERE product_id=?",
                (name_n, code_n, self._clean(memory), self._clean(color), price, product_id),
            )

    def delete(self, product_id: int) -> None:
        """
        Hard delete. Receipt items keep the product id; reports and printed
        receipts show them as a removed product.
        """
        with self._immediate_tx():
            self.conn.execute("DELETE FROM products WHERE product_id=?", (product_id,))
        _log.info("product %s deleted", product_id)

    def is_sold(self, product_id: int) -> bool:
        return self.conn.execute(
            "SELECT 1 FROM receipt_items WHERE product_id=? LIMIT 1", (product_id,)
        ).fetchone() is not None
