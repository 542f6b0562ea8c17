from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, timedelta
import logging
import sqlite3
from typing import Iterable, Optional

from ...constants import CONDITION_NEW, CONDITION_USED, ITEM_CONDITIONS, PAYMENT_METHODS
from ...modules.receipts.calculations import receipt_totals
from ...utils.helpers import add_months, now_str, to_date, to_timestamp
from ...utils.validators import is_valid_imei
from .errors import DomainError

_log = logging.getLogger(__name__)

# Totals are stored to the cent; anything closer than this is the same amount.
_MONEY_TOLERANCE = 0.005


@dataclass
class ReceiptHeader:
    receipt_id: int | None
    customer_id: int
    employee_id: int
    total_amount: float
    payment_method: str
    installments: int = 1
    installment_value: float = 0.0
    warranty_duration_months: int | None = None
    warranty_expires_at: str | None = None
    created_by: int | None = None
    created_at: str | None = None


@dataclass
class ReceiptItem:
    item_id: int | None
    receipt_id: int | None
    product_id: int
    quantity: int
    price: float
    imei: str | None = None
    condition: str = CONDITION_NEW
    manual_cost: float | None = None
    # filled by reads; None when the product has been deleted
    product_name: str | None = None
    product_code: str | None = None


@dataclass
class Receipt:
    header: ReceiptHeader
    items: list[ReceiptItem] = field(default_factory=list)


_HEADER_COLUMNS = """
    r.receipt_id, r.customer_id, r.employee_id,
    CAST(r.total_amount AS REAL)      AS total_amount,
    r.payment_method, r.installments,
    CAST(r.installment_value AS REAL) AS installment_value,
    r.warranty_duration_months, r.warranty_expires_at,
    r.created_by, r.created_at
"""

_ITEM_COLUMNS = """
    ri.item_id, ri.receipt_id, ri.product_id, ri.quantity,
    CAST(ri.price AS REAL)       AS price,
    ri.imei, ri.condition,
    CAST(ri.manual_cost AS REAL) AS manual_cost,
    p.name AS product_name, p.code AS product_code
"""


def _warranty_expiry(created_at: str, months: int | None) -> str | None:
    if not months or int(months) <= 0:
        return None
    return add_months(created_at, int(months)).isoformat()


class ReceiptsRepo:
    """
    Receipts and their line items.

      - A receipt and its items are written in one transaction, after validation.
      - total_amount always equals the sum of price * quantity of its items.
      - Deleting a receipt removes its items (ON DELETE CASCADE).
    """

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    # ---------------------------------------------------------------------
    # Row mapping
    # ---------------------------------------------------------------------
    @staticmethod
    def _header(r: sqlite3.Row) -> ReceiptHeader:
        return ReceiptHeader(**{k: r[k] for k in ReceiptHeader.__dataclass_fields__})

    @staticmethod
    def _item(r: sqlite3.Row) -> ReceiptItem:
        return ReceiptItem(**{k: r[k] for k in ReceiptItem.__dataclass_fields__})

    # ---------------------------------------------------------------------
    # Validation
    # ---------------------------------------------------------------------
    def _validate_header(self, header: ReceiptHeader) -> None:
        if self.conn.execute(
            "SELECT 1 FROM customers WHERE customer_id=?", (header.customer_id,)
        ).fetchone() is None:
            raise DomainError("Select a valid customer.")
        if self.conn.execute(
            "SELECT 1 FROM employees WHERE employee_id=?", (header.employee_id,)
        ).fetchone() is None:
            raise DomainError("Select a valid employee.")
        if header.payment_method not in PAYMENT_METHODS:
            raise DomainError(f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}.")
        if not isinstance(header.installments, int) or header.installments < 1:
            raise DomainError("Installments must be a whole number >= 1.")
        months = header.warranty_duration_months
        if months is not None and (not isinstance(months, int) or months < 0):
            raise DomainError("Warranty duration must be a whole number of months >= 0.")

    @staticmethod
    def _validate_item(it: ReceiptItem) -> None:
        if not isinstance(it.quantity, int) or it.quantity <= 0:
            raise DomainError("Quantity must be a whole number greater than zero.")
        try:
            if float(it.price) < 0:
                raise DomainError("Price cannot be negative.")
        except (TypeError, ValueError):
            raise DomainError("Price must be a number.") from None
        if it.condition not in ITEM_CONDITIONS:
            raise DomainError(f"Condition must be one of: {', '.join(ITEM_CONDITIONS)}.")
        if it.condition == CONDITION_USED:
            if it.manual_cost is None:
                raise DomainError("Used items require a manual cost.")
            if float(it.manual_cost) < 0:
                raise DomainError("Manual cost cannot be negative.")
        elif it.manual_cost is not None:
            raise DomainError("Only used items may carry a manual cost.")
        if it.imei and not is_valid_imei(it.imei):
            raise DomainError("IMEI must be in the format NNNNNN-NN-NNNNNN-N.")

    def _validate(self, header: ReceiptHeader, items: list[ReceiptItem]) -> None:
        self._validate_header(header)
        if not items:
            raise DomainError("A receipt needs at least one item.")
        for it in items:
            self._validate_item(it)
        expected, _ = receipt_totals(items, header.installments)
        if abs(float(header.total_amount) - expected) > _MONEY_TOLERANCE:
            raise DomainError(
                f"Receipt total {float(header.total_amount):.2f} does not match "
                f"the sum of its items ({expected:.2f})."
            )

    # ---------------------------------------------------------------------
    # READ
    # ---------------------------------------------------------------------
    def list_receipts(self) -> list[dict]:
        """Newest first, with customer and employee names."""
        sql = f"""
        SELECT {_HEADER_COLUMNS},
               c.full_name AS customer_name,
               e.full_name AS employee_name
        FROM receipts r
        JOIN customers c ON c.customer_id = r.customer_id
        JOIN employees e ON e.employee_id = r.employee_id
        ORDER BY r.created_at DESC, r.receipt_id DESC
        """
        return self.conn.execute(sql).fetchall()

    def search(self, query: str = "") -> list[dict]:
        """Match on customer name, employee name or payment method."""
        pattern = f"%{query.strip().lower()}%"
        sql = f"""
        SELECT {_HEADER_COLUMNS},
               c.full_name AS customer_name,
               e.full_name AS employee_name
        FROM receipts r
        JOIN customers c ON c.customer_id = r.customer_id
        JOIN employees e ON e.employee_id = r.employee_id
        WHERE lower(c.full_name) LIKE ?
           OR lower(e.full_name) LIKE ?
           OR lower(r.payment_method) LIKE ?
        ORDER BY r.created_at DESC, r.receipt_id DESC
        """
        return self.conn.execute(sql, (pattern, pattern, pattern)).fetchall()

    def get_header(self, receipt_id: int) -> ReceiptHeader | None:
        r = self.conn.execute(
            f"SELECT {_HEADER_COLUMNS} FROM receipts r WHERE r.receipt_id=?", (receipt_id,)
        ).fetchone()
        return self._header(r) if r else None

    def list_items(self, receipt_id: int) -> list[ReceiptItem]:
        # LEFT JOIN: items of deleted products keep their row
        sql = f"""
        SELECT {_ITEM_COLUMNS}
        FROM receipt_items ri
        LEFT JOIN products p ON p.product_id = ri.product_id
        WHERE ri.receipt_id = ?
        ORDER BY ri.item_id
        """
        return [self._item(r) for r in self.conn.execute(sql, (receipt_id,)).fetchall()]

    def get_with_items(self, receipt_id: int) -> Receipt | None:
        header = self.get_header(receipt_id)
        if header is None:
            return None
        return Receipt(header=header, items=self.list_items(receipt_id))

    def count_for_customer(self, customer_id: int) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM receipts WHERE customer_id=?", (customer_id,)
        ).fetchone()
        return int(row[0])

    def list_in_range(self, start_ts: str, end_ts: str) -> list[Receipt]:
        """
        Receipts with start_ts <= created_at < end_ts, each with its items.
        Timestamps use the stored 'YYYY-MM-DD HH:MM:SS' form.
        """
        headers = [
            self._header(r)
            for r in self.conn.execute(
                f"""
                SELECT {_HEADER_COLUMNS} FROM receipts r
                WHERE r.created_at >= ? AND r.created_at < ?
                ORDER BY r.created_at, r.receipt_id
                """,
                (start_ts, end_ts),
            ).fetchall()
        ]
        if not headers:
            return []
        by_id = {h.receipt_id: Receipt(header=h) for h in headers}
        rows = self.conn.execute(
            f"""
            SELECT {_ITEM_COLUMNS}
            FROM receipt_items ri
            JOIN receipts r ON r.receipt_id = ri.receipt_id
            LEFT JOIN products p ON p.product_id = ri.product_id
            WHERE r.created_at >= ? AND r.created_at < ?
            ORDER BY ri.receipt_id, ri.item_id
            """,
            (start_ts, end_ts),
        ).fetchall()
        for r in rows:
            receipt = by_id.get(r["receipt_id"])
            if receipt is not None:  # written after the header query
                receipt.items.append(self._item(r))
        return list(by_id.values())

    def list_expiring_warranties(self, today: date, days: int) -> list[dict]:
        """Receipts whose warranty ends within [today, today + days], soonest first."""
        lo = to_date(today)
        hi = lo + timedelta(days=int(days))
        sql = """
        SELECT r.receipt_id, r.warranty_expires_at,
               c.full_name AS customer_name, c.phone AS customer_phone
        FROM receipts r
        JOIN customers c ON c.customer_id = r.customer_id
        WHERE r.warranty_expires_at IS NOT NULL
          AND DATE(r.warranty_expires_at) BETWEEN DATE(?) AND DATE(?)
        ORDER BY DATE(r.warranty_expires_at), r.receipt_id
        """
        return self.conn.execute(sql, (lo.isoformat(), hi.isoformat())).fetchall()

    # ---------------------------------------------------------------------
    # WRITE
    # ---------------------------------------------------------------------
    def _insert_item(self, it: ReceiptItem) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO receipt_items (
                receipt_id, product_id, quantity, price, imei, condition, manual_cost
            ) VALUES (?,?,?,?,?,?,?)
            """,
            (
                it.receipt_id,
                it.product_id,
                it.quantity,
                float(it.price),
                (it.imei or "").strip() or None,
                it.condition,
                None if it.manual_cost is None else float(it.manual_cost),
            ),
        )
        return int(cur.lastrowid)

    def create_receipt(self, header: ReceiptHeader, items: Iterable[ReceiptItem]) -> int:
        """
        Validate, then insert the header and every item in one transaction.
        Installment value and warranty expiry are derived here.
        """
        items = list(items)
        self._validate(header, items)

        if header.created_at:
            # report windows compare created_at as text
            try:
                header.created_at = to_timestamp(header.created_at)
            except ValueError as e:
                raise DomainError(f"Sale date {header.created_at!r} is not a valid date or timestamp.") from e
        else:
            header.created_at = now_str()
        header.total_amount, header.installment_value = receipt_totals(items, header.installments)
        header.warranty_expires_at = _warranty_expiry(header.created_at, header.warranty_duration_months)

        with self.conn:
            cur = self.conn.execute(
                """
                INSERT INTO receipts (
                    customer_id, employee_id, created_by, total_amount, payment_method,
                    installments, installment_value, warranty_duration_months,
                    warranty_expires_at, created_at
                ) VALUES (?,?,?,?,?,?,?,?,?,?)
                """,
                (
                    header.customer_id,
                    header.employee_id,
                    header.created_by,
                    header.total_amount,
                    header.payment_method,
                    header.installments,
                    header.installment_value,
                    header.warranty_duration_months,
                    header.warranty_expires_at,
                    header.created_at,
                ),
            )
            header.receipt_id = int(cur.lastrowid)
            for it in items:
                it.receipt_id = header.receipt_id
                it.item_id = self._insert_item(it)

        _log.info(
            "receipt %s created: %d item(s), total %.2f",
            header.receipt_id, len(items), header.total_amount,
        )
        return header.receipt_id

    def update_header(
        self,
        receipt_id: int,
        *,
        employee_id: Optional[int] = None,
        payment_method: Optional[str] = None,
        installments: Optional[int] = None,
        warranty_duration_months: Optional[int] = None,
        clear_warranty: bool = False,
    ) -> ReceiptHeader:
        """
        Edit the terms of an existing receipt. Items and total are untouched;
        installment value and warranty expiry are recomputed.
        """
        header = self.get_header(receipt_id)
        if header is None:
            raise DomainError(f"Receipt {receipt_id} not found.")
        if employee_id is not None:
            header.employee_id = employee_id
        if payment_method is not None:
            header.payment_method = payment_method
        if installments is not None:
            header.installments = installments
        if clear_warranty:
            header.warranty_duration_months = None
        elif warranty_duration_months is not None:
            header.warranty_duration_months = warranty_duration_months
        self._validate_header(header)

        header.installment_value = round(float(header.total_amount) / header.installments, 2)
        header.warranty_expires_at = _warranty_expiry(header.created_at, header.warranty_duration_months)

        with self.conn:
            self.conn.execute(
                """
                UPDATE receipts
                   SET employee_id=?, payment_method=?, installments=?,
                       installment_value=?, warranty_duration_months=?,
                       warranty_expires_at=?
                 WHERE receipt_id=?
                """,
                (
                    header.employee_id,
                    header.payment_method,
                    header.installments,
                    header.installment_value,
                    header.warranty_duration_months,
                    header.warranty_expires_at,
                    receipt_id,
                ),
            )
        return header

    def update_item_price(self, item_id: int, price: float) -> ReceiptHeader:
        """
        Change one line's sale price and bring the receipt total and
        installment value back in line with its items.
        """
        try:
            price_f = float(price)
        except (TypeError, ValueError):
            raise DomainError("Price must be a number.") from None
        if price_f < 0:
            raise DomainError("Price cannot be negative.")
        row = self.conn.execute(
            "SELECT receipt_id FROM receipt_items WHERE item_id=?", (item_id,)
        ).fetchone()
        if row is None:
            raise DomainError(f"Receipt item {item_id} not found.")
        receipt_id = int(row["receipt_id"])

        with self.conn:
            self.conn.execute(
                "UPDATE receipt_items SET price=? WHERE item_id=?", (price_f, item_id)
            )
            header = self.get_header(receipt_id)
            total, installment_value = receipt_totals(self.list_items(receipt_id), header.installments)
            self.conn.execute(
                "UPDATE receipts SET total_amount=?, installment_value=? WHERE receipt_id=?",
                (total, installment_value, receipt_id),
            )
        header.total_amount, header.installment_value = total, installment_value
        return header

    def delete(self, receipt_id: int) -> None:
        with self.conn:
            self.conn.execute("DELETE FROM receipts WHERE receipt_id=?", (receipt_id,))
        _log.info("receipt %s deleted", receipt_id)
