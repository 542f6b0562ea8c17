from __future__ import annotations
from dataclasses import dataclass
import logging
import sqlite3

from ...utils.validators import format_cpf, is_valid_cpf, is_valid_email
from .errors import CustomerHasReceiptsError, DomainError

_log = logging.getLogger(__name__)

_COLUMNS = "customer_id, full_name, email, phone, cpf, created_at, updated_at"


@dataclass
class Customer:
    customer_id: int | None
    full_name: str
    email: str | None
    phone: str | None
    cpf: str | None
    created_at: str | None = None
    updated_at: str | None = None


class CustomersRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ---- Internal helpers -------------------------------------------------

    @staticmethod
    def _normalize_text(s: str | None) -> str | None:
        if s is None:
            return None
        s = s.strip()
        return s or None

    @staticmethod
    def _ensure_non_empty(value: str | None, field_label: str) -> None:
        if value is None or value.strip() == "":
            raise DomainError(f"{field_label} cannot be empty.")

    def _validate(
        self,
        full_name: str,
        email: str | None,
        cpf: str | None,
        *,
        customer_id: int | None = None,
    ) -> tuple[str, str | None, str | None]:
        self._ensure_non_empty(full_name, "Name")
        name_n = self._normalize_text(full_name)
        email_n = self._normalize_text(email)
        cpf_n = self._normalize_text(cpf)

        if email_n is not None:
            email_n = email_n.lower()
            if not is_valid_email(email_n):
                raise DomainError("Email address is not valid.")
            row = self.conn.execute(
                "SELECT customer_id FROM customers WHERE email = ?", (email_n,)
            ).fetchone()
            if row and row["customer_id"] != customer_id:
                raise DomainError("A customer with this email is already registered.")

        if cpf_n is not None:
            cpf_n = format_cpf(cpf_n)
            if not is_valid_cpf(cpf_n):
                raise DomainError("CPF must be in the format XXX.XXX.XXX-XX.")

        return name_n, email_n, cpf_n  # type: ignore[return-value]

    # ---- Queries ----------------------------------------------------------

    def list_customers(self) -> list[Customer]:
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM customers ORDER BY full_name COLLATE NOCASE, customer_id"
        ).fetchall()
        return [Customer(**r) for r in rows]

    def search(self, term: str) -> list[Customer]:
        """
        Case-insensitive match on name, email, phone and CPF.
        """
        pattern = f"%{term.strip().lower()}%"
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM customers "
            "WHERE lower(full_name) LIKE ? "
            "   OR lower(COALESCE(email, '')) LIKE ? "
            "   OR COALESCE(phone, '') LIKE ? "
            "   OR COALESCE(cpf, '') LIKE ? "
            "ORDER BY full_name COLLATE NOCASE, customer_id",
            (pattern, pattern, pattern, pattern),
        ).fetchall()
        return [Customer(**r) for r in rows]

    def get(self, customer_id: int) -> Customer | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM customers WHERE customer_id=?",
            (customer_id,),
        ).fetchone()
        return Customer(**r) if r else None

    def receipt_count(self, customer_id: int) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM receipts WHERE customer_id=?", (customer_id,)
        ).fetchone()
        return int(row[0])

    # ---- Mutations --------------------------------------------------------

    def create(
        self,
        full_name: str,
        email: str | None = None,
        phone: str | None = None,
        cpf: str | None = None,
    ) -> int:
        name_n, email_n, cpf_n = self._validate(full_name, email, cpf)
        cur = self.conn.execute(
            "INSERT INTO customers(full_name, email, phone, cpf) VALUES (?,?,?,?)",
            (name_n, email_n, self._normalize_text(phone), cpf_n),
        )
        self.conn.commit()
        _log.info("customer %s created", cur.lastrowid)
        return int(cur.lastrowid)

    def update(
        self,
        customer_id: int,
        full_name: str,
        email: str | None = None,
        phone: str | None = None,
        cpf: str | None = None,
    ) -> None:
        if self.get(customer_id) is None:
            raise DomainError(f"Customer {customer_id} not found.")
        name_n, email_n, cpf_n = self._validate(full_name, email, cpf, customer_id=customer_id)
        self.conn.execute(
            "UPDATE customers SET full_name=?, email=?, phone=?, cpf=? WHERE customer_id=?",
            (name_n, email_n, self._normalize_text(phone), cpf_n, customer_id),
        )
        self.conn.commit()

    def delete(self, customer_id: int) -> None:
        """
        Hard delete, refused while the customer owns receipts.
        """
        count = self.receipt_count(customer_id)
        if count > 0:
            raise CustomerHasReceiptsError(customer_id, count)
        self.conn.execute("DELETE FROM customers WHERE customer_id=?", (customer_id,))
        self.conn.commit()
        _log.info("customer %s deleted", customer_id)
