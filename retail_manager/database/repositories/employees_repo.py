from __future__ import annotations
from dataclasses import dataclass
import sqlite3

from ...constants import ROLE_SELLER, ROLES
from .errors import DomainError

_COLUMNS = "employee_id, full_name, whatsapp, age, role, created_at"


@dataclass
class Employee:
    employee_id: int | None
    full_name: str
    whatsapp: str
    age: int
    role: str
    created_at: str | None = None


class EmployeesRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    @staticmethod
    def _validate(full_name: str, whatsapp: str, age, role: str) -> tuple[str, str, int, str]:
        name_n = (full_name or "").strip()
        phone_n = (whatsapp or "").strip()
        if not name_n:
            raise DomainError("Name cannot be empty.")
        if not phone_n:
            raise DomainError("WhatsApp number cannot be empty.")
        try:
            age_n = int(age)
        except (TypeError, ValueError):
            raise DomainError("Age must be a whole number.") from None
        if age_n <= 0:
            raise DomainError("Age must be greater than zero.")
        if role not in ROLES:
            raise DomainError(f"Role must be one of: {', '.join(ROLES)}.")
        return name_n, phone_n, age_n, role

    # ---- Queries ----------------------------------------------------------

    def list_employees(self) -> list[Employee]:
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM employees ORDER BY full_name COLLATE NOCASE, employee_id"
        ).fetchall()
        return [Employee(**r) for r in rows]

    def search(self, term: str) -> list[Employee]:
        pattern = f"%{term.strip().lower()}%"
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM employees "
            "WHERE lower(full_name) LIKE ? OR whatsapp LIKE ? "
            "ORDER BY full_name COLLATE NOCASE, employee_id",
            (pattern, pattern),
        ).fetchall()
        return [Employee(**r) for r in rows]

    def get(self, employee_id: int) -> Employee | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM employees WHERE employee_id=?", (employee_id,)
        ).fetchone()
        return Employee(**r) if r else None

    # ---- Mutations --------------------------------------------------------

    def create(self, full_name: str, whatsapp: str, age: int, role: str = ROLE_SELLER) -> int:
        values = self._validate(full_name, whatsapp, age, role)
        cur = self.conn.execute(
            "INSERT INTO employees(full_name, whatsapp, age, role) VALUES (?,?,?,?)",
            values,
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def update(self, employee_id: int, full_name: str, whatsapp: str, age: int, role: str) -> None:
        if self.get(employee_id) is None:
            raise DomainError(f"Employee {employee_id} not found.")
        values = self._validate(full_name, whatsapp, age, role)
        self.conn.execute(
            "UPDATE employees SET full_name=?, whatsapp=?, age=?, role=? WHERE employee_id=?",
            (*values, employee_id),
        )
        self.conn.commit()

    def delete(self, employee_id: int) -> None:
        row = self.conn.execute(
            "SELECT 1 FROM receipts WHERE employee_id=? LIMIT 1", (employee_id,)
        ).fetchone()
        if row:
            raise DomainError("This employee served receipts and cannot be deleted.")
        self.conn.execute("DELETE FROM employees WHERE employee_id=?", (employee_id,))
        self.conn.commit()
