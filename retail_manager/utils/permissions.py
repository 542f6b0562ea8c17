# utils/permissions.py
"""
Role gates shared by the CLI and any future front end.

Catalog edits, employee management and cost/profit figures are admin-only;
managers and sellers can work with customers and receipts.
"""
from __future__ import annotations

from ..constants import ROLE_ADMIN, ROLES


def can_manage_catalog(role: str | None) -> bool:
    return role == ROLE_ADMIN


def can_view_costs(role: str | None) -> bool:
    return role == ROLE_ADMIN


def require_role(role: str | None, *allowed: str) -> None:
    if role not in ROLES:
        raise PermissionError(f"Unknown role: {role!r}.")
    if role not in allowed:
        raise PermissionError(f"Role '{role}' is not allowed to perform this action.")
