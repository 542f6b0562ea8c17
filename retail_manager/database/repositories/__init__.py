# database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from retail_manager.database.repositories import (
        # Customers
        CustomersRepo, Customer, CustomerHasReceiptsError,
        # Employees
        EmployeesRepo, Employee,
        # Products
        ProductsRepo, Product,
        # Receipts
        ReceiptsRepo, Receipt, ReceiptHeader, ReceiptItem, ReceiptNumbersRepo,
        # Users
        UsersRepo, User, UserPreferences, Theme, Language,
        # Errors
        DomainError,
    )
"""

# ----------------- Errors ------------------
from .errors import DomainError, CustomerHasReceiptsError

# ---------------- Customers ----------------
from .customers_repo import CustomersRepo, Customer

# ---------------- Employees ----------------
from .employees_repo import EmployeesRepo, Employee

# ---------------- Products -----------------
from .products_repo import ProductsRepo, Product

# ---------------- Receipts -----------------
from .receipts_repo import ReceiptsRepo, Receipt, ReceiptHeader, ReceiptItem
from .receipt_numbers_repo import ReceiptNumbersRepo

# ------------------ Users ------------------
from .users_repo import UsersRepo, User, UserPreferences, Theme, Language

__all__ = [
    # errors
    "DomainError",
    "CustomerHasReceiptsError",
    # customers_repo
    "CustomersRepo",
    "Customer",
    # employees_repo
    "EmployeesRepo",
    "Employee",
    # products_repo
    "ProductsRepo",
    "Product",
    # receipts
    "ReceiptsRepo",
    "Receipt",
    "ReceiptHeader",
    "ReceiptItem",
    "ReceiptNumbersRepo",
    # users_repo
    "UsersRepo",
    "User",
    "UserPreferences",
    "Theme",
    "Language",
]
