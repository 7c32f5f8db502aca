# Overview: SQLAlchemy models for the kiosk POS schema.

from .tenancy import Tenant, DEFAULT_THEME_COLORS
from .auth import User, SessionToken, ROLE_ADMIN, ROLE_CASHIER, ROLES
from .catalog import Category, Size, Addon, Product, ProductSize, ProductAddon
from .voids import (
    VOID_NONE,
    VOID_PENDING,
    VOID_APPROVED,
    VOID_REJECTED,
    VOID_STATUSES,
)
from .sales import (
    Transaction,
    TransactionItem,
    TransactionItemAddon,
    PAYMENT_METHODS,
    PAYMENT_STATUSES,
    PAYMENT_PENDING,
    PAYMENT_COMPLETED,
    PAYMENT_FAILED,
)
from .expenses import Expense, EXPENSE_CATEGORIES
from .inventory import InventoryItem, InventoryRecord, INVENTORY_CATEGORIES
from .reports import SubmittedReport, SubmittedInventoryReport

__all__ = [
    "Tenant",
    "DEFAULT_THEME_COLORS",
    "User",
    "SessionToken",
    "ROLE_ADMIN",
    "ROLE_CASHIER",
    "ROLES",
    "Category",
    "Size",
    "Addon",
    "Product",
    "ProductSize",
    "ProductAddon",
    "VOID_NONE",
    "VOID_PENDING",
    "VOID_APPROVED",
    "VOID_REJECTED",
    "VOID_STATUSES",
    "Transaction",
    "TransactionItem",
    "TransactionItemAddon",
    "PAYMENT_METHODS",
    "PAYMENT_STATUSES",
    "PAYMENT_PENDING",
    "PAYMENT_COMPLETED",
    "PAYMENT_FAILED",
    "Expense",
    "EXPENSE_CATEGORIES",
    "InventoryItem",
    "InventoryRecord",
    "INVENTORY_CATEGORIES",
    "SubmittedReport",
    "SubmittedInventoryReport",
]
