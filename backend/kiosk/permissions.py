"""
Authorization policy table.

Every protected route declares the (resource, action) it needs via
@require_permission; the decision is a lookup in POLICY keyed by the
caller's role. Anything not listed is denied.

Actions:
- read:   list/get/aggregate
- write:  create/update/delete (and, for transactions/expenses, void requests)
- review: approve or reject void requests
"""
from __future__ import annotations

from .models import ROLE_ADMIN, ROLE_CASHIER

READ = "read"
WRITE = "write"
REVIEW = "review"
ACTIONS = (READ, WRITE, REVIEW)


class Resource:
    """Resource names used in the policy table."""
    TENANTS = "tenants"
    USERS = "users"
    CATEGORIES = "categories"
    PRODUCTS = "products"
    SIZES = "sizes"
    ADDONS = "addons"
    TRANSACTIONS = "transactions"
    EXPENSES = "expenses"
    INVENTORY_ITEMS = "inventory_items"
    INVENTORY_RECORDS = "inventory_records"
    REPORTS = "reports"
    SUBMITTED_REPORTS = "submitted_reports"
    SUBMITTED_INVENTORY_REPORTS = "submitted_inventory_reports"


_CATALOG = (Resource.CATEGORIES, Resource.PRODUCTS, Resource.SIZES, Resource.ADDONS)

ALL_RESOURCES = (
    Resource.TENANTS,
    Resource.USERS,
    *_CATALOG,
    Resource.TRANSACTIONS,
    Resource.EXPENSES,
    Resource.INVENTORY_ITEMS,
    Resource.INVENTORY_RECORDS,
    Resource.REPORTS,
    Resource.SUBMITTED_REPORTS,
    Resource.SUBMITTED_INVENTORY_REPORTS,
)

# (role, resource, action) -> allow
POLICY: dict[tuple[str, str, str], bool] = {}

# ADMIN: everything
for _resource in ALL_RESOURCES:
    for _action in ACTIONS:
        POLICY[(ROLE_ADMIN, _resource, _action)] = True

# CASHIER: read the catalog, run the register, count stock, submit reports
POLICY.update({
    (ROLE_CASHIER, Resource.TENANTS, READ): True,
    **{(ROLE_CASHIER, r, READ): True for r in _CATALOG},
    (ROLE_CASHIER, Resource.TRANSACTIONS, READ): True,
    (ROLE_CASHIER, Resource.TRANSACTIONS, WRITE): True,
    (ROLE_CASHIER, Resource.EXPENSES, READ): True,
    (ROLE_CASHIER, Resource.EXPENSES, WRITE): True,
    (ROLE_CASHIER, Resource.INVENTORY_ITEMS, READ): True,
    (ROLE_CASHIER, Resource.INVENTORY_RECORDS, READ): True,
    (ROLE_CASHIER, Resource.INVENTORY_RECORDS, WRITE): True,
    (ROLE_CASHIER, Resource.REPORTS, READ): True,
    (ROLE_CASHIER, Resource.SUBMITTED_REPORTS, READ): True,
    (ROLE_CASHIER, Resource.SUBMITTED_REPORTS, WRITE): True,
    (ROLE_CASHIER, Resource.SUBMITTED_INVENTORY_REPORTS, READ): True,
    (ROLE_CASHIER, Resource.SUBMITTED_INVENTORY_REPORTS, WRITE): True,
})


def is_allowed(role: str | None, resource: str, action: str) -> bool:
    """Unknown role/resource/action combinations deny."""
    if role is None:
        return False
    return POLICY.get((role, resource, action), False)
