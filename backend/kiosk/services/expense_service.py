# Overview: Service-layer operations for expenses.

from __future__ import annotations

import logging
from datetime import datetime

from ..extensions import db
from ..models import Expense, EXPENSE_CATEGORIES
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_expense,
    validate_payload,
)
from . import reporting_service
from .catalog_service import get_scoped

logger = logging.getLogger(__name__)

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"description", "amount_cents", "category", "date", "receipt", "notes"},
    required_on_create={"description", "amount_cents", "category"},
)

EXPENSE_MUTABLE_FIELDS = EXPENSE_POLICY.writable_fields


def validate_expense(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=partial)
    if "category" in patch and isinstance(patch["category"], str):
        patch["category"] = patch["category"].upper()
    enforce_rules_expense(patch, EXPENSE_CATEGORIES)
    return patch


def create_expense(*, payload: dict, tenant_id: str, user_id: str) -> Expense:
    patch = validate_expense(payload, partial=False)

    expense = Expense(tenant_id=tenant_id, user_id=user_id, **patch)
    db.session.add(expense)
    db.session.commit()
    logger.info("Recorded expense %s (%d cents) in tenant %s", expense.id, expense.amount_cents, tenant_id)
    return expense


def list_expenses(
    tenant_id: str,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    category: str | None = None,
    min_amount: int | None = None,
    max_amount: int | None = None,
) -> list[Expense]:
    query = db.session.query(Expense).filter(Expense.tenant_id == tenant_id)
    if start is not None:
        query = query.filter(Expense.date >= start)
    if end is not None:
        query = query.filter(Expense.date <= end)
    if category:
        query = query.filter(Expense.category == category.upper())
    if min_amount is not None:
        query = query.filter(Expense.amount_cents >= min_amount)
    if max_amount is not None:
        query = query.filter(Expense.amount_cents <= max_amount)
    return query.order_by(Expense.date.desc()).all()


def get_expense(expense_id: str, tenant_id: str) -> Expense:
    return get_scoped(Expense, expense_id, tenant_id)


def update_expense(*, expense_id: str, payload: dict, tenant_id: str) -> Expense:
    expense = get_scoped(Expense, expense_id, tenant_id)
    patch = validate_expense(payload, partial=True)

    for k, v in patch.items():
        if k in EXPENSE_MUTABLE_FIELDS:
            setattr(expense, k, v)

    db.session.commit()
    return expense


def delete_expense(*, expense_id: str, tenant_id: str) -> None:
    expense = get_scoped(Expense, expense_id, tenant_id)
    db.session.delete(expense)
    db.session.commit()
    logger.info("Deleted expense %s in tenant %s", expense_id, tenant_id)


def expense_stats(
    tenant_id: str,
    *,
    period: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict:
    """Totals and category breakdown for a period (default: this month)."""
    if not period and not (start_date or end_date):
        period = "monthly"
    resolved = reporting_service.resolve_period(period, start_date, end_date)
    expenses = reporting_service.fetch_expenses(tenant_id, resolved.start, resolved.end)
    return {"period": resolved.to_dict(), **reporting_service.summarize_expenses(expenses)}


def parse_amount(value: str | None, field: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{field} must be an integer amount in cents")
