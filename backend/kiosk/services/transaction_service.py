# Overview: Service-layer operations for register transactions.

"""
Transactions Service

A transaction is written once by the cashier app with its items and item
addons already priced. The server checks that every referenced product,
size and addon belongs to the caller's tenant and that the amounts are
sane, but does not re-price.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import (
    Addon,
    Product,
    Size,
    Transaction,
    TransactionItem,
    TransactionItemAddon,
    PAYMENT_METHODS,
    PAYMENT_STATUSES,
)
from ..validation import ModelValidationPolicy, ValidationError, validate_payload
from . import reporting_service
from .catalog_service import get_scoped, require_ids_in_tenant

logger = logging.getLogger(__name__)

TRANSACTION_POLICY = ModelValidationPolicy(
    writable_fields={
        "receipt_number",
        "subtotal_cents",
        "total_cents",
        "payment_method",
        "payment_status",
        "cash_received_cents",
        "change_cents",
        "reference_number",
        "remarks",
        "occurred_at",
        "items",
    },
    required_on_create={"subtotal_cents", "total_cents", "payment_method", "items"},
)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "size_id", "quantity", "subtotal_cents", "addon_ids"},
    required_on_create={"product_id", "quantity", "subtotal_cents"},
)

STATS_PERIODS = ("daily", "weekly", "monthly")


def _validate_items(raw_items) -> list[dict]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    items = []
    for index, raw in enumerate(raw_items):
        try:
            item = validate_payload(model=TransactionItem, payload=raw, policy=ITEM_POLICY, partial=False)
        except ValidationError as e:
            raise ValidationError(f"items[{index}]: {e}")
        if item["quantity"] <= 0:
            raise ValidationError(f"items[{index}]: quantity must be > 0")
        if item["subtotal_cents"] < 0:
            raise ValidationError(f"items[{index}]: subtotal_cents must be >= 0")
        addon_ids = item.get("addon_ids", [])
        if not isinstance(addon_ids, list) or not all(isinstance(a, str) and a for a in addon_ids):
            raise ValidationError(f"items[{index}]: addon_ids must be a list of ids")
        items.append(item)
    return items


def validate_transaction(payload: dict) -> dict:
    patch = validate_payload(model=Transaction, payload=payload, policy=TRANSACTION_POLICY, partial=False)

    if patch["payment_method"] not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
    if patch.get("payment_status") is not None and patch["payment_status"] not in PAYMENT_STATUSES:
        raise ValidationError(f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}")
    for field in ("subtotal_cents", "total_cents", "cash_received_cents", "change_cents"):
        if patch.get(field) is not None and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")

    patch["items"] = _validate_items(patch["items"])
    return patch


def create_transaction(*, payload: dict, tenant_id: str, user_id: str) -> Transaction:
    """
    Record a sale with its items.

    Raises ValidationError for malformed payloads or references to another
    tenant's catalog.
    """
    patch = validate_transaction(payload)
    items = patch.pop("items")

    require_ids_in_tenant(Product, [i["product_id"] for i in items], tenant_id)
    require_ids_in_tenant(Size, [i["size_id"] for i in items if i.get("size_id")], tenant_id)
    require_ids_in_tenant(Addon, [a for i in items for a in i.get("addon_ids", [])], tenant_id)

    t = Transaction(tenant_id=tenant_id, user_id=user_id, **patch)
    for position, item in enumerate(items):
        line = TransactionItem(
            position=position,
            product_id=item["product_id"],
            size_id=item.get("size_id"),
            quantity=item["quantity"],
            subtotal_cents=item["subtotal_cents"],
        )
        line.addon_links = [
            TransactionItemAddon(addon_id=addon_id)
            for addon_id in dict.fromkeys(item.get("addon_ids", []))
        ]
        t.items.append(line)

    db.session.add(t)
    db.session.commit()
    logger.info("Recorded transaction %s (%d cents) in tenant %s", t.id, t.total_cents, tenant_id)
    return t


def list_transactions(
    tenant_id: str,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    payment_method: str | None = None,
) -> list[Transaction]:
    query = (
        db.session.query(Transaction)
        .options(selectinload(Transaction.items))
        .filter(Transaction.tenant_id == tenant_id)
    )
    if start is not None:
        query = query.filter(Transaction.occurred_at >= start)
    if end is not None:
        query = query.filter(Transaction.occurred_at <= end)
    if payment_method:
        query = query.filter(Transaction.payment_method == payment_method.upper())
    return query.order_by(Transaction.occurred_at.desc()).all()


def get_transaction(transaction_id: str, tenant_id: str) -> Transaction:
    return get_scoped(Transaction, transaction_id, tenant_id)


def transaction_stats(tenant_id: str, period: str = "daily") -> dict:
    """Register-screen summary for today, the last 7 days or this month."""
    if period not in STATS_PERIODS:
        raise ValidationError(f"period must be one of: {', '.join(STATS_PERIODS)}")

    resolved = reporting_service.resolve_period(period)
    transactions = reporting_service.fetch_transactions(tenant_id, resolved.start, resolved.end)
    sales = reporting_service.summarize_sales(transactions)

    return {"period": resolved.to_dict(), **sales}
