# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

"""
Inventory Service

Stock is tracked by counts, not deltas: each InventoryRecord states how
much of an item was on hand at `date`. Records are append-only, so the
stock of an item as of any moment is simply its newest record at or before
that moment.

MULTI-TENANT: items and records are tenant-scoped; a record may only point
at an item of the same tenant.
"""
from __future__ import annotations

import logging
from datetime import datetime
from itertools import groupby

from ..extensions import db
from ..models import InventoryItem, InventoryRecord, INVENTORY_CATEGORIES
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_inventory_item,
    enforce_rules_inventory_record,
    validate_payload,
)
from .catalog_service import get_scoped, require_ids_in_tenant
from kiosk.time_utils import to_utc_z, utcnow

logger = logging.getLogger(__name__)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "unit", "description", "min_stock_level"},
    required_on_create={"name", "category", "unit"},
)

RECORD_POLICY = ModelValidationPolicy(
    writable_fields={"inventory_item_id", "quantity", "date", "notes"},
    required_on_create={"inventory_item_id", "quantity"},
)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

def validate_item(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=InventoryItem, payload=payload, policy=ITEM_POLICY, partial=partial)
    if isinstance(patch.get("category"), str):
        patch["category"] = patch["category"].upper()
    enforce_rules_inventory_item(patch, INVENTORY_CATEGORIES)
    return patch


def create_item(*, payload: dict, tenant_id: str) -> InventoryItem:
    patch = validate_item(payload, partial=False)
    item = InventoryItem(tenant_id=tenant_id, **patch)
    db.session.add(item)
    db.session.commit()
    return item


def list_items(tenant_id: str, category: str | None = None) -> list[InventoryItem]:
    query = db.session.query(InventoryItem).filter(InventoryItem.tenant_id == tenant_id)
    if category:
        query = query.filter(InventoryItem.category == category.upper())
    return query.order_by(InventoryItem.category.asc(), InventoryItem.name.asc()).all()


def get_item(item_id: str, tenant_id: str) -> InventoryItem:
    return get_scoped(InventoryItem, item_id, tenant_id)


def update_item(*, item_id: str, payload: dict, tenant_id: str) -> InventoryItem:
    item = get_scoped(InventoryItem, item_id, tenant_id)
    patch = validate_item(payload, partial=True)
    for k, v in patch.items():
        setattr(item, k, v)
    db.session.commit()
    return item


def delete_item(*, item_id: str, tenant_id: str) -> None:
    """Items with recorded history cannot be deleted (records are append-only)."""
    item = get_scoped(InventoryItem, item_id, tenant_id)
    has_records = (
        db.session.query(InventoryRecord.id)
        .filter(InventoryRecord.inventory_item_id == item.id)
        .first()
    )
    if has_records:
        raise ConflictError("Inventory item has records and cannot be deleted")
    db.session.delete(item)
    db.session.commit()


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def validate_record(payload: dict) -> dict:
    patch = validate_payload(model=InventoryRecord, payload=payload, policy=RECORD_POLICY, partial=False)
    enforce_rules_inventory_record(patch)
    return patch


def create_record(*, payload: dict, tenant_id: str, user_id: str) -> InventoryRecord:
    patch = validate_record(payload)
    require_ids_in_tenant(InventoryItem, [patch["inventory_item_id"]], tenant_id)

    record = InventoryRecord(tenant_id=tenant_id, user_id=user_id, **patch)
    db.session.add(record)
    db.session.commit()
    return record


def create_records_bulk(*, entries, tenant_id: str, user_id: str) -> list[InventoryRecord]:
    """
    All-or-nothing insert of many counts.

    Every entry and every referenced item is checked before anything is
    written; the inserts then share one database transaction.
    """
    if not isinstance(entries, list) or not entries:
        raise ValidationError("records must be a non-empty list")

    patches = []
    for index, entry in enumerate(entries):
        try:
            patches.append(validate_record(entry))
        except ValidationError as e:
            raise ValidationError(f"records[{index}]: {e}")

    require_ids_in_tenant(InventoryItem, [p["inventory_item_id"] for p in patches], tenant_id)

    now = utcnow()
    records = [
        InventoryRecord(tenant_id=tenant_id, user_id=user_id, **{"date": now, **patch})
        for patch in patches
    ]
    try:
        db.session.add_all(records)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Recorded %d inventory counts in tenant %s", len(records), tenant_id)
    return records


def list_records(
    tenant_id: str,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    inventory_item_id: str | None = None,
) -> list[InventoryRecord]:
    query = db.session.query(InventoryRecord).filter(InventoryRecord.tenant_id == tenant_id)
    if start is not None:
        query = query.filter(InventoryRecord.date >= start)
    if end is not None:
        query = query.filter(InventoryRecord.date <= end)
    if inventory_item_id:
        query = query.filter(InventoryRecord.inventory_item_id == inventory_item_id)
    return query.order_by(InventoryRecord.date.desc(), InventoryRecord.created_at.desc()).all()


# ---------------------------------------------------------------------------
# Latest view
# ---------------------------------------------------------------------------

def latest_inventory(tenant_id: str, as_of: datetime | None = None) -> list[dict]:
    """
    One row per item: its newest record with date <= as_of.

    Items without a qualifying record are included with
    latest_quantity = None.
    """
    items = list_items(tenant_id)

    query = db.session.query(InventoryRecord).filter(InventoryRecord.tenant_id == tenant_id)
    if as_of is not None:
        query = query.filter(InventoryRecord.date <= as_of)
    records = query.order_by(
        InventoryRecord.inventory_item_id.asc(),
        InventoryRecord.date.desc(),
        InventoryRecord.created_at.desc(),
    ).all()

    newest: dict[str, list[InventoryRecord]] = {}
    for item_id, group in groupby(records, key=lambda r: r.inventory_item_id):
        newest[item_id] = [r for _, r in zip(range(2), group)]

    rows = []
    for item in items:
        history = newest.get(item.id, [])
        latest = history[0] if history else None
        previous = history[1] if len(history) > 1 else None
        rows.append({
            **item.to_dict(),
            "latest_quantity": latest.quantity if latest else None,
            "latest_record_date": to_utc_z(latest.date) if latest else None,
            "previous_quantity": previous.quantity if previous else None,
            "is_low_stock": _is_low(item, latest),
        })
    return rows


def _is_low(item: InventoryItem, latest: InventoryRecord | None) -> bool:
    if latest is None or item.min_stock_level is None:
        return False
    return latest.quantity < item.min_stock_level


def inventory_stats(tenant_id: str) -> dict:
    rows = latest_inventory(tenant_id)
    with_records = [r for r in rows if r["latest_quantity"] is not None]
    low = [r for r in rows if r["is_low_stock"]]
    return {
        "total_items": len(rows),
        "items_with_records": len(with_records),
        "items_without_records": len(rows) - len(with_records),
        "low_stock_count": len(low),
        "low_stock_items": [
            {
                "id": r["id"],
                "name": r["name"],
                "unit": r["unit"],
                "latest_quantity": r["latest_quantity"],
                "min_stock_level": r["min_stock_level"],
            }
            for r in low
        ],
    }
