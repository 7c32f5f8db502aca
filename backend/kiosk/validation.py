from __future__ import annotations
import math
from datetime import date, datetime
from kiosk.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

VOID_REASON_MIN = 10
VOID_REASON_MAX = 500


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate id)."""


class NotFoundError(LookupError):
    """404: row is absent or belongs to another tenant."""


class VoidStateError(ValueError):
    """400: void request/review not allowed from the current void status."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(col, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{col.key} must be an integer")
        # Reject scientific notation (e.g., "1e15") and decimals (e.g., "12.5")
        if 'e' in stripped.lower():
            raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{col.key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{col.key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{col.key} must be an integer, not a decimal")
    raise ValidationError(f"{col.key} must be an integer")


def _coerce_float(col, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{col.key} must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ValidationError(f"{col.key} must be a number")
    else:
        raise ValidationError(f"{col.key} must be a number")
    # NaN and Infinity parse as floats but cannot be compared or summed
    if not math.isfinite(number):
        raise ValidationError(f"{col.key} must be a finite number")
    return number


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col, value)

    if isinstance(coltype, Float):
        return _coerce_float(col, value)

    if isinstance(coltype, Boolean):
        if not isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a boolean")
        return value

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip()[:10])
            except ValueError:
                raise ValidationError(f"{col.key} must be a YYYY-MM-DD date")
        raise ValidationError(f"{col.key} must be a date")

    if isinstance(coltype, JSON):
        if not isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a JSON object or array")
        return value

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Keys in writable_fields that are not columns (e.g. product size_ids) are
    passed through untouched for the service layer to handle.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols.get(k)
        if col is None:
            patch[k] = raw
            continue

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_price(patch: dict, field: str, *, signed: bool) -> None:
    if field not in patch or patch[field] is None:
        return
    price = patch[field]
    if not signed and price < 0:
        raise ValidationError(f"{field} must be >= 0")
    if abs(price) > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS}")


def _check_choice(patch: dict, field: str, choices) -> None:
    if field in patch and patch[field] is not None and patch[field] not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")


def _check_id_list(patch: dict, field: str) -> None:
    if field not in patch:
        return
    value = patch[field]
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise ValidationError(f"{field} must be a list of ids")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_price(patch, "price_cents", signed=False)
    _check_id_list(patch, "size_ids")
    _check_id_list(patch, "addon_ids")


def enforce_rules_size(patch: dict) -> None:
    _check_price(patch, "price_modifier_cents", signed=True)


def enforce_rules_addon(patch: dict) -> None:
    _check_price(patch, "price_cents", signed=True)


def enforce_rules_expense(patch: dict, categories) -> None:
    if "amount_cents" in patch and patch["amount_cents"] is not None:
        if patch["amount_cents"] <= 0:
            raise ValidationError("amount_cents must be > 0")
        _check_price(patch, "amount_cents", signed=False)
    _check_choice(patch, "category", categories)


def enforce_rules_inventory_item(patch: dict, categories) -> None:
    _check_choice(patch, "category", categories)
    level = patch.get("min_stock_level")
    if level is not None and level < 0:
        raise ValidationError("min_stock_level must be >= 0")


def enforce_rules_inventory_record(patch: dict) -> None:
    # Records are stock counts, so zero is valid but negative is not
    if "quantity" in patch:
        if patch["quantity"] is None or patch["quantity"] < 0:
            raise ValidationError("quantity must be >= 0")


def validate_void_reason(reason: Any, field: str = "reason") -> str:
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError(f"{field} is required")
    reason = reason.strip()
    if len(reason) < VOID_REASON_MIN:
        raise ValidationError(f"{field} must be at least {VOID_REASON_MIN} characters")
    if len(reason) > VOID_REASON_MAX:
        raise ValidationError(f"{field} cannot exceed {VOID_REASON_MAX} characters")
    return reason


def _snapshot_number(value: Any, field: str, *, optional: bool = False) -> float | None:
    if value is None and optional:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"{field} must be a finite number")
    if value < 0:
        raise ValidationError(f"{field} must be >= 0")
    return value


def enforce_rules_inventory_snapshot(snapshot: Any) -> dict:
    """
    Normalize a submitted stock count to
    {items: [{inventory_item_id, item_name, category, unit, quantity, min_stock_level}], total_items}.
    """
    if not isinstance(snapshot, dict):
        raise ValidationError("inventory_snapshot must be an object")
    entries = snapshot.get("items")
    if not isinstance(entries, list) or not entries:
        raise ValidationError("inventory_snapshot.items must be a non-empty list")

    items = []
    seen: set[str] = set()
    for idx, entry in enumerate(entries):
        where = f"inventory_snapshot.items[{idx}]"
        if not isinstance(entry, dict):
            raise ValidationError(f"{where} must be an object")
        item_id = entry.get("inventory_item_id")
        if not isinstance(item_id, str) or not item_id.strip():
            raise ValidationError(f"{where}.inventory_item_id is required")
        if item_id in seen:
            raise ValidationError(f"{where}.inventory_item_id is listed twice")
        seen.add(item_id)
        for key in ("item_name", "category", "unit"):
            if not isinstance(entry.get(key), str) or not entry[key].strip():
                raise ValidationError(f"{where}.{key} is required")
        items.append({
            "inventory_item_id": item_id,
            "item_name": entry["item_name"].strip(),
            "category": entry["category"].strip().upper(),
            "unit": entry["unit"].strip(),
            "quantity": _snapshot_number(entry.get("quantity"), f"{where}.quantity"),
            "min_stock_level": _snapshot_number(
                entry.get("min_stock_level"), f"{where}.min_stock_level", optional=True
            ),
        })

    return {"items": items, "total_items": len(items)}
