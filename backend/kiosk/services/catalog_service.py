# backend/kiosk/services/catalog_service.py
"""
Catalog Service: categories, sizes and addons.

MULTI-TENANT: every lookup filters by tenant_id. A row owned by another
tenant is reported exactly like a missing one (NotFoundError).

Catalog ids are chosen by the caller ("lemonade", "size-large") and are
primary keys, so an id that exists anywhere is a conflict.
"""
from __future__ import annotations

import logging

from ..extensions import db
from ..models import Addon, Category, Product, ProductAddon, ProductSize, Size
from ..validation import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CATEGORY_MUTABLE_FIELDS = {"name", "description", "sequence_no"}
SIZE_MUTABLE_FIELDS = {"name", "price_modifier_cents", "volume"}
ADDON_MUTABLE_FIELDS = {"name", "price_cents"}

_MUTABLE_FIELDS = {
    Category: CATEGORY_MUTABLE_FIELDS,
    Size: SIZE_MUTABLE_FIELDS,
    Addon: ADDON_MUTABLE_FIELDS,
}

_ORDERING = {
    Category: (Category.sequence_no.asc(), Category.name.asc()),
    Size: (Size.name.asc(),),
    Addon: (Addon.name.asc(),),
}


def _label(model) -> str:
    return model.__name__


def get_scoped(model, row_id: str, tenant_id: str):
    """Fetch a tenant-owned row or raise NotFoundError."""
    row = (
        db.session.query(model)
        .filter(model.id == row_id, model.tenant_id == tenant_id)
        .first()
    )
    if row is None:
        raise NotFoundError(f"{_label(model)} not found")
    return row


def require_ids_in_tenant(model, ids, tenant_id: str) -> None:
    """
    Every id must reference a row of model owned by tenant_id.

    Raises ValidationError (not NotFound): the caller's payload is wrong,
    the addressed resource exists.
    """
    wanted = set(ids)
    if not wanted:
        return
    found = {
        row_id
        for (row_id,) in db.session.query(model.id).filter(
            model.id.in_(wanted), model.tenant_id == tenant_id
        )
    }
    missing = sorted(wanted - found)
    if missing:
        raise ValidationError(f"Unknown {_label(model).lower()} id(s): {', '.join(missing)}")


def ensure_id_available(model, row_id: str) -> None:
    if db.session.get(model, row_id) is not None:
        raise ConflictError(f"{_label(model)} with id '{row_id}' already exists")


def apply_patch(row, patch: dict, fields: set[str]) -> None:
    for k, v in patch.items():
        if k not in fields:
            continue
        setattr(row, k, v)


def list_rows(model, tenant_id: str) -> list:
    return (
        db.session.query(model)
        .filter(model.tenant_id == tenant_id)
        .order_by(*_ORDERING[model])
        .all()
    )


def create_row(model, *, patch: dict, tenant_id: str):
    """
    Create a category/size/addon from a validated patch (must include id).

    Raises ConflictError when the id is taken; the existing row is unchanged.
    """
    row_id = patch["id"]
    ensure_id_available(model, row_id)

    row = model(id=row_id, tenant_id=tenant_id)
    apply_patch(row, patch, _MUTABLE_FIELDS[model])

    db.session.add(row)
    db.session.commit()
    logger.info("Created %s %s in tenant %s", _label(model).lower(), row_id, tenant_id)
    return row


def update_row(model, *, row_id: str, patch: dict, tenant_id: str):
    row = get_scoped(model, row_id, tenant_id)
    apply_patch(row, patch, _MUTABLE_FIELDS[model])
    db.session.commit()
    return row


def delete_row(model, *, row_id: str, tenant_id: str) -> None:
    """
    Hard-delete a catalog row.

    Categories still holding products cannot be deleted (ConflictError).
    Deleting a size or addon detaches it from every product first.
    """
    row = get_scoped(model, row_id, tenant_id)

    if model is Category:
        in_use = db.session.query(Product.id).filter(Product.category_id == row.id).first()
        if in_use:
            raise ConflictError("Category still has products")
    elif model is Size:
        db.session.query(ProductSize).filter(ProductSize.size_id == row.id).delete(
            synchronize_session=False
        )
    elif model is Addon:
        db.session.query(ProductAddon).filter(ProductAddon.addon_id == row.id).delete(
            synchronize_session=False
        )

    db.session.delete(row)
    db.session.commit()
    logger.info("Deleted %s %s in tenant %s", _label(model).lower(), row_id, tenant_id)
