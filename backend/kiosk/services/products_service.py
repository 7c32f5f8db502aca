# backend/kiosk/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: All product operations are tenant-scoped, and so are the
category, sizes and addons a product points at.

Size/addon associations are reconciled as sets: the desired id list is
compared with the current links and only the difference is written. An
omitted list leaves links untouched; an empty list clears them.
"""
from __future__ import annotations

import logging
from typing import Iterable

from ..extensions import db
from ..identifiers import slugify
from ..models import Addon, Category, Product, ProductAddon, ProductSize, Size, TransactionItem
from ..validation import ConflictError, ValidationError
from .catalog_service import ensure_id_available, get_scoped, require_ids_in_tenant

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"category_id", "name", "price_cents", "image_url"}


def reconcile(current: Iterable[str], desired: Iterable[str]) -> tuple[set[str], set[str]]:
    """Return (ids_to_add, ids_to_remove) turning current into desired."""
    current, desired = set(current), set(desired)
    return desired - current, current - desired


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _sync_sizes(p: Product, size_ids: list[str]) -> None:
    to_add, to_remove = reconcile(p.size_ids, size_ids)
    p.size_links = [link for link in p.size_links if link.size_id not in to_remove]
    for size_id in sorted(to_add):
        p.size_links.append(ProductSize(size_id=size_id))


def _sync_addons(p: Product, addon_ids: list[str]) -> None:
    to_add, to_remove = reconcile(p.addon_ids, addon_ids)
    p.addon_links = [link for link in p.addon_links if link.addon_id not in to_remove]
    for addon_id in sorted(to_add):
        p.addon_links.append(ProductAddon(addon_id=addon_id))


def _check_references(patch: dict, tenant_id: str) -> None:
    if "category_id" in patch:
        require_ids_in_tenant(Category, [patch["category_id"]], tenant_id)
    if "size_ids" in patch:
        require_ids_in_tenant(Size, patch["size_ids"], tenant_id)
    if "addon_ids" in patch:
        require_ids_in_tenant(Addon, patch["addon_ids"], tenant_id)


def generate_product_id(name: str) -> str:
    """
    Slug of the name, suffixed -2, -3, ... until free.

    "Classic Lemonade" -> "classic-lemonade" (or "classic-lemonade-2")
    """
    base = slugify(name)
    if not base:
        raise ValidationError("name must contain letters or digits")

    candidate, n = base, 1
    while db.session.get(Product, candidate) is not None:
        n += 1
        candidate = f"{base}-{n}"
    return candidate


def list_products(tenant_id: str, category_id: str | None = None) -> list[Product]:
    query = db.session.query(Product).filter(Product.tenant_id == tenant_id)
    if category_id:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: str, tenant_id: str) -> Product:
    return get_scoped(Product, product_id, tenant_id)


def create_product(*, patch: dict, tenant_id: str) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: caller-supplied id already exists
        ValidationError: category/size/addon not in this tenant
    """
    _check_references(patch, tenant_id)

    product_id = patch.get("id")
    if product_id:
        ensure_id_available(Product, product_id)
    else:
        product_id = generate_product_id(patch["name"])

    p = Product(id=product_id, tenant_id=tenant_id)
    apply_product_patch(p, patch)
    _sync_sizes(p, patch.get("size_ids", []))
    _sync_addons(p, patch.get("addon_ids", []))

    db.session.add(p)
    db.session.commit()
    logger.info("Created product %s in tenant %s", p.id, tenant_id)
    return p


def update_product(*, product_id: str, patch: dict, tenant_id: str) -> Product:
    """
    Update a product.

    Raises NotFoundError if the product is not in this tenant.
    """
    p = get_scoped(Product, product_id, tenant_id)
    _check_references(patch, tenant_id)

    apply_product_patch(p, patch)
    if "size_ids" in patch:
        _sync_sizes(p, patch["size_ids"])
    if "addon_ids" in patch:
        _sync_addons(p, patch["addon_ids"])

    db.session.commit()
    return p


def delete_product(*, product_id: str, tenant_id: str) -> None:
    """Hard delete; products already sold stay for the transaction history."""
    p = get_scoped(Product, product_id, tenant_id)

    sold = db.session.query(TransactionItem.id).filter(TransactionItem.product_id == p.id).first()
    if sold:
        raise ConflictError("Product has transactions and cannot be deleted")

    db.session.delete(p)
    db.session.commit()
    logger.info("Deleted product %s in tenant %s", product_id, tenant_id)
