"""
Multi-Tenant Service: tenant lookup, provisioning and settings.

Every request is scoped to a tenant. Services take tenant_id explicitly
(routes pass g.tenant_id) and cross-tenant rows are reported as not found,
never as forbidden, so their existence is not revealed.
"""

import logging

from ..extensions import db
from ..identifiers import slugify
from ..models import Tenant, DEFAULT_THEME_COLORS
from ..validation import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

TENANT_EDITABLE_FIELDS = {
    "name",
    "description",
    "contact_email",
    "contact_phone",
    "address",
    "logo_url",
    "theme_colors",
}


def get_tenant(tenant_id: str) -> Tenant:
    tenant = db.session.get(Tenant, tenant_id)
    if not tenant:
        raise NotFoundError("Tenant not found")
    return tenant


def get_tenant_by_slug(slug: str) -> Tenant:
    """Public lookup used before login; inactive tenants are not found."""
    tenant = db.session.query(Tenant).filter_by(slug=slug.strip().lower()).first()
    if not tenant or not tenant.is_active:
        raise NotFoundError("Tenant not found")
    return tenant


def list_tenants() -> list[Tenant]:
    return db.session.query(Tenant).order_by(Tenant.name.asc()).all()


def create_tenant(name: str, slug: str | None = None, **fields) -> Tenant:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")

    slug = slugify(slug or name)
    if not slug:
        raise ValidationError("slug must contain letters or digits")
    if db.session.query(Tenant).filter_by(slug=slug).first():
        raise ConflictError(f"Tenant slug already exists: {slug}")

    unknown = set(fields) - TENANT_EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    tenant = Tenant(name=name, slug=slug, **fields)
    db.session.add(tenant)
    db.session.commit()
    logger.info("Created tenant %s (%s)", slug, tenant.id)
    return tenant


def _merge_theme_colors(current: dict | None, incoming) -> dict:
    if not isinstance(incoming, dict):
        raise ValidationError("theme_colors must be an object")
    unknown = set(incoming) - set(DEFAULT_THEME_COLORS)
    if unknown:
        raise ValidationError(f"Unknown theme color: {sorted(unknown)[0]}")
    if not all(isinstance(v, str) and v for v in incoming.values()):
        raise ValidationError("theme colors must be non-empty strings")
    return {**(current or {}), **incoming}


def update_tenant(tenant_id: str, patch: dict) -> Tenant:
    """
    Apply an admin's settings patch to their own tenant.

    theme_colors is merged key by key so a partial palette keeps the rest.
    """
    tenant = get_tenant(tenant_id)

    for key, value in patch.items():
        if key == "theme_colors" and value is not None:
            value = _merge_theme_colors(tenant.theme_colors, value)
        setattr(tenant, key, value)

    db.session.commit()
    return tenant
