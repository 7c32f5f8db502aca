from __future__ import annotations

from ..extensions import db
from ..identifiers import new_id
from kiosk.time_utils import to_utc_z

DEFAULT_THEME_COLORS = {
    "primary": "#4f46e5",
    "secondary": "#6366f1",
    "accent": "#f59e0b",
    "background": "#ffffff",
    "text": "#111827",
}


class Tenant(db.Model):
    """
    Multi-tenant root: every business/store is a Tenant.

    All users, catalog rows, transactions, expenses, inventory and
    submitted reports carry tenant_id. No data may cross tenant boundaries.
    Tenants are provisioned by an operator (CLI); admins may edit their own.
    """
    __tablename__ = "tenants"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(64), nullable=False, unique=True, index=True)
    description = db.Column(db.Text, nullable=True)
    contact_email = db.Column(db.String(255), nullable=True)
    contact_phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    logo_url = db.Column(db.String(512), nullable=True)
    theme_colors = db.Column(db.JSON, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
            "address": self.address,
            "logo_url": self.logo_url,
            "theme_colors": {**DEFAULT_THEME_COLORS, **(self.theme_colors or {})},
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
