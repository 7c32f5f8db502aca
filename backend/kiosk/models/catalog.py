from __future__ import annotations

from ..extensions import db
from kiosk.time_utils import to_utc_z


class Category(db.Model):
    """Menu category. id is chosen by the caller (e.g. "lemonade")."""
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_tenant_sequence", "tenant_id", "sequence_no"),
    )

    id = db.Column(db.String(64), primary_key=True)
    tenant_id = db.Column(db.String(64), db.ForeignKey("tenants.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    sequence_no = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id!r} tenant_id={self.tenant_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "description": self.description,
            "sequence_no": self.sequence_no,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Size(db.Model):
    """Drink/portion size. price_modifier_cents is added to the product price."""
    __tablename__ = "sizes"

    id = db.Column(db.String(64), primary_key=True)
    tenant_id = db.Column(db.String(64), db.ForeignKey("tenants.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)

    # Signed: a "small" may be cheaper than the base price
    price_modifier_cents = db.Column(db.Integer, nullable=False, default=0)
    volume = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "price_modifier_cents": self.price_modifier_cents,
            "volume": self.volume,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Addon(db.Model):
    """Optional extra (toppings etc.). price_cents is added per unit."""
    __tablename__ = "addons"

    id = db.Column(db.String(64), primary_key=True)
    tenant_id = db.Column(db.String(64), db.ForeignKey("tenants.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    price_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "price_cents": self.price_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_tenant_name", "tenant_id", "name"),
    )

    id = db.Column(db.String(64), primary_key=True)
    tenant_id = db.Column(db.String(64), db.ForeignKey("tenants.id"), nullable=False, index=True)
    category_id = db.Column(db.String(64), db.ForeignKey("categories.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)

    # Authoritative storage in cents (clients only format for display)
    price_cents = db.Column(db.Integer, nullable=False)
    image_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    size_links = db.relationship(
        "ProductSize", backref="product", lazy=True, cascade="all, delete-orphan"
    )
    addon_links = db.relationship(
        "ProductAddon", backref="product", lazy=True, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id!r} name={self.name!r} tenant_id={self.tenant_id}>"

    @property
    def size_ids(self) -> set[str]:
        return {link.size_id for link in self.size_links}

    @property
    def addon_ids(self) -> set[str]:
        return {link.addon_id for link in self.addon_links}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "category_id": self.category_id,
            "name": self.name,
            "price_cents": self.price_cents,
            "image_url": self.image_url,
            "category": self.category.to_dict() if self.category else None,
            "sizes": sorted(
                (link.size.to_dict() for link in self.size_links),
                key=lambda s: s["name"],
            ),
            "addons": sorted(
                (link.addon.to_dict() for link in self.addon_links),
                key=lambda a: a["name"],
            ),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductSize(db.Model):
    __tablename__ = "product_sizes"

    product_id = db.Column(db.String(64), db.ForeignKey("products.id"), primary_key=True)
    size_id = db.Column(db.String(64), db.ForeignKey("sizes.id"), primary_key=True)

    size = db.relationship("Size")


class ProductAddon(db.Model):
    __tablename__ = "product_addons"

    product_id = db.Column(db.String(64), db.ForeignKey("products.id"), primary_key=True)
    addon_id = db.Column(db.String(64), db.ForeignKey("addons.id"), primary_key=True)

    addon = db.relationship("Addon")
