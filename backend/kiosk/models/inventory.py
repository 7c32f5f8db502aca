from __future__ import annotations

from ..extensions import db
from ..identifiers import new_id
from kiosk.time_utils import to_utc_z, utcnow

INVENTORY_CATEGORIES = ("MAINS", "FLAVORED_JAMS", "ADD_ONS", "SYRUPS", "HOT", "PACKAGING")


class InventoryItem(db.Model):
    """Stock-keeping item tracked by periodic counts (lemons, cups, syrups...)."""
    __tablename__ = "inventory_items"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    tenant_id = db.Column(db.String(64), db.ForeignKey("tenants.id"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    category = db.Column(db.String(32), nullable=False, index=True)
    unit = db.Column(db.String(32), nullable=False)
    description = db.Column(db.Text, nullable=True)
    min_stock_level = db.Column(db.Float, nullable=True)

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
            "category": self.category,
            "unit": self.unit,
            "description": self.description,
            "min_stock_level": self.min_stock_level,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryRecord(db.Model):
    """
    A counted quantity for one item at one point in time.

    APPEND-ONLY: records are never updated or deleted. The current stock of
    an item is its newest record, see inventory_service.latest_inventory().
    """
    __tablename__ = "inventory_records"
    __table_args__ = (
        db.Index("ix_inventory_records_item_date", "inventory_item_id", "date"),
    )

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    tenant_id = db.Column(db.String(64), db.ForeignKey("tenants.id"), nullable=False, index=True)
    inventory_item_id = db.Column(
        db.String(64), db.ForeignKey("inventory_items.id"), nullable=False, index=True
    )
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False)

    quantity = db.Column(db.Float, nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    item = db.relationship("InventoryItem", backref=db.backref("records", lazy=True))
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "inventory_item_id": self.inventory_item_id,
            "item_name": self.item.name if self.item else None,
            "user_id": self.user_id,
            "user": self.user.to_summary() if self.user else None,
            "quantity": self.quantity,
            "date": to_utc_z(self.date),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
