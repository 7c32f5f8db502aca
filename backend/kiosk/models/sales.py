from __future__ import annotations

from ..extensions import db
from ..identifiers import new_id
from .voids import VoidableMixin
from kiosk.time_utils import to_utc_z, utcnow

PAYMENT_METHODS = ("CASH", "CARD", "GCASH", "PAYMAYA", "ONLINE", "FOODPANDA")

PAYMENT_PENDING = "PENDING"
PAYMENT_COMPLETED = "COMPLETED"
PAYMENT_FAILED = "FAILED"
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_COMPLETED, PAYMENT_FAILED)


class Transaction(VoidableMixin, db.Model):
    """
    A completed (or attempted) sale captured at the register.

    All amounts are in cents. receipt_number is the code printed on the
    customer's receipt and is generated by the cashier app.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_tenant_occurred", "tenant_id", "occurred_at"),
    )

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    tenant_id = db.Column(db.String(64), db.ForeignKey("tenants.id"), nullable=False, index=True)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False, index=True)

    receipt_number = db.Column(db.String(64), nullable=True, index=True)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False, index=True)
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_COMPLETED, index=True)
    cash_received_cents = db.Column(db.Integer, nullable=True)
    change_cents = db.Column(db.Integer, nullable=True)
    reference_number = db.Column(db.String(64), nullable=True)
    remarks = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", foreign_keys=[user_id])
    items = db.relationship(
        "TransactionItem",
        backref="transaction",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="TransactionItem.position",
    )

    @property
    def is_completed(self) -> bool:
        return self.payment_status == PAYMENT_COMPLETED

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "user": self.user.to_summary() if self.user else None,
            "receipt_number": self.receipt_number,
            "subtotal_cents": self.subtotal_cents,
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "cash_received_cents": self.cash_received_cents,
            "change_cents": self.change_cents,
            "reference_number": self.reference_number,
            "remarks": self.remarks,
            "occurred_at": to_utc_z(self.occurred_at),
            "created_at": to_utc_z(self.created_at),
            **self.void_dict(),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class TransactionItem(db.Model):
    __tablename__ = "transaction_items"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    transaction_id = db.Column(db.String(64), db.ForeignKey("transactions.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.String(64), db.ForeignKey("products.id"), nullable=False, index=True)
    size_id = db.Column(db.String(64), db.ForeignKey("sizes.id"), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)

    # quantity * (price + size modifier + addons), as computed by the register
    subtotal_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")
    size = db.relationship("Size")
    addon_links = db.relationship(
        "TransactionItemAddon", backref="item", lazy=True, cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "size_id": self.size_id,
            "size_name": self.size.name if self.size else None,
            "quantity": self.quantity,
            "subtotal_cents": self.subtotal_cents,
            "addons": [link.addon.to_dict() for link in self.addon_links if link.addon],
        }


class TransactionItemAddon(db.Model):
    __tablename__ = "transaction_item_addons"

    item_id = db.Column(db.String(64), db.ForeignKey("transaction_items.id"), primary_key=True)
    addon_id = db.Column(db.String(64), db.ForeignKey("addons.id"), primary_key=True)

    addon = db.relationship("Addon")
