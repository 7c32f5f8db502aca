from __future__ import annotations

from ..extensions import db
from ..identifiers import new_id
from .voids import VoidableMixin
from kiosk.time_utils import to_utc_z, utcnow

EXPENSE_CATEGORIES = (
    "SUPPLIES",
    "UTILITIES",
    "RENT",
    "SALARIES",
    "MARKETING",
    "MAINTENANCE",
    "TRANSPORTATION",
    "MISCELLANEOUS",
)


class Expense(VoidableMixin, db.Model):
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_tenant_date", "tenant_id", "date"),
    )

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    tenant_id = db.Column(db.String(64), db.ForeignKey("tenants.id"), nullable=False, index=True)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False, index=True)

    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(32), nullable=False, index=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    receipt = db.Column(db.String(512), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", foreign_keys=[user_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "user": self.user.to_summary() if self.user else None,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "category": self.category,
            "date": to_utc_z(self.date),
            "receipt": self.receipt,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            **self.void_dict(),
        }
