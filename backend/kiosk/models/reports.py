from __future__ import annotations

from ..extensions import db
from ..identifiers import new_id
from kiosk.time_utils import to_utc_z, utcnow


class SubmittedReport(db.Model):
    """
    End-of-day report a cashier hands in.

    IMMUTABLE: the three snapshots and the id lists are stored exactly as
    submitted. Voids that happen later are surfaced when the report is read
    (see submitted_report_service.get_report) but never rewrite it.
    """
    __tablename__ = "submitted_reports"
    __table_args__ = (
        db.Index("ix_submitted_reports_tenant_submitted", "tenant_id", "submitted_at"),
    )

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    tenant_id = db.Column(db.String(64), db.ForeignKey("tenants.id"), nullable=False, index=True)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False, index=True)

    # YYYY-MM-DD business day the report covers
    report_date = db.Column(db.Date, nullable=False, index=True)
    period_start = db.Column(db.DateTime(timezone=True), nullable=True)
    period_end = db.Column(db.DateTime(timezone=True), nullable=True)

    sales_snapshot = db.Column(db.JSON, nullable=False)
    expenses_snapshot = db.Column(db.JSON, nullable=False)
    summary_snapshot = db.Column(db.JSON, nullable=False)

    transaction_ids = db.Column(db.JSON, nullable=False, default=list)
    expense_ids = db.Column(db.JSON, nullable=False, default=list)

    notes = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "user": self.user.to_summary() if self.user else None,
            "report_date": self.report_date.isoformat(),
            "period_start": to_utc_z(self.period_start),
            "period_end": to_utc_z(self.period_end),
            "sales_snapshot": self.sales_snapshot,
            "expenses_snapshot": self.expenses_snapshot,
            "summary_snapshot": self.summary_snapshot,
            "transaction_ids": list(self.transaction_ids or []),
            "expense_ids": list(self.expense_ids or []),
            "notes": self.notes,
            "submitted_at": to_utc_z(self.submitted_at),
        }


class SubmittedInventoryReport(db.Model):
    """
    Stock count a cashier hands in at the end of a business day.

    One report per tenant and report_date. The snapshot holds the counted
    items as they were at submission and is never edited; a resubmission
    for the same day replaces the whole row.
    """
    __tablename__ = "submitted_inventory_reports"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "report_date", name="uq_submitted_inventory_reports_tenant_date"),
        db.Index("ix_submitted_inventory_reports_tenant_submitted", "tenant_id", "submitted_at"),
    )

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    tenant_id = db.Column(db.String(64), db.ForeignKey("tenants.id"), nullable=False, index=True)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False, index=True)

    report_date = db.Column(db.Date, nullable=False)
    # {items: [{inventory_item_id, item_name, category, unit, quantity, min_stock_level}], total_items}
    inventory_snapshot = db.Column(db.JSON, nullable=False)

    notes = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User")

    @property
    def items(self) -> list[dict]:
        return list((self.inventory_snapshot or {}).get("items", []))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "user": self.user.to_summary() if self.user else None,
            "report_date": self.report_date.isoformat(),
            "inventory_snapshot": self.inventory_snapshot,
            "notes": self.notes,
            "submitted_at": to_utc_z(self.submitted_at),
        }
