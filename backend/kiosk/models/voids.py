from __future__ import annotations

from sqlalchemy.orm import declared_attr

from ..extensions import db
from kiosk.time_utils import to_utc_z

VOID_NONE = "NONE"
VOID_PENDING = "PENDING"
VOID_APPROVED = "APPROVED"
VOID_REJECTED = "REJECTED"
VOID_STATUSES = (VOID_NONE, VOID_PENDING, VOID_APPROVED, VOID_REJECTED)


class VoidableMixin:
    """
    Void request/review columns shared by transactions and expenses.

    A void is a correction marker: the row itself is never deleted, and
    APPROVED rows drop out of live aggregates. Previously submitted report
    snapshots are not touched.
    """
    void_status = db.Column(db.String(16), nullable=False, default=VOID_NONE, index=True)
    void_reason = db.Column(db.String(500), nullable=True)
    void_requested_at = db.Column(db.DateTime(timezone=True), nullable=True)
    void_reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    void_rejection_reason = db.Column(db.String(500), nullable=True)

    @declared_attr
    def void_requested_by(cls):
        return db.Column(db.String(64), db.ForeignKey("users.id"), nullable=True)

    @declared_attr
    def void_reviewed_by(cls):
        return db.Column(db.String(64), db.ForeignKey("users.id"), nullable=True)

    @property
    def is_voided(self) -> bool:
        return self.void_status == VOID_APPROVED

    def void_dict(self) -> dict:
        return {
            "void_status": self.void_status,
            "void_reason": self.void_reason,
            "void_requested_by": self.void_requested_by,
            "void_requested_at": to_utc_z(self.void_requested_at),
            "void_reviewed_by": self.void_reviewed_by,
            "void_reviewed_at": to_utc_z(self.void_reviewed_at),
            "void_rejection_reason": self.void_rejection_reason,
        }
