# Overview: Void request/review workflow shared by transactions and expenses.

"""
Void workflow

    NONE ──request──> PENDING ──approve──> APPROVED
    REJECTED ─request─┘    └───reject───> REJECTED

A new request is refused while one is PENDING or after APPROVED. Only
PENDING requests can be reviewed. Approved rows stay in the database and
drop out of live aggregates; submitted report snapshots are never touched.
"""
from __future__ import annotations

import logging
from datetime import datetime

from ..extensions import db
from ..models import VOID_APPROVED, VOID_NONE, VOID_PENDING, VOID_REJECTED
from ..validation import ValidationError, VoidStateError, validate_void_reason
from .catalog_service import get_scoped
from kiosk.time_utils import utcnow

logger = logging.getLogger(__name__)

VOID_FILTERS = (VOID_PENDING, VOID_APPROVED, VOID_REJECTED, "ALL")


def _label(model) -> str:
    return model.__name__.lower()


def request_void(model, *, row_id: str, tenant_id: str, user_id: str, reason) -> object:
    reason = validate_void_reason(reason)
    row = get_scoped(model, row_id, tenant_id)

    if row.void_status == VOID_APPROVED:
        raise VoidStateError(f"This {_label(model)} is already voided")
    if row.void_status == VOID_PENDING:
        raise VoidStateError(f"A void request is already pending for this {_label(model)}")

    row.void_status = VOID_PENDING
    row.void_reason = reason
    row.void_requested_by = user_id
    row.void_requested_at = utcnow()
    row.void_reviewed_by = None
    row.void_reviewed_at = None
    row.void_rejection_reason = None

    db.session.commit()
    logger.info("Void requested for %s %s by %s", _label(model), row_id, user_id)
    return row


def approve_void(model, *, row_id: str, tenant_id: str, reviewer_id: str) -> object:
    row = get_scoped(model, row_id, tenant_id)
    if row.void_status != VOID_PENDING:
        raise VoidStateError("Can only approve pending void requests")

    row.void_status = VOID_APPROVED
    row.void_reviewed_by = reviewer_id
    row.void_reviewed_at = utcnow()

    db.session.commit()
    logger.info("Void approved for %s %s by %s", _label(model), row_id, reviewer_id)
    return row


def reject_void(
    model,
    *,
    row_id: str,
    tenant_id: str,
    reviewer_id: str,
    rejection_reason: str | None = None,
) -> object:
    if rejection_reason is not None:
        if not isinstance(rejection_reason, str):
            raise ValidationError("rejection_reason must be a string")
        rejection_reason = rejection_reason.strip() or None
        if rejection_reason and len(rejection_reason) > 500:
            raise ValidationError("rejection_reason cannot exceed 500 characters")

    row = get_scoped(model, row_id, tenant_id)
    if row.void_status != VOID_PENDING:
        raise VoidStateError("Can only reject pending void requests")

    row.void_status = VOID_REJECTED
    row.void_reviewed_by = reviewer_id
    row.void_reviewed_at = utcnow()
    row.void_rejection_reason = rejection_reason

    db.session.commit()
    logger.info("Void rejected for %s %s by %s", _label(model), row_id, reviewer_id)
    return row


def list_void_requests(
    model,
    *,
    tenant_id: str,
    status: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list:
    """
    Rows with void activity, newest request first.

    status defaults to PENDING; ALL means any status other than NONE.
    """
    status = (status or VOID_PENDING).upper()
    if status not in VOID_FILTERS:
        raise ValidationError(f"status must be one of: {', '.join(VOID_FILTERS)}")

    query = db.session.query(model).filter(model.tenant_id == tenant_id)
    if status == "ALL":
        query = query.filter(model.void_status != VOID_NONE)
    else:
        query = query.filter(model.void_status == status)
    if start is not None:
        query = query.filter(model.void_requested_at >= start)
    if end is not None:
        query = query.filter(model.void_requested_at <= end)

    return query.order_by(model.void_requested_at.desc()).all()
