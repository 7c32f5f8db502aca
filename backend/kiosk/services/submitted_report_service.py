# Overview: Service-layer operations for submitted (end-of-day) reports.

"""
Submitted reports are frozen: the snapshots and id lists a cashier sends
are stored verbatim and never recomputed. When a report is read back, the
referenced transactions and expenses are re-fetched so the reader can see
whether any of them were voided after submission.
"""
from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Expense, SubmittedReport, Transaction, VOID_APPROVED
from ..validation import ModelValidationPolicy, ValidationError, validate_payload
from .catalog_service import get_scoped
from kiosk.time_utils import start_of_month, to_utc_z, utcnow

logger = logging.getLogger(__name__)

REPORT_POLICY = ModelValidationPolicy(
    writable_fields={
        "report_date",
        "period_start",
        "period_end",
        "sales_snapshot",
        "expenses_snapshot",
        "summary_snapshot",
        "transaction_ids",
        "expense_ids",
        "notes",
    },
    required_on_create={"report_date", "sales_snapshot", "expenses_snapshot", "summary_snapshot"},
)


def _check_snapshots(patch: dict) -> None:
    for field in ("sales_snapshot", "expenses_snapshot", "summary_snapshot"):
        if not isinstance(patch.get(field), dict):
            raise ValidationError(f"{field} must be an object")
    for field in ("transaction_ids", "expense_ids"):
        ids = patch.get(field, [])
        if not isinstance(ids, list) or not all(isinstance(i, str) and i for i in ids):
            raise ValidationError(f"{field} must be a list of ids")


def create_report(*, payload: dict, tenant_id: str, user_id: str) -> SubmittedReport:
    """Store the submission as-is; submitted_at is assigned by the server."""
    patch = validate_payload(model=SubmittedReport, payload=payload, policy=REPORT_POLICY, partial=False)
    _check_snapshots(patch)

    report = SubmittedReport(
        tenant_id=tenant_id,
        user_id=user_id,
        transaction_ids=list(patch.pop("transaction_ids", [])),
        expense_ids=list(patch.pop("expense_ids", [])),
        submitted_at=utcnow(),
        **patch,
    )
    db.session.add(report)
    db.session.commit()
    logger.info("Report %s submitted for %s by %s", report.id, report.report_date, user_id)
    return report


def list_reports(
    tenant_id: str,
    *,
    report_date: date | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    user_id: str | None = None,
) -> list[SubmittedReport]:
    query = db.session.query(SubmittedReport).filter(SubmittedReport.tenant_id == tenant_id)
    if report_date is not None:
        query = query.filter(SubmittedReport.report_date == report_date)
    if start is not None:
        query = query.filter(SubmittedReport.submitted_at >= start)
    if end is not None:
        query = query.filter(SubmittedReport.submitted_at <= end)
    if user_id:
        query = query.filter(SubmittedReport.user_id == user_id)
    return query.order_by(SubmittedReport.submitted_at.desc()).all()


def get_report(report_id: str, tenant_id: str) -> dict:
    """
    Report plus the rows it references, as they are now.

    has_voided_transactions is computed here and never stored.
    """
    report = get_scoped(SubmittedReport, report_id, tenant_id)

    transactions = []
    if report.transaction_ids:
        transactions = (
            db.session.query(Transaction)
            .options(selectinload(Transaction.items))
            .filter(
                Transaction.tenant_id == tenant_id,
                Transaction.id.in_(report.transaction_ids),
            )
            .order_by(Transaction.occurred_at.asc())
            .all()
        )

    expenses = []
    if report.expense_ids:
        expenses = (
            db.session.query(Expense)
            .filter(Expense.tenant_id == tenant_id, Expense.id.in_(report.expense_ids))
            .order_by(Expense.date.asc())
            .all()
        )

    voided = [t.id for t in transactions if t.void_status == VOID_APPROVED]

    return {
        **report.to_dict(),
        "transactions": [t.to_dict() for t in transactions],
        "expenses": [e.to_dict() for e in expenses],
        "has_voided_transactions": bool(voided),
        "voided_transaction_ids": voided,
    }


def report_stats(tenant_id: str, now: datetime | None = None) -> dict:
    now = now or utcnow()
    base = db.session.query(SubmittedReport).filter(SubmittedReport.tenant_id == tenant_id)

    total = base.count()
    this_month = base.filter(SubmittedReport.submitted_at >= start_of_month(now)).count()
    last = base.order_by(SubmittedReport.submitted_at.desc()).first()

    return {
        "total_reports": total,
        "reports_this_month": this_month,
        "last_submission": {
            "date": last.report_date.isoformat(),
            "submitted_at": to_utc_z(last.submitted_at),
        } if last else None,
    }
