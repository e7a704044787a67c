import logging
import time
from datetime import datetime
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from shared.helpers.date_helper import days_between, local_now
from ...enum.lease_payments_enum import OPEN_PAYMENT_STATUSES, PaymentStatus, PaymentType
from ...enum.notifications_enum import NotificationType
from ...models.assets.assets import Asset
from ...models.leasing_tenants.lease_payments import LeasePayment
from ...models.leasing_tenants.leases import Lease
from ..leasing_tenants.lease_payments_crud import format_amount
from ..system.notifications_crud import create_notification, notification_exists

logger = logging.getLogger(__name__)

DUE_SOON_DAYS = 5
OVERDUE_REMINDER_EVERY_DAYS = 2


def _empty_summary() -> Dict[str, int]:
    return {
        "scanned": 0,
        "marked_overdue": 0,
        "overdue_notifications": 0,
        "due_soon_notifications": 0,
        "failed": 0,
        "skipped": 0,
    }


def _process_payment(
    db: Session,
    payment: LeasePayment,
    tenant_id: UUID,
    owner_id: UUID,
    asset_name: Optional[str],
    now: datetime,
) -> Dict[str, int]:
    today = now.date()
    asset_label = asset_name or "your property"
    amount = format_amount(payment.amount)
    counts = {"marked_overdue": 0, "overdue_notifications": 0, "due_soon_notifications": 0}

    # =====================================================
    # 1. PENDING PAST DUE -> OVERDUE
    # =====================================================
    if payment.status == PaymentStatus.pending.value and payment.due_date < today:
        payment.status = PaymentStatus.overdue.value
        counts["marked_overdue"] += 1

    # =====================================================
    # 2. OVERDUE REMINDERS (day 2, 4, 6, ...)
    # =====================================================
    if payment.due_date < today:
        days_overdue = days_between(payment.due_date, today)
        if (
            days_overdue >= OVERDUE_REMINDER_EVERY_DAYS
            and days_overdue % OVERDUE_REMINDER_EVERY_DAYS == 0
            and not notification_exists(db, tenant_id, NotificationType.payment_overdue, payment.id, today)
        ):
            create_notification(
                db, tenant_id, NotificationType.payment_overdue,
                title="Rent overdue",
                message=f"Rent of {amount} for {asset_label} is {days_overdue} days overdue. Please pay as soon as possible.",
                related_id=payment.id,
                created_at=now,
            )
            create_notification(
                db, owner_id, NotificationType.payment_overdue,
                title="Rent overdue",
                message=f"Rent of {amount} for {asset_label} is {days_overdue} days overdue.",
                related_id=payment.id,
                created_at=now,
            )
            counts["overdue_notifications"] += 2

    # =====================================================
    # 3. DUE SOON REMINDER
    # =====================================================
    elif days_between(today, payment.due_date) == DUE_SOON_DAYS:
        if not notification_exists(db, tenant_id, NotificationType.payment_due_soon, payment.id, today):
            create_notification(
                db, tenant_id, NotificationType.payment_due_soon,
                title="Rent due soon",
                message=f"Rent of {amount} for {asset_label} is due in {DUE_SOON_DAYS} days ({payment.due_date.isoformat()}).",
                related_id=payment.id,
                created_at=now,
            )
            counts["due_soon_notifications"] += 1

    db.commit()
    return counts


def run_notification_sweep(
    db: Session,
    now: Optional[datetime] = None,
    deadline: Optional[float] = None,
) -> Dict[str, int]:
    """Advance overdue rent and write due-soon / overdue reminders.

    Every open rent obligation is handled in its own transaction, so one bad
    row never blocks the others. ``deadline`` is a ``time.monotonic()`` value;
    obligations still queued when it passes are left for the next run.
    """
    now = now or local_now()
    summary = _empty_summary()

    rows = (
        db.query(LeasePayment, LeasePayment.id, Lease.tenant_id, Asset.owner_id, Asset.name)
        .join(Lease, Lease.id == LeasePayment.lease_id)
        .join(Asset, Asset.id == Lease.asset_id)
        .filter(
            LeasePayment.status.in_([s.value for s in OPEN_PAYMENT_STATUSES]),
            LeasePayment.payment_type == PaymentType.rent.value,
        )
        .order_by(LeasePayment.due_date)
        .all()
    )

    for index, (payment, payment_id, tenant_id, owner_id, asset_name) in enumerate(rows):
        if deadline is not None and time.monotonic() >= deadline:
            summary["skipped"] = len(rows) - index
            logger.warning("Notification sweep hit its deadline, %s obligation(s) left for the next run",
                           summary["skipped"])
            break

        summary["scanned"] += 1
        try:
            counts = _process_payment(db, payment, tenant_id, owner_id, asset_name, now)
        except Exception:
            db.rollback()
            summary["failed"] += 1
            logger.exception("Notification sweep failed for payment %s", payment_id)
            continue

        for key, value in counts.items():
            summary[key] += value

    logger.info(
        "Notification sweep done: scanned=%(scanned)s overdue=%(marked_overdue)s "
        "overdue_notifications=%(overdue_notifications)s due_soon=%(due_soon_notifications)s "
        "failed=%(failed)s skipped=%(skipped)s",
        summary,
    )
    return summary
