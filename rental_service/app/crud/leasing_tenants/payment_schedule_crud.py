"""Rent schedule for a lease.

A lease's payments follow from a handful of contract terms:

* at signing the tenant pays the advance rent (deposit, at most one month)
  plus insurance;
* when the deposit is less than a month's rent the shortfall is due 10 days
  before the lease starts;
* from the second calendar month on, a full month's rent is due on the 1st of
  every month up to and including the month the lease ends.

``generate_schedule`` inserts whatever part of that schedule is not in the
table yet, keyed on (lease, due date, payment type), so it can be re-run after
every edit of an active lease.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.helpers.date_helper import add_days, first_day_of_next_month, local_today
from ...enum.lease_payments_enum import PaymentStatus, PaymentType
from ...models.leasing_tenants.lease_payments import LeasePayment
from ...models.leasing_tenants.leases import Lease
from ...schemas.leasing_tenants.lease_payments_schemas import PaymentScheduleItem

logger = logging.getLogger(__name__)

BRIDGING_PAYMENT_DAYS_BEFORE_START = 10

NaturalKey = Tuple[UUID, date, str]


def _non_negative(value) -> Decimal:
    amount = Decimal(str(value or 0))
    return amount if amount > 0 else Decimal("0")


def build_payment_schedule(
    start_date: date,
    end_date: date,
    rent_amount,
    deposit_amount=0,
    insurance_amount=0,
    lease_created_date: Optional[date] = None,
) -> List[PaymentScheduleItem]:
    rent = Decimal(str(rent_amount))
    deposit = _non_negative(deposit_amount)
    insurance = _non_negative(insurance_amount)

    # advance rent + insurance, collected at signing
    schedule = [
        PaymentScheduleItem(
            amount=deposit + insurance,
            due_date=lease_created_date or local_today(),
        )
    ]

    # deposit is capped at one month, the rest lands before move-in
    if deposit < rent:
        schedule.append(
            PaymentScheduleItem(
                amount=rent - deposit,
                due_date=add_days(start_date, -BRIDGING_PAYMENT_DAYS_BEFORE_START),
            )
        )

    # first month is covered by the advance rent
    current_month = first_day_of_next_month(start_date)
    while current_month <= end_date:
        schedule.append(PaymentScheduleItem(amount=rent, due_date=current_month))
        current_month = first_day_of_next_month(current_month)

    return schedule


def _unique_by_natural_key(lease_id: UUID, schedule: List[PaymentScheduleItem]) -> Dict[NaturalKey, PaymentScheduleItem]:
    # earlier candidates win when two land on the same key
    candidates: Dict[NaturalKey, PaymentScheduleItem] = {}
    for item in schedule:
        key = (lease_id, item.due_date, item.payment_type.value)
        candidates.setdefault(key, item)
    return candidates


def find_payment(db: Session, lease_id: UUID, due_date: date, payment_type: PaymentType) -> Optional[LeasePayment]:
    return db.query(LeasePayment).filter(
        LeasePayment.lease_id == lease_id,
        LeasePayment.due_date == due_date,
        LeasePayment.payment_type == payment_type.value,
    ).first()


def generate_schedule(
    db: Session,
    lease_id: UUID,
    start_date: date,
    end_date: date,
    rent_amount,
    deposit_amount=0,
    insurance_amount=0,
    lease_created_date: Optional[date] = None,
) -> int:
    """Insert the missing payments of a lease's schedule and return how many were added.

    Existing payments are never deleted or re-priced here.
    """
    schedule = build_payment_schedule(
        start_date, end_date, rent_amount, deposit_amount, insurance_amount, lease_created_date
    )

    created = 0
    for (_, due_date, _), item in _unique_by_natural_key(lease_id, schedule).items():
        if find_payment(db, lease_id, due_date, item.payment_type):
            continue

        db.add(LeasePayment(
            lease_id=lease_id,
            amount=item.amount,
            payment_type=item.payment_type.value,
            due_date=due_date,
            status=PaymentStatus.pending.value,
            proof_images=[],
        ))
        try:
            db.commit()
            created += 1
        except IntegrityError:
            # another writer inserted the same key after our check
            db.rollback()
            logger.info("Payment for lease %s due %s already exists, skipped",
                        lease_id, due_date)

    logger.info("Generated %s payment(s) for lease %s", created, lease_id)
    return created


def generate_schedule_for_lease(db: Session, lease: Lease) -> int:
    return generate_schedule(
        db,
        lease_id=lease.id,
        start_date=lease.start_date,
        end_date=lease.end_date,
        rent_amount=lease.rent_amount,
        deposit_amount=lease.deposit_amount,
        insurance_amount=lease.insurance_amount,
        lease_created_date=lease.signed_date or lease.created_at.date(),
    )


def revise_pending_obligations(db: Session, lease: Lease, today: Optional[date] = None) -> int:
    """Re-price still-pending, future payments to the lease's current terms.

    Only payments whose natural key matches an entry of the current schedule
    are touched; anything already submitted, overdue, paid or due today or
    earlier keeps its amount.
    """
    today = today or local_today()
    schedule = build_payment_schedule(
        lease.start_date,
        lease.end_date,
        lease.rent_amount,
        lease.deposit_amount,
        lease.insurance_amount,
        lease.signed_date or lease.created_at.date(),
    )
    candidates = _unique_by_natural_key(lease.id, schedule)

    pending = db.query(LeasePayment).filter(
        LeasePayment.lease_id == lease.id,
        LeasePayment.status == PaymentStatus.pending.value,
        LeasePayment.due_date > today,
    ).all()

    revised = 0
    for payment in pending:
        item = candidates.get((lease.id, payment.due_date, payment.payment_type))
        if item is None or Decimal(payment.amount) == item.amount:
            continue
        logger.info("Revising payment %s from %s to %s",
                    payment.id, payment.amount, item.amount)
        payment.amount = item.amount
        revised += 1

    if revised:
        db.commit()
    return revised
