from datetime import date
from decimal import Decimal

from rental_service.app.crud.leasing_tenants.payment_schedule_crud import (
    build_payment_schedule, generate_schedule, generate_schedule_for_lease, revise_pending_obligations,
)
from rental_service.app.models.leasing_tenants.lease_payments import LeasePayment


def _payments(db, lease_id):
    return (
        db.query(LeasePayment)
        .filter(LeasePayment.lease_id == lease_id)
        .order_by(LeasePayment.due_date)
        .all()
    )


def test_signed_lease_produces_expected_schedule(db, lease):
    created = generate_schedule_for_lease(db, lease)

    payments = _payments(db, lease.id)
    assert created == 7
    assert [(p.due_date, p.amount) for p in payments] == [
        (date(2024, 1, 1), Decimal("10000")),
        (date(2024, 1, 22), Decimal("2000")),
        (date(2024, 3, 1), Decimal("10000")),
        (date(2024, 4, 1), Decimal("10000")),
        (date(2024, 5, 1), Decimal("10000")),
        (date(2024, 6, 1), Decimal("10000")),
        (date(2024, 7, 1), Decimal("10000")),
    ]
    assert all(p.status == "pending" for p in payments)
    assert all(p.payment_type == "rent" for p in payments)


def test_monthly_rent_starts_in_second_month():
    schedule = build_payment_schedule(
        date(2024, 1, 1), date(2024, 6, 30), Decimal("5000"), Decimal("5000"),
        lease_created_date=date(2023, 12, 20),
    )
    monthly = [item.due_date for item in schedule[1:]]
    assert monthly == [date(2024, m, 1) for m in range(2, 7)]
    assert all(item.amount == Decimal("5000") for item in schedule[1:])


def test_no_bridging_payment_when_deposit_covers_rent():
    schedule = build_payment_schedule(
        date(2024, 2, 1), date(2024, 3, 31), Decimal("10000"), Decimal("10000"), Decimal("500"),
        lease_created_date=date(2024, 1, 5),
    )
    assert [item.due_date for item in schedule] == [date(2024, 1, 5), date(2024, 3, 1)]
    assert schedule[0].amount == Decimal("10500")


def test_bridging_payment_covers_the_shortfall():
    schedule = build_payment_schedule(
        date(2024, 2, 1), date(2024, 2, 29), Decimal("10000"), Decimal("3000"),
        lease_created_date=date(2024, 1, 5),
    )
    bridging = [item for item in schedule if item.due_date == date(2024, 1, 22)]
    assert len(bridging) == 1
    assert bridging[0].amount == Decimal("7000")


def test_negative_deposit_and_insurance_are_treated_as_zero():
    schedule = build_payment_schedule(
        date(2024, 2, 1), date(2024, 2, 29), Decimal("10000"), Decimal("-50"), Decimal("-10"),
        lease_created_date=date(2024, 1, 5),
    )
    assert schedule[0].amount == Decimal("0")
    assert schedule[1].amount == Decimal("10000")


def test_short_lease_has_no_monthly_rent():
    schedule = build_payment_schedule(
        date(2024, 3, 10), date(2024, 3, 25), Decimal("9000"), Decimal("9000"),
        lease_created_date=date(2024, 3, 1),
    )
    assert len(schedule) == 1


def test_generate_schedule_twice_creates_no_duplicates(db, lease):
    first = generate_schedule_for_lease(db, lease)
    second = generate_schedule_for_lease(db, lease)

    assert first == 7
    assert second == 0
    assert len(_payments(db, lease.id)) == 7


def test_generate_schedule_keeps_existing_payments(db, lease, make_payment):
    make_payment(lease, date(2024, 4, 1), amount=Decimal("9500"), status="paid")

    created = generate_schedule(
        db, lease.id, lease.start_date, lease.end_date, lease.rent_amount,
        lease.deposit_amount, lease.insurance_amount, date(2024, 1, 1),
    )

    assert created == 6
    april = [p for p in _payments(db, lease.id) if p.due_date == date(2024, 4, 1)]
    assert len(april) == 1
    assert april[0].amount == Decimal("9500")
    assert april[0].status == "paid"


def test_same_key_candidates_keep_the_first(db, make_lease, asset, tenant):
    # signed exactly 10 days before the start: the signing payment and the
    # bridging payment share one due date
    lease = make_lease(
        asset, tenant,
        signed_date=date(2024, 1, 22),
        start_date=date(2024, 2, 1),
        end_date=date(2024, 2, 29),
    )

    created = generate_schedule_for_lease(db, lease)

    payments = _payments(db, lease.id)
    assert created == 1
    assert payments[0].amount == Decimal("10000")


def test_revise_pending_obligations_only_touches_future_pending(db, lease):
    generate_schedule_for_lease(db, lease)
    may = next(p for p in _payments(db, lease.id) if p.due_date == date(2024, 5, 1))
    may.status = "waiting_approval"
    db.commit()

    lease.rent_amount = Decimal("12000")
    db.commit()

    revised = revise_pending_obligations(db, lease, today=date(2024, 3, 15))

    by_date = {p.due_date: p for p in _payments(db, lease.id)}
    assert revised == 3
    assert by_date[date(2024, 3, 1)].amount == Decimal("10000")
    assert by_date[date(2024, 4, 1)].amount == Decimal("12000")
    assert by_date[date(2024, 5, 1)].amount == Decimal("10000")
    assert by_date[date(2024, 6, 1)].amount == Decimal("12000")
    assert by_date[date(2024, 7, 1)].amount == Decimal("12000")
    # already due, left alone
    assert by_date[date(2024, 1, 22)].amount == Decimal("2000")
