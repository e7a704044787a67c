from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi import HTTPException

from rental_service.app.crud.leasing_tenants import lease_payments_crud as crud
from rental_service.app.crud.system import notifications_crud
from rental_service.app.models.system.notifications import Notification
from rental_service.app.schemas.leasing_tenants.lease_payments_schemas import (
    LeasePaymentCreate, LeasePaymentRequest, PaymentApprove, PaymentDetailsUpdate,
    PaymentProofSubmit, PaymentReject,
)


def _approve(receipt_date=date(2024, 5, 3)):
    return PaymentApprove(paid_date=date(2024, 5, 2), receipt_date=receipt_date, payment_method="bank_transfer")


def _notifications(db, user_id, type_):
    db.expire_all()
    return db.query(Notification).filter(
        Notification.user_id == user_id, Notification.type == type_
    ).all()


# -----------------------------------------------------------------------------
# Proof submission
# -----------------------------------------------------------------------------


def test_tenant_submits_proof(db, lease, tenant, owner, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1))

    out = crud.submit_proof(
        db, payment.id, PaymentProofSubmit(proof_images=["slip-1.jpg"]), as_token(tenant))

    assert out.status == "waiting_approval"
    assert out.proof_images == ["slip-1.jpg"]
    notes = _notifications(db, owner.id, "payment_proof")
    assert len(notes) == 1
    assert notes[0].related_id == payment.id


def test_overdue_payment_accepts_proof(db, lease, tenant, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1), status="overdue")

    out = crud.submit_proof(
        db, payment.id, PaymentProofSubmit(proof_images=["slip.png"]), as_token(tenant))

    assert out.status == "waiting_approval"


def test_owner_cannot_submit_proof(db, lease, owner, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1))

    with pytest.raises(HTTPException) as exc:
        crud.submit_proof(db, payment.id, PaymentProofSubmit(proof_images=["x.jpg"]), as_token(owner))

    assert exc.value.status_code == 403


def test_other_tenant_cannot_submit_proof(db, lease, make_user, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1))
    stranger = make_user("tenant")

    with pytest.raises(HTTPException) as exc:
        crud.submit_proof(db, payment.id, PaymentProofSubmit(proof_images=["x.jpg"]), as_token(stranger))

    assert exc.value.status_code == 403


def test_paid_payment_rejects_new_proof(db, lease, tenant, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1), status="paid")

    with pytest.raises(HTTPException) as exc:
        crud.submit_proof(db, payment.id, PaymentProofSubmit(proof_images=["x.jpg"]), as_token(tenant))

    assert exc.value.status_code == 400
    assert exc.value.detail["status_code"] == "203"


def test_missing_payment_is_not_found(db, tenant, as_token):
    with pytest.raises(HTTPException) as exc:
        crud.submit_proof(db, uuid4(), PaymentProofSubmit(proof_images=["x.jpg"]), as_token(tenant))

    assert exc.value.status_code == 404


# -----------------------------------------------------------------------------
# Approval and receipt numbers
# -----------------------------------------------------------------------------


def test_approval_assigns_running_receipt_numbers(db, lease, owner, tenant, make_payment, as_token):
    first = make_payment(lease, date(2024, 5, 1), status="waiting_approval")
    second = make_payment(lease, date(2024, 6, 1))

    out1 = crud.approve_payment(db, first.id, _approve(), as_token(owner))
    out2 = crud.approve_payment(db, second.id, _approve(date(2024, 6, 2)), as_token(owner))

    assert out1.status == "paid"
    assert out1.receipt_number == "2567/01"
    assert out1.payment_method == "bank_transfer"
    assert out2.receipt_number == "2567/02"
    assert len(_notifications(db, tenant.id, "payment_approved")) == 2


def test_receipt_numbers_restart_each_year_and_per_owner(
        db, lease, owner, make_user, make_asset, make_lease, tenant, make_payment, as_token):
    make_payment(lease, date(2023, 12, 1), status="paid",
                 receipt_number="2566/09", receipt_date=date(2023, 12, 2))
    other_owner = make_user("owner")
    other_lease = make_lease(make_asset(other_owner, "House 7"), tenant)
    make_payment(other_lease, date(2024, 4, 1), status="paid",
                 receipt_number="2567/01", receipt_date=date(2024, 4, 1))

    payment = make_payment(lease, date(2024, 5, 1))
    out = crud.approve_payment(db, payment.id, _approve(), as_token(owner))

    assert out.receipt_number == "2567/01"


def test_approval_keeps_an_existing_receipt_number(db, lease, owner, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1), receipt_number="2567/07")

    out = crud.approve_payment(db, payment.id, _approve(), as_token(owner))

    assert out.receipt_number == "2567/07"


def test_paid_payment_cannot_be_approved_again(db, lease, owner, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1))
    crud.approve_payment(db, payment.id, _approve(), as_token(owner))

    with pytest.raises(HTTPException) as exc:
        crud.approve_payment(db, payment.id, _approve(date(2024, 8, 1)), as_token(owner))

    assert exc.value.status_code == 400
    db.expire_all()
    assert crud.get_payment_by_id(db, payment.id, as_token(owner)).receipt_number == "2567/01"


def test_tenant_cannot_approve(db, lease, tenant, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1), status="waiting_approval")

    with pytest.raises(HTTPException) as exc:
        crud.approve_payment(db, payment.id, _approve(), as_token(tenant))

    assert exc.value.status_code == 403


def test_admin_can_approve_any_payment(db, lease, admin, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1), status="waiting_approval")

    out = crud.approve_payment(db, payment.id, _approve(), as_token(admin))

    assert out.status == "paid"


def test_failed_notification_does_not_undo_approval(db, lease, owner, make_payment, as_token, monkeypatch):
    payment = make_payment(lease, date(2024, 5, 1), status="waiting_approval")

    def broken(*args, **kwargs):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(notifications_crud, "create_notification", broken)

    out = crud.approve_payment(db, payment.id, _approve(), as_token(owner))

    assert out.status == "paid"
    db.expire_all()
    assert crud.get_payment_by_id(db, payment.id, as_token(owner)).status == "paid"
    assert db.query(Notification).count() == 0


# -----------------------------------------------------------------------------
# Rejection
# -----------------------------------------------------------------------------


def test_rejection_returns_payment_to_pending(db, lease, owner, tenant, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1))
    crud.submit_proof(db, payment.id, PaymentProofSubmit(proof_images=["blurry.jpg"]), as_token(tenant))

    out = crud.reject_payment(db, payment.id, PaymentReject(reason="  Slip is unreadable "), as_token(owner))

    assert out.status == "pending"
    assert out.rejection_reason == "Slip is unreadable"
    notes = _notifications(db, tenant.id, "payment_rejected")
    assert len(notes) == 1
    assert "Slip is unreadable" in notes[0].message

    resubmitted = crud.submit_proof(
        db, payment.id, PaymentProofSubmit(proof_images=["clear.jpg"]), as_token(tenant))
    assert resubmitted.rejection_reason is None
    assert resubmitted.proof_images == ["clear.jpg"]


def test_only_waiting_payments_can_be_rejected(db, lease, owner, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1))

    with pytest.raises(HTTPException) as exc:
        crud.reject_payment(db, payment.id, PaymentReject(reason="no"), as_token(owner))

    assert exc.value.status_code == 400


def test_blank_rejection_reason_is_invalid():
    with pytest.raises(ValueError):
        PaymentReject(reason="   ")


# -----------------------------------------------------------------------------
# Details, ad-hoc charges, queries
# -----------------------------------------------------------------------------


def test_update_payment_details(db, lease, owner, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1))
    crud.approve_payment(db, payment.id, _approve(), as_token(owner))

    out = crud.update_payment_details(
        db, payment.id, PaymentDetailsUpdate(payment_method="cash", paid_date=date(2024, 5, 4)), as_token(owner))

    assert out.payment_method == "cash"
    assert out.paid_date == date(2024, 5, 4)
    assert out.receipt_number == "2567/01"


def test_receipt_date_cannot_be_edited_after_approval():
    with pytest.raises(ValueError):
        PaymentDetailsUpdate(receipt_date=date(2025, 1, 5))


def test_details_edit_never_frees_a_receipt_number(db, lease, owner, make_payment, as_token):
    first = make_payment(lease, date(2024, 5, 1))
    second = make_payment(lease, date(2024, 6, 1))
    crud.approve_payment(db, first.id, _approve(date(2024, 5, 3)), as_token(owner))

    edited = crud.update_payment_details(
        db, first.id, PaymentDetailsUpdate(paid_date=date(2025, 1, 5)), as_token(owner))
    out = crud.approve_payment(db, second.id, _approve(date(2024, 6, 3)), as_token(owner))

    assert edited.receipt_date == date(2024, 5, 3)
    assert edited.receipt_number == "2567/01"
    assert out.receipt_number == "2567/02"


def test_create_adhoc_payment_and_reject_duplicate(db, lease, owner, as_token):
    payload = LeasePaymentCreate(
        lease_id=lease.id, amount=Decimal("850"), payment_type="utility", due_date=date(2024, 5, 10))

    out = crud.create_payment(db, payload, as_token(owner))
    assert out.payment_type == "utility"
    assert out.payable_from == date(2024, 4, 20)

    with pytest.raises(HTTPException) as exc:
        crud.create_payment(db, payload, as_token(owner))
    assert exc.value.status_code == 400
    assert exc.value.detail["status_code"] == "202"


def test_get_payments_is_filtered_by_role(
        db, lease, owner, tenant, make_user, make_asset, make_lease, make_payment, as_token):
    make_payment(lease, date(2024, 5, 1))
    make_payment(lease, date(2024, 6, 1), status="paid")
    other_tenant = make_user("tenant")
    other_lease = make_lease(make_asset(make_user("owner"), "Shop 3"), other_tenant)
    make_payment(other_lease, date(2024, 5, 1))

    owner_view = crud.get_payments(db, as_token(owner), LeasePaymentRequest())
    tenant_view = crud.get_payments(db, as_token(other_tenant), LeasePaymentRequest())
    pending_only = crud.get_payments(db, as_token(owner), LeasePaymentRequest(status="pending"))

    assert owner_view["total"] == 2
    assert [p.due_date for p in owner_view["payments"]] == [date(2024, 6, 1), date(2024, 5, 1)]
    assert tenant_view["total"] == 1
    assert pending_only["total"] == 1


def test_tenant_cannot_view_someone_elses_payment(db, lease, make_user, make_payment, as_token):
    payment = make_payment(lease, date(2024, 5, 1))

    with pytest.raises(HTTPException) as exc:
        crud.get_payment_by_id(db, payment.id, as_token(make_user("tenant")))

    assert exc.value.status_code == 403
