import logging
from datetime import date
from decimal import Decimal
from typing import Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.schemas import UserToken
from shared.helpers.date_helper import year_bounds
from shared.helpers.json_response_helper import error_response
from shared.helpers.sequence_helper import next_sequence_number
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from ...enum.lease_payments_enum import PaymentStatus
from ...enum.notifications_enum import NotificationType
from ...models.assets.assets import Asset
from ...models.leasing_tenants.lease_payments import LeasePayment
from ...models.leasing_tenants.leases import Lease
from ...schemas.leasing_tenants.lease_payments_schemas import (
    LeasePaymentCreate, LeasePaymentListResponse, LeasePaymentOut, LeasePaymentRequest,
    PaymentApprove, PaymentDetailsUpdate, PaymentProofSubmit, PaymentReject
)
from ...schemas.system.notifications_schemas import NotificationCreate
from ..system.notifications_crud import send_notifications

logger = logging.getLogger(__name__)

# Allowed source states per action; paid is terminal
PROOF_SUBMITTABLE_STATUSES = {PaymentStatus.pending.value, PaymentStatus.overdue.value}
APPROVABLE_STATUSES = {PaymentStatus.pending.value, PaymentStatus.waiting_approval.value}
REJECTABLE_STATUSES = {PaymentStatus.waiting_approval.value}


def format_amount(amount) -> str:
    return f"{Decimal(amount):,.2f}"


# ----------------------------------------------------
# Access helpers
# ----------------------------------------------------
def get_payment_context(db: Session, payment_id: UUID) -> Tuple[LeasePayment, Lease, Asset]:
    row = (
        db.query(LeasePayment, Lease, Asset)
        .join(Lease, Lease.id == LeasePayment.lease_id)
        .join(Asset, Asset.id == Lease.asset_id)
        .filter(LeasePayment.id == payment_id)
        .first()
    )
    if not row:
        return error_response(
            message="Payment not found",
            status_code=str(AppStatusCode.RESOURCE_NOT_FOUND),
            http_status=404
        )
    return row


def _forbidden():
    return error_response(
        message="You are not allowed to act on this payment",
        status_code=str(AppStatusCode.UNAUTHORIZED_ACTION),
        http_status=403
    )


def _is_admin(current_user: UserToken) -> bool:
    return current_user.role == UserRole.ADMIN.value


def ensure_can_view(current_user: UserToken, lease: Lease, asset: Asset):
    if _is_admin(current_user):
        return
    if current_user.role == UserRole.OWNER.value and asset.owner_id == current_user.user_id:
        return
    if current_user.role == UserRole.TENANT.value and lease.tenant_id == current_user.user_id:
        return
    _forbidden()


def ensure_owner_or_admin(current_user: UserToken, asset: Asset):
    if _is_admin(current_user):
        return
    if current_user.role == UserRole.OWNER.value and asset.owner_id == current_user.user_id:
        return
    _forbidden()


def ensure_tenant_or_admin(current_user: UserToken, lease: Lease):
    if _is_admin(current_user):
        return
    if current_user.role == UserRole.TENANT.value and lease.tenant_id == current_user.user_id:
        return
    _forbidden()


def _invalid_transition(payment: LeasePayment, action: str):
    return error_response(
        message=f"Cannot {action} a payment that is {payment.status}",
        status_code=str(AppStatusCode.INVALID_STATUS_TRANSITION),
        http_status=400
    )


# ----------------------------------------------------
# Receipt numbers
# ----------------------------------------------------
def generate_receipt_number(db: Session, owner_id: UUID, receipt_date: date) -> str:
    """Next {BE year}/{NN} for the owner, counted over receipts dated in the same year."""
    year_start, year_end = year_bounds(receipt_date.year)
    issued = (
        db.query(func.count(LeasePayment.id))
        .join(Lease, Lease.id == LeasePayment.lease_id)
        .join(Asset, Asset.id == Lease.asset_id)
        .filter(
            Asset.owner_id == owner_id,
            LeasePayment.receipt_number.isnot(None),
            LeasePayment.receipt_date >= year_start.date(),
            LeasePayment.receipt_date < year_end.date(),
        )
        .scalar()
    )
    return next_sequence_number(receipt_date.year, issued)


# ----------------------------------------------------
# Queries
# ----------------------------------------------------
def get_payments(db: Session, current_user: UserToken, params: LeasePaymentRequest) -> LeasePaymentListResponse:
    q = (
        db.query(LeasePayment)
        .join(Lease, Lease.id == LeasePayment.lease_id)
        .join(Asset, Asset.id == Lease.asset_id)
    )

    if current_user.role == UserRole.OWNER.value:
        q = q.filter(Asset.owner_id == current_user.user_id)
    elif current_user.role == UserRole.TENANT.value:
        q = q.filter(Lease.tenant_id == current_user.user_id)
    elif not _is_admin(current_user):
        _forbidden()

    if params.lease_id:
        q = q.filter(LeasePayment.lease_id == params.lease_id)

    if params.status and params.status.lower() != "all":
        q = q.filter(LeasePayment.status == params.status.lower())

    total = q.count()
    q = q.order_by(LeasePayment.due_date.desc()).offset(params.skip or 0)
    if params.limit:
        q = q.limit(params.limit)

    return {
        "payments": [LeasePaymentOut.model_validate(p) for p in q.all()],
        "total": total,
    }


def get_payment_by_id(db: Session, payment_id: UUID, current_user: UserToken) -> LeasePaymentOut:
    payment, lease, asset = get_payment_context(db, payment_id)
    ensure_can_view(current_user, lease, asset)
    return LeasePaymentOut.model_validate(payment)


# ----------------------------------------------------
# Ad-hoc charges (utility, other, ...)
# ----------------------------------------------------
def create_payment(db: Session, payload: LeasePaymentCreate, current_user: UserToken) -> LeasePaymentOut:
    row = (
        db.query(Lease, Asset)
        .join(Asset, Asset.id == Lease.asset_id)
        .filter(Lease.id == payload.lease_id)
        .first()
    )
    if not row:
        return error_response(
            message="Lease not found",
            status_code=str(AppStatusCode.RESOURCE_NOT_FOUND),
            http_status=404
        )
    lease, asset = row
    ensure_owner_or_admin(current_user, asset)

    payment = LeasePayment(
        lease_id=lease.id,
        amount=payload.amount,
        payment_type=payload.payment_type.value,
        due_date=payload.due_date,
        status=PaymentStatus.pending.value,
        proof_images=[],
    )
    db.add(payment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return error_response(
            message="A payment of this type is already due on that date for this lease",
            status_code=str(AppStatusCode.DUPLICATE_ADD_ERROR),
            http_status=400
        )
    db.refresh(payment)
    return LeasePaymentOut.model_validate(payment)


# ----------------------------------------------------
# State transitions
# ----------------------------------------------------
def submit_proof(db: Session, payment_id: UUID, payload: PaymentProofSubmit, current_user: UserToken) -> LeasePaymentOut:
    payment, lease, asset = get_payment_context(db, payment_id)
    ensure_tenant_or_admin(current_user, lease)

    if payment.status not in PROOF_SUBMITTABLE_STATUSES:
        return _invalid_transition(payment, "submit proof for")

    payment.proof_images = list(payload.proof_images)
    payment.rejection_reason = None
    payment.status = PaymentStatus.waiting_approval.value
    db.commit()
    db.refresh(payment)

    send_notifications(db, [
        NotificationCreate(
            user_id=asset.owner_id,
            type=NotificationType.payment_proof,
            title="Payment proof submitted",
            message=(
                f"Proof of payment for {format_amount(payment.amount)} due "
                f"{payment.due_date.isoformat()} on {asset.name} is waiting for your approval"
            ),
            related_id=payment.id,
        )
    ])
    return LeasePaymentOut.model_validate(payment)


def approve_payment(db: Session, payment_id: UUID, payload: PaymentApprove, current_user: UserToken) -> LeasePaymentOut:
    payment, lease, asset = get_payment_context(db, payment_id)
    ensure_owner_or_admin(current_user, asset)

    if payment.status not in APPROVABLE_STATUSES:
        return _invalid_transition(payment, "approve")

    payment.paid_date = payload.paid_date
    payment.receipt_date = payload.receipt_date
    payment.payment_method = payload.payment_method.value
    payment.status = PaymentStatus.paid.value
    if not payment.receipt_number:
        payment.receipt_number = generate_receipt_number(
            db, asset.owner_id, payload.receipt_date)
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s approved, receipt %s",
                payment.id, payment.receipt_number)

    send_notifications(db, [
        NotificationCreate(
            user_id=lease.tenant_id,
            type=NotificationType.payment_approved,
            title="Payment approved",
            message=(
                f"Your payment of {format_amount(payment.amount)} for {asset.name} "
                f"was approved, receipt no. {payment.receipt_number}"
            ),
            related_id=payment.id,
        )
    ])
    return LeasePaymentOut.model_validate(payment)


def reject_payment(db: Session, payment_id: UUID, payload: PaymentReject, current_user: UserToken) -> LeasePaymentOut:
    payment, lease, asset = get_payment_context(db, payment_id)
    ensure_owner_or_admin(current_user, asset)

    if payment.status not in REJECTABLE_STATUSES:
        return _invalid_transition(payment, "reject")

    payment.status = PaymentStatus.pending.value
    payment.rejection_reason = payload.reason
    db.commit()
    db.refresh(payment)

    send_notifications(db, [
        NotificationCreate(
            user_id=lease.tenant_id,
            type=NotificationType.payment_rejected,
            title="Payment proof rejected",
            message=(
                f"Your proof of payment for {format_amount(payment.amount)} on {asset.name} "
                f"was rejected: {payload.reason}"
            ),
            related_id=payment.id,
        )
    ])
    return LeasePaymentOut.model_validate(payment)


def update_payment_details(db: Session, payment_id: UUID, payload: PaymentDetailsUpdate, current_user: UserToken) -> LeasePaymentOut:
    payment, lease, asset = get_payment_context(db, payment_id)
    ensure_owner_or_admin(current_user, asset)

    data = payload.model_dump(exclude_unset=True)
    if not data:
        return error_response(
            message="No fields to update",
            status_code=str(AppStatusCode.REQUIRED_VALIDATION_ERROR),
            http_status=400
        )

    for k, v in data.items():
        setattr(payment, k, v.value if hasattr(v, "value") else v)

    db.commit()
    db.refresh(payment)
    return LeasePaymentOut.model_validate(payment)
