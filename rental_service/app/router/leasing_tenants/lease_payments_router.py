from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_owner_or_admin, validate_current_token
from shared.core.database import get_rental_db as get_db
from shared.core.schemas import UserToken
from ...crud.leasing_tenants import lease_payments_crud as crud
from ...schemas.leasing_tenants.lease_payments_schemas import (
    LeasePaymentCreate, LeasePaymentListResponse, LeasePaymentOut, LeasePaymentRequest,
    PaymentApprove, PaymentDetailsUpdate, PaymentProofSubmit, PaymentReject
)

router = APIRouter(
    prefix="/api/payments",
    tags=["payments"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("/all", response_model=LeasePaymentListResponse)
def get_payments(
    params: LeasePaymentRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_payments(db, current_user, params)


@router.get("/{payment_id}", response_model=LeasePaymentOut)
def get_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_payment_by_id(db, payment_id, current_user)


@router.post("/", response_model=LeasePaymentOut)
def create_payment(
    payload: LeasePaymentCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner_or_admin)
):
    return crud.create_payment(db, payload, current_user)


@router.put("/{payment_id}/proof", response_model=LeasePaymentOut)
def submit_proof(
    payment_id: UUID,
    payload: PaymentProofSubmit,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.submit_proof(db, payment_id, payload, current_user)


@router.put("/{payment_id}/approve", response_model=LeasePaymentOut)
def approve_payment(
    payment_id: UUID,
    payload: PaymentApprove,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner_or_admin)
):
    return crud.approve_payment(db, payment_id, payload, current_user)


@router.put("/{payment_id}/reject", response_model=LeasePaymentOut)
def reject_payment(
    payment_id: UUID,
    payload: PaymentReject,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner_or_admin)
):
    return crud.reject_payment(db, payment_id, payload, current_user)


@router.put("/{payment_id}/details", response_model=LeasePaymentOut)
def update_payment_details(
    payment_id: UUID,
    payload: PaymentDetailsUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner_or_admin)
):
    return crud.update_payment_details(db, payment_id, payload, current_user)
