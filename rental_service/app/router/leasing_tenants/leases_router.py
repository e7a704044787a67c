from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_owner_or_admin, validate_current_token
from shared.core.database import get_rental_db as get_db
from shared.core.schemas import UserToken
from ...crud.leasing_tenants import leases_crud as crud
from ...schemas.leasing_tenants.leases_schemas import (
    LeaseCreate, LeaseListResponse, LeaseOut, LeaseRequest, LeaseSaveResult, LeaseUpdate
)

router = APIRouter(
    prefix="/api/leases",
    tags=["leases"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("/all", response_model=LeaseListResponse)
def get_leases(
    params: LeaseRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_leases(db, current_user, params)


@router.get("/{lease_id}", response_model=LeaseOut)
def get_lease(
    lease_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_lease_by_id(db, lease_id, current_user)


@router.post("/", response_model=LeaseSaveResult)
def create_lease(
    payload: LeaseCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner_or_admin)
):
    return crud.create_lease(db, payload, current_user)


@router.put("/{lease_id}", response_model=LeaseSaveResult)
def update_lease(
    lease_id: UUID,
    payload: LeaseUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner_or_admin)
):
    return crud.update_lease(db, lease_id, payload, current_user)


@router.post("/{lease_id}/generate-schedule", response_model=LeaseSaveResult)
def generate_schedule(
    lease_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner_or_admin)
):
    return crud.regenerate_schedule(db, lease_id, current_user)
