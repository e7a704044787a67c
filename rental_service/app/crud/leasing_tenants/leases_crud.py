import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.schemas import UserToken
from shared.helpers.date_helper import local_now, local_today, year_bounds
from shared.helpers.json_response_helper import error_response
from shared.helpers.sequence_helper import next_sequence_number
from shared.models.users import Users
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from ...enum.leasing_tenants_enum import AssetStatus, LeaseStatus
from ...models.assets.assets import Asset
from ...models.leasing_tenants.leases import Lease
from ...schemas.leasing_tenants.leases_schemas import (
    LeaseCreate, LeaseListResponse, LeaseOut, LeaseRequest, LeaseSaveResult, LeaseUpdate
)
from .payment_schedule_crud import generate_schedule_for_lease, revise_pending_obligations

logger = logging.getLogger(__name__)

SCHEDULE_FAILED_WARNING = (
    "Lease saved, but its payment schedule could not be generated. "
    "Use generate-schedule to retry."
)

DATE_FIELDS = ("start_date", "end_date", "signed_date")
AMOUNT_FIELDS = ("rent_amount", "deposit_amount", "insurance_amount")


# ----------------------------------------------------
# Helpers
# ----------------------------------------------------
def _lease_out(lease: Lease) -> LeaseOut:
    return LeaseOut.model_validate(lease).model_copy(update={
        "asset_name": lease.asset.name if lease.asset else None,
        "tenant_name": lease.tenant.full_name if lease.tenant else None,
    })


def _not_found(what: str):
    return error_response(
        message=f"{what} not found",
        status_code=str(AppStatusCode.RESOURCE_NOT_FOUND),
        http_status=404
    )


def _ensure_manages_asset(current_user: UserToken, asset: Asset):
    if current_user.role == UserRole.ADMIN.value:
        return
    if current_user.role == UserRole.OWNER.value and asset.owner_id == current_user.user_id:
        return
    error_response(
        message="You are not allowed to manage leases of this asset",
        status_code=str(AppStatusCode.UNAUTHORIZED_ACTION),
        http_status=403
    )


def _validate_tenant(db: Session, tenant_id: UUID) -> Users:
    tenant = db.query(Users).filter(Users.id == tenant_id).first()
    if not tenant:
        return _not_found("Tenant")
    if tenant.role != UserRole.TENANT.value:
        return error_response(
            message="Selected user is not a tenant",
            status_code=str(AppStatusCode.INVALID_INPUT),
            http_status=400
        )
    return tenant


def _changed(obj, data: dict, fields) -> bool:
    for field in fields:
        if field not in data:
            continue
        old, new = getattr(obj, field), data[field]
        if field in AMOUNT_FIELDS:
            old = Decimal(str(old)) if old is not None else None
            new = Decimal(str(new)) if new is not None else None
        if old != new:
            return True
    return False


def generate_contract_number(db: Session, owner_id: UUID, year: int) -> str:
    year_start, year_end = year_bounds(year)
    issued = (
        db.query(func.count(Lease.id))
        .join(Asset, Asset.id == Lease.asset_id)
        .filter(
            Asset.owner_id == owner_id,
            Lease.contract_number.isnot(None),
            Lease.created_at >= year_start,
            Lease.created_at < year_end,
        )
        .scalar()
    )
    return next_sequence_number(year, issued)


def sync_asset_status(db: Session, asset: Asset, today: Optional[date] = None):
    """Mark the asset rented while an active lease covers today, available otherwise.

    Assets under maintenance are left alone.
    """
    today = today or local_today()
    covering = db.query(Lease.id).filter(
        Lease.asset_id == asset.id,
        Lease.status == LeaseStatus.active.value,
        Lease.start_date <= today,
        Lease.end_date >= today,
    ).first()

    if covering and asset.status != AssetStatus.rented.value:
        asset.status = AssetStatus.rented.value
        db.commit()
    elif not covering and asset.status == AssetStatus.rented.value:
        asset.status = AssetStatus.available.value
        db.commit()


def _run_schedule(db: Session, lease: Lease, revise: bool) -> LeaseSaveResult:
    result = LeaseSaveResult(lease=_lease_out(lease))
    try:
        result.payments_created = generate_schedule_for_lease(db, lease)
        if revise:
            result.payments_revised = revise_pending_obligations(db, lease)
        result.schedule_generated = True
    except Exception:
        db.rollback()
        logger.exception("Schedule generation failed for lease %s", lease.id)
        result.warning = SCHEDULE_FAILED_WARNING
    return result


# ----------------------------------------------------
# Queries
# ----------------------------------------------------
def get_leases(db: Session, current_user: UserToken, params: LeaseRequest) -> LeaseListResponse:
    q = (
        db.query(Lease)
        .join(Asset, Asset.id == Lease.asset_id)
        .join(Users, Users.id == Lease.tenant_id)
    )

    if current_user.role == UserRole.OWNER.value:
        q = q.filter(Asset.owner_id == current_user.user_id)
    elif current_user.role == UserRole.TENANT.value:
        q = q.filter(Lease.tenant_id == current_user.user_id)

    if params.status and params.status.lower() != "all":
        q = q.filter(Lease.status == params.status.lower())

    if params.asset_id:
        q = q.filter(Lease.asset_id == params.asset_id)

    if params.search:
        like = f"%{params.search}%"
        q = q.filter(
            or_(
                Asset.name.ilike(like),
                Users.full_name.ilike(like),
                Lease.contract_number.ilike(like),
            )
        )

    total = q.count()
    q = q.order_by(Lease.created_at.desc()).offset(params.skip or 0)
    if params.limit:
        q = q.limit(params.limit)

    return {"leases": [_lease_out(row) for row in q.all()], "total": total}


def get_lease_by_id(db: Session, lease_id: UUID, current_user: UserToken) -> LeaseOut:
    lease = db.query(Lease).filter(Lease.id == lease_id).first()
    if not lease:
        return _not_found("Lease")

    if current_user.role == UserRole.TENANT.value:
        if lease.tenant_id != current_user.user_id:
            return error_response(
                message="You are not allowed to view this lease",
                status_code=str(AppStatusCode.UNAUTHORIZED_ACTION),
                http_status=403
            )
    else:
        _ensure_manages_asset(current_user, lease.asset)

    return _lease_out(lease)


# ----------------------------------------------------
# Create / update
# ----------------------------------------------------
def create_lease(db: Session, payload: LeaseCreate, current_user: UserToken) -> LeaseSaveResult:
    asset = db.query(Asset).filter(Asset.id == payload.asset_id).first()
    if not asset:
        return _not_found("Asset")
    _ensure_manages_asset(current_user, asset)
    _validate_tenant(db, payload.tenant_id)

    now = local_now()
    today = now.date()
    lease_data = payload.model_dump()
    lease_data["status"] = payload.status.value
    lease = Lease(
        **lease_data,
        contract_number=generate_contract_number(db, asset.owner_id, today.year),
        created_at=now,
    )
    db.add(lease)
    db.commit()
    db.refresh(lease)
    logger.info("Lease %s created with contract %s",
                lease.id, lease.contract_number)

    if lease.status != LeaseStatus.active.value:
        return LeaseSaveResult(lease=_lease_out(lease))

    sync_asset_status(db, asset, today)
    return _run_schedule(db, lease, revise=False)


def update_lease(db: Session, lease_id: UUID, payload: LeaseUpdate, current_user: UserToken) -> LeaseSaveResult:
    lease = db.query(Lease).filter(Lease.id == lease_id).first()
    if not lease:
        return _not_found("Lease")
    _ensure_manages_asset(current_user, lease.asset)

    data = payload.model_dump(exclude_unset=True)
    if "tenant_id" in data:
        if data["tenant_id"] is None:
            data.pop("tenant_id")
        else:
            _validate_tenant(db, data["tenant_id"])
    if data.get("status") is not None:
        data["status"] = data["status"].value

    # nullable only in the payload, not on the lease
    for field in ("start_date", "end_date", "rent_amount", "deposit_amount", "insurance_amount", "status"):
        if field in data and data[field] is None:
            data.pop(field)

    start = data.get("start_date", lease.start_date)
    end = data.get("end_date", lease.end_date)
    if end < start:
        return error_response(
            message="end_date must not be before start_date",
            status_code=str(AppStatusCode.INVALID_INPUT),
            http_status=400
        )

    was_active = lease.status == LeaseStatus.active.value
    dates_changed = _changed(lease, data, DATE_FIELDS)
    amounts_changed = _changed(lease, data, AMOUNT_FIELDS)

    for k, v in data.items():
        setattr(lease, k, v)
    db.commit()
    db.refresh(lease)

    is_active = lease.status == LeaseStatus.active.value
    sync_asset_status(db, lease.asset)

    if not is_active or (was_active and not dates_changed and not amounts_changed):
        return LeaseSaveResult(lease=_lease_out(lease))

    revise = was_active and amounts_changed and settings.REVISE_PENDING_ON_EDIT
    return _run_schedule(db, lease, revise=revise)


def regenerate_schedule(db: Session, lease_id: UUID, current_user: UserToken) -> LeaseSaveResult:
    lease = db.query(Lease).filter(Lease.id == lease_id).first()
    if not lease:
        return _not_found("Lease")
    _ensure_manages_asset(current_user, lease.asset)

    if lease.status != LeaseStatus.active.value:
        return error_response(
            message=f"Cannot generate a payment schedule for a lease that is {lease.status}",
            status_code=str(AppStatusCode.INVALID_STATUS_TRANSITION),
            http_status=400
        )

    return _run_schedule(db, lease, revise=False)
