from datetime import datetime, date
from uuid import UUID
from typing import Optional, List
from decimal import Decimal
from pydantic import BaseModel, Field, model_validator

from shared.core.schemas import CommonQueryParams
from ...enum.leasing_tenants_enum import LeaseStatus


class LeaseBase(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    signed_date: Optional[date] = None
    rent_amount: Optional[Decimal] = Field(default=None, gt=0)
    deposit_amount: Optional[Decimal] = Field(default=None, ge=0)
    insurance_amount: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[LeaseStatus] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_period(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class LeaseCreate(LeaseBase):
    asset_id: UUID
    tenant_id: UUID
    start_date: date
    end_date: date
    rent_amount: Decimal = Field(gt=0)
    deposit_amount: Decimal = Field(default=Decimal("0"), ge=0)
    insurance_amount: Decimal = Field(default=Decimal("0"), ge=0)
    status: LeaseStatus = LeaseStatus.pending


class LeaseUpdate(LeaseBase):
    tenant_id: Optional[UUID] = None


class LeaseOut(BaseModel):
    id: UUID
    asset_id: UUID
    tenant_id: UUID
    contract_number: Optional[str] = None
    start_date: date
    end_date: date
    signed_date: Optional[date] = None
    rent_amount: Decimal
    deposit_amount: Decimal
    insurance_amount: Decimal
    status: LeaseStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    asset_name: Optional[str] = None
    tenant_name: Optional[str] = None

    model_config = {"from_attributes": True}


class LeaseSaveResult(BaseModel):
    """Lease write plus the outcome of the schedule work that followed it.

    The lease is committed before its payments are generated, so a failed
    generation leaves a saved lease with ``schedule_generated = False`` and a
    warning the caller can surface.
    """
    lease: LeaseOut
    schedule_generated: bool = False
    payments_created: int = 0
    payments_revised: int = 0
    warning: Optional[str] = None


class LeaseRequest(CommonQueryParams):
    status: Optional[str] = None       # "all" | "active" | ...
    asset_id: Optional[UUID] = None


class LeaseListResponse(BaseModel):
    leases: List[LeaseOut]
    total: int
