from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator

from shared.core.schemas import CommonQueryParams
from ...enum.lease_payments_enum import PaymentMethod, PaymentStatus, PaymentType

# Rent can be paid this many days before its due date
ADVANCE_PAYMENT_WINDOW_DAYS = 20


class PaymentScheduleItem(BaseModel):
    """A payment the schedule says should exist (not yet persisted)."""
    amount: Decimal
    payment_type: PaymentType = PaymentType.rent
    due_date: date


class LeasePaymentCreate(BaseModel):
    lease_id: UUID
    amount: Decimal = Field(gt=0)
    payment_type: PaymentType
    due_date: date


class PaymentProofSubmit(BaseModel):
    proof_images: List[str] = Field(min_length=1)


class PaymentApprove(BaseModel):
    paid_date: date
    receipt_date: date
    payment_method: PaymentMethod


class PaymentReject(BaseModel):
    reason: str = Field(max_length=300)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str):
        if not v or not v.strip():
            raise ValueError("reason is required")
        return v.strip()


class PaymentDetailsUpdate(BaseModel):
    # receipt_date is fixed at approval; it decides the receipt number sequence
    paid_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None

    model_config = {"extra": "forbid"}


class LeasePaymentOut(BaseModel):
    id: UUID
    lease_id: UUID
    amount: Decimal
    payment_type: PaymentType
    due_date: date
    paid_date: Optional[date] = None
    status: PaymentStatus
    proof_images: List[str] = []
    rejection_reason: Optional[str] = None
    receipt_number: Optional[str] = None
    receipt_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("proof_images", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    @computed_field
    @property
    def payable_from(self) -> date:
        return self.due_date - timedelta(days=ADVANCE_PAYMENT_WINDOW_DAYS)


class LeasePaymentRequest(CommonQueryParams):
    lease_id: Optional[UUID] = None
    status: Optional[str] = None       # "all" | "pending" | ...


class LeasePaymentListResponse(BaseModel):
    payments: List[LeasePaymentOut]
    total: int
