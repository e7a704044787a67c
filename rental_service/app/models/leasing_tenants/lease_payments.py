import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, Numeric, ForeignKey, DateTime, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from shared.core.database import Base


class LeasePayment(Base):
    """One amount owed under a lease (scheduled rent or an ad-hoc charge)."""
    __tablename__ = "lease_payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lease_id = Column(UUID(as_uuid=True), ForeignKey(
        "leases.id"), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    payment_type = Column(String(16), nullable=False, default="rent")  # rent | deposit | utility | other
    due_date = Column(Date, nullable=False)
    paid_date = Column(Date, nullable=True)
    status = Column(String(24), nullable=False, default="pending")  # pending | waiting_approval | paid | overdue

    proof_images = Column(JSON().with_variant(JSONB, "postgresql"), default=list)
    rejection_reason = Column(String(500), nullable=True)

    receipt_number = Column(String(20), nullable=True, index=True)
    receipt_date = Column(Date, nullable=True)
    payment_method = Column(String(24), nullable=True)

    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (
        UniqueConstraint("lease_id", "due_date", "payment_type",
                         name="uq_lease_payment_natural_key"),
    )

    lease = relationship("Lease", back_populates="payments")
