import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, Numeric, ForeignKey, DateTime, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Lease(Base):
    __tablename__ = "leases"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    asset_id = Column(UUID(as_uuid=True), ForeignKey(
        "assets.id"), nullable=False, index=True)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey(
        "users.id"), nullable=False, index=True)

    # e.g. 2567/01, assigned once when the lease is created
    contract_number = Column(String(20), nullable=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    # first obligation falls due on this date (creation date when not given)
    signed_date = Column(Date, nullable=True)

    rent_amount = Column(Numeric(14, 2), nullable=False)
    deposit_amount = Column(Numeric(14, 2), nullable=False, default=0)
    insurance_amount = Column(Numeric(14, 2), nullable=False, default=0)

    status = Column(String(16), default="pending")  # pending | active | expired | terminated
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # relationships
    asset = relationship("Asset", back_populates="leases")
    tenant = relationship("Users")
    payments = relationship(
        "LeasePayment", back_populates="lease", order_by="LeasePayment.due_date")
