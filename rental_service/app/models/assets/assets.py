import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base


class Asset(Base):
    """Rentable property, managed by the asset service.

    The rental engine only needs to know who owns it (receipt and contract
    numbers are scoped per owner) and keeps its occupancy status in step with
    the leases on it.
    """
    __tablename__ = "assets"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), ForeignKey(
        "users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    status = Column(String(16), default="available")  # available | rented | maintenance
    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)

    leases = relationship("Lease", back_populates="asset")
