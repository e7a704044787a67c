import uuid
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy import TIMESTAMP, Column, String, func
from shared.core.database import Base


class Users(Base):
    """Account record owned by the user-management service.

    Only the columns the rental engine reads are mapped here: the role decides
    which payment actions a caller may take, and the full name is used in
    notification text.
    """
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(200), nullable=False)
    phone = Column(String(20), nullable=True)
    email = Column(String(200), nullable=True)
    role = Column(String(16), nullable=False)  # owner | tenant | admin
    status = Column(String(16), nullable=False, default="active")
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
