import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from shared.core.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey(
        "users.id"), nullable=False)

    type = Column(String(32), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(String(500), nullable=False)
    # usually the lease payment the notification is about
    related_id = Column(UUID(as_uuid=True), nullable=True)
    status = Column(String(16), nullable=False, default="unread")  # unread | read
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    read_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_notifications_dedup", "type", "related_id", "created_at"),
        Index("ix_notifications_user_status", "user_id", "status"),
    )
