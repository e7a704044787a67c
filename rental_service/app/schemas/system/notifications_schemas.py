from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel
from uuid import UUID

from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.notifications_enum import NotificationStatus, NotificationType


class NotificationBase(BaseModel):
    type: NotificationType
    title: str
    message: str
    related_id: Optional[UUID] = None


class NotificationCreate(NotificationBase):
    user_id: UUID


class NotificationOut(NotificationBase):
    id: UUID
    user_id: UUID
    status: NotificationStatus
    created_at: datetime
    read_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class NotificationListResponse(EmptyStringModel):
    notifications: List[NotificationOut]
    total: int


class UnreadCountResponse(BaseModel):
    count: int


class SweepSummary(BaseModel):
    scanned: int = 0
    marked_overdue: int = 0
    overdue_notifications: int = 0
    due_soon_notifications: int = 0
    failed: int = 0
    skipped: int = 0
