import logging
from datetime import date, datetime
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from shared.core.schemas import CommonQueryParams
from shared.helpers.date_helper import day_bounds, local_now
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from ...enum.notifications_enum import NotificationStatus, NotificationType
from ...models.system.notifications import Notification
from ...schemas.system.notifications_schemas import NotificationCreate, NotificationOut

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    user_id: UUID,
    type: NotificationType,
    title: str,
    message: str,
    related_id: Optional[UUID] = None,
    created_at: Optional[datetime] = None,
) -> Notification:
    """Stage a new unread notification; the caller owns the commit."""
    notification = Notification(
        user_id=user_id,
        type=type.value,
        title=title,
        message=message,
        related_id=related_id,
        status=NotificationStatus.unread.value,
        created_at=created_at or local_now(),
    )
    db.add(notification)
    return notification


def notification_exists(
    db: Session,
    user_id: UUID,
    type: NotificationType,
    related_id: UUID,
    on_date: date,
) -> bool:
    """True when the user already got this kind of notification about the entity on that day."""
    day_start, day_end = day_bounds(on_date)
    return db.query(Notification.id).filter(
        Notification.user_id == user_id,
        Notification.type == type.value,
        Notification.related_id == related_id,
        Notification.created_at >= day_start,
        Notification.created_at < day_end,
    ).first() is not None


def send_notifications(db: Session, notifications: Iterable[NotificationCreate]) -> int:
    """Best-effort write used after a user action has already been committed.

    A failure here is logged and swallowed so the action that triggered the
    notification still succeeds.
    """
    items = list(notifications)
    try:
        for item in items:
            create_notification(
                db,
                user_id=item.user_id,
                type=item.type,
                title=item.title,
                message=item.message,
                related_id=item.related_id,
            )
        db.commit()
        return len(items)
    except Exception:
        db.rollback()
        logger.exception("Failed to write %s notification(s)", len(items))
        return 0


def get_unread_notifications(db: Session, user_id: UUID, params: CommonQueryParams):
    notification_query = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.status == NotificationStatus.unread.value,
    )

    if params.search:
        search_term = f"%{params.search}%"
        notification_query = notification_query.filter(
            Notification.title.ilike(search_term))

    total = notification_query.with_entities(
        func.count(Notification.id.distinct())).scalar()

    notification_query = notification_query.order_by(
        Notification.created_at.desc()).offset(params.skip or 0)
    if params.limit:
        notification_query = notification_query.limit(params.limit)

    result = [NotificationOut.model_validate(n)
              for n in notification_query.all()]
    return {"notifications": result, "total": total}


def get_unread_count(db: Session, user_id: UUID) -> int:
    return db.query(func.count(Notification.id)).filter(
        Notification.user_id == user_id,
        Notification.status == NotificationStatus.unread.value,
    ).scalar() or 0


def mark_as_read(db: Session, notification_id: UUID, user_id: UUID) -> NotificationOut:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).first()

    if not notification:
        return error_response(
            message="Notification not found",
            status_code=str(AppStatusCode.RESOURCE_NOT_FOUND),
            http_status=404
        )

    if notification.status != NotificationStatus.read.value:
        notification.status = NotificationStatus.read.value
        notification.read_at = local_now()
        db.commit()
        db.refresh(notification)

    return NotificationOut.model_validate(notification)
