from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from shared.core.auth import allow_admin, validate_current_token
from shared.core.database import get_rental_db as get_db
from shared.core.schemas import CommonQueryParams, UserToken
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from ...crud.scheduler.scheduler_service import run_notification_sweep
from ...crud.system import notifications_crud as crud
from ...schemas.system.notifications_schemas import (
    NotificationListResponse, NotificationOut, SweepSummary, UnreadCountResponse
)

router = APIRouter(prefix="/api/notifications",
                   tags=["notifications"], dependencies=[Depends(validate_current_token)])


@router.get("/unread", response_model=NotificationListResponse)
def get_unread_notifications(
    params: CommonQueryParams = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_unread_notifications(db, current_user.user_id, params)


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return {"count": crud.get_unread_count(db, current_user.user_id)}


@router.put("/{notification_id}/read", response_model=NotificationOut)
def mark_as_read(
    notification_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.mark_as_read(db, notification_id, current_user.user_id)


@router.post("/sweep", response_model=SweepSummary)
def run_sweep(
    request: Request,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_admin)
):
    runner = getattr(request.app.state, "sweep_runner", None)
    if runner is None:
        return run_notification_sweep(db)

    summary = runner.run_once()
    if summary is None:
        return error_response(
            message="A notification sweep is already running",
            status_code=str(AppStatusCode.OPERATION_FAILED),
            http_status=409
        )
    return summary
