from fastapi import APIRouter, Depends, HTTPException

from trackademic.api.deps import get_backend, get_current_user
from trackademic.core import notifications as notification_service
from trackademic.db.backend import Backend
from trackademic.schemas.notification import MarkedRead, NotificationList
from trackademic.schemas.user import CurrentUser

router = APIRouter()


@router.get("/notifications", response_model=NotificationList)
async def list_my_notifications(db: Backend = Depends(get_backend), current_user: CurrentUser = Depends(get_current_user)):
    return await notification_service.get_notifications(db, current_user.id)


@router.post("/notifications/read-all", response_model=MarkedRead)
async def mark_all_notifications_read(
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await notification_service.mark_all_read(db, current_user.id)


@router.post("/notifications/{notification_id}/read", response_model=MarkedRead)
async def mark_notification_read(
    notification_id: str,
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await notification_service.mark_read(db, current_user.id, notification_id)
    except notification_service.NotificationNotFound:
        raise HTTPException(status_code=404, detail="Notification not found")
