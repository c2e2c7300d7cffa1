# trackademic/core/notifications.py
import logging

from trackademic.crud import notification as crud_notification
from trackademic.db.backend import Backend
from trackademic.schemas.notification import MarkedRead, NotificationList

logger = logging.getLogger(__name__)


class NotificationNotFound(Exception):
    pass


async def get_notifications(db: Backend, user_id: str) -> NotificationList:
    # Непрочитанные считаются среди последних 50, как и показываются
    notifications = await crud_notification.list_notifications(db, user_id)
    unread_count = sum(1 for n in notifications if not n.is_read)
    return NotificationList(notifications=notifications, unread_count=unread_count)


async def mark_read(db: Backend, user_id: str, notification_id: str) -> MarkedRead:
    updated = await crud_notification.mark_read(db, user_id, notification_id)
    if not updated:
        raise NotificationNotFound(notification_id)
    return MarkedRead(updated=len(updated))


async def mark_all_read(db: Backend, user_id: str) -> MarkedRead:
    updated = await crud_notification.mark_all_read(db, user_id)
    logger.info(f"[Notifications] user={user_id}: прочитано {updated}")
    return MarkedRead(updated=updated)
