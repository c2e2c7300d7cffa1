# trackademic/crud/notification.py
from typing import List

from trackademic.db.backend import Backend, eq
from trackademic.schemas.notification import NotificationOut

NOTIFICATIONS_LIMIT = 50


async def list_notifications(db: Backend, user_id: str, limit: int = NOTIFICATIONS_LIMIT) -> List[NotificationOut]:
    rows = await db.select(
        "notifications", filters=[eq("user_id", user_id)], order_by="created_at", descending=True, limit=limit
    )
    return [NotificationOut(**r) for r in rows]


async def mark_read(db: Backend, user_id: str, notification_id: str) -> List[NotificationOut]:
    # user_id в фильтре: чужое уведомление не обновится
    rows = await db.update(
        "notifications", {"is_read": True}, [eq("id", notification_id), eq("user_id", user_id)]
    )
    return [NotificationOut(**r) for r in rows]


async def mark_all_read(db: Backend, user_id: str) -> int:
    rows = await db.update("notifications", {"is_read": True}, [eq("user_id", user_id), eq("is_read", False)])
    return len(rows)
