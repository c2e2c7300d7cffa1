from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: str
    user_id: str
    course_id: Optional[str] = None
    activity_file_id: Optional[str] = None
    title: str
    message: str
    type: str = "info"
    is_read: bool = False
    created_at: Optional[datetime] = None


class NotificationList(BaseModel):
    notifications: List[NotificationOut]
    unread_count: int


class MarkedRead(BaseModel):
    updated: int
