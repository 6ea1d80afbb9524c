from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from app.models.shared.enums import NotificationType

class NotificationRead(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    link: Optional[str] = None
    type: NotificationType
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True

class NotificationList(BaseModel):
    notifications: list[NotificationRead]
    unread_count: int

class UnreadCount(BaseModel):
    count: int
