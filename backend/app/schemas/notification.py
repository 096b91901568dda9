from datetime import datetime

from pydantic import BaseModel

from app.models.notification import NotificationType


class NotificationOut(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    notification_type: NotificationType
    data: dict
    is_read: bool
    read_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountOut(BaseModel):
    count: int


class NotificationPreferenceOut(BaseModel):
    timetable_updates: bool
    assignment_updates: bool
    push_enabled: bool

    model_config = {"from_attributes": True}


class NotificationPreferenceUpdate(BaseModel):
    timetable_updates: bool | None = None
    assignment_updates: bool | None = None
    push_enabled: bool | None = None
