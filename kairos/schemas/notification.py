from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from kairos.models.enums import NotificationType, ActionKind, TaskCategory, TaskPriority

class NotificationAction(BaseModel):
    label: str
    action: ActionKind

class NotificationBase(BaseModel):
    title: str
    message: str
    type: NotificationType = NotificationType.SUGGESTION
    task_id: Optional[int] = None
    related_task_ids: List[int] = []
    category: Optional[TaskCategory] = None
    priority: Optional[TaskPriority] = None
    actions: List[NotificationAction] = []

class NotificationCreate(NotificationBase):
    pass

class NotificationResponse(NotificationBase):
    id: int
    user_id: int
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True

class NotificationUpdate(BaseModel):
    read: Optional[bool] = None

class PresenceUpdate(BaseModel):
    visible: bool

class Toast(BaseModel):
    notification_id: int
    title: str
    message: str
    type: str
