from pydantic import BaseModel, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from kairos.models.enums import TaskCategory, TaskPriority, RecurrenceType

def _validate_hhmm(v):
    if v is None:
        return v
    try:
        hours, minutes = v.split(":")
        if not (0 <= int(hours) <= 23 and 0 <= int(minutes) <= 59):
            raise ValueError
    except ValueError:
        raise ValueError("Time must be in HH:MM format")
    return f"{int(hours):02d}:{int(minutes):02d}"

class TaskBase(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: datetime
    completed: bool = False
    category: TaskCategory = TaskCategory.PERSONAL
    priority: TaskPriority = TaskPriority.MEDIUM
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_recurring: bool = False
    recurrence_type: Optional[RecurrenceType] = None
    reminder_time: Optional[int] = None
    google_event_id: Optional[str] = None

    @field_validator('title')
    def title_must_not_be_empty(cls, v):
        if not v or not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip()

    @field_validator('description')
    def sanitize_description(cls, v):
        if v:
            return v.strip()
        return v

    @field_validator('reminder_time')
    def reminder_must_not_be_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError('Reminder time must be a non-negative number of minutes')
        return v

    @field_validator('start_time', 'end_time')
    def check_time_format(cls, v):
        return _validate_hhmm(v)

class TaskCreate(TaskBase):
    pass

class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None
    category: Optional[TaskCategory] = None
    priority: Optional[TaskPriority] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurrence_type: Optional[RecurrenceType] = None
    reminder_time: Optional[int] = None
    google_event_id: Optional[str] = None

    @field_validator('title')
    def title_must_not_be_empty(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip() if v else v

    @field_validator('reminder_time')
    def reminder_must_not_be_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError('Reminder time must be a non-negative number of minutes')
        return v

    @field_validator('start_time', 'end_time')
    def check_time_format(cls, v):
        return _validate_hhmm(v)

class TaskResponse(TaskBase):
    id: int
    user_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class InsightsResponse(BaseModel):
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    overdue_tasks: int
    due_today: int
    due_this_week: int
    productivity_score: int
    category_distribution: Dict[str, int]
    upcoming: List[TaskResponse] = []
