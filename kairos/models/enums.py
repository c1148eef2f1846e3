from enum import Enum


class TaskCategory(str, Enum):
    PERSONAL = "personal"
    WORK = "work"
    FITNESS = "fitness"
    ACADEMIC = "academic"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecurrenceType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class NotificationType(str, Enum):
    REMINDER = "reminder"
    DUE_DATE = "dueDate"
    SUGGESTION = "suggestion"
    OVERDUE = "overdue"
    ACHIEVEMENT = "achievement"


class ActionKind(str, Enum):
    COMPLETE = "complete"
    POSTPONE = "postpone"
    VIEW = "view"
    DISMISS = "dismiss"


class Intensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SyncKind(str, Enum):
    CALENDAR = "calendar"
    HEALTH = "health"


class SyncState(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    SYNCING = "syncing"
    NONE = "none"
