"""
Reminder engine.

Pure derivation of notifications from a user's task set:
- single-task reminders for tasks entering their reminder window,
- one grouped reminder per category when several tasks qualify at once,
- an overdue summary for incomplete tasks past their due date.

Nothing here touches the database. Callers pass in the tasks, the user's
preferences and the notifications that already exist, and persist whatever
drafts come back. Existing unread notifications are scanned to avoid emitting
the same reminder twice, so re-running with unchanged inputs is a no-op.

Tasks, preferences and notifications are read by attribute, so ORM rows,
pydantic models and SimpleNamespace objects all work.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Optional

from kairos.models.enums import ActionKind, NotificationType, TaskPriority
from kairos.utils.timezone import ensure_utc, local_hhmm

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_MINUTES = 30


@dataclass
class NotificationDraft:
    title: str
    message: str
    type: str
    task_id: Optional[int] = None
    related_task_ids: List[int] = field(default_factory=list)
    category: Optional[str] = None
    priority: Optional[str] = None
    actions: List[dict] = field(default_factory=list)


def _action(label: str, kind: ActionKind) -> dict:
    return {"label": label, "action": kind.value}


def _value(v: Any) -> Any:
    # Enum members and plain strings compare the same way
    return getattr(v, "value", v)


def _to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def is_quiet_hours(now_hhmm: str, start: Optional[str], end: Optional[str]) -> bool:
    """
    True when `now_hhmm` falls inside the [start, end] window.

    start <= end is a normal window (09:00-17:00); start > end wraps past
    midnight (22:00-08:00). Both bounds are inclusive. A missing bound means
    quiet hours are off.
    """
    if not start or not end:
        return False

    now_m, start_m, end_m = _to_minutes(now_hhmm), _to_minutes(start), _to_minutes(end)
    if start_m <= end_m:
        return start_m <= now_m <= end_m
    return now_m >= start_m or now_m <= end_m


def is_focus_active(preferences: Any, now: datetime) -> bool:
    """Focus mode is an expiry timestamp, checked lazily."""
    focus_until = ensure_utc(getattr(preferences, "focus_until", None))
    return focus_until is not None and ensure_utc(now) < focus_until


def _is_enabled(mapping: Optional[dict], key: Any) -> bool:
    # Keys missing from the map count as enabled
    if not mapping:
        return True
    return bool(mapping.get(_value(key), True))


def _passes_filters(task: Any, preferences: Any) -> bool:
    return _is_enabled(getattr(preferences, "categories", None), task.category) and _is_enabled(
        getattr(preferences, "priorities", None), task.priority
    )


def minutes_until_due(task: Any, now: datetime) -> float:
    return (ensure_utc(task.due_date) - ensure_utc(now)).total_seconds() / 60


def select_upcoming(tasks: Iterable[Any], preferences: Any, now: datetime) -> List[Any]:
    """Incomplete tasks inside their reminder window whose category and priority are enabled."""
    selected = []
    for task in tasks:
        if task.completed or task.due_date is None:
            continue
        lead = task.reminder_time if task.reminder_time is not None else DEFAULT_REMINDER_MINUTES
        remaining = minutes_until_due(task, now)
        if 0 < remaining <= lead and _passes_filters(task, preferences):
            selected.append(task)
    return selected


def select_overdue(tasks: Iterable[Any], preferences: Any, now: datetime) -> List[Any]:
    """Incomplete tasks whose due date is strictly in the past."""
    now = ensure_utc(now)
    return [
        task
        for task in tasks
        if not task.completed
        and task.due_date is not None
        and ensure_utc(task.due_date) < now
        and _passes_filters(task, preferences)
    ]


def _has_unread_task_reminder(existing: Iterable[Any], task_id: int) -> bool:
    return any(
        not n.read and _value(n.type) == NotificationType.REMINDER.value and n.task_id == task_id
        for n in existing
    )


def _has_unread_group_reminder(existing: Iterable[Any], category: str) -> bool:
    return any(
        not n.read
        and _value(n.type) == NotificationType.REMINDER.value
        and n.task_id is None
        and _value(n.category) == category
        and len(n.related_task_ids or []) >= 2
        for n in existing
    )


def _has_unread_overdue(existing: Iterable[Any]) -> bool:
    return any(not n.read and _value(n.type) == NotificationType.OVERDUE.value for n in existing)


def _single_reminder(task: Any, now: datetime) -> NotificationDraft:
    remaining = max(1, round(minutes_until_due(task, now)))
    return NotificationDraft(
        title=f"Reminder: {task.title}",
        message=f"'{task.title}' is due in {remaining} minute{'s' if remaining != 1 else ''}.",
        type=NotificationType.REMINDER.value,
        task_id=task.id,
        related_task_ids=[task.id],
        category=_value(task.category),
        priority=_value(task.priority),
        actions=[
            _action("Complete", ActionKind.COMPLETE),
            _action("Postpone", ActionKind.POSTPONE),
            _action("View", ActionKind.VIEW),
        ],
    )


def _group_reminder(category: str, tasks: List[Any]) -> NotificationDraft:
    any_high = any(_value(t.priority) == TaskPriority.HIGH.value for t in tasks)
    titles = ", ".join(t.title for t in tasks)
    return NotificationDraft(
        title=f"{len(tasks)} {category} tasks due soon",
        message=f"Coming up: {titles}.",
        type=NotificationType.REMINDER.value,
        task_id=None,
        related_task_ids=[t.id for t in tasks],
        category=category,
        priority=TaskPriority.HIGH.value if any_high else TaskPriority.MEDIUM.value,
        actions=[
            _action("View", ActionKind.VIEW),
            _action("Dismiss", ActionKind.DISMISS),
        ],
    )


def _overdue_summary(tasks: List[Any]) -> NotificationDraft:
    count = len(tasks)
    return NotificationDraft(
        title="Overdue tasks",
        message=f"You have {count} overdue task{'s' if count != 1 else ''}.",
        type=NotificationType.OVERDUE.value,
        task_id=None,
        related_task_ids=[t.id for t in tasks],
        priority=TaskPriority.HIGH.value,
        actions=[_action("View", ActionKind.VIEW)],
    )


def derive_notifications(
    tasks: Iterable[Any],
    preferences: Any,
    focus_active: bool,
    existing: Iterable[Any],
    now: datetime,
) -> List[NotificationDraft]:
    """
    Compute the notifications that should be created right now.

    Returns an empty list while notifications are disabled, focus mode is
    active, or the user's local time is inside quiet hours.
    """
    if not getattr(preferences, "enabled", True):
        return []
    if focus_active:
        return []

    tz_name = getattr(preferences, "timezone", None)
    if is_quiet_hours(
        local_hhmm(now, tz_name),
        getattr(preferences, "quiet_hours_start", None),
        getattr(preferences, "quiet_hours_end", None),
    ):
        logger.debug("Quiet hours active; skipping reminder derivation")
        return []

    tasks = list(tasks)
    existing = list(existing)
    drafts: List[NotificationDraft] = []

    by_category: "OrderedDict[str, List[Any]]" = OrderedDict()
    for task in select_upcoming(tasks, preferences, now):
        by_category.setdefault(_value(task.category), []).append(task)

    for category, members in by_category.items():
        if len(members) == 1:
            task = members[0]
            if not _has_unread_task_reminder(existing, task.id):
                drafts.append(_single_reminder(task, now))
        elif not _has_unread_group_reminder(existing, category):
            drafts.append(_group_reminder(category, members))

    overdue = select_overdue(tasks, preferences, now)
    if overdue and not _has_unread_overdue(existing):
        drafts.append(_overdue_summary(overdue))

    return drafts
