from datetime import datetime, timedelta

from kairos.models.enums import TaskCategory
from kairos.utils.timezone import ensure_utc, utc_now

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

def _due(task) -> datetime:
    return ensure_utc(task.due_date)

def _value(v):
    return getattr(v, "value", v)

def get_tasks_by_date_range(tasks, start: datetime, end: datetime):
    start, end = ensure_utc(start), ensure_utc(end)
    return [t for t in tasks if start <= _due(t) <= end]

def get_tasks_by_category(tasks, category):
    return [t for t in tasks if _value(t.category) == _value(category)]

def get_completed_tasks(tasks):
    return [t for t in tasks if t.completed]

def get_pending_tasks(tasks):
    return [t for t in tasks if not t.completed]

def sort_tasks_by_due_date(tasks, ascending: bool = True):
    return sorted(tasks, key=_due, reverse=not ascending)

def sort_tasks_by_priority(tasks):
    return sorted(tasks, key=lambda t: PRIORITY_ORDER.get(_value(t.priority), 1))

def get_tasks_due_today(tasks, now: datetime = None):
    """Pending tasks due on today's (UTC) date."""
    today = ensure_utc(now or utc_now()).date()
    return [t for t in tasks if not t.completed and _due(t).date() == today]

def get_overdue_tasks(tasks, now: datetime = None):
    """Pending tasks due before today. Day granularity: a task due earlier today is not overdue here."""
    today = ensure_utc(now or utc_now()).date()
    return [t for t in tasks if not t.completed and _due(t).date() < today]

def get_tasks_for_current_week(tasks, now: datetime = None):
    """Tasks due between Monday 00:00 and Sunday 23:59:59 of the current week."""
    now = ensure_utc(now or utc_now())
    start_of_week = (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)
    end_of_week = start_of_week + timedelta(days=7) - timedelta(microseconds=1)
    return get_tasks_by_date_range(tasks, start_of_week, end_of_week)

def get_productivity_score(tasks) -> int:
    if not tasks:
        return 0
    completed = len(get_completed_tasks(tasks))
    # Half rounds up
    return int(completed * 100 / len(tasks) + 0.5)

def get_category_distribution(tasks) -> dict:
    distribution = {c.value: 0 for c in TaskCategory}
    for t in tasks:
        key = _value(t.category)
        distribution[key] = distribution.get(key, 0) + 1
    return distribution
