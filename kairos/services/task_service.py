import logging
from datetime import datetime, timedelta, timezone

import pytz
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from kairos.core.config import settings
from kairos.models.task import Task
from kairos.models.notification import Notification
from kairos.schemas.task import TaskCreate, TaskUpdate
from kairos.utils import task_utils
from kairos.utils.timezone import utc_now, ensure_utc

logger = logging.getLogger(__name__)

def normalize_due_date(due_date: datetime | None) -> datetime | None:
    """
    Store every due date as aware UTC.
    Naive datetimes are the user's wall clock, so they are localized to DEFAULT_TIMEZONE first.
    """
    if due_date is None:
        return None
    if due_date.tzinfo is not None:
        return due_date.astimezone(timezone.utc)
    try:
        local_tz = pytz.timezone(settings.DEFAULT_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        local_tz = pytz.utc
    return local_tz.localize(due_date).astimezone(timezone.utc)

async def create_task(db: AsyncSession, task: TaskCreate, user_id: int) -> Task:
    logger.info(f"📝 Creating task for user {user_id}: '{task.title}' due {task.due_date}")

    data = task.model_dump(mode="python")
    data["due_date"] = normalize_due_date(task.due_date)
    data["category"] = task.category.value
    data["priority"] = task.priority.value
    data["recurrence_type"] = task.recurrence_type.value if task.recurrence_type else None

    try:
        db_task = Task(**data, user_id=user_id)
        db.add(db_task)
        await db.commit()
        await db.refresh(db_task)
        logger.info(f"✅ Task created: ID {db_task.id}")
        return db_task
    except Exception as e:
        logger.error(f"❌ Failed to create task: {e}")
        await db.rollback()
        raise

async def get_tasks(db: AsyncSession, user_id: int, skip: int = 0, limit: int = 100):
    result = await db.execute(
        select(Task).filter(Task.user_id == user_id).order_by(Task.due_date).offset(skip).limit(limit)
    )
    return result.scalars().all()

async def get_all_tasks(db: AsyncSession, user_id: int):
    result = await db.execute(select(Task).filter(Task.user_id == user_id).order_by(Task.due_date))
    return result.scalars().all()

async def get_task(db: AsyncSession, task_id: int, user_id: int):
    result = await db.execute(select(Task).filter(Task.id == task_id, Task.user_id == user_id))
    return result.scalars().first()

async def update_task(db: AsyncSession, task_id: int, task_update: TaskUpdate, user_id: int):
    db_task = await get_task(db, task_id, user_id)
    if not db_task:
        return None

    update_data = task_update.model_dump(exclude_unset=True, mode="json")
    for key in ("title", "due_date", "completed", "category", "priority"):
        # Required columns can't be cleared
        if key in update_data and update_data[key] is None:
            update_data.pop(key)
    if "due_date" in update_data:
        update_data["due_date"] = normalize_due_date(task_update.due_date)

    for key, value in update_data.items():
        setattr(db_task, key, value)

    try:
        db.add(db_task)
        await db.commit()
        await db.refresh(db_task)
    except Exception as e:
        logger.error(f"❌ Failed to update task {task_id}: {e}")
        await db.rollback()
        raise
    return db_task

async def set_completed(db: AsyncSession, task_id: int, user_id: int, completed: bool = True):
    return await update_task(db, task_id, TaskUpdate(completed=completed), user_id)

async def toggle_completed(db: AsyncSession, task_id: int, user_id: int):
    db_task = await get_task(db, task_id, user_id)
    if not db_task:
        return None
    return await set_completed(db, task_id, user_id, not db_task.completed)

async def postpone_task(db: AsyncSession, task_id: int, user_id: int, now: datetime = None):
    """Push the due date to one day from now."""
    now = ensure_utc(now) if now else utc_now()
    return await update_task(db, task_id, TaskUpdate(due_date=now + timedelta(days=1)), user_id)

async def delete_task(db: AsyncSession, task_id: int, user_id: int):
    db_task = await get_task(db, task_id, user_id)
    if not db_task:
        return None

    # 🧹 Drop notifications that point at this task
    n_res = await db.execute(select(Notification).filter(Notification.user_id == user_id))
    for n in n_res.scalars().all():
        if n.task_id == task_id or task_id in (n.related_task_ids or []):
            await db.delete(n)

    await db.delete(db_task)
    await db.commit()
    logger.info(f"🗑️ Task {task_id} deleted for user {user_id}")
    return db_task

async def get_user_insights(db: AsyncSession, user_id: int, now: datetime = None):
    """Productivity metrics for the dashboard."""
    now = ensure_utc(now) if now else utc_now()
    tasks = await get_all_tasks(db, user_id)

    pending = task_utils.get_pending_tasks(tasks)
    upcoming = [t for t in task_utils.sort_tasks_by_due_date(pending) if ensure_utc(t.due_date) >= now][:5]

    return {
        "total_tasks": len(tasks),
        "completed_tasks": len(task_utils.get_completed_tasks(tasks)),
        "pending_tasks": len(pending),
        "overdue_tasks": len(task_utils.get_overdue_tasks(tasks, now)),
        "due_today": len(task_utils.get_tasks_due_today(tasks, now)),
        "due_this_week": len(task_utils.get_tasks_for_current_week(tasks, now)),
        "productivity_score": task_utils.get_productivity_score(tasks),
        "category_distribution": task_utils.get_category_distribution(tasks),
        "upcoming": upcoming,
    }
