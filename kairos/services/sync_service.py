import logging
from collections import defaultdict
from datetime import date, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from kairos.core.config import settings
from kairos.models.enums import SyncKind, SyncState
from kairos.models.sync_status import SyncStatus, HealthDaily
from kairos.models.task import Task
from kairos.models.user import User
from kairos.services import google_calendar_service, task_service
from kairos.services.google_calendar_service import GoogleCalendarClient
from kairos.services.google_fit_service import GoogleFitClient
from kairos.utils.timezone import utc_now, ensure_utc

logger = logging.getLogger(__name__)

GOOD_SLEEP_HOURS = 7
ACTIVE_STEPS = 8000

def _empty_status() -> dict:
    return {"status": SyncState.NONE.value, "in_progress": False, "last_sync": None,
            "changes": None, "count": None, "error": None}

def _status_dict(row: SyncStatus | None) -> dict:
    if row is None:
        return _empty_status()
    return {
        "status": row.status,
        "in_progress": row.in_progress,
        "last_sync": row.last_sync,
        "changes": row.changes,
        "count": row.count,
        "error": row.error,
    }

async def _get_status_row(db: AsyncSession, user_id: int, kind: SyncKind) -> SyncStatus | None:
    result = await db.execute(select(SyncStatus).filter(
        SyncStatus.user_id == user_id, SyncStatus.kind == kind.value
    ))
    return result.scalar_one_or_none()

async def _record_status(db: AsyncSession, user_id: int, kind: SyncKind, state: SyncState, **fields) -> SyncStatus:
    row = await _get_status_row(db, user_id, kind)
    if row is None:
        row = SyncStatus(user_id=user_id, kind=kind.value)
    row.status = state.value
    row.in_progress = state == SyncState.SYNCING
    row.last_sync = utc_now()
    row.changes = fields.get("changes")
    row.count = fields.get("count")
    row.error = fields.get("error")
    db.add(row)
    await db.commit()
    return row

async def get_sync_status(db: AsyncSession, user_id: int) -> dict:
    """Last-known status per integration, for display only."""
    calendar = await _get_status_row(db, user_id, SyncKind.CALENDAR)
    health = await _get_status_row(db, user_id, SyncKind.HEALTH)
    return {"calendar": _status_dict(calendar), "health": _status_dict(health)}

async def sync_tasks_with_google_calendar(db: AsyncSession, user: User, calendar=None, now: datetime = None) -> dict:
    """
    Two-way reconcile between the user's tasks and their primary Google calendar.

    - linked task, event present and different -> update the event
    - linked task, event gone                  -> recreate the event
    - unlinked task                            -> create an event and link it
    - event not linked to any task             -> import it as a task
    """
    user_id = user.id
    now = ensure_utc(now) if now else utc_now()

    if calendar is None:
        creds = await google_calendar_service.get_credentials(db, user)
        if creds is None:
            logger.info(f"ℹ️ User {user_id} has no Google integration")
            return {"success": False, "message": "No Google integration"}
        calendar = GoogleCalendarClient(creds)

    await _record_status(db, user_id, SyncKind.CALENDAR, SyncState.SYNCING)
    changes = {"created": 0, "updated": 0, "deleted": 0}

    try:
        events = await calendar.list_events(
            now - timedelta(days=settings.CALENDAR_SYNC_DAYS_BACK),
            now + timedelta(days=settings.CALENDAR_SYNC_DAYS_AHEAD),
        )
        remote = {e["id"]: e for e in events if e.get("id")}

        tasks = await task_service.get_all_tasks(db, user_id)
        for task in tasks:
            if task.google_event_id and task.google_event_id in remote:
                event = remote.pop(task.google_event_id)
                if google_calendar_service.task_signature(task) != google_calendar_service.event_signature(event):
                    await calendar.update_event(task.google_event_id, google_calendar_service.task_to_event(task))
                    changes["updated"] += 1
                continue

            created = await calendar.create_event(google_calendar_service.task_to_event(task))
            if created and created.get("id"):
                task.google_event_id = created["id"]
                db.add(task)
                changes["created"] += 1

        known_ids = {t.google_event_id for t in tasks if t.google_event_id}
        for event_id, event in remote.items():
            if event_id in known_ids:
                continue
            db.add(Task(**google_calendar_service.event_to_task_fields(event), user_id=user_id))
            changes["created"] += 1

        await db.commit()
    except Exception as e:
        logger.error(f"❌ Google Calendar sync failed for user {user_id}: {e}")
        await db.rollback()
        await _record_status(db, user_id, SyncKind.CALENDAR, SyncState.ERROR, error=str(e))
        return {"success": False, "message": "Sync failed"}

    await _record_status(db, user_id, SyncKind.CALENDAR, SyncState.SUCCESS, changes=changes)
    logger.info(f"📅 Calendar sync for user {user_id}: {changes}")
    return {"success": True, "message": "Sync completed", "changes": changes}

async def sync_health_with_google_fit(db: AsyncSession, user: User, fit=None, now: datetime = None) -> dict:
    """Pull the last HEALTH_SYNC_DAYS of daily steps / sleep / heart rate into HealthDaily."""
    user_id = user.id
    now = ensure_utc(now) if now else utc_now()

    if fit is None:
        creds = await google_calendar_service.get_credentials(db, user)
        if creds is None:
            logger.info(f"ℹ️ User {user_id} has no Google integration")
            return {"success": False, "message": "No Google integration"}
        fit = GoogleFitClient(creds)

    await _record_status(db, user_id, SyncKind.HEALTH, SyncState.SYNCING)

    try:
        days = await fit.fetch_daily_health(now - timedelta(days=settings.HEALTH_SYNC_DAYS), now)

        result = await db.execute(select(HealthDaily).filter(HealthDaily.user_id == user_id))
        existing = {row.date: row for row in result.scalars().all()}

        for day in days:
            day_date = date.fromisoformat(day["date"])
            row = existing.get(day_date) or HealthDaily(user_id=user_id, date=day_date)
            row.steps = int(day.get("steps") or 0)
            row.sleep_hours = float(day.get("sleep_hours") or 0.0)
            row.heart_rate = float(day.get("heart_rate") or 0.0)
            db.add(row)

        await db.commit()
    except Exception as e:
        logger.error(f"❌ Google Fit sync failed for user {user_id}: {e}")
        await db.rollback()
        await _record_status(db, user_id, SyncKind.HEALTH, SyncState.ERROR, error=str(e))
        return {"success": False, "message": "Health data sync failed"}

    await _record_status(db, user_id, SyncKind.HEALTH, SyncState.SUCCESS, count=len(days))
    logger.info(f"❤️ Health sync for user {user_id}: {len(days)} day(s)")
    return {"success": True, "message": "Health data sync completed", "count": len(days)}

async def get_health_days(db: AsyncSession, user_id: int):
    result = await db.execute(select(HealthDaily).filter(HealthDaily.user_id == user_id).order_by(HealthDaily.date))
    return result.scalars().all()

def _avg_completion(days: list) -> float:
    return sum(d["completion_rate"] for d in days) / len(days)

def _compare(correlations: list, good, bad, kind: str, description: str) -> dict | None:
    good_days = [d for d in correlations if good(d)]
    bad_days = [d for d in correlations if bad(d)]
    if len(good_days) < 3 or len(bad_days) < 3:
        return None

    baseline = _avg_completion(bad_days)
    if baseline == 0:
        return None
    diff = (_avg_completion(good_days) - baseline) / baseline * 100
    if diff <= 10:
        return None
    return {
        "type": kind,
        "description": description.format(pct=round(diff)),
        "impact": "positive",
        "confidence": "high" if diff > 30 else "medium",
    }

def correlate_health_with_productivity(health_days, tasks) -> dict:
    """
    Join daily health metrics with that day's task completion rate and
    derive simple sleep / steps insights.
    """
    by_date = defaultdict(list)
    for task in tasks:
        if task.due_date is None:
            continue
        by_date[ensure_utc(task.due_date).date()].append(task)

    correlations = []
    for h in health_days:
        day = h.date if isinstance(h.date, date) else date.fromisoformat(h.date)
        day_tasks = by_date.get(day)
        if not day_tasks:
            continue
        completed = sum(1 for t in day_tasks if t.completed)
        correlations.append({
            "date": day,
            "steps": h.steps or 0,
            "sleep_hours": h.sleep_hours or 0.0,
            "heart_rate": h.heart_rate or 0.0,
            "total_tasks": len(day_tasks),
            "completed_tasks": completed,
            "completion_rate": completed / len(day_tasks),
        })

    insights = []
    if len(correlations) >= 5:
        sleep = _compare(
            correlations,
            lambda d: d["sleep_hours"] >= GOOD_SLEEP_HOURS,
            lambda d: 0 < d["sleep_hours"] < GOOD_SLEEP_HOURS,
            "sleep",
            "You complete about {pct}% more tasks on days you sleep 7 hours or more.",
        )
        steps = _compare(
            correlations,
            lambda d: d["steps"] >= ACTIVE_STEPS,
            lambda d: 0 < d["steps"] < ACTIVE_STEPS,
            "steps",
            "You complete about {pct}% more tasks on days you walk 8,000 steps or more.",
        )
        insights = [i for i in (sleep, steps) if i]

    return {"correlations": correlations, "insights": insights}
