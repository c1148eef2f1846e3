import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, desc

from kairos.models.enums import ActionKind
from kairos.models.notification import Notification
from kairos.models.notification_preference import NotificationPreference
from kairos.models.user import User
from kairos.schemas.notification import NotificationCreate
from kairos.services import preference_service, task_service
from kairos.services.delivery import Delivery
from kairos.services.reminder_engine import derive_notifications, is_focus_active
from kairos.utils.timezone import utc_now, ensure_utc

logger = logging.getLogger(__name__)

async def list_notifications(db: AsyncSession, user_id: int):
    query = select(Notification).filter(
        Notification.user_id == user_id
    ).order_by(desc(Notification.created_at), desc(Notification.id))
    result = await db.execute(query)
    return result.scalars().all()

async def get_notification(db: AsyncSession, notification_id: int, user_id: int):
    result = await db.execute(select(Notification).filter(
        Notification.user_id == user_id,
        Notification.id == notification_id
    ))
    return result.scalar_one_or_none()

async def create_notification(db: AsyncSession, user_id: int, notification_in: NotificationCreate) -> Notification:
    """Manual notification (suggestions, achievements)."""
    data = notification_in.model_dump(mode="json")
    db_notification = Notification(user_id=user_id, read=False, **data)
    db.add(db_notification)
    await db.commit()
    await db.refresh(db_notification)
    return db_notification

async def set_read(db: AsyncSession, notification_id: int, user_id: int, read: bool = True):
    notification = await get_notification(db, notification_id, user_id)
    if not notification:
        return None
    notification.read = read
    db.add(notification)
    await db.commit()
    await db.refresh(notification)
    return notification

async def mark_all_read(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        update(Notification).filter(
            Notification.user_id == user_id,
            Notification.read == False  # noqa: E712
        ).values(read=True)
    )
    await db.commit()
    return result.rowcount or 0

async def delete_notification(db: AsyncSession, notification_id: int, user_id: int):
    notification = await get_notification(db, notification_id, user_id)
    if not notification:
        return None
    await db.delete(notification)
    await db.commit()
    return notification

async def clear_notifications(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(delete(Notification).filter(Notification.user_id == user_id))
    await db.commit()
    return result.rowcount or 0

async def evaluate_reminders(db: AsyncSession, user_id: int, delivery: Delivery, now: datetime = None):
    """
    Recompute reminders for one user and persist whatever the engine derives.

    Call after any task or preference mutation; the scheduler also calls it every minute
    so tasks drifting into their reminder window get picked up.
    Returns the notifications created by this pass.
    """
    now = ensure_utc(now) if now else utc_now()

    prefs = await preference_service.get_preferences(db, user_id)
    tasks = await task_service.get_all_tasks(db, user_id)
    existing = await list_notifications(db, user_id)

    drafts = derive_notifications(tasks, prefs, is_focus_active(prefs, now), existing, now)
    if not drafts:
        return []

    created = []
    for draft in drafts:
        notification = Notification(
            user_id=user_id,
            title=draft.title,
            message=draft.message,
            type=draft.type,
            task_id=draft.task_id,
            related_task_ids=draft.related_task_ids,
            category=draft.category,
            priority=draft.priority,
            actions=draft.actions,
            read=False,
            created_at=now,
        )
        db.add(notification)
        created.append(notification)

    await db.commit()
    logger.info(f"🔔 Created {len(created)} notification(s) for user {user_id}")

    for notification in created:
        await delivery.deliver(notification, prefs)

    # Delivery may have cleared a stale push token
    if db.is_modified(prefs):
        await db.commit()

    return created

async def refresh_reminders(db: AsyncSession, user_id: int, delivery: Delivery) -> int:
    """Recompute after a mutation. The mutation already committed, so a failure here is only logged."""
    try:
        return len(await evaluate_reminders(db, user_id, delivery))
    except Exception as e:
        logger.error(f"❌ Reminder recompute failed for user {user_id}: {e}")
        await db.rollback()
        return 0

async def evaluate_all_users(db: AsyncSession, delivery: Delivery, now: datetime = None) -> int:
    """Scheduler sweep: recompute reminders for every user with notifications enabled."""
    result = await db.execute(
        select(User.id).outerjoin(
            NotificationPreference, NotificationPreference.user_id == User.id
        ).filter(
            User.is_active == True,  # noqa: E712
            (NotificationPreference.enabled == True) | (NotificationPreference.id == None)  # noqa: E711,E712
        )
    )
    user_ids = result.scalars().all()

    total = 0
    for user_id in user_ids:
        try:
            total += len(await evaluate_reminders(db, user_id, delivery, now))
        except Exception as e:
            logger.error(f"❌ Reminder evaluation failed for user {user_id}: {e}")
            await db.rollback()
    return total

async def perform_action(db: AsyncSession, user_id: int, notification_id: int, action_kind: str, now: datetime = None):
    """
    Run a notification action.

    complete -> mark the referenced task completed
    postpone -> move the referenced task's due date to now + 1 day
    view / dismiss -> no task change

    The notification is marked read after any known action, even if the task write failed.
    Unknown action kinds change nothing. Returns None when the notification doesn't exist.
    """
    notification = await get_notification(db, notification_id, user_id)
    if not notification:
        return None

    try:
        kind = ActionKind(action_kind)
    except ValueError:
        logger.warning(f"⚠️ Unknown notification action '{action_kind}' ignored")
        return notification

    task_id = notification.task_id
    if task_id is not None and kind in (ActionKind.COMPLETE, ActionKind.POSTPONE):
        try:
            if kind == ActionKind.COMPLETE:
                await task_service.set_completed(db, task_id, user_id, True)
            else:
                await task_service.postpone_task(db, task_id, user_id, now)
        except Exception as e:
            # The notification is still marked read below; no rollback of notification state
            logger.error(f"❌ Action '{kind.value}' failed for task {task_id}: {e}")

    return await set_read(db, notification_id, user_id, True)
