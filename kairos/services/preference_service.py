import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from kairos.core.config import settings
from kairos.models.notification_preference import NotificationPreference
from kairos.schemas.preference import PreferenceUpdate
from kairos.services.reminder_engine import is_focus_active
from kairos.utils.timezone import utc_now

logger = logging.getLogger(__name__)

async def get_preferences(db: AsyncSession, user_id: int) -> NotificationPreference:
    result = await db.execute(select(NotificationPreference).filter(NotificationPreference.user_id == user_id))
    prefs = result.scalars().first()

    if not prefs:
        # Create defaults on first access
        prefs = NotificationPreference(user_id=user_id, timezone=settings.DEFAULT_TIMEZONE)
        db.add(prefs)
        await db.commit()
        await db.refresh(prefs)

    return prefs

async def update_preferences(db: AsyncSession, user_id: int, prefs_update: PreferenceUpdate) -> NotificationPreference:
    prefs = await get_preferences(db, user_id)

    update_data = prefs_update.model_dump(exclude_unset=True, mode="json")
    for key, value in update_data.items():
        if key in ("categories", "priorities") and value is not None:
            # Merge toggles instead of replacing the whole map
            value = {**(getattr(prefs, key) or {}), **value}
        if hasattr(prefs, key):
            setattr(prefs, key, value)

    db.add(prefs)
    await db.commit()
    await db.refresh(prefs)
    logger.info(f"⚙️ Preferences updated for user {user_id}: {sorted(update_data)}")
    return prefs

async def enable_focus_mode(db: AsyncSession, user_id: int, minutes: int) -> NotificationPreference:
    prefs = await get_preferences(db, user_id)
    prefs.focus_until = utc_now() + timedelta(minutes=minutes)
    db.add(prefs)
    await db.commit()
    await db.refresh(prefs)
    logger.info(f"🎯 Focus mode on for user {user_id} until {prefs.focus_until}")
    return prefs

async def disable_focus_mode(db: AsyncSession, user_id: int) -> NotificationPreference:
    prefs = await get_preferences(db, user_id)
    prefs.focus_until = None
    db.add(prefs)
    await db.commit()
    await db.refresh(prefs)
    return prefs

def to_response(prefs: NotificationPreference) -> dict:
    return {
        "id": prefs.id,
        "user_id": prefs.user_id,
        "enabled": prefs.enabled,
        "categories": prefs.categories or {},
        "priorities": prefs.priorities or {},
        "quiet_hours_start": prefs.quiet_hours_start,
        "quiet_hours_end": prefs.quiet_hours_end,
        "timezone": prefs.timezone,
        "location_aware": prefs.location_aware,
        "context_aware": prefs.context_aware,
        "intensity": prefs.intensity,
        "push_enabled": prefs.push_enabled,
        "focus_until": prefs.focus_until,
        "focus_active": is_focus_active(prefs, utc_now()),
    }
