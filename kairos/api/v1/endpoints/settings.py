from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from kairos.core.database import get_db
from kairos.schemas.preference import PreferenceResponse, PreferenceUpdate, FocusModeRequest
from kairos.services import preference_service, notification_service
from kairos.services.delivery import Delivery
from kairos.api.deps import get_current_user, get_delivery
from kairos.models.user import User

router = APIRouter()

@router.get("/", response_model=PreferenceResponse)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    prefs = await preference_service.get_preferences(db, current_user.id)
    return preference_service.to_response(prefs)

@router.put("/", response_model=PreferenceResponse)
async def update_settings(
    prefs_in: PreferenceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    delivery: Delivery = Depends(get_delivery)
):
    # Capture ID before any awaits to avoid object expiration
    user_id = current_user.id
    prefs = await preference_service.update_preferences(db, user_id, prefs_in)
    response = preference_service.to_response(prefs)
    await notification_service.refresh_reminders(db, user_id, delivery)
    return response

@router.post("/focus-mode", response_model=PreferenceResponse)
async def enable_focus_mode(
    focus_in: FocusModeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Suppress reminder generation for the next N minutes"""
    prefs = await preference_service.enable_focus_mode(db, current_user.id, focus_in.minutes)
    return preference_service.to_response(prefs)

@router.delete("/focus-mode", response_model=PreferenceResponse)
async def disable_focus_mode(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    delivery: Delivery = Depends(get_delivery)
):
    user_id = current_user.id
    prefs = await preference_service.disable_focus_mode(db, user_id)
    response = preference_service.to_response(prefs)
    await notification_service.refresh_reminders(db, user_id, delivery)
    return response
