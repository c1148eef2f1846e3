from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from kairos.core.database import get_db
from kairos.schemas.notification import NotificationResponse, NotificationUpdate, NotificationCreate, PresenceUpdate, Toast
from kairos.services import notification_service
from kairos.services.delivery import Delivery
from kairos.api.deps import get_current_user, get_delivery
from kairos.models.user import User
from typing import List

router = APIRouter()

@router.get("/", response_model=List[NotificationResponse])
async def get_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get all notifications for current user, newest first"""
    return await notification_service.list_notifications(db, current_user.id)

@router.post("/", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    notification_in: NotificationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a new notification (e.g. a suggestion or an achievement)"""
    return await notification_service.create_notification(db, current_user.id, notification_in)

@router.put("/mark-all-read", status_code=status.HTTP_200_OK)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark all notifications of the current user as read"""
    updated = await notification_service.mark_all_read(db, current_user.id)
    return {"message": "All notifications marked as read", "updated": updated}

@router.delete("/", status_code=status.HTTP_200_OK)
async def clear_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    deleted = await notification_service.clear_notifications(db, current_user.id)
    return {"message": "All notifications cleared", "deleted": deleted}

@router.post("/evaluate", response_model=List[NotificationResponse])
async def evaluate_reminders(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    delivery: Delivery = Depends(get_delivery)
):
    """Run the reminder engine now and return what it created"""
    return await notification_service.evaluate_reminders(db, current_user.id, delivery)

@router.get("/toasts", response_model=List[Toast])
async def get_toasts(
    current_user: User = Depends(get_current_user),
    delivery: Delivery = Depends(get_delivery)
):
    """In-app toasts queued while the app was visible; draining empties the queue"""
    return delivery.drain_toasts(current_user.id)

@router.put("/presence", status_code=status.HTTP_200_OK)
async def update_presence(
    presence: PresenceUpdate,
    current_user: User = Depends(get_current_user),
    delivery: Delivery = Depends(get_delivery)
):
    delivery.set_visible(current_user.id, presence.visible)
    return {"visible": presence.visible}

@router.put("/{notification_id}", response_model=NotificationResponse)
async def update_notification(
    notification_id: int,
    notification_in: NotificationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark notification as read/unread"""
    notification = await notification_service.get_notification(db, notification_id, current_user.id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    if notification_in.read is not None:
        notification = await notification_service.set_read(db, notification_id, current_user.id, notification_in.read)
    return notification

@router.delete("/{notification_id}", response_model=NotificationResponse)
async def delete_notification(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification = await notification_service.delete_notification(db, notification_id, current_user.id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification

@router.post("/{notification_id}/actions/{action}", response_model=NotificationResponse)
async def perform_action(
    notification_id: int,
    action: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    delivery: Delivery = Depends(get_delivery)
):
    """complete / postpone / view / dismiss; unknown actions are ignored"""
    user_id = current_user.id
    notification = await notification_service.perform_action(db, user_id, notification_id, action)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    response = NotificationResponse.model_validate(notification)
    await notification_service.refresh_reminders(db, user_id, delivery)
    return response
