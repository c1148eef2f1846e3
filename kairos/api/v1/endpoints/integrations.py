from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from kairos.core.database import get_db
from kairos.schemas.sync import IntegrationStatusResponse, SyncResult, CorrelationResponse
from kairos.services import sync_service, task_service
from kairos.api.deps import get_current_user
from kairos.models.user import User

router = APIRouter()

@router.get("/status", response_model=IntegrationStatusResponse)
async def get_status(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await sync_service.get_sync_status(db, current_user.id)

@router.post("/calendar/sync", response_model=SyncResult)
async def sync_calendar(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Two-way sync of tasks with the primary Google calendar"""
    return await sync_service.sync_tasks_with_google_calendar(db, current_user)

@router.post("/health/sync", response_model=SyncResult)
async def sync_health(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await sync_service.sync_health_with_google_fit(db, current_user)

@router.get("/health/correlation", response_model=CorrelationResponse)
async def get_correlation(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    user_id = current_user.id
    health = await sync_service.get_health_days(db, user_id)
    tasks = await task_service.get_all_tasks(db, user_id)
    return sync_service.correlate_health_with_productivity(health, tasks)
