from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from kairos.core.database import get_db
from kairos.schemas.task import TaskCreate, TaskUpdate, TaskResponse, InsightsResponse
from kairos.services import task_service, notification_service
from kairos.services.delivery import Delivery
from kairos.api.deps import get_current_user, get_delivery
from kairos.models.user import User

router = APIRouter()

@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    delivery: Delivery = Depends(get_delivery)
):
    user_id = current_user.id
    db_task = await task_service.create_task(db, task, user_id)
    # Serialize before the recompute, which may roll back and expire the row
    response = TaskResponse.model_validate(db_task)
    await notification_service.refresh_reminders(db, user_id, delivery)
    return response

@router.get("/", response_model=List[TaskResponse])
async def get_tasks(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await task_service.get_tasks(db, current_user.id, skip=skip, limit=limit)

@router.get("/insights", response_model=InsightsResponse)
async def get_insights(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await task_service.get_user_insights(db, current_user.id)

@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = await task_service.get_task(db, task_id, current_user.id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task

@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    task: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    delivery: Delivery = Depends(get_delivery)
):
    user_id = current_user.id
    updated_task = await task_service.update_task(db, task_id, task, user_id)
    if not updated_task:
        raise HTTPException(status_code=404, detail="Task not found")
    response = TaskResponse.model_validate(updated_task)
    await notification_service.refresh_reminders(db, user_id, delivery)
    return response

@router.delete("/{task_id}", response_model=TaskResponse)
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    deleted_task = await task_service.delete_task(db, task_id, current_user.id)
    if not deleted_task:
        raise HTTPException(status_code=404, detail="Task not found")
    return deleted_task

@router.post("/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    delivery: Delivery = Depends(get_delivery)
):
    user_id = current_user.id
    task = await task_service.toggle_completed(db, task_id, user_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    response = TaskResponse.model_validate(task)
    await notification_service.refresh_reminders(db, user_id, delivery)
    return response

@router.post("/{task_id}/postpone", response_model=TaskResponse)
async def postpone_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    delivery: Delivery = Depends(get_delivery)
):
    """Move the due date to one day from now"""
    user_id = current_user.id
    task = await task_service.postpone_task(db, task_id, user_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    response = TaskResponse.model_validate(task)
    await notification_service.refresh_reminders(db, user_id, delivery)
    return response
