"""
Feeding Schedules Router
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from database import get_db
from database_models import User
from models.feeding_schedule import FeedingScheduleCreate, FeedingScheduleUpdate
from services.feeding_schedule_service import FeedingScheduleService
from utils.pagination import Pagination, get_pagination
from utils.responses import calculate_pagination, success_response
from utils.serialization import row_to_dict, to_columns

feeding_schedules_router = APIRouter(prefix="/api/feeding-schedules", tags=["feeding-schedules"])


@feeding_schedules_router.get("")
async def list_feeding_schedules(
    petId: Optional[str] = None,
    isActive: Optional[bool] = None,
    foodType: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    schedules, total = await FeedingScheduleService(db).list_feeding_schedules(
        user.id, pagination, pet_id=petId, is_active=isActive, food_type=foodType
    )
    return success_response(
        [row_to_dict(schedule) for schedule in schedules],
        meta=calculate_pagination(total, pagination.page, pagination.limit),
    )


@feeding_schedules_router.get("/active")
async def get_active_schedules(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    schedules = await FeedingScheduleService(db).get_active_schedules(user.id)
    return success_response([row_to_dict(schedule) for schedule in schedules])


@feeding_schedules_router.get("/today")
async def get_today_schedules(
    petId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    schedules = await FeedingScheduleService(db).get_today_schedules(user.id, petId)
    return success_response([row_to_dict(schedule) for schedule in schedules])


@feeding_schedules_router.get("/next")
async def get_next_feeding(
    petId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Null data when nothing is left to feed today."""
    schedule = await FeedingScheduleService(db).get_next_feeding(user.id, petId)
    return success_response(row_to_dict(schedule))


@feeding_schedules_router.post("")
async def create_feeding_schedule(
    body: FeedingScheduleCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    schedule = await FeedingScheduleService(db).create_feeding_schedule(user.id, to_columns(body.model_dump()))
    return success_response(row_to_dict(schedule), status=201)


@feeding_schedules_router.get("/{schedule_id}")
async def get_feeding_schedule(
    schedule_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    schedule = await FeedingScheduleService(db).get_feeding_schedule(user.id, schedule_id)
    return success_response(row_to_dict(schedule))


@feeding_schedules_router.put("/{schedule_id}")
async def update_feeding_schedule(
    schedule_id: str,
    body: FeedingScheduleUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    schedule = await FeedingScheduleService(db).update_feeding_schedule(
        user.id, schedule_id, to_columns(body.model_dump(exclude_unset=True))
    )
    return success_response(row_to_dict(schedule))


@feeding_schedules_router.delete("/{schedule_id}")
async def delete_feeding_schedule(
    schedule_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await FeedingScheduleService(db).delete_feeding_schedule(user.id, schedule_id)
    return success_response({"message": "Feeding schedule deleted successfully"})
