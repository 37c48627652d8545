"""
Pets Router - CRUD for the current user's pets and lists of their records
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from database import get_db
from database_models import User
from models.pet import PetCreate, PetPhotoUpdate, PetUpdate
from services.budget_limit_service import BudgetLimitService
from services.event_service import EventService
from services.feeding_schedule_service import FeedingScheduleService
from services.health_record_service import HealthRecordService
from services.pet_service import PetService
from utils.pagination import Pagination, get_pagination
from utils.responses import calculate_pagination, success_response
from utils.serialization import row_to_dict, to_columns

pets_router = APIRouter(prefix="/api/pets", tags=["pets"])


@pets_router.get("")
async def list_pets(
    type: Optional[str] = None,
    breed: Optional[str] = None,
    gender: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    pets, total = await PetService(db).list_pets(
        user.id, pagination, type=type, breed=breed, gender=gender
    )
    return success_response(
        [row_to_dict(pet) for pet in pets],
        meta=calculate_pagination(total, pagination.page, pagination.limit),
    )


@pets_router.post("")
async def create_pet(
    body: PetCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    pet = await PetService(db).create_pet(user.id, to_columns(body.model_dump()))
    return success_response(row_to_dict(pet), status=201)


@pets_router.get("/{pet_id}")
async def get_pet(
    pet_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    pet = await PetService(db).get_pet(user.id, pet_id)
    return success_response(row_to_dict(pet))


@pets_router.put("/{pet_id}")
async def update_pet(
    pet_id: str,
    body: PetUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    pet = await PetService(db).update_pet(user.id, pet_id, to_columns(body.model_dump(exclude_unset=True)))
    return success_response(row_to_dict(pet))


@pets_router.patch("/{pet_id}/photo")
async def update_pet_photo(
    pet_id: str,
    body: PetPhotoUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    pet = await PetService(db).update_pet_photo(user.id, pet_id, body.photoUrl)
    return success_response(row_to_dict(pet))


@pets_router.delete("/{pet_id}")
async def delete_pet(
    pet_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Deletes the pet together with all of its records."""
    await PetService(db).delete_pet(user.id, pet_id)
    return success_response({"message": "Pet deleted successfully"})


# Records of one pet; the pet must belong to the caller

@pets_router.get("/{pet_id}/health-records")
async def list_pet_health_records(
    pet_id: str,
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await PetService(db).get_pet(user.id, pet_id)
    records, total = await HealthRecordService(db).list_health_records(user.id, pagination, pet_id=pet_id)
    return success_response(
        [row_to_dict(record) for record in records],
        meta=calculate_pagination(total, pagination.page, pagination.limit),
    )


@pets_router.get("/{pet_id}/events")
async def list_pet_events(
    pet_id: str,
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await PetService(db).get_pet(user.id, pet_id)
    events, total = await EventService(db).list_events(user.id, pagination, pet_id=pet_id)
    return success_response(
        [row_to_dict(event) for event in events],
        meta=calculate_pagination(total, pagination.page, pagination.limit),
    )


@pets_router.get("/{pet_id}/feeding-schedules")
async def list_pet_feeding_schedules(
    pet_id: str,
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await PetService(db).get_pet(user.id, pet_id)
    schedules, total = await FeedingScheduleService(db).list_feeding_schedules(user.id, pagination, pet_id=pet_id)
    return success_response(
        [row_to_dict(schedule) for schedule in schedules],
        meta=calculate_pagination(total, pagination.page, pagination.limit),
    )


@pets_router.get("/{pet_id}/budget-limits")
async def list_pet_budget_limits(
    pet_id: str,
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await PetService(db).get_pet(user.id, pet_id)
    limits, total = await BudgetLimitService(db).list_budget_limits(user.id, pagination, pet_id=pet_id)
    return success_response(
        [row_to_dict(budget_limit) for budget_limit in limits],
        meta=calculate_pagination(total, pagination.page, pagination.limit),
    )
