"""
Health Records Router
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from database import get_db
from database_models import User
from models.health_record import HealthRecordCreate, HealthRecordUpdate
from services.health_record_service import HealthRecordService
from utils.date_utils import ensure_utc
from utils.pagination import Pagination, get_pagination
from utils.responses import calculate_pagination, success_response
from utils.serialization import row_to_dict, to_columns

health_records_router = APIRouter(prefix="/api/health-records", tags=["health-records"])


@health_records_router.get("")
async def list_health_records(
    petId: Optional[str] = None,
    type: Optional[str] = None,
    startDate: Optional[datetime] = None,
    endDate: Optional[datetime] = None,
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    records, total = await HealthRecordService(db).list_health_records(
        user.id,
        pagination,
        pet_id=petId,
        type=type,
        start_date=ensure_utc(startDate),
        end_date=ensure_utc(endDate),
    )
    return success_response(
        [row_to_dict(record) for record in records],
        meta=calculate_pagination(total, pagination.page, pagination.limit),
    )


@health_records_router.get("/upcoming")
async def get_upcoming_vaccinations(
    petId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    records = await HealthRecordService(db).get_upcoming_vaccinations(user.id, petId)
    return success_response([row_to_dict(record) for record in records])


@health_records_router.post("")
async def create_health_record(
    body: HealthRecordCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    record = await HealthRecordService(db).create_health_record(user.id, to_columns(body.model_dump()))
    return success_response(row_to_dict(record), status=201)


@health_records_router.get("/{record_id}")
async def get_health_record(
    record_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    record = await HealthRecordService(db).get_health_record(user.id, record_id)
    return success_response(row_to_dict(record))


@health_records_router.put("/{record_id}")
async def update_health_record(
    record_id: str,
    body: HealthRecordUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    record = await HealthRecordService(db).update_health_record(
        user.id, record_id, to_columns(body.model_dump(exclude_unset=True))
    )
    return success_response(row_to_dict(record))


@health_records_router.delete("/{record_id}")
async def delete_health_record(
    record_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await HealthRecordService(db).delete_health_record(user.id, record_id)
    return success_response({"message": "Health record deleted successfully"})
