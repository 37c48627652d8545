"""
Events Router - pet calendar
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from database import get_db
from database_models import User
from models.event import EventCreate, EventUpdate
from services.event_service import EventService
from utils.date_utils import ensure_utc
from utils.errors import ValidationFailed
from utils.pagination import Pagination, get_pagination
from utils.responses import calculate_pagination, success_response
from utils.serialization import row_to_dict, to_columns

events_router = APIRouter(prefix="/api/events", tags=["events"])


@events_router.get("")
async def list_events(
    petId: Optional[str] = None,
    type: Optional[str] = None,
    startDate: Optional[datetime] = None,
    endDate: Optional[datetime] = None,
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    events, total = await EventService(db).list_events(
        user.id,
        pagination,
        pet_id=petId,
        type=type,
        start_date=ensure_utc(startDate),
        end_date=ensure_utc(endDate),
    )
    return success_response(
        [row_to_dict(event) for event in events],
        meta=calculate_pagination(total, pagination.page, pagination.limit),
    )


@events_router.get("/calendar/{date}")
async def get_calendar_day(
    date: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Events starting on the given UTC day (YYYY-MM-DD)."""
    try:
        events = await EventService(db).get_events_by_date(user.id, date)
    except ValueError:
        raise ValidationFailed("Invalid date format", code="INVALID_DATE")
    return success_response([row_to_dict(event) for event in events])


@events_router.get("/upcoming")
async def get_upcoming_events(
    days: int = 7,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    events = await EventService(db).get_upcoming_events(user.id, max(1, days))
    return success_response([row_to_dict(event) for event in events])


@events_router.get("/today")
async def get_today_events(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    events = await EventService(db).get_today_events(user.id)
    return success_response([row_to_dict(event) for event in events])


@events_router.post("")
async def create_event(
    body: EventCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    event = await EventService(db).create_event(user.id, to_columns(body.model_dump()))
    return success_response(row_to_dict(event), status=201)


@events_router.get("/{event_id}")
async def get_event(
    event_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    event = await EventService(db).get_event(user.id, event_id)
    return success_response(row_to_dict(event))


@events_router.put("/{event_id}")
async def update_event(
    event_id: str,
    body: EventUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    event = await EventService(db).update_event(
        user.id, event_id, to_columns(body.model_dump(exclude_unset=True))
    )
    return success_response(row_to_dict(event))


@events_router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await EventService(db).delete_event(user.id, event_id)
    return success_response({"message": "Event deleted successfully"})
