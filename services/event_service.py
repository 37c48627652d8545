"""
Event Service - calendar events (vet appointments, grooming, walks...)

"Today" and calendar days are UTC days.
"""
from datetime import date, datetime, timedelta
from typing import Optional, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import Event
from services.pet_service import PetService
from utils.date_utils import utc_day_bounds, utcnow
from utils.errors import NotFoundError
from utils.pagination import Pagination

UPCOMING_DAYS = 7


class EventService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.pet_service = PetService(db)

    async def list_events(
        self,
        user_id: str,
        pagination: Pagination,
        pet_id: Optional[str] = None,
        type: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> tuple[list[Event], int]:
        conditions = [Event.user_id == user_id]
        if pet_id:
            conditions.append(Event.pet_id == pet_id)
        if type:
            conditions.append(Event.type == type)
        if start_date:
            conditions.append(Event.start_time >= start_date)
        if end_date:
            conditions.append(Event.start_time <= end_date)

        total = await self.db.scalar(select(func.count()).select_from(Event).where(*conditions))
        result = await self.db.execute(
            select(Event)
            .where(*conditions)
            .order_by(Event.start_time.asc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        return list(result.scalars().all()), total or 0

    async def _between(self, user_id: str, start: datetime, end: datetime) -> list[Event]:
        result = await self.db.execute(
            select(Event)
            .where(Event.user_id == user_id, Event.start_time >= start, Event.start_time < end)
            .order_by(Event.start_time.asc())
        )
        return list(result.scalars().all())

    async def get_events_by_date(self, user_id: str, day: Union[str, date, datetime]) -> list[Event]:
        """
        Events starting on a UTC calendar day.

        Raises:
            ValueError: If ``day`` is not a valid date
        """
        start, end = utc_day_bounds(day)
        return await self._between(user_id, start, end)

    async def get_today_events(self, user_id: str) -> list[Event]:
        start, end = utc_day_bounds()
        return await self._between(user_id, start, end)

    async def get_upcoming_events(self, user_id: str, days: int = UPCOMING_DAYS) -> list[Event]:
        now = utcnow()
        return await self._between(user_id, now, now + timedelta(days=days))

    async def get_event(self, user_id: str, event_id: str) -> Event:
        result = await self.db.execute(
            select(Event).where(Event.id == event_id, Event.user_id == user_id)
        )
        event = result.scalar_one_or_none()
        if not event:
            raise NotFoundError("Event", code="EVENT_NOT_FOUND")
        return event

    async def create_event(self, user_id: str, data: dict) -> Event:
        await self.pet_service.get_pet(user_id, data["pet_id"])
        event = Event(user_id=user_id, **data)
        self.db.add(event)
        await self.db.flush()
        return event

    async def update_event(self, user_id: str, event_id: str, updates: dict) -> Event:
        event = await self.get_event(user_id, event_id)
        for key, value in updates.items():
            setattr(event, key, value)
        event.updated_at = utcnow()
        await self.db.flush()
        return event

    async def delete_event(self, user_id: str, event_id: str) -> None:
        event = await self.get_event(user_id, event_id)
        await self.db.delete(event)
        await self.db.flush()
