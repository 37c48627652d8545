"""
Feeding Schedule Service
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import FeedingSchedule
from services.pet_service import PetService
from utils.date_utils import ensure_utc, utcnow
from utils.errors import NotFoundError
from utils.pagination import Pagination

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class FeedingScheduleService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.pet_service = PetService(db)

    async def list_feeding_schedules(
        self,
        user_id: str,
        pagination: Pagination,
        pet_id: Optional[str] = None,
        is_active: Optional[bool] = None,
        food_type: Optional[str] = None,
    ) -> tuple[list[FeedingSchedule], int]:
        conditions = [FeedingSchedule.user_id == user_id]
        if pet_id:
            conditions.append(FeedingSchedule.pet_id == pet_id)
        if is_active is not None:
            conditions.append(FeedingSchedule.is_active == is_active)
        if food_type:
            conditions.append(FeedingSchedule.food_type.ilike(f"%{food_type}%"))

        total = await self.db.scalar(
            select(func.count()).select_from(FeedingSchedule).where(*conditions)
        )
        result = await self.db.execute(
            select(FeedingSchedule)
            .where(*conditions)
            .order_by(FeedingSchedule.time.asc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        return list(result.scalars().all()), total or 0

    async def get_active_schedules(self, user_id: str) -> list[FeedingSchedule]:
        """Active schedules of all the user's pets, in time-of-day order."""
        result = await self.db.execute(
            select(FeedingSchedule)
            .where(FeedingSchedule.user_id == user_id, FeedingSchedule.is_active.is_(True))
            .order_by(FeedingSchedule.time.asc())
        )
        return list(result.scalars().all())

    async def get_today_schedules(
        self,
        user_id: str,
        pet_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[FeedingSchedule]:
        """Active schedules due on the current UTC weekday (or "daily"), in time order."""
        now = ensure_utc(now) if now else utcnow()
        conditions = [
            FeedingSchedule.user_id == user_id,
            FeedingSchedule.is_active.is_(True),
            or_(
                FeedingSchedule.days.ilike(f"%{WEEKDAYS[now.weekday()]}%"),
                FeedingSchedule.days.ilike("%daily%"),
            ),
        ]
        if pet_id:
            conditions.append(FeedingSchedule.pet_id == pet_id)
        result = await self.db.execute(
            select(FeedingSchedule).where(*conditions).order_by(FeedingSchedule.time.asc())
        )
        return list(result.scalars().all())

    async def get_next_feeding(
        self,
        user_id: str,
        pet_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[FeedingSchedule]:
        """First of today's schedules not yet past, or None once the day's feedings are done."""
        now = ensure_utc(now) if now else utcnow()
        current_time = now.strftime("%H:%M")
        for schedule in await self.get_today_schedules(user_id, pet_id, now=now):
            if schedule.time >= current_time:
                return schedule
        return None

    async def get_feeding_schedule(self, user_id: str, schedule_id: str) -> FeedingSchedule:
        result = await self.db.execute(
            select(FeedingSchedule).where(
                FeedingSchedule.id == schedule_id, FeedingSchedule.user_id == user_id
            )
        )
        schedule = result.scalar_one_or_none()
        if not schedule:
            raise NotFoundError("Feeding schedule", code="FEEDING_SCHEDULE_NOT_FOUND")
        return schedule

    async def create_feeding_schedule(self, user_id: str, data: dict) -> FeedingSchedule:
        await self.pet_service.get_pet(user_id, data["pet_id"])
        schedule = FeedingSchedule(user_id=user_id, **data)
        self.db.add(schedule)
        await self.db.flush()
        return schedule

    async def update_feeding_schedule(self, user_id: str, schedule_id: str, updates: dict) -> FeedingSchedule:
        schedule = await self.get_feeding_schedule(user_id, schedule_id)
        for key, value in updates.items():
            setattr(schedule, key, value)
        schedule.updated_at = utcnow()
        await self.db.flush()
        return schedule

    async def delete_feeding_schedule(self, user_id: str, schedule_id: str) -> None:
        schedule = await self.get_feeding_schedule(user_id, schedule_id)
        await self.db.delete(schedule)
        await self.db.flush()
