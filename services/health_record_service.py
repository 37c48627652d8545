"""
Health Record Service - vaccinations, checkups and other vet visits
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import HealthRecord
from services.pet_service import PetService
from utils.date_utils import ensure_utc, utcnow
from utils.errors import NotFoundError
from utils.pagination import Pagination


class HealthRecordService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.pet_service = PetService(db)

    async def list_health_records(
        self,
        user_id: str,
        pagination: Pagination,
        pet_id: Optional[str] = None,
        type: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> tuple[list[HealthRecord], int]:
        conditions = [HealthRecord.user_id == user_id]
        if pet_id:
            conditions.append(HealthRecord.pet_id == pet_id)
        if type:
            conditions.append(HealthRecord.type == type)
        if start_date:
            conditions.append(HealthRecord.date >= start_date)
        if end_date:
            conditions.append(HealthRecord.date <= end_date)

        total = await self.db.scalar(
            select(func.count()).select_from(HealthRecord).where(*conditions)
        )
        result = await self.db.execute(
            select(HealthRecord)
            .where(*conditions)
            .order_by(HealthRecord.date.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        return list(result.scalars().all()), total or 0

    async def get_upcoming_vaccinations(
        self,
        user_id: str,
        pet_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[HealthRecord]:
        """Vaccinations whose next dose is due from now on, soonest first."""
        now = ensure_utc(now) if now else utcnow()
        conditions = [
            HealthRecord.user_id == user_id,
            HealthRecord.type == "vaccination",
            HealthRecord.next_due_date >= now,
        ]
        if pet_id:
            conditions.append(HealthRecord.pet_id == pet_id)
        result = await self.db.execute(
            select(HealthRecord).where(*conditions).order_by(HealthRecord.next_due_date.asc())
        )
        return list(result.scalars().all())

    async def get_health_record(self, user_id: str, record_id: str) -> HealthRecord:
        result = await self.db.execute(
            select(HealthRecord).where(HealthRecord.id == record_id, HealthRecord.user_id == user_id)
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError("Health record", code="HEALTH_RECORD_NOT_FOUND")
        return record

    async def create_health_record(self, user_id: str, data: dict) -> HealthRecord:
        await self.pet_service.get_pet(user_id, data["pet_id"])
        record = HealthRecord(user_id=user_id, **data)
        self.db.add(record)
        await self.db.flush()
        return record

    async def update_health_record(self, user_id: str, record_id: str, updates: dict) -> HealthRecord:
        record = await self.get_health_record(user_id, record_id)
        for key, value in updates.items():
            setattr(record, key, value)
        record.updated_at = utcnow()
        await self.db.flush()
        return record

    async def delete_health_record(self, user_id: str, record_id: str) -> None:
        record = await self.get_health_record(user_id, record_id)
        await self.db.delete(record)
        await self.db.flush()
