"""
Pet Service - pets owned by a user
"""
import logging
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import BudgetLimit, Event, Expense, FeedingSchedule, HealthRecord, Pet
from utils.date_utils import utcnow
from utils.errors import NotFoundError
from utils.pagination import Pagination

logger = logging.getLogger(__name__)

# Rows deleted together with their pet
PET_CHILDREN = (Expense, HealthRecord, Event, FeedingSchedule, BudgetLimit)


class PetService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_pets(
        self,
        user_id: str,
        pagination: Pagination,
        type: Optional[str] = None,
        breed: Optional[str] = None,
        gender: Optional[str] = None,
    ) -> tuple[list[Pet], int]:
        conditions = [Pet.user_id == user_id]
        if type:
            conditions.append(Pet.type == type)
        if breed:
            conditions.append(Pet.breed.ilike(f"%{breed}%"))
        if gender:
            conditions.append(Pet.gender == gender)

        total = await self.db.scalar(select(func.count()).select_from(Pet).where(*conditions))
        result = await self.db.execute(
            select(Pet)
            .where(*conditions)
            .order_by(Pet.created_at.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        return list(result.scalars().all()), total or 0

    async def get_pet(self, user_id: str, pet_id: str) -> Pet:
        """
        Fetch a pet owned by the user.

        Raises:
            NotFoundError: If the pet does not exist or belongs to someone else
        """
        result = await self.db.execute(
            select(Pet).where(Pet.id == pet_id, Pet.user_id == user_id)
        )
        pet = result.scalar_one_or_none()
        if not pet:
            raise NotFoundError("Pet", code="PET_NOT_FOUND")
        return pet

    async def create_pet(self, user_id: str, data: dict) -> Pet:
        pet = Pet(user_id=user_id, **data)
        self.db.add(pet)
        await self.db.flush()
        return pet

    async def update_pet(self, user_id: str, pet_id: str, updates: dict) -> Pet:
        pet = await self.get_pet(user_id, pet_id)
        for key, value in updates.items():
            setattr(pet, key, value)
        pet.updated_at = utcnow()
        await self.db.flush()
        return pet

    async def update_pet_photo(self, user_id: str, pet_id: str, photo_url: str) -> Pet:
        return await self.update_pet(user_id, pet_id, {"profile_photo": photo_url})

    async def delete_pet(self, user_id: str, pet_id: str) -> None:
        """Delete a pet together with every row that belongs to it."""
        pet = await self.get_pet(user_id, pet_id)
        for model in PET_CHILDREN:
            await self.db.execute(delete(model).where(model.pet_id == pet.id))
        await self.db.delete(pet)
        await self.db.flush()
        logger.info(f"Pet {pet_id} of user {user_id} deleted with its records")
