"""
Budget Limit Service
====================

Per-pet spending caps, monthly or yearly, optionally tied to one expense
category. Spending is summed over the current UTC calendar period in the
limit's currency.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import BudgetLimit, Expense
from services.expense_service import normalize_currency
from services.pet_service import PetService
from utils.date_utils import utc_month_bounds, utc_year_bounds, utcnow
from utils.errors import NotFoundError
from utils.pagination import Pagination
from utils.serialization import row_to_dict

logger = logging.getLogger(__name__)


class BudgetLimitService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.pet_service = PetService(db)

    async def list_budget_limits(
        self,
        user_id: str,
        pagination: Pagination,
        pet_id: Optional[str] = None,
        period: Optional[str] = None,
        is_active: Optional[bool] = None,
        category: Optional[str] = None,
    ) -> tuple[list[BudgetLimit], int]:
        conditions = [BudgetLimit.user_id == user_id]
        if pet_id:
            conditions.append(BudgetLimit.pet_id == pet_id)
        if period:
            conditions.append(BudgetLimit.period == period)
        if is_active is not None:
            conditions.append(BudgetLimit.is_active == is_active)
        if category:
            conditions.append(BudgetLimit.category == category)

        total = await self.db.scalar(select(func.count()).select_from(BudgetLimit).where(*conditions))
        result = await self.db.execute(
            select(BudgetLimit)
            .where(*conditions)
            .order_by(BudgetLimit.created_at.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        return list(result.scalars().all()), total or 0

    async def get_active_budget_limits(self, user_id: str, pet_id: Optional[str] = None) -> list[BudgetLimit]:
        conditions = [BudgetLimit.user_id == user_id, BudgetLimit.is_active.is_(True)]
        if pet_id:
            conditions.append(BudgetLimit.pet_id == pet_id)
        result = await self.db.execute(
            select(BudgetLimit).where(*conditions).order_by(BudgetLimit.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_budget_limit(self, user_id: str, limit_id: str) -> BudgetLimit:
        result = await self.db.execute(
            select(BudgetLimit).where(BudgetLimit.id == limit_id, BudgetLimit.user_id == user_id)
        )
        budget_limit = result.scalar_one_or_none()
        if not budget_limit:
            raise NotFoundError("Budget limit", code="BUDGET_LIMIT_NOT_FOUND")
        return budget_limit

    async def create_budget_limit(self, user_id: str, data: dict) -> BudgetLimit:
        await self.pet_service.get_pet(user_id, data["pet_id"])
        data["currency"] = normalize_currency(data.get("currency") or "TRY")
        budget_limit = BudgetLimit(user_id=user_id, **data)
        self.db.add(budget_limit)
        await self.db.flush()
        logger.info(f"Budget limit {budget_limit.id} created for pet {budget_limit.pet_id}")
        return budget_limit

    async def update_budget_limit(self, user_id: str, limit_id: str, updates: dict) -> BudgetLimit:
        budget_limit = await self.get_budget_limit(user_id, limit_id)
        if updates.get("currency"):
            updates["currency"] = normalize_currency(updates["currency"])
        for key, value in updates.items():
            setattr(budget_limit, key, value)
        budget_limit.updated_at = utcnow()
        await self.db.flush()
        return budget_limit

    async def delete_budget_limit(self, user_id: str, limit_id: str) -> None:
        budget_limit = await self.get_budget_limit(user_id, limit_id)
        await self.db.delete(budget_limit)
        await self.db.flush()

    async def _spending(self, budget_limit: BudgetLimit, now: Optional[datetime] = None) -> float:
        if budget_limit.period == "yearly":
            start, end = utc_year_bounds(now=now)
        else:
            start, end = utc_month_bounds(now=now)
        conditions = [
            Expense.user_id == budget_limit.user_id,
            Expense.pet_id == budget_limit.pet_id,
            Expense.currency == budget_limit.currency,
            Expense.date >= start,
            Expense.date < end,
        ]
        if budget_limit.category:
            conditions.append(Expense.category == budget_limit.category)
        total = await self.db.scalar(select(func.sum(Expense.amount)).where(*conditions))
        return float(total or 0)

    async def _status(self, budget_limit: BudgetLimit, now: Optional[datetime] = None) -> dict:
        current_spending = await self._spending(budget_limit, now=now)
        percentage = current_spending / budget_limit.amount * 100 if budget_limit.amount > 0 else 0
        return {
            "budgetLimit": row_to_dict(budget_limit),
            "currentSpending": current_spending,
            "percentage": percentage,
            "remainingAmount": budget_limit.amount - current_spending,
        }

    async def get_budget_limit_status(self, user_id: str, limit_id: str, now: Optional[datetime] = None) -> dict:
        budget_limit = await self.get_budget_limit(user_id, limit_id)
        return await self._status(budget_limit, now=now)

    async def check_budget_limit_alerts(
        self,
        user_id: str,
        pet_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[dict]:
        """
        Active limits whose spending has reached their alert threshold.

        ``isExceeded`` is set once spending reaches the full amount.
        """
        alerts = []
        for budget_limit in await self.get_active_budget_limits(user_id, pet_id):
            status = await self._status(budget_limit, now=now)
            if status["percentage"] >= budget_limit.alert_threshold * 100:
                status["isExceeded"] = status["percentage"] >= 100
                alerts.append(status)
        return alerts
