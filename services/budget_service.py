"""
User Budget Service
===================

A single monthly budget per user, covering the spending of all their pets.

Status is computed over the current UTC calendar month and only counts
expenses in the budget's currency. ``isAlert`` trips once spending reaches
``alert_threshold`` of the budget; ``isExceeded`` once it reaches 100%.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import Expense, Pet, UserBudget
from services.expense_service import normalize_currency
from utils.date_utils import utc_month_bounds, utcnow
from utils.serialization import row_to_dict

logger = logging.getLogger(__name__)

DEFAULT_ALERT_THRESHOLD = 0.8


class UserBudgetService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_budget(self, user_id: str) -> Optional[UserBudget]:
        result = await self.db.execute(select(UserBudget).where(UserBudget.user_id == user_id))
        return result.scalar_one_or_none()

    async def set_budget(
        self,
        user_id: str,
        amount: float,
        currency: str,
        alert_threshold: Optional[float] = None,
        is_active: Optional[bool] = None,
    ) -> UserBudget:
        """
        Create or replace the user's budget.

        Omitted ``alert_threshold`` and ``is_active`` reset to their defaults
        (0.8 and True), on update as well as on create.

        Raises:
            ValueError: amount <= 0, empty currency, or threshold outside 0..1
        """
        if amount is None or amount <= 0:
            raise ValueError("Budget amount must be greater than 0")
        if not currency or not currency.strip():
            raise ValueError("Currency is required")
        if alert_threshold is not None and not 0 <= alert_threshold <= 1:
            raise ValueError("Alert threshold must be between 0 and 1")

        fields = {
            "amount": amount,
            "currency": normalize_currency(currency),
            "alert_threshold": DEFAULT_ALERT_THRESHOLD if alert_threshold is None else alert_threshold,
            "is_active": True if is_active is None else is_active,
        }

        budget = await self.get_budget(user_id)
        if budget:
            for key, value in fields.items():
                setattr(budget, key, value)
            budget.updated_at = utcnow()
        else:
            budget = UserBudget(user_id=user_id, **fields)
            self.db.add(budget)
        await self.db.flush()
        logger.info(f"Budget set for user {user_id}: {fields['amount']} {fields['currency']}")
        return budget

    async def delete_budget(self, user_id: str) -> bool:
        """Returns False when there was nothing to delete."""
        result = await self.db.execute(delete(UserBudget).where(UserBudget.user_id == user_id))
        await self.db.flush()
        return result.rowcount > 0

    async def get_budget_status(self, user_id: str, now: Optional[datetime] = None) -> Optional[dict]:
        """
        Spending against the budget for the current UTC month.

        Returns:
            None if the user has no active budget
        """
        budget = await self.get_budget(user_id)
        if not budget or not budget.is_active:
            return None

        start, end = utc_month_bounds(now=now)
        result = await self.db.execute(
            select(Expense.pet_id, Pet.name, func.sum(Expense.amount))
            .join(Pet, Pet.id == Expense.pet_id)
            .where(
                Expense.user_id == user_id,
                Expense.currency == budget.currency,
                Expense.date >= start,
                Expense.date < end,
            )
            .group_by(Expense.pet_id, Pet.name)
        )
        pet_breakdown = [
            {"petId": pet_id, "petName": pet_name or "Unknown Pet", "spending": float(spending or 0)}
            for pet_id, pet_name, spending in result.all()
        ]

        current_spending = sum(item["spending"] for item in pet_breakdown)
        percentage = current_spending / budget.amount * 100 if budget.amount > 0 else 0
        return {
            "budget": row_to_dict(budget),
            "currentSpending": current_spending,
            "percentage": percentage,
            "remainingAmount": budget.amount - current_spending,
            "isAlert": percentage >= budget.alert_threshold * 100,
            "petBreakdown": pet_breakdown,
        }

    async def check_budget_alert(self, user_id: str, now: Optional[datetime] = None) -> Optional[dict]:
        status = await self.get_budget_status(user_id, now=now)
        if not status or not status["isAlert"]:
            return None
        return {
            "budget": status["budget"],
            "currentSpending": status["currentSpending"],
            "percentage": status["percentage"],
            "isExceeded": status["percentage"] >= 100,
            "remainingAmount": status["remainingAmount"],
            "petBreakdown": status["petBreakdown"],
        }
