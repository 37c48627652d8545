"""
Expense Service - pet expenses, statistics and monthly views
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import Expense
from services.pet_service import PetService
from utils.date_utils import utc_month_bounds, utc_year_bounds
from utils.errors import NotFoundError
from utils.pagination import Pagination


def normalize_currency(currency: Optional[str]) -> Optional[str]:
    """ISO 4217 codes are stored upper-case so budgets and expenses compare equal."""
    if currency is None:
        return None
    return currency.strip().upper()


class ExpenseService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.pet_service = PetService(db)

    @staticmethod
    def _conditions(
        user_id: str,
        pet_id: Optional[str] = None,
        category: Optional[str] = None,
        currency: Optional[str] = None,
        payment_method: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
    ) -> list:
        conditions = [Expense.user_id == user_id]
        if pet_id:
            conditions.append(Expense.pet_id == pet_id)
        if category:
            conditions.append(Expense.category == category)
        if currency:
            conditions.append(Expense.currency == normalize_currency(currency))
        if payment_method:
            conditions.append(Expense.payment_method == payment_method)
        if start_date:
            conditions.append(Expense.date >= start_date)
        if end_date:
            conditions.append(Expense.date <= end_date)
        if min_amount is not None:
            conditions.append(Expense.amount >= min_amount)
        if max_amount is not None:
            conditions.append(Expense.amount <= max_amount)
        return conditions

    async def list_expenses(self, user_id: str, pagination: Pagination, **filters) -> tuple[list[Expense], int]:
        conditions = self._conditions(user_id, **filters)
        total = await self.db.scalar(select(func.count()).select_from(Expense).where(*conditions))
        result = await self.db.execute(
            select(Expense)
            .where(*conditions)
            .order_by(Expense.date.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        return list(result.scalars().all()), total or 0

    async def find_expenses(self, user_id: str, **filters) -> list[Expense]:
        """Every expense matching the list filters, newest first, unpaginated."""
        result = await self.db.execute(
            select(Expense).where(*self._conditions(user_id, **filters)).order_by(Expense.date.desc())
        )
        return list(result.scalars().all())

    async def get_expense(self, user_id: str, expense_id: str) -> Expense:
        result = await self.db.execute(
            select(Expense).where(Expense.id == expense_id, Expense.user_id == user_id)
        )
        expense = result.scalar_one_or_none()
        if not expense:
            raise NotFoundError("Expense", code="EXPENSE_NOT_FOUND")
        return expense

    async def create_expense(self, user_id: str, data: dict) -> Expense:
        await self.pet_service.get_pet(user_id, data["pet_id"])
        if data.get("currency"):
            data["currency"] = normalize_currency(data["currency"])
        expense = Expense(user_id=user_id, **data)
        self.db.add(expense)
        await self.db.flush()
        return expense

    async def update_expense(self, user_id: str, expense_id: str, updates: dict) -> Expense:
        expense = await self.get_expense(user_id, expense_id)
        if updates.get("currency"):
            updates["currency"] = normalize_currency(updates["currency"])
        for key, value in updates.items():
            setattr(expense, key, value)
        await self.db.flush()
        return expense

    async def delete_expense(self, user_id: str, expense_id: str) -> None:
        expense = await self.get_expense(user_id, expense_id)
        await self.db.delete(expense)
        await self.db.flush()

    async def get_expenses_by_date_range(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        pet_id: Optional[str] = None,
    ) -> list[Expense]:
        """Expenses with ``start <= date < end``, newest first."""
        conditions = [Expense.user_id == user_id, Expense.date >= start, Expense.date < end]
        if pet_id:
            conditions.append(Expense.pet_id == pet_id)
        result = await self.db.execute(
            select(Expense).where(*conditions).order_by(Expense.date.desc())
        )
        return list(result.scalars().all())

    async def get_monthly_expenses(
        self,
        user_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        pet_id: Optional[str] = None,
    ) -> list[Expense]:
        start, end = utc_month_bounds(year, month)
        return await self.get_expenses_by_date_range(user_id, start, end, pet_id)

    async def get_yearly_expenses(
        self,
        user_id: str,
        year: Optional[int] = None,
        pet_id: Optional[str] = None,
    ) -> list[Expense]:
        start, end = utc_year_bounds(year)
        return await self.get_expenses_by_date_range(user_id, start, end, pet_id)

    async def get_expense_stats(self, user_id: str, **filters) -> dict:
        """Total, count and average, broken down by category and by currency."""
        conditions = self._conditions(user_id, **filters)

        totals = (await self.db.execute(
            select(func.coalesce(func.sum(Expense.amount), 0.0), func.count()).where(*conditions)
        )).one()
        total, count = float(totals[0]), totals[1]

        by_category = await self.db.execute(
            select(Expense.category, func.sum(Expense.amount), func.count())
            .where(*conditions)
            .group_by(Expense.category)
        )
        by_currency = await self.db.execute(
            select(Expense.currency, func.sum(Expense.amount))
            .where(*conditions)
            .group_by(Expense.currency)
        )

        return {
            "total": total,
            "count": count,
            "average": total / count if count else 0,
            "byCategory": [
                {"category": category, "total": float(amount or 0), "count": n}
                for category, amount, n in by_category.all()
            ],
            "byCurrency": [
                {"currency": currency, "total": float(amount or 0)}
                for currency, amount in by_currency.all()
            ],
        }
