"""
Expenses Router
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from database import get_db
from database_models import User
from models.expense import ExpenseCreate, ExpenseUpdate
from services.expense_service import ExpenseService
from utils.date_utils import ensure_utc
from utils.errors import ValidationFailed
from utils.pagination import Pagination, get_pagination
from utils.responses import calculate_pagination, success_response
from utils.serialization import row_to_dict, to_columns

expenses_router = APIRouter(prefix="/api/expenses", tags=["expenses"])


def expense_filters(
    petId: Optional[str] = None,
    category: Optional[str] = None,
    currency: Optional[str] = None,
    paymentMethod: Optional[str] = None,
    startDate: Optional[datetime] = None,
    endDate: Optional[datetime] = None,
    minAmount: Optional[float] = None,
    maxAmount: Optional[float] = None,
) -> dict:
    return {
        "pet_id": petId,
        "category": category,
        "currency": currency,
        "payment_method": paymentMethod,
        "start_date": ensure_utc(startDate),
        "end_date": ensure_utc(endDate),
        "min_amount": minAmount,
        "max_amount": maxAmount,
    }


@expenses_router.get("")
async def list_expenses(
    filters: dict = Depends(expense_filters),
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    expenses, total = await ExpenseService(db).list_expenses(user.id, pagination, **filters)
    return success_response(
        [row_to_dict(expense) for expense in expenses],
        meta=calculate_pagination(total, pagination.page, pagination.limit),
    )


@expenses_router.get("/stats")
async def get_expense_stats(
    filters: dict = Depends(expense_filters),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    stats = await ExpenseService(db).get_expense_stats(user.id, **filters)
    return success_response(stats)


@expenses_router.get("/monthly")
async def get_monthly_expenses(
    year: Optional[int] = None,
    month: Optional[int] = None,
    petId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Expenses of a UTC calendar month, the current one by default."""
    try:
        expenses = await ExpenseService(db).get_monthly_expenses(user.id, year, month, petId)
    except ValueError as e:
        raise ValidationFailed(str(e), code="INVALID_MONTH")
    return success_response([row_to_dict(expense) for expense in expenses])


@expenses_router.get("/yearly")
async def get_yearly_expenses(
    year: Optional[int] = None,
    petId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    expenses = await ExpenseService(db).get_yearly_expenses(user.id, year, petId)
    return success_response([row_to_dict(expense) for expense in expenses])


@expenses_router.get("/by-date")
async def get_expenses_by_date(
    startDate: Optional[datetime] = None,
    endDate: Optional[datetime] = None,
    petId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Expenses with startDate <= date <= endDate; both bounds are required."""
    if not startDate or not endDate:
        raise ValidationFailed("Start date and end date are required", code="MISSING_DATE_RANGE")
    expenses = await ExpenseService(db).find_expenses(
        user.id, pet_id=petId, start_date=ensure_utc(startDate), end_date=ensure_utc(endDate)
    )
    return success_response([row_to_dict(expense) for expense in expenses])


@expenses_router.get("/by-category/{category}")
async def get_expenses_by_category(
    category: str,
    petId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    expenses = await ExpenseService(db).find_expenses(user.id, category=category, pet_id=petId)
    return success_response([row_to_dict(expense) for expense in expenses])


@expenses_router.post("")
async def create_expense(
    body: ExpenseCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    expense = await ExpenseService(db).create_expense(user.id, to_columns(body.model_dump()))
    return success_response(row_to_dict(expense), status=201)


@expenses_router.get("/{expense_id}")
async def get_expense(
    expense_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    expense = await ExpenseService(db).get_expense(user.id, expense_id)
    return success_response(row_to_dict(expense))


@expenses_router.put("/{expense_id}")
async def update_expense(
    expense_id: str,
    body: ExpenseUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    expense = await ExpenseService(db).update_expense(
        user.id, expense_id, to_columns(body.model_dump(exclude_unset=True))
    )
    return success_response(row_to_dict(expense))


@expenses_router.delete("/{expense_id}")
async def delete_expense(
    expense_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await ExpenseService(db).delete_expense(user.id, expense_id)
    return success_response({"message": "Expense deleted successfully"})
