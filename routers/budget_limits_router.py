"""
Budget Limits Router - per-pet monthly or yearly spending caps
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from database import get_db
from database_models import User
from models.budget import BudgetLimitCreate, BudgetLimitUpdate, BudgetPeriod
from services.budget_limit_service import BudgetLimitService
from utils.pagination import Pagination, get_pagination
from utils.responses import calculate_pagination, success_response
from utils.serialization import row_to_dict, to_columns

budget_limits_router = APIRouter(prefix="/api/budget-limits", tags=["budget-limits"])


@budget_limits_router.get("")
async def list_budget_limits(
    petId: Optional[str] = None,
    period: Optional[BudgetPeriod] = None,
    isActive: Optional[bool] = None,
    category: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    limits, total = await BudgetLimitService(db).list_budget_limits(
        user.id, pagination, pet_id=petId, period=period, is_active=isActive, category=category
    )
    return success_response(
        [row_to_dict(budget_limit) for budget_limit in limits],
        meta=calculate_pagination(total, pagination.page, pagination.limit),
    )


@budget_limits_router.get("/active")
async def get_active_budget_limits(
    petId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    limits = await BudgetLimitService(db).get_active_budget_limits(user.id, petId)
    return success_response([row_to_dict(budget_limit) for budget_limit in limits])


@budget_limits_router.get("/alerts")
async def check_budget_limit_alerts(
    petId: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await BudgetLimitService(db).check_budget_limit_alerts(user.id, petId))


@budget_limits_router.post("")
async def create_budget_limit(
    body: BudgetLimitCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    budget_limit = await BudgetLimitService(db).create_budget_limit(user.id, to_columns(body.model_dump()))
    return success_response(row_to_dict(budget_limit), status=201)


@budget_limits_router.get("/{limit_id}")
async def get_budget_limit(
    limit_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    budget_limit = await BudgetLimitService(db).get_budget_limit(user.id, limit_id)
    return success_response(row_to_dict(budget_limit))


@budget_limits_router.get("/{limit_id}/status")
async def get_budget_limit_status(
    limit_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await BudgetLimitService(db).get_budget_limit_status(user.id, limit_id))


@budget_limits_router.put("/{limit_id}")
async def update_budget_limit(
    limit_id: str,
    body: BudgetLimitUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    budget_limit = await BudgetLimitService(db).update_budget_limit(
        user.id, limit_id, to_columns(body.model_dump(exclude_unset=True))
    )
    return success_response(row_to_dict(budget_limit))


@budget_limits_router.delete("/{limit_id}")
async def delete_budget_limit(
    limit_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await BudgetLimitService(db).delete_budget_limit(user.id, limit_id)
    return success_response({"message": "Budget limit deleted successfully"})
