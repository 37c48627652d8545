"""
Budget Router - the user's single monthly budget

"No budget" is not an error: GET, status and alerts return 200 with null data.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from database import get_db
from database_models import User
from models.budget import SetUserBudgetRequest
from services.budget_service import UserBudgetService
from utils.errors import ValidationFailed
from utils.responses import success_response
from utils.serialization import row_to_dict

budget_router = APIRouter(prefix="/api/budget", tags=["budget"])


@budget_router.get("")
async def get_budget(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    budget = await UserBudgetService(db).get_budget(user.id)
    return success_response(row_to_dict(budget))


@budget_router.put("")
async def set_budget(
    body: SetUserBudgetRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        budget = await UserBudgetService(db).set_budget(
            user.id,
            amount=body.amount,
            currency=body.currency,
            alert_threshold=body.alertThreshold,
            is_active=body.isActive,
        )
    except ValueError as e:
        raise ValidationFailed(str(e), code="INVALID_BUDGET")
    return success_response(row_to_dict(budget), status=201)


@budget_router.delete("")
async def delete_budget(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if await UserBudgetService(db).delete_budget(user.id):
        return success_response({"message": "Budget deleted successfully"})
    return success_response({"message": "No budget existed to delete"})


@budget_router.get("/status")
async def get_budget_status(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await UserBudgetService(db).get_budget_status(user.id))


@budget_router.get("/alerts")
async def get_budget_alerts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await UserBudgetService(db).check_budget_alert(user.id))
