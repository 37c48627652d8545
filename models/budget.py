from typing import Literal, Optional

from pydantic import BaseModel, Field


class SetUserBudgetRequest(BaseModel):
    amount: float = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)
    alertThreshold: Optional[float] = Field(default=None, ge=0, le=1)
    isActive: Optional[bool] = None


BudgetPeriod = Literal["monthly", "yearly"]


class BudgetLimitCreate(BaseModel):
    petId: str
    category: Optional[str] = None
    amount: float = Field(gt=0)
    currency: str = Field(default="TRY", min_length=3, max_length=3)
    period: BudgetPeriod
    alertThreshold: float = Field(default=0.8, ge=0, le=1)
    isActive: bool = True


class BudgetLimitUpdate(BaseModel):
    category: Optional[str] = None
    amount: Optional[float] = Field(default=None, gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    period: Optional[BudgetPeriod] = None
    alertThreshold: Optional[float] = Field(default=None, ge=0, le=1)
    isActive: Optional[bool] = None
