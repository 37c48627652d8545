from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ExpenseCreate(BaseModel):
    petId: str
    category: str = Field(min_length=1)
    amount: float = Field(gt=0)
    currency: str = Field(default="TRY", min_length=3, max_length=3)
    paymentMethod: Optional[str] = None
    description: Optional[str] = None
    date: datetime
    receiptPhoto: Optional[str] = None
    vendor: Optional[str] = None
    notes: Optional[str] = None


class ExpenseUpdate(BaseModel):
    category: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = Field(default=None, gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    paymentMethod: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    receiptPhoto: Optional[str] = None
    vendor: Optional[str] = None
    notes: Optional[str] = None
