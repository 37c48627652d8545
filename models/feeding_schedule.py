from typing import Optional

from pydantic import BaseModel, Field

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class FeedingScheduleCreate(BaseModel):
    petId: str
    time: str = Field(pattern=TIME_PATTERN)
    foodType: str = Field(min_length=1)
    amount: str = Field(min_length=1)
    days: str = Field(min_length=1)
    isActive: bool = True


class FeedingScheduleUpdate(BaseModel):
    time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    foodType: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[str] = Field(default=None, min_length=1)
    days: Optional[str] = Field(default=None, min_length=1)
    isActive: Optional[bool] = None
