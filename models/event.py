from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class EventCreate(BaseModel):
    petId: str
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    type: str = Field(min_length=1)
    startTime: datetime
    endTime: Optional[datetime] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    reminder: bool = False


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    type: Optional[str] = Field(default=None, min_length=1)
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    reminder: Optional[bool] = None
