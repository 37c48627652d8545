from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class HealthRecordCreate(BaseModel):
    petId: str
    type: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    date: datetime
    veterinarian: Optional[str] = None
    clinic: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    nextDueDate: Optional[datetime] = None
    attachments: Optional[str] = None
    vaccineName: Optional[str] = None
    vaccineManufacturer: Optional[str] = None
    batchNumber: Optional[str] = None


class HealthRecordUpdate(BaseModel):
    type: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    date: Optional[datetime] = None
    veterinarian: Optional[str] = None
    clinic: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    nextDueDate: Optional[datetime] = None
    attachments: Optional[str] = None
    vaccineName: Optional[str] = None
    vaccineManufacturer: Optional[str] = None
    batchNumber: Optional[str] = None
