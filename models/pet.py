from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

Gender = Literal["male", "female", "other"]


class PetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: str = Field(min_length=1, max_length=50)
    breed: Optional[str] = None
    birthDate: Optional[datetime] = None
    weight: Optional[float] = Field(default=None, gt=0)
    gender: Optional[Gender] = None
    profilePhoto: Optional[str] = None


class PetUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[str] = Field(default=None, min_length=1, max_length=50)
    breed: Optional[str] = None
    birthDate: Optional[datetime] = None
    weight: Optional[float] = Field(default=None, gt=0)
    gender: Optional[Gender] = None
    profilePhoto: Optional[str] = None


class PetPhotoUpdate(BaseModel):
    photoUrl: str = Field(min_length=1)
