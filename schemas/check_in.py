"""Check-in schemas."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class CheckInCreate(BaseModel):
    """Measurements submitted by the user for one check-in."""
    weight: float = Field(..., gt=0, description="Weight in kg")
    water_intake: Optional[float] = Field(None, ge=0, description="Water intake in litres")
    fluid_retention: Optional[int] = Field(None, ge=1, le=3, description="Self-assessed retention, 1 to 3")
    waist: Optional[float] = Field(None, gt=0)
    hips: Optional[float] = Field(None, gt=0)
    neck: Optional[float] = Field(None, gt=0)
    right_arm: Optional[float] = Field(None, gt=0)
    left_arm: Optional[float] = Field(None, gt=0)
    right_thigh: Optional[float] = Field(None, gt=0)
    left_thigh: Optional[float] = Field(None, gt=0)
    observations: Optional[str] = None


class CheckIn(CheckInCreate):
    """Stored check-in row."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    user_id: str
    day: int = Field(..., ge=0, description="Zero-based sequence number per user")
    created_at: Optional[datetime] = None
