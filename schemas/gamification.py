"""Gamification schemas."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from .enums import BadgeId


class BadgeDefinition(BaseModel):
    """Static part of a badge."""
    id: BadgeId
    name: str
    description: str
    icon: str


class Badge(BadgeDefinition):
    """A badge earned by a user."""
    earned_on: datetime


class GamificationData(BaseModel):
    """Points, streaks and badges stored on the profile."""
    points: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_check_in_date: Optional[datetime] = None
    badges: List[Badge] = Field(default_factory=list)
