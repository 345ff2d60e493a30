"""User, session and profile schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any, List
from .gamification import GamificationData


class AuthUser(BaseModel):
    """Identity returned by the auth service."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Auth user identifier")
    email: Optional[str] = Field(None, description="Account e-mail")
    user_metadata: Dict[str, Any] = Field(default_factory=dict, description="Metadata given at sign-up")

    @field_validator("user_metadata", mode="before")
    @classmethod
    def _metadata_or_empty(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @property
    def display_name(self) -> Optional[str]:
        name = self.user_metadata.get("name")
        return name if isinstance(name, str) and name.strip() else None


class Session(BaseModel):
    """Authenticated session. Only the auth service creates or replaces it."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"
    user: AuthUser


class UserProfile(BaseModel):
    """Profile row, one per authenticated user."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Profile id, equal to the auth user id")
    name: Optional[str] = Field(None, description="Display name")
    age: Optional[int] = Field(None, description="Age in years")
    weight: Optional[float] = Field(None, description="Current weight in kg")
    height: Optional[float] = Field(None, description="Height in cm")
    weight_goal: Optional[float] = Field(None, description="Target weight in kg")
    gender: Optional[str] = None
    dietary_restrictions: List[str] = Field(default_factory=list)
    activity_level: Optional[str] = None
    goal: Optional[str] = None
    completed_items_by_day: Optional[Dict[int, Dict[str, bool]]] = Field(
        None,
        description="Day index -> checklist item id -> done"
    )
    gamification: Optional[GamificationData] = None

    @field_validator("completed_items_by_day", mode="before")
    @classmethod
    def _drop_malformed_completion(cls, value: Any) -> Any:
        # Anything but an object is treated as absent and repaired upstream.
        return value if isinstance(value, dict) else None

    @field_validator("dietary_restrictions", mode="before")
    @classmethod
    def _restrictions_or_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def has_completed_onboarding(self) -> bool:
        return bool(self.age and self.weight and self.height)


class ProfileUpdate(BaseModel):
    """Partial profile update accepted from clients."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1)
    age: Optional[int] = Field(None, gt=0)
    weight: Optional[float] = Field(None, gt=0)
    height: Optional[float] = Field(None, gt=0)
    weight_goal: Optional[float] = Field(None, gt=0)
    gender: Optional[str] = None
    dietary_restrictions: Optional[List[str]] = None
    activity_level: Optional[str] = None
    goal: Optional[str] = None


class OnboardingData(BaseModel):
    """Fields collected by the onboarding flow; all required."""
    name: str = Field(..., min_length=1)
    age: int = Field(..., gt=0)
    weight: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    weight_goal: float = Field(..., gt=0)
    gender: str = Field(..., min_length=1)
    activity_level: str = Field(..., min_length=1)
    goal: str = Field(..., min_length=1)
    dietary_restrictions: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value.strip()
