"""Published application state."""

from pydantic import BaseModel, ConfigDict, Field, computed_field
from datetime import datetime
from typing import Dict, List, Optional
from .check_in import CheckIn
from .enums import NotificationKind
from .user import AuthUser, UserProfile


class Notification(BaseModel):
    """Non-blocking message for the user."""
    message: str
    kind: NotificationKind = NotificationKind.INFO
    created_at: datetime = Field(default_factory=datetime.now)


class AppState(BaseModel):
    """Immutable snapshot of what the view layer may render."""
    model_config = ConfigDict(frozen=True)

    user: Optional[AuthUser] = None
    profile: Optional[UserProfile] = None
    check_ins: List[CheckIn] = Field(default_factory=list)
    is_loading: bool = False
    plan_duration: int = 28

    @computed_field
    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @computed_field
    @property
    def has_completed_onboarding(self) -> bool:
        return self.profile is not None and self.profile.has_completed_onboarding

    @property
    def completed_items_by_day(self) -> Dict[int, Dict[str, bool]]:
        if self.profile is None or self.profile.completed_items_by_day is None:
            return {}
        return self.profile.completed_items_by_day


class StateResponse(BaseModel):
    """State snapshot plus notifications raised since the last read."""
    state: AppState
    notifications: List[Notification] = Field(default_factory=list)
