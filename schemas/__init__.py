"""Schemas for state, backend rows, plans and API payloads."""

from schemas.enums import AuthChangeEvent, BadgeId, ErrorKind, NotificationKind, ResultStatus
from schemas.gamification import Badge, BadgeDefinition, GamificationData
from schemas.user import AuthUser, OnboardingData, ProfileUpdate, Session, UserProfile
from schemas.check_in import CheckIn, CheckInCreate
from schemas.results import AuthError, AuthResult, RepositoryResult
from schemas.state import AppState, Notification, StateResponse
from schemas.plan import DailyMeals, DailyPlan, PlanRequest, Recipe, ShoppingListResponse
from schemas.auth import LoginRequest, ResetPasswordRequest, SignupRequest
from schemas.chat import ChatHistory, ChatMessage, ChatRequest

__all__ = [
    "AuthChangeEvent",
    "BadgeId",
    "ErrorKind",
    "NotificationKind",
    "ResultStatus",
    "Badge",
    "BadgeDefinition",
    "GamificationData",
    "AuthUser",
    "OnboardingData",
    "ProfileUpdate",
    "Session",
    "UserProfile",
    "CheckIn",
    "CheckInCreate",
    "AuthError",
    "AuthResult",
    "RepositoryResult",
    "AppState",
    "Notification",
    "StateResponse",
    "DailyMeals",
    "DailyPlan",
    "PlanRequest",
    "Recipe",
    "ShoppingListResponse",
    "LoginRequest",
    "ResetPasswordRequest",
    "SignupRequest",
    "ChatHistory",
    "ChatMessage",
    "ChatRequest",
]
