"""Enums shared across schemas."""

from enum import Enum


class AuthChangeEvent(str, Enum):
    """Session-change event kinds emitted by the auth service."""
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class ResultStatus(str, Enum):
    """Outcome of a repository call."""
    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


class ErrorKind(str, Enum):
    """Failure category of a repository call."""
    PERMISSION = "permission"
    TRANSPORT = "transport"
    BACKEND = "backend"
    INVALID_RESPONSE = "invalid_response"


class NotificationKind(str, Enum):
    """Toast notification style."""
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


class BadgeId(str, Enum):
    """Achievement badge identifiers."""
    FIRST_CHECK_IN = "first_check_in"
    PERFECT_DAY = "perfect_day"
    STREAK_3 = "streak_3"
    STREAK_7 = "streak_7"
    POINT_COLLECTOR_100 = "point_collector_100"
    POINT_COLLECTOR_500 = "point_collector_500"
    GOAL_REACHED = "goal_reached"
