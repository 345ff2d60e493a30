"""Auth request schemas."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credentials for password sign-in."""
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class SignupRequest(LoginRequest):
    """Registration request; the name becomes session metadata."""
    name: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    """Password-reset request."""
    email: str = Field(..., min_length=3)
