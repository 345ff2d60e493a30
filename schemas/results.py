"""Result types returned by the backend clients."""

from pydantic import BaseModel, Field
from typing import Generic, Optional, TypeVar
from .enums import ErrorKind, ResultStatus
from .user import AuthUser, Session

T = TypeVar("T")


class RepositoryResult(BaseModel, Generic[T]):
    """Outcome of a repository call: a value, not-found, or a typed error."""
    status: ResultStatus
    value: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "RepositoryResult[T]":
        return cls(status=ResultStatus.OK, value=value)

    @classmethod
    def not_found(cls) -> "RepositoryResult[T]":
        return cls(status=ResultStatus.NOT_FOUND)

    @classmethod
    def error(cls, kind: ErrorKind, message: str) -> "RepositoryResult[T]":
        return cls(status=ResultStatus.ERROR, error_kind=kind, message=message)

    @property
    def is_ok(self) -> bool:
        return self.status == ResultStatus.OK

    @property
    def is_permission_error(self) -> bool:
        return self.error_kind == ErrorKind.PERMISSION


class AuthError(BaseModel):
    """Error reported by the auth service."""
    message: str
    status: Optional[int] = Field(None, description="HTTP status, absent for network failures")
    code: Optional[str] = Field(None, description="Auth service error code")


class AuthResult(BaseModel):
    """Outcome of a credential operation."""
    user: Optional[AuthUser] = None
    session: Optional[Session] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
