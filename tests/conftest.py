import asyncio
from typing import Any, Dict, List, Optional

import pytest

from schemas.check_in import CheckIn
from schemas.enums import AuthChangeEvent, ErrorKind
from schemas.results import AuthError, AuthResult, RepositoryResult
from schemas.user import AuthUser, Session, UserProfile
from services.notifications import NotificationCenter
from services.session_controller import AuthBootstrapController


def make_session(user_id: str = "user-1", name: Optional[str] = None, email: str = "maria@example.com") -> Session:
    metadata = {"name": name} if name else {}
    return Session(
        access_token=f"token-{user_id}",
        refresh_token=f"refresh-{user_id}",
        expires_in=3600,
        user=AuthUser(id=user_id, email=email, user_metadata=metadata),
    )


def profile_row(user_id: str = "user-1", **fields: Any) -> Dict[str, Any]:
    row = {
        "id": user_id,
        "name": "Maria",
        "age": 34,
        "weight": 82.0,
        "height": 165.0,
        "weight_goal": 70.0,
        "completed_items_by_day": {},
    }
    row.update(fields)
    return row


class FakeSubscription:
    def __init__(self, service, listener):
        self._service = service
        self._listener = listener

    def unsubscribe(self):
        if self._listener in self._service.listeners:
            self._service.listeners.remove(self._listener)


class FakeAuthService:
    """In-memory auth service; `emit` plays the role of a backend event."""

    def __init__(self, session: Optional[Session] = None, users: Optional[Dict[str, Dict[str, str]]] = None):
        self.session = session
        self.listeners: List[Any] = []
        self.users = users if users is not None else {
            "maria@example.com": {"id": "user-1", "password": "secret", "name": "Maria"},
        }
        self.reset_requests: List[str] = []

    def subscribe(self, listener):
        self.listeners.append(listener)
        return FakeSubscription(self, listener)

    def current_access_token(self) -> Optional[str]:
        return self.session.access_token if self.session else None

    async def emit(self, event: AuthChangeEvent, session: Optional[Session]):
        self.session = session
        await asyncio.gather(*(listener(event, session) for listener in list(self.listeners)))

    async def initialize(self):
        await self.emit(AuthChangeEvent.INITIAL_SESSION, self.session)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        account = self.users.get(email)
        if account is None or account["password"] != password:
            return AuthResult(error=AuthError(message="Invalid login credentials", status=400, code="invalid_credentials"))
        session = make_session(account["id"], account.get("name"), email)
        await self.emit(AuthChangeEvent.SIGNED_IN, session)
        return AuthResult(user=session.user, session=session)

    async def sign_up(self, email: str, password: str, name: str) -> AuthResult:
        if email in self.users:
            return AuthResult(error=AuthError(message="User already registered", status=422, code="user_already_exists"))
        self.users[email] = {"id": f"user-{len(self.users) + 1}", "password": password, "name": name}
        return await self.sign_in(email, password)

    async def sign_out(self):
        await self.emit(AuthChangeEvent.SIGNED_OUT, None)

    async def refresh_session(self) -> AuthResult:
        if self.session is None:
            return AuthResult(error=AuthError(message="No session to refresh", code="session_missing"))
        await self.emit(AuthChangeEvent.TOKEN_REFRESHED, self.session)
        return AuthResult(user=self.session.user, session=self.session)

    async def reset_password(self, email: str, redirect_to: Optional[str] = None) -> AuthResult:
        self.reset_requests.append(email)
        return AuthResult()


class FakeProfileRepository:
    """In-memory profile and check-in storage with injectable failures.

    `fail(method, kind)` makes every later call of `method` return an error.
    When `gate` is set, `get_profile` waits on it before answering;
    `append_gate` does the same for `append_check_in`.
    """

    def __init__(self):
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.check_ins: Dict[str, List[CheckIn]] = {}
        self.failures: Dict[str, RepositoryResult] = {}
        self.calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None
        self.append_gate: Optional[asyncio.Event] = None

    def fail(self, method: str, kind: ErrorKind = ErrorKind.BACKEND, message: str = "backend failure"):
        self.failures[method] = RepositoryResult.error(kind, message)

    def seed_check_ins(self, user_id: str, *weights: float):
        self.check_ins[user_id] = [
            CheckIn(id=day + 1, user_id=user_id, day=day, weight=weight)
            for day, weight in enumerate(weights)
        ]

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    async def get_profile(self, user_id: str) -> RepositoryResult[UserProfile]:
        self.calls.append(("get_profile", user_id))
        if self.gate is not None:
            await self.gate.wait()
        if "get_profile" in self.failures:
            return self.failures["get_profile"]
        row = self.profiles.get(user_id)
        if row is None:
            return RepositoryResult.not_found()
        return RepositoryResult.ok(UserProfile(**row))

    async def create_profile(self, user_id: str, fields: Dict[str, Any]) -> RepositoryResult[UserProfile]:
        self.calls.append(("create_profile", user_id, dict(fields)))
        if "create_profile" in self.failures:
            return self.failures["create_profile"]
        self.profiles[user_id] = {**fields, "id": user_id}
        return RepositoryResult.ok(UserProfile(**self.profiles[user_id]))

    async def update_profile(self, user_id: str, partial: Dict[str, Any]) -> RepositoryResult[UserProfile]:
        self.calls.append(("update_profile", user_id, dict(partial)))
        if "update_profile" in self.failures:
            return self.failures["update_profile"]
        if user_id not in self.profiles:
            return RepositoryResult.not_found()
        self.profiles[user_id] = {**self.profiles[user_id], **partial}
        return RepositoryResult.ok(UserProfile(**self.profiles[user_id]))

    async def list_check_ins(self, user_id: str) -> RepositoryResult[List[CheckIn]]:
        self.calls.append(("list_check_ins", user_id))
        if "list_check_ins" in self.failures:
            return self.failures["list_check_ins"]
        return RepositoryResult.ok(sorted(self.check_ins.get(user_id, []), key=lambda c: c.day))

    async def append_check_in(self, user_id: str, day: int, fields: Dict[str, Any]) -> RepositoryResult[CheckIn]:
        self.calls.append(("append_check_in", user_id, day, dict(fields)))
        if self.append_gate is not None:
            await self.append_gate.wait()
        if "append_check_in" in self.failures:
            return self.failures["append_check_in"]
        rows = self.check_ins.setdefault(user_id, [])
        check_in = CheckIn(**fields, id=len(rows) + 1, user_id=user_id, day=day)
        rows.append(check_in)
        return RepositoryResult.ok(check_in)


@pytest.fixture
def auth():
    return FakeAuthService()


@pytest.fixture
def repository():
    return FakeProfileRepository()


@pytest.fixture
def controller(auth, repository):
    return AuthBootstrapController(auth, repository, NotificationCenter(), default_profile_name="New User")


@pytest.fixture
def snapshots(controller):
    """Every state published by the controller, in order."""
    published = []
    controller.add_listener(published.append)
    return published
