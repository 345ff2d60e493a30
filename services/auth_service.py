"""Supabase auth (GoTrue) client with session-change subscriptions."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from config.settings import settings
from schemas.enums import AuthChangeEvent
from schemas.results import AuthError, AuthResult
from schemas.user import AuthUser, Session
from utils.logger import setup_logger

logger = setup_logger(__name__)

SessionListener = Callable[[AuthChangeEvent, Optional[Session]], Awaitable[None]]


class Subscription:
    """Handle returned by `SupabaseAuthService.subscribe`."""

    def __init__(self, service: "SupabaseAuthService", listener: SessionListener):
        self._service = service
        self._listener = listener

    def unsubscribe(self):
        self._service._remove_listener(self._listener)


class SupabaseAuthService:
    """Credential operations against Supabase auth for one browser session.

    The service keeps the current `Session` and notifies subscribers on every
    transition (initial restore, sign-in, sign-out, token refresh). Credential
    failures come back as `AuthResult.error`; nothing here raises on a bad
    password or a network failure.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.anon_key = anon_key or settings.supabase_anon_key
        self.timeout = timeout or settings.http_timeout
        self._transport = transport
        self._session: Optional[Session] = None
        self._listeners: List[SessionListener] = []

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def current_access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Subscription:
        """Register a coroutine called with (event, session) on every change."""
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: SessionListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _notify(self, event: AuthChangeEvent, session: Optional[Session]):
        if not self._listeners:
            return
        results = await asyncio.gather(
            *(listener(event, session) for listener in list(self._listeners)),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error(
                    f"Session listener failed on {event.value}: {result}",
                    exc_info=result,
                )

    async def initialize(self):
        """Emit the initial-restore event for whatever session is held."""
        await self._notify(AuthChangeEvent.INITIAL_SESSION, self._session)

    # ------------------------------------------------------------------
    # Credential operations
    # ------------------------------------------------------------------

    async def sign_up(self, email: str, password: str, name: str) -> AuthResult:
        """Register an account, storing the display name as user metadata."""
        payload = {"email": email, "password": password, "data": {"name": name}}
        response, error = await self._post("/auth/v1/signup", json=payload)
        if error:
            return AuthResult(error=error)

        data = response.json()
        # With e-mail confirmation enabled the body is the bare user.
        if "access_token" not in data:
            try:
                return AuthResult(user=AuthUser(**data))
            except ValidationError as e:
                logger.error(f"Unexpected sign-up response: {e}")
                return AuthResult(error=AuthError(message="Unexpected response from auth service", status=response.status_code))

        session = self._parse_session(data)
        if session is None:
            return AuthResult(error=AuthError(message="Unexpected response from auth service", status=response.status_code))
        await self._set_session(AuthChangeEvent.SIGNED_IN, session)
        return AuthResult(user=session.user, session=session)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Sign in with e-mail and password."""
        response, error = await self._post(
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if error:
            return AuthResult(error=error)

        session = self._parse_session(response.json())
        if session is None:
            return AuthResult(error=AuthError(message="Unexpected response from auth service", status=response.status_code))
        await self._set_session(AuthChangeEvent.SIGNED_IN, session)
        return AuthResult(user=session.user, session=session)

    async def refresh_session(self) -> AuthResult:
        """Exchange the refresh token for a new session."""
        if not self._session or not self._session.refresh_token:
            return AuthResult(error=AuthError(message="No session to refresh", code="session_missing"))

        response, error = await self._post(
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
        )
        if error:
            return AuthResult(error=error)

        session = self._parse_session(response.json())
        if session is None:
            return AuthResult(error=AuthError(message="Unexpected response from auth service", status=response.status_code))
        await self._set_session(AuthChangeEvent.TOKEN_REFRESHED, session)
        return AuthResult(user=session.user, session=session)

    async def sign_out(self):
        """Revoke the session server-side (best effort) and drop it locally."""
        if self._session:
            _, error = await self._post("/auth/v1/logout", access_token=self._session.access_token)
            if error:
                logger.warning(f"Remote sign-out failed, clearing local session anyway: {error.message}")
        await self._set_session(AuthChangeEvent.SIGNED_OUT, None)

    async def reset_password(self, email: str, redirect_to: Optional[str] = None) -> AuthResult:
        """Send a password-reset e-mail."""
        _, error = await self._post(
            "/auth/v1/recover",
            params={"redirect_to": redirect_to or settings.password_reset_redirect_url},
            json={"email": email},
        )
        return AuthResult(error=error)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _set_session(self, event: AuthChangeEvent, session: Optional[Session]):
        self._session = session
        logger.info(f"Auth state changed: {event.value}")
        await self._notify(event, session)

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Content-Type": "application/json",
        }

    async def _post(
        self,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        access_token: Optional[str] = None,
    ):
        """POST to the auth service; returns (response, None) or (None, AuthError)."""
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}{path}",
                    json=json,
                    params=params,
                    headers=self._headers(access_token),
                )
        except httpx.HTTPError as e:
            logger.error(f"Auth request to {path} failed: {e}")
            return None, AuthError(message="Could not reach the authentication service", code="network_error")

        if response.is_error:
            return None, self._parse_error(response)
        return response, None

    @staticmethod
    def _parse_error(response: httpx.Response) -> AuthError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = (
            body.get("msg")
            or body.get("error_description")
            or body.get("message")
            or body.get("error")
            or f"Authentication failed ({response.status_code})"
        )
        code = body.get("error_code") or body.get("error")
        return AuthError(message=str(message), status=response.status_code, code=code)

    @staticmethod
    def _parse_session(data: Dict[str, Any]) -> Optional[Session]:
        try:
            return Session(**data)
        except ValidationError as e:
            logger.error(f"Invalid session payload: {e}")
            return None
