"""Supabase row storage (PostgREST) for profiles and check-ins."""

from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from config.settings import settings
from schemas.check_in import CheckIn
from schemas.enums import ErrorKind
from schemas.results import RepositoryResult
from schemas.user import UserProfile
from utils.logger import setup_logger

logger = setup_logger(__name__)

PROFILES_TABLE = "profiles"
CHECK_INS_TABLE = "check_ins"

# PostgreSQL insufficient_privilege, raised by row-level security
RLS_ERROR_CODE = "42501"


class ProfileRepository:
    """Profile and check-in access for the signed-in user.

    Every call returns a `RepositoryResult`. Requests carry the current
    access token so the backend's row-ownership policies apply; a rejection
    by those policies is reported as `ErrorKind.PERMISSION`.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.anon_key = anon_key or settings.supabase_anon_key
        self.timeout = timeout or settings.http_timeout
        self._token_provider = token_provider
        self._transport = transport

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: str) -> RepositoryResult[UserProfile]:
        rows = await self._request(
            "GET",
            PROFILES_TABLE,
            params={"id": f"eq.{user_id}", "select": "*"},
        )
        if not rows.is_ok:
            return rows
        if not rows.value:
            return RepositoryResult.not_found()
        return self._parse(UserProfile, rows.value[0])

    async def create_profile(self, user_id: str, fields: Dict[str, Any]) -> RepositoryResult[UserProfile]:
        rows = await self._request(
            "POST",
            PROFILES_TABLE,
            json={**fields, "id": user_id},
        )
        if not rows.is_ok:
            return rows
        if not rows.value:
            return RepositoryResult.error(ErrorKind.INVALID_RESPONSE, "Profile insert returned no row")
        logger.info(f"Created profile for user {user_id}")
        return self._parse(UserProfile, rows.value[0])

    async def update_profile(self, user_id: str, partial: Dict[str, Any]) -> RepositoryResult[UserProfile]:
        rows = await self._request(
            "PATCH",
            PROFILES_TABLE,
            params={"id": f"eq.{user_id}"},
            json=partial,
        )
        if not rows.is_ok:
            return rows
        if not rows.value:
            # The filter matched nothing the policies let us see.
            return RepositoryResult.not_found()
        return self._parse(UserProfile, rows.value[0])

    # ------------------------------------------------------------------
    # Check-ins
    # ------------------------------------------------------------------

    async def list_check_ins(self, user_id: str) -> RepositoryResult[List[CheckIn]]:
        rows = await self._request(
            "GET",
            CHECK_INS_TABLE,
            params={"user_id": f"eq.{user_id}", "select": "*", "order": "day.asc"},
        )
        if not rows.is_ok:
            return rows
        try:
            return RepositoryResult.ok([CheckIn(**row) for row in rows.value])
        except (TypeError, ValidationError) as e:
            logger.error(f"Invalid check-in rows for user {user_id}: {e}")
            return RepositoryResult.error(ErrorKind.INVALID_RESPONSE, "Malformed check-in data")

    async def append_check_in(self, user_id: str, day: int, fields: Dict[str, Any]) -> RepositoryResult[CheckIn]:
        rows = await self._request(
            "POST",
            CHECK_INS_TABLE,
            json={**fields, "user_id": user_id, "day": day},
        )
        if not rows.is_ok:
            return rows
        if not rows.value:
            return RepositoryResult.error(ErrorKind.INVALID_RESPONSE, "Check-in insert returned no row")
        logger.info(f"Stored check-in day {day} for user {user_id}")
        return self._parse(CheckIn, rows.value[0])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider() if self._token_provider else None
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token or self.anon_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> RepositoryResult[List[Dict[str, Any]]]:
        """Run a PostgREST call and return its rows."""
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}/rest/v1/{table}",
                    params=params,
                    json=json,
                    headers=self._headers(),
                )
        except httpx.HTTPError as e:
            logger.error(f"{method} {table} failed: {e}")
            return RepositoryResult.error(ErrorKind.TRANSPORT, "Could not reach the database")

        if response.is_error:
            return self._classify_error(method, table, response)

        try:
            rows = response.json()
        except ValueError:
            return RepositoryResult.error(ErrorKind.INVALID_RESPONSE, f"Non-JSON response from {table}")
        if isinstance(rows, dict):
            rows = [rows]
        if not isinstance(rows, list):
            return RepositoryResult.error(ErrorKind.INVALID_RESPONSE, f"Unexpected response shape from {table}")
        return RepositoryResult.ok(rows)

    @staticmethod
    def _classify_error(method: str, table: str, response: httpx.Response) -> RepositoryResult:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = str(body.get("message") or body.get("hint") or f"HTTP {response.status_code}")
        code = str(body.get("code") or "")

        if (
            response.status_code in (401, 403)
            or code == RLS_ERROR_CODE
            or "row-level security" in message.lower()
            or "security policy" in message.lower()
        ):
            logger.warning(f"{method} {table} rejected by row-level security: {message}")
            return RepositoryResult.error(ErrorKind.PERMISSION, message)

        logger.error(f"{method} {table} failed with {response.status_code}: {message}")
        return RepositoryResult.error(ErrorKind.BACKEND, message)

    @staticmethod
    def _parse(model, row: Dict[str, Any]) -> RepositoryResult:
        try:
            return RepositoryResult.ok(model(**row))
        except (TypeError, ValidationError) as e:
            logger.error(f"Invalid {model.__name__} row: {e}")
            return RepositoryResult.error(ErrorKind.INVALID_RESPONSE, f"Malformed {model.__name__} data")
