"""Registry of per-browser app sessions, each with its own controller."""

import asyncio
import time
from typing import Awaitable, Callable, Dict, Optional, Tuple

from config.settings import settings
from services.auth_service import SupabaseAuthService
from services.profile_repository import ProfileRepository
from services.session_controller import AuthBootstrapController
from utils.logger import setup_logger

logger = setup_logger(__name__)

ControllerFactory = Callable[[], Awaitable[AuthBootstrapController]]


async def build_controller() -> AuthBootstrapController:
    """Wire a controller to fresh Supabase clients and restore its session."""
    auth = SupabaseAuthService()
    repository = ProfileRepository(token_provider=auth.current_access_token)
    controller = AuthBootstrapController(auth, repository)
    await controller.start()
    return controller


class SessionRegistry:
    """Maps app-session ids to controllers and expires idle ones."""

    def __init__(
        self,
        controller_factory: Optional[ControllerFactory] = None,
        ttl: Optional[int] = None,
    ):
        self._factory = controller_factory or build_controller
        self.ttl = ttl if ttl is not None else settings.session_timeout
        self._sessions: Dict[str, Tuple[AuthBootstrapController, float]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def get_or_create(self, session_id: str) -> AuthBootstrapController:
        async with self._lock:
            self._expire_idle()
            entry = self._sessions.get(session_id)
            if entry is None:
                controller = await self._factory()
                logger.info(f"Created app session {session_id}")
            else:
                controller = entry[0]
            self._sessions[session_id] = (controller, time.monotonic())
            return controller

    def get(self, session_id: str) -> Optional[AuthBootstrapController]:
        entry = self._sessions.get(session_id)
        return entry[0] if entry else None

    def discard(self, session_id: str) -> bool:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        entry[0].close()
        logger.info(f"Discarded app session {session_id}")
        return True

    def clear(self):
        for session_id in list(self._sessions):
            self.discard(session_id)

    def _expire_idle(self):
        if self.ttl <= 0:
            return
        cutoff = time.monotonic() - self.ttl
        expired = [sid for sid, (_, seen) in self._sessions.items() if seen < cutoff]
        for session_id in expired:
            self.discard(session_id)
        if expired:
            logger.info(f"Expired {len(expired)} idle app sessions")


# Global session registry instance
session_registry = SessionRegistry()
