"""Auth bootstrap controller: the single owner of published app state."""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from config.settings import settings
from schemas.check_in import CheckIn, CheckInCreate
from schemas.enums import AuthChangeEvent, ResultStatus
from schemas.gamification import Badge, GamificationData
from schemas.results import AuthResult, RepositoryResult
from schemas.state import AppState
from schemas.user import AuthUser, OnboardingData, Session, UserProfile
from services.auth_service import SupabaseAuthService, Subscription
from services.gamification import check_and_award_badges, register_check_in
from services.notifications import NotificationCenter
from services.profile_repository import ProfileRepository
from utils.logger import setup_logger

logger = setup_logger(__name__)

StateListener = Callable[[AppState], None]

PERMISSION_HINT = (
    "The database refused access to your data. Its row-level security "
    "policies need to be configured for this account."
)

LOAD_FAILURE_MESSAGE = "Something went wrong while loading your data. Please try again."


class ProfileResolutionError(Exception):
    """Raised inside a resolution cycle when profile or check-ins are unobtainable."""

    def __init__(self, message: str, result: Optional[RepositoryResult] = None):
        super().__init__(message)
        self.result = result


class AuthBootstrapController:
    """Turns session-change events into a consistent `AppState`.

    At most one resolution cycle runs at a time. A session-change event that
    arrives while a cycle is in flight is dropped. Each cycle holds an
    in-flight token and only publishes while that token is current, so
    `reset()` can invalidate a running cycle.

    Data operations are serialized by a write lock and only publish while
    the user they started for is still signed in.
    """

    def __init__(
        self,
        auth_service: SupabaseAuthService,
        repository: ProfileRepository,
        notifications: Optional[NotificationCenter] = None,
        default_profile_name: Optional[str] = None,
    ):
        self.auth = auth_service
        self.repository = repository
        self.notifications = notifications or NotificationCenter()
        self.default_profile_name = default_profile_name or settings.default_profile_name
        self._state = AppState(plan_duration=settings.plan_duration_days)
        self._inflight: Optional[object] = None
        self._listeners: List[StateListener] = []
        self._subscription: Optional[Subscription] = None
        self._write_lock = asyncio.Lock()

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def is_resolving(self) -> bool:
        return self._inflight is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self):
        """Subscribe to the auth service and resolve the restored session."""
        if self._subscription is None:
            self._subscription = self.auth.subscribe(self.handle_session_change)
        await self.auth.initialize()

    def close(self):
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Call `listener` with every new snapshot; returns a remover."""
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def reset(self) -> AppState:
        """Discard local state and invalidate any in-flight cycle."""
        self._inflight = None
        self.notifications.drain()
        return self._publish(user=None, profile=None, check_ins=[], is_loading=False)

    def _publish(self, **changes: Any) -> AppState:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"State listener failed: {e}", exc_info=True)
        return self._state

    # ------------------------------------------------------------------
    # Resolution cycle
    # ------------------------------------------------------------------

    async def handle_session_change(self, event: AuthChangeEvent, session: Optional[Session]):
        """Session-change listener registered with the auth service."""
        if self._inflight is not None:
            logger.info(f"Dropping {event.value}: a resolution cycle is already running")
            return

        token = object()
        self._inflight = token
        self._publish(is_loading=True)
        try:
            await self._resolve(token, session)
        finally:
            if self._inflight is token:
                self._inflight = None
                self._publish(is_loading=False)

    async def _resolve(self, token: object, session: Optional[Session]):
        if session is None or session.user is None:
            self._commit(token, user=None, profile=None, check_ins=[])
            return

        user = session.user
        try:
            profile = await self._resolve_profile(user)
            check_ins = await self.repository.list_check_ins(user.id)
            if not check_ins.is_ok:
                raise ProfileResolutionError("Could not load check-ins", check_ins)
        except ProfileResolutionError as e:
            logger.error(f"Failed to load data for user {user.id}: {e}")
            self._commit(token, user=None, profile=None, check_ins=[])
            if e.result is not None and e.result.is_permission_error:
                self.notifications.error(PERMISSION_HINT)
            else:
                self.notifications.info(LOAD_FAILURE_MESSAGE)
            return
        except Exception as e:
            logger.error(f"Unexpected error loading data for user {user.id}: {e}", exc_info=True)
            self._commit(token, user=None, profile=None, check_ins=[])
            self.notifications.info(LOAD_FAILURE_MESSAGE)
            return

        self._commit(token, user=user, profile=profile, check_ins=list(check_ins.value))

    def _commit(self, token: object, **changes: Any):
        if self._inflight is not token:
            logger.info("Discarding result of an invalidated resolution cycle")
            return
        self._publish(**changes)

    async def _resolve_profile(self, user: AuthUser) -> UserProfile:
        result = await self.repository.get_profile(user.id)
        if result.status == ResultStatus.ERROR:
            raise ProfileResolutionError("Could not fetch profile", result)

        if result.status == ResultStatus.NOT_FOUND:
            name = user.display_name or self.default_profile_name
            result = await self.repository.create_profile(user.id, {"name": name})
            if not result.is_ok:
                raise ProfileResolutionError("Could not create profile", result)

        profile = result.value
        if profile is None:
            raise ProfileResolutionError("No profile available")

        if profile.completed_items_by_day is None:
            repaired = await self.repository.update_profile(user.id, {"completed_items_by_day": {}})
            if repaired.is_ok and repaired.value is not None and repaired.value.completed_items_by_day is not None:
                profile = repaired.value
            else:
                logger.warning(f"Could not persist completion repair for user {user.id}: {repaired.message}")
                profile = profile.model_copy(update={"completed_items_by_day": {}})
        return profile

    # ------------------------------------------------------------------
    # Credential operations (state follows from the session-change event)
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> AuthResult:
        return await self.auth.sign_in(email, password)

    async def signup(self, email: str, password: str, name: str) -> AuthResult:
        return await self.auth.sign_up(email, password, name)

    async def logout(self):
        await self.auth.sign_out()

    async def reset_password(self, email: str) -> AuthResult:
        return await self.auth.reset_password(email, settings.password_reset_redirect_url)

    async def refresh_session(self) -> AuthResult:
        return await self.auth.refresh_session()

    # ------------------------------------------------------------------
    # Data operations
    # ------------------------------------------------------------------

    async def update_user_profile(
        self,
        partial: Dict[str, Any],
        announce: bool = True,
    ) -> Optional[RepositoryResult[UserProfile]]:
        """Send a partial update and republish the returned profile.

        Returns None without a signed-in user and profile.
        """
        async with self._write_lock:
            return await self._update_profile(partial, announce)

    async def _update_profile(
        self,
        partial: Dict[str, Any],
        announce: bool,
    ) -> Optional[RepositoryResult[UserProfile]]:
        user, profile = self._state.user, self._state.profile
        if user is None or profile is None:
            return None

        result = await self.repository.update_profile(user.id, partial)
        if not self._is_current(user.id):
            logger.warning(f"Session changed during profile update for user {user.id}; not publishing it")
            return result

        if result.is_ok:
            self._publish(profile=result.value)
            if announce:
                self.notifications.success("Profile updated successfully!")
        else:
            logger.error(f"Profile update failed for user {user.id}: {result.message}")
            self._notify_failure(result, "We could not save your profile. Please try again.")
        return result

    async def add_check_in(self, data: CheckInCreate) -> Optional[RepositoryResult[CheckIn]]:
        """Record a check-in with day index = number of prior check-ins.

        The profile weight is patched first. The two writes are not atomic:
        if the insert fails after the weight patch, the profile keeps the new
        weight. Returns None when no user is signed in, or when the session
        changes before the insert.
        """
        async with self._write_lock:
            user = self._state.user
            if user is None:
                return None

            if data.weight is not None and self._state.profile is not None:
                weight_result = await self.repository.update_profile(user.id, {"weight": data.weight})
                if not self._is_current(user.id):
                    logger.warning(f"Session changed during check-in for user {user.id}; check-in not saved")
                    return None
                if not weight_result.is_ok:
                    logger.error(f"Weight update failed for user {user.id}: {weight_result.message}")
                    self._notify_failure(weight_result, "We could not save your check-in.")
                    return weight_result
                self._publish(profile=weight_result.value)

            day = len(self._state.check_ins)
            result = await self.repository.append_check_in(user.id, day, data.model_dump(exclude_none=True))
            if not self._is_current(user.id):
                logger.warning(f"Session changed while saving check-in day {day} for user {user.id}; not publishing it")
                return result

            if result.is_ok:
                # A same-user reload may already carry the new row
                if all(c.day != result.value.day for c in self._state.check_ins):
                    self._publish(check_ins=[*self._state.check_ins, result.value])
                self.notifications.success("Check-in added successfully!")
                await self._record_check_in_progress(user.id)
            else:
                logger.warning(
                    f"Check-in day {day} failed for user {user.id} after the weight update; "
                    f"profile weight and history now differ: {result.message}"
                )
                self._notify_failure(result, "We could not save your check-in.")
            return result

    async def toggle_item_completion(self, day: int, item_id: str) -> Optional[RepositoryResult[UserProfile]]:
        async with self._write_lock:
            if self._state.user is None or self._state.profile is None:
                return None
            completed = dict(self._state.completed_items_by_day)
            day_items = dict(completed.get(day, {}))
            day_items[item_id] = not day_items.get(item_id, False)
            completed[day] = day_items
            return await self._update_profile({"completed_items_by_day": completed}, announce=False)

    async def reset_day_completion(self, day: int) -> Optional[RepositoryResult[UserProfile]]:
        async with self._write_lock:
            if self._state.user is None or self._state.profile is None:
                return None
            completed = dict(self._state.completed_items_by_day)
            completed.pop(day, None)
            return await self._update_profile({"completed_items_by_day": completed}, announce=False)

    async def complete_onboarding(self, data: OnboardingData) -> Optional[RepositoryResult[UserProfile]]:
        return await self.update_user_profile(data.model_dump())

    async def award_badges(self) -> Optional[RepositoryResult[UserProfile]]:
        """Store badges earned since the last check; None when nothing changed."""
        async with self._write_lock:
            user, profile = self._state.user, self._state.profile
            if user is None or profile is None:
                return None

            data = profile.gamification or GamificationData()
            earned = check_and_award_badges(data, profile, self._state.check_ins)
            if not earned:
                return None
            return await self._store_gamification(user.id, data, earned)

    async def _record_check_in_progress(self, user_id: str):
        """Add check-in points, extend the streak and award badges."""
        profile = self._state.profile
        if profile is None:
            return
        data = register_check_in(profile.gamification or GamificationData())
        earned = check_and_award_badges(data, profile, self._state.check_ins)
        await self._store_gamification(user_id, data, earned)

    async def _store_gamification(
        self,
        user_id: str,
        data: GamificationData,
        earned: List[Badge],
    ) -> RepositoryResult[UserProfile]:
        updated = data.model_copy(update={"badges": [*data.badges, *earned]})
        result = await self.repository.update_profile(user_id, {"gamification": updated.model_dump(mode="json")})
        if not result.is_ok:
            logger.warning(f"Could not store progress for user {user_id}: {result.message}")
            return result
        if not self._is_current(user_id):
            logger.warning(f"Session changed while storing progress for user {user_id}; not publishing it")
            return result

        self._publish(profile=result.value)
        for badge in earned:
            self.notifications.success(f"New badge: {badge.name}")
        return result

    def _is_current(self, user_id: str) -> bool:
        """Whether `user_id` is still the signed-in user with a published profile."""
        user = self._state.user
        return user is not None and user.id == user_id and self._state.profile is not None

    def _notify_failure(self, result: RepositoryResult, message: str):
        if result.is_permission_error:
            self.notifications.error(PERMISSION_HINT)
        else:
            self.notifications.info(message)
