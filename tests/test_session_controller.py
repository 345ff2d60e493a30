import asyncio

import pytest

from conftest import make_session, profile_row
from schemas.check_in import CheckInCreate
from schemas.enums import AuthChangeEvent, BadgeId, ErrorKind, NotificationKind
from schemas.results import RepositoryResult
from schemas.user import OnboardingData
from services.session_controller import PERMISSION_HINT


async def _wait_until_resolving(controller):
    for _ in range(100):
        if controller.is_resolving:
            return
        await asyncio.sleep(0)
    raise AssertionError("resolution cycle never started")


def _assert_consistent(snapshots):
    for state in snapshots:
        if state.profile is None:
            assert state.check_ins == []
            continue
        assert state.user is not None
        assert state.profile.id == state.user.id
        assert all(c.user_id == state.user.id for c in state.check_ins)


async def _sign_in(auth, controller, user_id="user-1", name=None):
    await controller.start()
    await auth.emit(AuthChangeEvent.SIGNED_IN, make_session(user_id, name))


# =========================================================================
# Resolution cycle
# =========================================================================

@pytest.mark.asyncio
async def test_start_without_session_publishes_signed_out_state(controller, snapshots):
    await controller.start()

    state = controller.state
    assert state.user is None
    assert state.profile is None
    assert state.check_ins == []
    assert state.is_loading is False
    assert snapshots[0].is_loading is True
    assert snapshots[-1].is_loading is False


@pytest.mark.asyncio
async def test_start_restores_existing_session(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    repository.seed_check_ins("user-1", 82.0, 81.5)
    auth.session = make_session("user-1")

    await controller.start()

    assert controller.state.is_authenticated is True
    assert controller.state.profile.name == "Maria"
    assert [c.day for c in controller.state.check_ins] == [0, 1]
    assert repository.count("create_profile") == 0


@pytest.mark.asyncio
async def test_events_during_a_cycle_are_dropped(auth, repository, controller, snapshots):
    repository.profiles["user-1"] = profile_row("user-1")
    repository.profiles["user-2"] = profile_row("user-2", name="Ana")
    repository.seed_check_ins("user-1", 82.0)
    await controller.start()

    repository.gate = asyncio.Event()
    first = asyncio.create_task(auth.emit(AuthChangeEvent.SIGNED_IN, make_session("user-1")))
    await _wait_until_resolving(controller)

    for _ in range(5):
        await controller.handle_session_change(AuthChangeEvent.TOKEN_REFRESHED, make_session("user-2"))

    repository.gate.set()
    await first

    assert repository.count("get_profile") == 1
    assert controller.state.user.id == "user-1"
    assert controller.state.profile.id == "user-1"
    assert len(controller.state.check_ins) == 1
    assert controller.is_resolving is False
    _assert_consistent(snapshots)


@pytest.mark.asyncio
async def test_next_window_is_processed_after_a_cycle_completes(auth, repository, controller, snapshots):
    repository.profiles["user-1"] = profile_row("user-1")
    repository.profiles["user-2"] = profile_row("user-2", name="Ana")
    repository.seed_check_ins("user-2", 60.0, 59.5)

    await _sign_in(auth, controller, "user-1")
    await auth.emit(AuthChangeEvent.SIGNED_IN, make_session("user-2"))

    assert controller.state.profile.name == "Ana"
    assert [c.weight for c in controller.state.check_ins] == [60.0, 59.5]
    assert repository.count("get_profile") == 2
    _assert_consistent(snapshots)


@pytest.mark.asyncio
async def test_profile_and_check_ins_are_published_together(auth, repository, controller, snapshots):
    repository.profiles["user-1"] = profile_row()
    repository.seed_check_ins("user-1", 82.0, 81.0, 80.2)

    await _sign_in(auth, controller)

    with_profile = [s for s in snapshots if s.profile is not None]
    assert with_profile
    assert all(len(s.check_ins) == 3 for s in with_profile)


@pytest.mark.asyncio
async def test_missing_completion_mapping_is_repaired(auth, repository, controller):
    row = profile_row()
    del row["completed_items_by_day"]
    repository.profiles["user-1"] = row

    await _sign_in(auth, controller)

    assert controller.state.profile.completed_items_by_day == {}
    assert repository.profiles["user-1"]["completed_items_by_day"] == {}
    assert ("update_profile", "user-1", {"completed_items_by_day": {}}) in repository.calls


@pytest.mark.asyncio
async def test_malformed_completion_mapping_is_repaired(auth, repository, controller):
    repository.profiles["user-1"] = profile_row(completed_items_by_day="not-a-mapping")

    await _sign_in(auth, controller)

    assert controller.state.profile.completed_items_by_day == {}


@pytest.mark.asyncio
async def test_completion_repair_falls_back_to_local_copy(auth, repository, controller):
    repository.profiles["user-1"] = profile_row(completed_items_by_day=None)
    repository.fail("update_profile")

    await _sign_in(auth, controller)

    assert controller.state.is_authenticated is True
    assert controller.state.profile.completed_items_by_day == {}


@pytest.mark.asyncio
async def test_new_user_gets_profile_named_from_metadata(auth, repository, controller):
    await _sign_in(auth, controller, "user-9", name="Maria")

    profile = controller.state.profile
    assert profile.id == "user-9"
    assert profile.name == "Maria"
    assert profile.completed_items_by_day == {}
    assert controller.state.check_ins == []
    assert ("create_profile", "user-9", {"name": "Maria"}) in repository.calls


@pytest.mark.asyncio
async def test_new_user_without_metadata_gets_default_name(auth, repository, controller):
    await _sign_in(auth, controller, "user-9")

    assert controller.state.profile.name == "New User"


@pytest.mark.asyncio
async def test_sign_out_clears_state_with_loading_transition(auth, repository, controller, snapshots):
    repository.profiles["user-1"] = profile_row()
    repository.seed_check_ins("user-1", 82.0)
    await _sign_in(auth, controller)
    snapshots.clear()

    await auth.emit(AuthChangeEvent.SIGNED_OUT, None)

    assert snapshots[0].is_loading is True
    final = snapshots[-1]
    assert final.is_loading is False
    assert final.user is None
    assert final.profile is None
    assert final.check_ins == []


@pytest.mark.asyncio
async def test_permission_error_on_profile_fetch_clears_state(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    repository.fail("get_profile", ErrorKind.PERMISSION, "new row violates row-level security policy")

    await _sign_in(auth, controller)

    state = controller.state
    assert state.user is None
    assert state.profile is None
    assert state.check_ins == []
    assert state.is_loading is False
    notifications = controller.notifications.drain()
    assert [(n.kind, n.message) for n in notifications] == [(NotificationKind.ERROR, PERMISSION_HINT)]


@pytest.mark.asyncio
async def test_check_in_failure_during_resolution_clears_state(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    repository.fail("list_check_ins", ErrorKind.TRANSPORT)

    await _sign_in(auth, controller)

    assert controller.state.user is None
    assert controller.state.profile is None
    assert controller.notifications.drain()[0].kind == NotificationKind.INFO


@pytest.mark.asyncio
async def test_profile_creation_failure_clears_state(auth, repository, controller):
    repository.fail("create_profile", ErrorKind.BACKEND)

    await _sign_in(auth, controller, "user-9", name="Maria")

    assert controller.state.user is None
    assert controller.state.is_loading is False


@pytest.mark.asyncio
async def test_unexpected_error_during_resolution_clears_previous_user(auth, repository, controller, snapshots):
    repository.profiles["user-1"] = profile_row()
    repository.profiles["user-2"] = profile_row("user-2", name="Ana")
    await _sign_in(auth, controller)
    assert controller.state.profile.id == "user-1"

    async def broken_list_check_ins(user_id):
        raise RuntimeError("connection reset")

    repository.list_check_ins = broken_list_check_ins
    await auth.emit(AuthChangeEvent.SIGNED_IN, make_session("user-2"))

    assert controller.state.user is None
    assert controller.state.profile is None
    assert controller.state.check_ins == []
    assert controller.state.is_loading is False
    assert controller.notifications.drain()[-1].kind == NotificationKind.INFO
    _assert_consistent(snapshots)


@pytest.mark.asyncio
async def test_reset_invalidates_running_cycle(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    await controller.start()

    repository.gate = asyncio.Event()
    cycle = asyncio.create_task(auth.emit(AuthChangeEvent.SIGNED_IN, make_session("user-1")))
    await _wait_until_resolving(controller)

    controller.reset()
    repository.gate.set()
    await cycle

    assert controller.state.user is None
    assert controller.state.is_loading is False
    assert controller.is_resolving is False

    await auth.emit(AuthChangeEvent.SIGNED_IN, make_session("user-1"))
    assert controller.state.user.id == "user-1"


@pytest.mark.asyncio
async def test_failing_listener_does_not_block_publishing(controller):
    def broken(state):
        raise RuntimeError("view crashed")

    controller.add_listener(broken)
    await controller.start()

    assert controller.state.is_loading is False


@pytest.mark.asyncio
async def test_close_unsubscribes_from_auth(auth, controller):
    await controller.start()
    controller.close()

    assert auth.listeners == []


# =========================================================================
# Credential operations
# =========================================================================

@pytest.mark.asyncio
async def test_login_resolves_profile_through_session_event(repository, controller):
    await controller.start()

    result = await controller.login("maria@example.com", "secret")

    assert result.ok
    assert controller.state.user.id == "user-1"
    assert controller.state.profile.name == "Maria"


@pytest.mark.asyncio
async def test_login_with_bad_password_leaves_state_untouched(controller):
    await controller.start()

    result = await controller.login("maria@example.com", "wrong")

    assert result.error.message == "Invalid login credentials"
    assert controller.state.user is None


@pytest.mark.asyncio
async def test_signup_creates_profile_with_given_name(repository, controller):
    await controller.start()

    result = await controller.signup("ana@example.com", "secret", "Ana")

    assert result.ok
    assert controller.state.profile.name == "Ana"


@pytest.mark.asyncio
async def test_logout_clears_state(repository, controller):
    repository.profiles["user-1"] = profile_row()
    await controller.start()
    await controller.login("maria@example.com", "secret")

    await controller.logout()

    assert controller.state.user is None
    assert controller.state.profile is None


@pytest.mark.asyncio
async def test_reset_password_is_forwarded(auth, controller):
    result = await controller.reset_password("maria@example.com")

    assert result.ok
    assert auth.reset_requests == ["maria@example.com"]


# =========================================================================
# Data operations
# =========================================================================

@pytest.mark.asyncio
async def test_update_profile_without_user_is_a_no_op(repository, controller):
    await controller.start()

    assert await controller.update_user_profile({"name": "X"}) is None
    assert repository.count("update_profile") == 0


@pytest.mark.asyncio
async def test_update_profile_republishes_returned_row(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    await _sign_in(auth, controller)

    result = await controller.update_user_profile({"weight_goal": 68.0})

    assert result.is_ok
    assert controller.state.profile.weight_goal == 68.0
    assert controller.notifications.drain()[-1].kind == NotificationKind.SUCCESS


@pytest.mark.asyncio
async def test_update_profile_permission_error_shows_hint(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    await _sign_in(auth, controller)
    repository.fail("update_profile", ErrorKind.PERMISSION)

    result = await controller.update_user_profile({"weight_goal": 68.0})

    assert result.is_permission_error
    assert controller.state.profile.weight_goal == 70.0
    assert controller.notifications.drain()[-1].message == PERMISSION_HINT


@pytest.mark.asyncio
async def test_add_check_in_assigns_next_day_and_updates_weight_first(auth, repository, controller, snapshots):
    repository.profiles["user-1"] = profile_row(weight=82.0)
    repository.seed_check_ins("user-1", 82.0, 81.9)
    await _sign_in(auth, controller)
    before = list(controller.state.check_ins)
    snapshots.clear()

    result = await controller.add_check_in(CheckInCreate(weight=81.4))

    assert result.is_ok
    assert result.value.day == 2
    assert controller.state.check_ins[:2] == before
    assert [c.day for c in controller.state.check_ins] == [0, 1, 2]
    assert controller.state.profile.weight == 81.4

    weight_published = snapshots[0]
    assert weight_published.profile.weight == 81.4
    assert len(weight_published.check_ins) == 2

    methods = [call[0] for call in repository.calls]
    assert methods.index("update_profile") < methods.index("append_check_in")


@pytest.mark.asyncio
async def test_first_check_in_gets_day_zero(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    await _sign_in(auth, controller)

    result = await controller.add_check_in(CheckInCreate(weight=82.0, waist=90.0, observations="felt great"))

    assert result.value.day == 0
    assert result.value.waist == 90.0
    assert result.value.observations == "felt great"


@pytest.mark.asyncio
async def test_failed_weight_update_aborts_check_in(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    await _sign_in(auth, controller)
    repository.fail("update_profile")

    result = await controller.add_check_in(CheckInCreate(weight=80.0))

    assert not result.is_ok
    assert repository.count("append_check_in") == 0
    assert controller.state.check_ins == []


@pytest.mark.asyncio
async def test_failed_insert_keeps_new_weight(auth, repository, controller):
    repository.profiles["user-1"] = profile_row(weight=82.0)
    await _sign_in(auth, controller)
    repository.fail("append_check_in", ErrorKind.TRANSPORT)

    result = await controller.add_check_in(CheckInCreate(weight=80.0))

    assert not result.is_ok
    assert controller.state.check_ins == []
    assert controller.state.profile.weight == 80.0
    assert repository.profiles["user-1"]["weight"] == 80.0


@pytest.mark.asyncio
async def test_sign_out_during_check_in_insert_is_not_published(auth, repository, controller, snapshots):
    repository.profiles["user-1"] = profile_row()
    await _sign_in(auth, controller)
    repository.append_gate = asyncio.Event()

    pending = asyncio.create_task(controller.add_check_in(CheckInCreate(weight=81.0)))
    for _ in range(100):
        if repository.count("append_check_in"):
            break
        await asyncio.sleep(0)
    await auth.emit(AuthChangeEvent.SIGNED_OUT, None)
    repository.append_gate.set()
    result = await pending

    assert result.is_ok
    assert controller.state.user is None
    assert controller.state.profile is None
    assert controller.state.check_ins == []
    assert repository.count("update_profile") == 1
    _assert_consistent(snapshots)


@pytest.mark.asyncio
async def test_check_in_for_previous_user_is_not_published_to_next_user(auth, repository, controller, snapshots):
    repository.profiles["user-1"] = profile_row()
    repository.profiles["user-2"] = profile_row("user-2", name="Ana", weight=60.0)
    await _sign_in(auth, controller)
    repository.append_gate = asyncio.Event()

    pending = asyncio.create_task(controller.add_check_in(CheckInCreate(weight=81.0)))
    for _ in range(100):
        if repository.count("append_check_in"):
            break
        await asyncio.sleep(0)
    await auth.emit(AuthChangeEvent.SIGNED_IN, make_session("user-2"))
    repository.append_gate.set()
    await pending

    assert controller.state.user.id == "user-2"
    assert controller.state.profile.weight == 60.0
    assert controller.state.check_ins == []
    _assert_consistent(snapshots)


@pytest.mark.asyncio
async def test_concurrent_check_ins_get_distinct_days(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    repository.seed_check_ins("user-1", 82.0, 81.9)
    await _sign_in(auth, controller)
    repository.append_gate = asyncio.Event()

    first = asyncio.create_task(controller.add_check_in(CheckInCreate(weight=81.5)))
    second = asyncio.create_task(controller.add_check_in(CheckInCreate(weight=81.2)))
    for _ in range(10):
        await asyncio.sleep(0)
    repository.append_gate.set()
    results = await asyncio.gather(first, second)

    assert sorted(r.value.day for r in results) == [2, 3]
    assert [c.day for c in repository.check_ins["user-1"]] == [0, 1, 2, 3]
    assert [c.day for c in controller.state.check_ins] == [0, 1, 2, 3]
    assert controller.state.profile.weight == 81.2


@pytest.mark.asyncio
async def test_add_check_in_without_user_returns_none(controller):
    await controller.start()

    assert await controller.add_check_in(CheckInCreate(weight=80.0)) is None


@pytest.mark.asyncio
async def test_toggle_twice_restores_original_value(auth, repository, controller):
    repository.profiles["user-1"] = profile_row(completed_items_by_day={1: {"lunch": True}})
    await _sign_in(auth, controller)

    await controller.toggle_item_completion(1, "breakfast")
    assert controller.state.completed_items_by_day[1] == {"lunch": True, "breakfast": True}

    await controller.toggle_item_completion(1, "breakfast")
    assert controller.state.completed_items_by_day[1].get("breakfast", False) is False
    assert controller.state.completed_items_by_day[1]["lunch"] is True


@pytest.mark.asyncio
async def test_reset_day_only_clears_that_day(auth, repository, controller):
    repository.profiles["user-1"] = profile_row(
        completed_items_by_day={1: {"breakfast": True}, 2: {"dinner": True, "task-1": False}}
    )
    await _sign_in(auth, controller)

    await controller.reset_day_completion(1)

    assert controller.state.completed_items_by_day == {2: {"dinner": True, "task-1": False}}


@pytest.mark.asyncio
async def test_complete_onboarding_stores_answers(auth, repository, controller):
    await _sign_in(auth, controller, "user-9", name="Maria")
    assert controller.state.has_completed_onboarding is False

    await controller.complete_onboarding(OnboardingData(
        name="Maria",
        age=34,
        weight=82.0,
        height=165.0,
        weight_goal=70.0,
        gender="female",
        activity_level="light",
        goal="weight loss",
        dietary_restrictions=["lactose"],
    ))

    assert controller.state.has_completed_onboarding is True
    assert controller.state.profile.dietary_restrictions == ["lactose"]


@pytest.mark.asyncio
async def test_award_badges_once(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    repository.seed_check_ins("user-1", 82.0)
    await _sign_in(auth, controller)

    result = await controller.award_badges()

    badges = controller.state.profile.gamification.badges
    assert result.is_ok
    assert [b.id for b in badges] == [BadgeId.FIRST_CHECK_IN]
    assert await controller.award_badges() is None


@pytest.mark.asyncio
async def test_check_in_adds_points_and_first_badge(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    await _sign_in(auth, controller)

    await controller.add_check_in(CheckInCreate(weight=81.0))

    gamification = controller.state.profile.gamification
    assert gamification.points == 10
    assert gamification.streak == 1
    assert [b.id for b in gamification.badges] == [BadgeId.FIRST_CHECK_IN]
    messages = [n.message for n in controller.notifications.drain()]
    assert "New badge: First Step" in messages


@pytest.mark.asyncio
async def test_progress_write_failure_keeps_check_in(auth, repository, controller):
    repository.profiles["user-1"] = profile_row()
    await _sign_in(auth, controller)

    original_update = repository.update_profile

    async def update_without_gamification(user_id, partial):
        if "gamification" in partial:
            repository.calls.append(("update_profile", user_id, dict(partial)))
            return RepositoryResult.error(ErrorKind.BACKEND, "column missing")
        return await original_update(user_id, partial)

    repository.update_profile = update_without_gamification

    result = await controller.add_check_in(CheckInCreate(weight=81.0))

    assert result.is_ok
    assert len(controller.state.check_ins) == 1
    assert controller.state.profile.gamification is None
