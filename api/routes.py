"""State, profile and check-in routes."""

from fastapi import APIRouter, Depends, Request, Response

from api.dependencies import (
    get_controller,
    get_registry,
    require_profile,
    require_user,
    unwrap_result,
)
from config.settings import settings
from schemas.check_in import CheckIn, CheckInCreate
from schemas.state import StateResponse
from schemas.user import OnboardingData, ProfileUpdate, UserProfile
from services.session_controller import AuthBootstrapController
from services.session_registry import SessionRegistry
from utils.helpers import current_weight, weight_change, weight_series
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["api"])


@router.get("/state", response_model=StateResponse)
async def get_state(controller: AuthBootstrapController = Depends(get_controller)):
    """Current published state and pending notifications."""
    return StateResponse(state=controller.state, notifications=controller.notifications.drain())


@router.patch("/profile", response_model=UserProfile, dependencies=[Depends(require_profile)])
async def update_profile(payload: ProfileUpdate, controller: AuthBootstrapController = Depends(get_controller)):
    """Apply a partial profile update."""
    result = await controller.update_user_profile(payload.model_dump(exclude_unset=True))
    return unwrap_result(result, "update your profile")


@router.post("/onboarding", response_model=UserProfile, dependencies=[Depends(require_profile)])
async def complete_onboarding(payload: OnboardingData, controller: AuthBootstrapController = Depends(get_controller)):
    """Store the onboarding answers on the profile."""
    result = await controller.complete_onboarding(payload)
    return unwrap_result(result, "complete onboarding")


@router.post("/check-ins", response_model=CheckIn, status_code=201, dependencies=[Depends(require_user)])
async def add_check_in(payload: CheckInCreate, controller: AuthBootstrapController = Depends(get_controller)):
    """Record a check-in for the next day index."""
    result = await controller.add_check_in(payload)
    return unwrap_result(result, "save your check-in")


@router.get("/progress", dependencies=[Depends(require_profile)])
async def get_progress(controller: AuthBootstrapController = Depends(get_controller)):
    """Weight series and summary figures for the dashboard."""
    state = controller.state
    return {
        "current_weight": current_weight(state.profile, state.check_ins),
        "weight_goal": state.profile.weight_goal,
        "weight_change": weight_change(state.check_ins),
        "check_in_count": len(state.check_ins),
        "series": weight_series(state.profile, state.check_ins),
    }


@router.post("/badges/check", dependencies=[Depends(require_profile)])
async def check_badges(controller: AuthBootstrapController = Depends(get_controller)):
    """Award badges earned since the last check."""
    result = await controller.award_badges()
    profile = unwrap_result(result, "save your badges") if result is not None else controller.state.profile
    badges = profile.gamification.badges if profile.gamification else []
    return {"badges": [badge.model_dump(mode="json") for badge in badges]}


@router.post("/session/reset")
async def reset_session(
    request: Request,
    response: Response,
    registry: SessionRegistry = Depends(get_registry),
):
    """Last-resort recovery: drop all server-side state of this app session."""
    session_id = request.cookies.get(settings.session_cookie_name)
    controller = registry.get(session_id) if session_id else None
    if controller is not None:
        controller.reset()
    discarded = registry.discard(session_id) if session_id else False
    response.delete_cookie(settings.session_cookie_name)
    logger.info(f"App session reset requested (discarded={discarded})")
    return {"reset": True}
