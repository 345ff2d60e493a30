"""Authentication routes."""

from fastapi import APIRouter, Depends

from api.dependencies import get_controller, raise_for_auth_error
from schemas.auth import LoginRequest, ResetPasswordRequest, SignupRequest
from schemas.state import StateResponse
from services.session_controller import AuthBootstrapController
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _state_response(controller: AuthBootstrapController) -> StateResponse:
    return StateResponse(state=controller.state, notifications=controller.notifications.drain())


@router.post("/signup", response_model=StateResponse)
async def signup(payload: SignupRequest, controller: AuthBootstrapController = Depends(get_controller)):
    """Register an account. With e-mail confirmation on, the state stays signed out."""
    result = await controller.signup(payload.email, payload.password, payload.name)
    raise_for_auth_error(result)
    if result.session is None:
        controller.notifications.info("Check your e-mail to confirm your account.")
    return _state_response(controller)


@router.post("/login", response_model=StateResponse)
async def login(payload: LoginRequest, controller: AuthBootstrapController = Depends(get_controller)):
    """Sign in with e-mail and password."""
    result = await controller.login(payload.email, payload.password)
    raise_for_auth_error(result)
    return _state_response(controller)


@router.post("/logout", response_model=StateResponse)
async def logout(controller: AuthBootstrapController = Depends(get_controller)):
    """Sign out; the published state is cleared by the sign-out event."""
    await controller.logout()
    return _state_response(controller)


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest, controller: AuthBootstrapController = Depends(get_controller)):
    """Request a password-reset e-mail."""
    result = await controller.reset_password(payload.email)
    raise_for_auth_error(result)
    return {"sent": True}


@router.post("/refresh", response_model=StateResponse)
async def refresh(controller: AuthBootstrapController = Depends(get_controller)):
    """Refresh the session tokens."""
    result = await controller.refresh_session()
    raise_for_auth_error(result)
    return _state_response(controller)
