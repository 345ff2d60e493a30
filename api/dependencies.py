"""Shared route dependencies and result-to-HTTP mapping."""

import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response

from config.settings import settings
from schemas.enums import ErrorKind, ResultStatus
from schemas.results import AuthResult, RepositoryResult
from schemas.user import AuthUser, UserProfile
from services.chat_service import ChatAssistant, chat_assistant
from services.plan_generator import PlanGenerator, plan_generator
from services.session_controller import PERMISSION_HINT, AuthBootstrapController
from services.session_registry import SessionRegistry, session_registry


def get_registry() -> SessionRegistry:
    return session_registry


def get_plan_generator() -> PlanGenerator:
    return plan_generator


def get_chat_assistant() -> ChatAssistant:
    return chat_assistant


def get_session_id(request: Request, response: Response) -> str:
    """Read the app-session cookie, issuing a new id on first contact."""
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        session_id = str(uuid.uuid4())
        response.set_cookie(
            settings.session_cookie_name,
            session_id,
            httponly=True,
            samesite="lax",
            max_age=settings.session_timeout,
        )
    return session_id


async def get_controller(
    session_id: str = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_registry),
) -> AuthBootstrapController:
    return await registry.get_or_create(session_id)


def require_user(controller: AuthBootstrapController = Depends(get_controller)) -> AuthUser:
    if controller.state.user is None:
        raise HTTPException(status_code=401, detail="You need to be signed in.")
    return controller.state.user


def require_profile(controller: AuthBootstrapController = Depends(get_controller)) -> UserProfile:
    if controller.state.user is None or controller.state.profile is None:
        raise HTTPException(status_code=401, detail="You need to be signed in.")
    return controller.state.profile


_ERROR_STATUS = {
    ErrorKind.PERMISSION: 403,
    ErrorKind.TRANSPORT: 503,
    ErrorKind.BACKEND: 502,
    ErrorKind.INVALID_RESPONSE: 502,
}


def unwrap_result(result: Optional[RepositoryResult], action: str):
    """Return the value of a successful result or raise the matching HTTP error."""
    if result is None:
        raise HTTPException(status_code=401, detail=f"You need to be signed in to {action}.")
    if result.status == ResultStatus.OK:
        return result.value
    if result.status == ResultStatus.NOT_FOUND:
        raise HTTPException(status_code=404, detail=f"Nothing found to {action}.")

    detail = {"message": f"Could not {action}.", "kind": result.error_kind.value if result.error_kind else None}
    if result.is_permission_error:
        detail["hint"] = PERMISSION_HINT
    raise HTTPException(status_code=_ERROR_STATUS.get(result.error_kind, 500), detail=detail)


def raise_for_auth_error(result: AuthResult):
    """Surface a credential failure as a form-level 400 with the structured error."""
    if result.error is not None:
        raise HTTPException(status_code=400, detail=result.error.model_dump())
