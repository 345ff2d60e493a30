"""Chat assistant routes."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_chat_assistant, get_controller, require_user
from schemas.chat import ChatMessage, ChatRequest
from schemas.user import AuthUser
from services.chat_service import ChatAssistant
from services.session_controller import AuthBootstrapController
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


@router.post("", response_model=ChatMessage)
async def send_message(
    payload: ChatRequest,
    user: AuthUser = Depends(require_user),
    controller: AuthBootstrapController = Depends(get_controller),
    assistant: ChatAssistant = Depends(get_chat_assistant),
):
    """Send a message; model failures come back as an apology reply, not an error."""
    if not assistant.is_enabled:
        raise HTTPException(
            status_code=503,
            detail="AI features are disabled: no AI service key is configured.",
        )
    logger.info(f"Chat message from user {user.id}: {payload.message[:100]}")
    return await assistant.reply(user.id, payload.message, controller.state.profile)


@router.get("/history", response_model=List[ChatMessage])
async def get_history(
    user: AuthUser = Depends(require_user),
    assistant: ChatAssistant = Depends(get_chat_assistant),
):
    """Stored conversation of the signed-in user."""
    return await assistant.history(user.id)


@router.delete("/history")
async def clear_history(
    user: AuthUser = Depends(require_user),
    assistant: ChatAssistant = Depends(get_chat_assistant),
):
    """Forget the conversation."""
    return {"cleared": await assistant.clear(user.id)}
