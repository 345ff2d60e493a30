"""Chat assistant schemas."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal


class ChatRequest(BaseModel):
    """Message sent by the user to the assistant."""
    message: str = Field(..., min_length=1, max_length=4000)


class ChatMessage(BaseModel):
    """One turn of the conversation."""
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)


class ChatHistory(BaseModel):
    """Stored conversation for a user."""
    user_id: str
    messages: List[ChatMessage] = Field(default_factory=list)
