"""Chat history persistence in MongoDB."""

from datetime import datetime
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from config.settings import settings
from models.database import get_chat_history_collection
from schemas.chat import ChatMessage
from utils.logger import setup_logger

logger = setup_logger(__name__)


class ChatHistoryStore:
    """Stores one conversation per user.

    Without a MongoDB connection every read returns an empty history and
    every write is skipped, so the assistant degrades to stateless replies.
    """

    def __init__(
        self,
        collection_provider: Callable[[], Any] = get_chat_history_collection,
        max_messages: Optional[int] = None,
    ):
        self._collection_provider = collection_provider
        self.max_messages = max_messages or settings.chat_history_limit

    async def get_messages(self, user_id: str) -> List[ChatMessage]:
        """Load the stored conversation for a user."""
        collection = self._collection_provider()
        if collection is None:
            return []

        try:
            document = await collection.find_one({"user_id": user_id})
        except Exception as e:
            logger.error(f"Error loading chat history for {user_id}: {e}", exc_info=True)
            return []

        if not document:
            return []

        messages = []
        for raw in document.get("messages", []):
            try:
                messages.append(ChatMessage(**raw))
            except (TypeError, ValidationError) as e:
                logger.warning(f"Skipping malformed chat message for {user_id}: {e}")
        return messages

    async def append(self, user_id: str, *messages: ChatMessage) -> bool:
        """Append messages, keeping only the most recent `max_messages`.

        Returns:
            True if saved successfully
        """
        collection = self._collection_provider()
        if collection is None:
            return False

        try:
            await collection.update_one(
                {"user_id": user_id},
                {
                    "$push": {
                        "messages": {
                            "$each": [message.model_dump() for message in messages],
                            "$slice": -self.max_messages,
                        }
                    },
                    "$set": {"last_updated": datetime.now()},
                },
                upsert=True,
            )
            return True
        except Exception as e:
            logger.error(f"Error saving chat history for {user_id}: {e}", exc_info=True)
            return False

    async def clear(self, user_id: str) -> bool:
        """Delete a user's conversation."""
        collection = self._collection_provider()
        if collection is None:
            return False

        try:
            result = await collection.delete_one({"user_id": user_id})
        except Exception as e:
            logger.error(f"Error clearing chat history for {user_id}: {e}", exc_info=True)
            return False

        if result.deleted_count > 0:
            logger.info(f"Cleared chat history for user {user_id}")
            return True
        return False


# Global chat history store instance
chat_history_store = ChatHistoryStore()
