"""Chat assistant backed by the LLM and stored history."""

from typing import List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_core.runnables import Runnable

from config.settings import settings
from prompts import CHAT_ASSISTANT_PROMPT
from schemas.chat import ChatMessage
from schemas.user import UserProfile
from services.checkpoint import ChatHistoryStore, chat_history_store
from services.llm_factory import LLMUnavailableError, get_llm
from utils.logger import setup_logger

logger = setup_logger(__name__)

APOLOGY_MESSAGE = "Sorry, I could not connect right now. Please try again."
MAX_CONTEXT_MESSAGES = 20


class ChatAssistant:
    """Answers user questions with the profile as context."""

    def __init__(
        self,
        llm: Optional[Runnable] = None,
        history_store: Optional[ChatHistoryStore] = None,
    ):
        self._llm = llm
        self.history_store = history_store or chat_history_store

    @property
    def is_enabled(self) -> bool:
        return self._llm is not None or settings.ai_configured

    def _get_llm(self) -> Optional[Runnable]:
        if self._llm is None:
            try:
                self._llm = get_llm("chat_assistant")
            except LLMUnavailableError as e:
                logger.warning(f"Chat assistant disabled: {e}")
                return None
        return self._llm

    @staticmethod
    def _to_langchain(history: List[ChatMessage]) -> List[BaseMessage]:
        return [
            HumanMessage(content=m.content) if m.role == "user" else AIMessage(content=m.content)
            for m in history[-MAX_CONTEXT_MESSAGES:]
        ]

    async def reply(self, user_id: str, message: str, profile: Optional[UserProfile]) -> ChatMessage:
        """Answer `message`; on any failure the reply is a fixed apology."""
        history = await self.history_store.get_messages(user_id)
        user_message = ChatMessage(role="user", content=message)

        llm = self._get_llm()
        if llm is None:
            return ChatMessage(role="assistant", content=APOLOGY_MESSAGE)

        template = ChatPromptTemplate.from_messages([
            ("system", CHAT_ASSISTANT_PROMPT.template),
            MessagesPlaceholder("history"),
            ("human", "{message}"),
        ])
        chain = template | llm | StrOutputParser()

        try:
            text = await chain.ainvoke({
                "name": (profile.name if profile else None) or "Not informed",
                "age": (profile.age if profile else None) or "Not informed",
                "weight": (profile.weight if profile else None) or "Not informed",
                "height": (profile.height if profile else None) or "Not informed",
                "restrictions": ", ".join(profile.dietary_restrictions) if profile and profile.dietary_restrictions else "None",
                "history": self._to_langchain(history),
                "message": message,
            })
        except Exception as e:
            logger.error(f"Chat reply failed for user {user_id}: {e}", exc_info=True)
            return ChatMessage(role="assistant", content=APOLOGY_MESSAGE)

        answer = ChatMessage(role="assistant", content=text.strip() or APOLOGY_MESSAGE)
        await self.history_store.append(user_id, user_message, answer)
        return answer

    async def history(self, user_id: str) -> List[ChatMessage]:
        return await self.history_store.get_messages(user_id)

    async def clear(self, user_id: str) -> bool:
        return await self.history_store.clear(user_id)


# Global chat assistant instance
chat_assistant = ChatAssistant()
