"""Chat model construction per LLM role."""

from typing import Any, Dict, List, Optional, Tuple

from config.agent_config import AGENT_CONFIG
from config.settings import settings
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI
from utils.logger import setup_logger

logger = setup_logger(__name__)

# Request timeout for model calls, in seconds
LLM_TIMEOUT = settings.http_timeout * 6


class LLMUnavailableError(RuntimeError):
    """No provider credentials are configured for an LLM role."""


def _openai_model(config: Dict[str, Any]) -> Optional[BaseChatModel]:
    if not (settings.openai_api_key and config.get("model")):
        return None
    return ChatOpenAI(
        model=config["model"],
        temperature=config.get("temperature", 0.3),
        api_key=settings.openai_api_key,
        timeout=LLM_TIMEOUT,
    )


def _anthropic_model(config: Dict[str, Any]) -> Optional[BaseChatModel]:
    if not (settings.anthropic_api_key and config.get("fallback_model")):
        return None
    return ChatAnthropic(
        model=config["fallback_model"],
        temperature=config.get("temperature", 0.3),
        api_key=settings.anthropic_api_key,
        timeout=LLM_TIMEOUT,
    )


# Provider order: the first available model answers, the rest are fallbacks
PROVIDERS = (
    ("openai", _openai_model),
    ("anthropic", _anthropic_model),
)


def get_llm(role: str) -> Runnable:
    """Return the chat model for `role`.

    Every provider with a key is built in `PROVIDERS` order. The first one
    answers and the others are chained behind it with `with_fallbacks`.
    A provider whose client cannot be built is skipped with a warning.

    Raises:
        ValueError: unknown role
        LLMUnavailableError: no provider could be built
    """
    config = AGENT_CONFIG.get(role)
    if not config:
        raise ValueError(f"No LLM configuration found for '{role}'")

    models: List[Tuple[str, BaseChatModel]] = []
    for provider, build in PROVIDERS:
        try:
            model = build(config)
        except Exception as e:
            logger.warning(f"Could not initialize {provider} model for {role}: {e}")
            continue
        if model is not None:
            models.append((provider, model))

    if not models:
        raise LLMUnavailableError(
            f"No chat model available for '{role}'. "
            "Set OPENAI_API_KEY or ANTHROPIC_API_KEY to enable AI features."
        )

    names = [provider for provider, _ in models]
    logger.info(f"Chat model for {role}: {' -> '.join(names)}")
    primary = models[0][1]
    fallbacks = [model for _, model in models[1:]]
    return primary.with_fallbacks(fallbacks) if fallbacks else primary
