"""Prompts for the LLM-backed features."""

from prompts.plan_generator_prompt import (
    PLAN_GENERATOR_SYSTEM_PROMPT,
    PLAN_GENERATOR_PROMPT,
    DETOX_RULES,
    NO_DETOX_RULES,
    FEEDBACK_INSTRUCTION,
)
from prompts.shopping_list_prompt import SHOPPING_LIST_SYSTEM_PROMPT, SHOPPING_LIST_PROMPT
from prompts.chat_assistant_prompt import CHAT_ASSISTANT_PROMPT

__all__ = [
    "PLAN_GENERATOR_SYSTEM_PROMPT",
    "PLAN_GENERATOR_PROMPT",
    "DETOX_RULES",
    "NO_DETOX_RULES",
    "FEEDBACK_INSTRUCTION",
    "SHOPPING_LIST_SYSTEM_PROMPT",
    "SHOPPING_LIST_PROMPT",
    "CHAT_ASSISTANT_PROMPT",
]
