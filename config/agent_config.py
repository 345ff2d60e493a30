"""LLM role configuration."""

from typing import Dict, Any

# Model selection per LLM-backed feature
AGENT_CONFIG: Dict[str, Any] = {
    "plan_generator": {
        "model": "gpt-4o-mini",
        "fallback_model": "claude-3-haiku-20240307",
        "temperature": 0.7,
    },
    "shopping_list": {
        "model": "gpt-4o-mini",
        "fallback_model": "claude-3-haiku-20240307",
        "temperature": 0.2,
    },
    "chat_assistant": {
        "model": "gpt-4o-mini",
        "fallback_model": "claude-3-haiku-20240307",
        "temperature": 0.5,
    },
}
