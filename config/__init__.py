"""Settings and LLM role configuration."""
