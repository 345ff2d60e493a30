"""Application settings using Pydantic Settings."""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase Configuration (auth + row storage)
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # OpenAI Configuration
    openai_api_key: str = ""

    # Anthropic Configuration (Optional fallback)
    anthropic_api_key: str = ""

    # Database Configuration (chat history)
    mongodb_url: str = ""
    chat_history_limit: int = 50

    # Application Configuration
    app_name: str = "Diet Coach"
    app_version: str = "1.0.0"
    debug: bool = True
    log_level: str = "INFO"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS Configuration
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Session Configuration
    session_timeout: int = 3600
    session_cookie_name: str = "session_id"

    # Program Configuration
    password_reset_redirect_url: str = "http://localhost:5173"
    default_profile_name: str = "New User"
    plan_duration_days: int = 28

    # Outbound HTTP
    http_timeout: float = 10.0

    @property
    def backend_configured(self) -> bool:
        """Whether the auth/storage backend credentials are present."""
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def ai_configured(self) -> bool:
        """Whether at least one LLM provider key is present."""
        return bool(self.openai_api_key or self.anthropic_api_key)

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
