"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 1024
    fatsecret_client_id: str | None = None
    fatsecret_client_secret: str | None = None
    fatsecret_token_url: str = "https://oauth.fatsecret.com/connect/token"
    fatsecret_api_url: str = "https://platform.fatsecret.com/rest/server.api"
    duckduckgo_url: str = "https://api.duckduckgo.com/"
    http_timeout_seconds: float = 10.0
    chat_timeout_seconds: float = 30.0
    max_tool_turns: int = 6
    run_timeout_seconds: float = 60.0
    tool_concurrency: int = 4
    token_refresh_buffer_seconds: int = 300
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def fatsecret_configured(self) -> bool:
        """Return true when both FatSecret credentials are present."""
        return bool(self.fatsecret_client_id and self.fatsecret_client_secret)

    @property
    def audit_persistence_configured(self) -> bool:
        """Return true when audit records can be written to Supabase."""
        return bool(self.supabase_url and self.supabase_service_key)
