"""
Configuration module using Pydantic Settings.

Loads the ZeroDB and Meta Llama endpoints, credentials and pipeline
limits from environment variables. Supports .env files for local development.
"""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ZeroDB vector store
    zerodb_api_url: str
    zerodb_project_id: str
    zerodb_email: str
    zerodb_password: SecretStr
    zerodb_request_timeout: float = 10.0
    zerodb_token_cache_enabled: bool = False
    zerodb_token_refresh_margin: int = 60

    # Meta Llama (OpenAI-compatible chat completions)
    meta_base_url: str
    meta_api_key: SecretStr
    meta_model: str = ""
    completion_timeout: float = 30.0
    completion_max_tokens: int = 1000

    # RLHF feedback
    rlhf_agent_id: str = "zerodb-rag-chatbot"

    # Application Insights
    applicationinsights_connection_string: str = ""
    telemetry_console_export: bool = False

    # App
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Factory for cached settings instance."""
    return Settings()
