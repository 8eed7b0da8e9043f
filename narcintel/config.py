from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================
    environment: str = "dev"  # "dev", "prod"
    debug: bool = True

    # ==========================================================================
    # DOCUMENT STORE
    # ==========================================================================
    database_url: str = "sqlite:///./narcintel.db"  # Empty disables persistence

    # ==========================================================================
    # OPENAI
    # ==========================================================================
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_vision_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 1000  # Max tokens for LLM responses
    openai_timeout: float = 60.0  # Seconds

    # ==========================================================================
    # CORS
    # ==========================================================================
    cors_origins: str = "*"  # Comma-separated origins, or "*" for all

    # ==========================================================================
    # DASHBOARD
    # ==========================================================================
    dashboard_recent_limit: int = 10  # Recent posts/users shown
    dashboard_top_keywords: int = 10  # Keyword frequency table size

    # ==========================================================================
    # FORM VALIDATION
    # ==========================================================================
    min_channel_length: int = 3
    min_content_length: int = 20
    min_username_length: int = 3

    # ==========================================================================
    # UI
    # ==========================================================================
    backend_url: str = "http://127.0.0.1:8000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "prod"

    @property
    def persistence_configured(self) -> bool:
        return bool(self.database_url.strip())

    @property
    def cors_origins_list(self) -> List[str]:
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
