"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.performancy.deals.schemas import ZohoConfig, ZohoDomain


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ALLOWED_ORIGINS: str = "*"

    # Local state (CRM config + UI flags survive restarts; deals do not)
    STATE_FILE: str = ".performancy-state.json"

    # Seed the demo pipeline when no CRM is connected
    SEED_DEMO_DEALS: bool = True

    # Zoho CRM Integration (bootstrap; a config saved from the UI takes precedence)
    ZOHO_CLIENT_ID: str = ""
    ZOHO_CLIENT_SECRET: str = ""
    ZOHO_REFRESH_TOKEN: str = ""
    ZOHO_DOMAIN: ZohoDomain = ZohoDomain.US
    ZOHO_PAGE_SIZE: int = 200
    ZOHO_MAX_PAGES: int = 1
    ZOHO_HTTP_TIMEOUT: float | None = None  # None keeps httpx's default

    def get_zoho_config(self) -> ZohoConfig | None:
        """Return a ZohoConfig built from the environment, or None.

        Returns None unless all three credentials are set.
        """
        if not (self.ZOHO_CLIENT_ID and self.ZOHO_CLIENT_SECRET and self.ZOHO_REFRESH_TOKEN):
            return None
        return ZohoConfig(
            client_id=self.ZOHO_CLIENT_ID,
            client_secret=self.ZOHO_CLIENT_SECRET,
            refresh_token=self.ZOHO_REFRESH_TOKEN,
            domain=self.ZOHO_DOMAIN,
        )


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
