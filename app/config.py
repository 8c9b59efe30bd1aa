"""
Application configuration using pydantic-settings.
Loads from environment variables / .env file.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "storefront"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Postgres
    database_url: str

    # Redis
    redis_url: str

    # OndaPay (PIX gateway)
    ondapay_api_url: str = "https://api.ondapay.app"
    ondapay_client_id: str
    ondapay_client_secret: str
    ondapay_webhook_secret: str = ""
    # Accept callbacks without a configured secret (local development only)
    ondapay_webhook_allow_unsigned: bool = False
    webhook_url: str
    gateway_timeout_seconds: float = 30.0
    gateway_timezone: str = "America/Sao_Paulo"

    # Admin
    admin_api_key: str

    # CORS (comma-separated, production only)
    allowed_origins: str = ""

    # Firebase: service account for sending, public config for the admin browser
    firebase_credentials_base64: str = ""
    firebase_api_key: str = ""
    firebase_auth_domain: str = ""
    firebase_project_id: str = ""
    firebase_storage_bucket: str = ""
    firebase_messaging_sender_id: str = ""
    firebase_app_id: str = ""
    firebase_vapid_key: str = ""

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
