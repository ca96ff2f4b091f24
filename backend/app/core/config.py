"""Application configuration"""

import json
from typing import Annotated, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "Sleads Portal API"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 1440  # 24 hours

    # Database
    DATABASE_URL: str

    # URLs
    SITE_URL: str = "http://localhost:3000"
    # WHY: Document rendering lives in the frontend app, not in this service
    NEXT_PUBLIC_BASE_URL: str = "http://localhost:3000"
    PORTAL_BASE_URL: str = "https://sleads.nl/dashboard"

    # Platform administrators by user id, on top of users whose role is admin
    ADMIN_USER_IDS: Annotated[list[int], NoDecode] = []

    # Email
    BREVO_API_KEY: Optional[str] = None
    RESEND_API_KEY: Optional[str] = None
    EMAIL_FROM: str = "hello@sleads.nl"
    EMAIL_FROM_NAME: str = "Sleads"

    # Smart Objects passthrough (static key shared with the frontend proxy)
    SLEADS_SO_KEY: Optional[str] = None

    # OAuth client credentials, consumed by the login frontend
    GITHUB_CLIENT_ID: Optional[str] = None
    GITHUB_CLIENT_SECRET: Optional[str] = None
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None

    # Deferred tasks
    TASK_MAX_ATTEMPTS: int = 3
    TASK_RETRY_DELAY_SECONDS: int = 30

    # CORS for /api
    # WHY: Public CMS/Smart Objects endpoints are open to any origin and
    # handled separately; only the portal frontend may call /api
    TRUSTED_ORIGINS: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator("TRUSTED_ORIGINS", "ADMIN_USER_IDS", mode="before")
    @classmethod
    def _split_list(cls, value):
        """
        Accept JSON arrays or comma-separated strings for list settings.

        WHY: Deployment platforms usually store these as plain strings
        such as "https://a.example,https://b.example".
        """
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return []
            if value.startswith("["):
                return json.loads(value)
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def async_database_url(self) -> str:
        """Get async database URL"""
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")


settings = Settings()
