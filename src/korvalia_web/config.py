"""
Configuration module for the Korvalia web front service.
"""

from enum import Enum
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Settings for the Korvalia web front service.
    Loads environment variables, with fallbacks to default values where appropriate.
    All environment variables are prefixed with KORVALIA_WEB_.
    """

    # Core service settings
    ENVIRONMENT: Environment = Field(
        Environment.DEVELOPMENT,
        alias="KORVALIA_WEB_ENVIRONMENT",
        description="Application environment",
    )
    ROOT_PATH: str = Field(
        "",
        alias="KORVALIA_WEB_ROOT_PATH",
        description="API root path for reverse proxies",
    )
    LOGGING_LEVEL: str = Field(
        "INFO",
        alias="KORVALIA_WEB_LOGGING_LEVEL",
        description="Logging level",
    )

    # Backend REST API
    API_BASE_URL: str = Field(
        "http://localhost:4000",
        alias="KORVALIA_WEB_API_BASE_URL",
        description="Base URL of the property backend, without the /api prefix",
    )
    REQUEST_TIMEOUT_SECONDS: float = Field(
        10.0,
        alias="KORVALIA_WEB_REQUEST_TIMEOUT_SECONDS",
        description="Timeout applied to every backend request",
    )
    SITE_URL: str = Field(
        "https://korvalia.es",
        alias="KORVALIA_WEB_SITE_URL",
        description="Public site URL used for sitemap and share links",
    )

    # CORS settings
    CORS_ALLOW_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        alias="KORVALIA_WEB_CORS_ALLOW_ORIGINS",
        description="List of origins that are allowed to make cross-origin requests",
    )

    # Rate limiting
    RATE_LIMIT_REQUESTS_PER_MINUTE: int = Field(
        60,
        alias="KORVALIA_WEB_RATE_LIMIT_REQUESTS_PER_MINUTE",
        description="General rate limit for API requests per minute",
    )
    LEAD_RATE_LIMIT: str = Field(
        "5/minute",
        alias="KORVALIA_WEB_LEAD_RATE_LIMIT",
        description="Rate limit for public lead capture",
    )
    CHAT_RATE_LIMIT: str = Field(
        "20/minute",
        alias="KORVALIA_WEB_CHAT_RATE_LIMIT",
        description="Rate limit for chat messages",
    )
    LOGIN_RATE_LIMIT: str = Field(
        "5/minute",
        alias="KORVALIA_WEB_LOGIN_RATE_LIMIT",
        description="Rate limit for admin login attempts",
    )

    # Cookies
    ADMIN_TOKEN_COOKIE: str = Field(
        "admin_token",
        alias="KORVALIA_WEB_ADMIN_TOKEN_COOKIE",
        description="Cookie holding the admin bearer token",
    )
    CHAT_SESSION_COOKIE: str = Field(
        "korvalia_chat_session",
        alias="KORVALIA_WEB_CHAT_SESSION_COOKIE",
        description="Cookie holding the chat session identifier",
    )
    ADMIN_LOGIN_PATH: str = Field(
        "/admin/login",
        alias="KORVALIA_WEB_ADMIN_LOGIN_PATH",
        description="Where unauthenticated admin users are sent",
    )

    # Uploads
    MAX_IMAGE_UPLOAD_BYTES: int = Field(
        5 * 1024 * 1024,
        alias="KORVALIA_WEB_MAX_IMAGE_UPLOAD_BYTES",
        description="Maximum size of a property or logo image",
    )
    MAX_HERO_UPLOAD_BYTES: int = Field(
        10 * 1024 * 1024,
        alias="KORVALIA_WEB_MAX_HERO_UPLOAD_BYTES",
        description="Maximum size of a hero banner image",
    )

    # UI feedback
    TOAST_DEFAULT_DURATION_MS: int = Field(
        4000,
        alias="KORVALIA_WEB_TOAST_DEFAULT_DURATION_MS",
        description="Auto-dismiss delay for notifications without an explicit duration",
    )
    NOTIFICATION_CENTER_TTL_SECONDS: int = Field(
        8 * 60 * 60,
        alias="KORVALIA_WEB_NOTIFICATION_CENTER_TTL_SECONDS",
        description="Idle time after which an admin session's notifications are dropped",
    )

    # Chat
    CHAT_MAX_SESSIONS: int = Field(
        1000,
        alias="KORVALIA_WEB_CHAT_MAX_SESSIONS",
        description="Chat transcripts kept in memory; the least recently used go first",
    )
    CHAT_SESSION_TTL_SECONDS: int = Field(
        24 * 60 * 60,
        alias="KORVALIA_WEB_CHAT_SESSION_TTL_SECONDS",
        description="Idle time after which a chat transcript is dropped",
    )

    # Maps
    DEFAULT_MAP_LATITUDE: float = Field(
        36.7755,
        alias="KORVALIA_WEB_DEFAULT_MAP_LATITUDE",
        description="Map centre latitude when no property has coordinates",
    )
    DEFAULT_MAP_LONGITUDE: float = Field(
        -6.3515,
        alias="KORVALIA_WEB_DEFAULT_MAP_LONGITUDE",
        description="Map centre longitude when no property has coordinates",
    )

    # Sitemap
    SITEMAP_CACHE_SECONDS: int = Field(
        3600,
        alias="KORVALIA_WEB_SITEMAP_CACHE_SECONDS",
        description="Cache-Control max-age of the sitemap",
    )
    SITEMAP_PROPERTY_LIMIT: int = Field(
        1000,
        alias="KORVALIA_WEB_SITEMAP_PROPERTY_LIMIT",
        description="Maximum number of property pages listed in the sitemap",
    )

    @field_validator("API_BASE_URL", "SITE_URL")
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        return self.ENVIRONMENT == Environment.TESTING

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )


# Create a global instance of the settings
settings = Settings()
