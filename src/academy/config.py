"""Application configuration using pydantic-settings."""

import re
from functools import lru_cache
from typing import Literal

from pydantic import computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from academy.core.constants import (
    DEFAULT_REMOTE_TIMEOUT_SECONDS,
    FREE_STUDENT_LIMIT,
    MOBILE_NUMBER_PATTERN,
    UNLIMITED_STUDENT_LIMIT,
)


RemoteBackend = Literal["disabled", "memory", "airtable", "supabase", "sheets"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Super Management"
    debug: bool = False
    environment: str = "development"  # development, staging, production
    app_base_url: str = "http://localhost:5173/"

    # Local store
    database_url: str = "sqlite+aiosqlite:///./super_management.db"
    database_echo: bool = False

    # CORS
    cors_origins: list[str] = []

    # API Documentation
    api_docs_base_url: str = "https://super-management.app"

    # Administrator (single hardcoded superuser)
    admin_name: str = "suhaspatilsir"
    admin_mobile: str = "9834252755"

    # Entitlements
    activation_code: str = "SMLIFETIME"
    free_student_limit: int = FREE_STUDENT_LIMIT
    unlimited_student_limit: int = UNLIMITED_STUDENT_LIMIT

    # Remote authority
    remote_backend: RemoteBackend = "disabled"
    remote_timeout_seconds: float = DEFAULT_REMOTE_TIMEOUT_SECONDS

    airtable_api_key: str | None = None
    airtable_base_id: str | None = None
    airtable_table_name: str = "Profiles"

    supabase_url: str | None = None
    supabase_key: str | None = None
    supabase_table: str = "profiles"

    google_script_url: str | None = None

    # Messaging handoff
    whatsapp_base_url: str = "https://api.whatsapp.com/send"
    whatsapp_country_code: str = "91"

    # Observability
    log_level: str = "INFO"

    @field_validator("admin_mobile")
    @classmethod
    def validate_admin_mobile(cls, v: str) -> str:
        """Ensure the administrator mobile has the same shape as tenant identities."""
        if not re.match(MOBILE_NUMBER_PATTERN, v):
            raise ValueError("ADMIN_MOBILE must be a 10-digit mobile number")
        return v

    @field_validator("activation_code")
    @classmethod
    def validate_activation_code(cls, v: str) -> str:
        """Reject a blank activation code, which would match empty input."""
        if not v.strip():
            raise ValueError("ACTIVATION_CODE must not be blank")
        return v.strip()

    @field_validator("free_student_limit", "unlimited_student_limit")
    @classmethod
    def validate_limits(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Student limits must be non-negative")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
