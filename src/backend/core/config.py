"""
Core configuration module.
Organized into separate settings classes for better maintainability.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Values shipped in example .env files; treated the same as "not configured"
PLACEHOLDER_URLS = (
    "your_supabase_project_url_here",
    "https://placeholder.supabase.co",
)
PLACEHOLDER_KEYS = (
    "your_supabase_anon_key_here",
    "placeholder-key",
)


class APISettings(BaseSettings):
    """API configuration settings."""

    app_name: str = "Gram Panchayat e-Services"
    app_version: str = "1.0.0"
    debug: bool = False
    api_v1_prefix: str = "/api/v1"
    session_cookie_name: str = "portal_session"
    dashboard_path: str = "/dashboard"
    login_path: str = "/login"

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class SupabaseSettings(BaseSettings):
    """Hosted backend (PostgREST + GoTrue) connection settings.

    Absent or placeholder values switch every portal session to the
    synthetic data source.
    """

    url: str = ""
    anon_key: str = ""
    timeout_seconds: float = 10.0
    max_connections: int = 50
    max_keepalive_connections: int = 10

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Normalize the project URL so path joins stay predictable."""
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v

    @property
    def is_configured(self) -> bool:
        """True when both values are present and not placeholders."""
        if not self.url or not self.anon_key:
            return False
        if self.url in PLACEHOLDER_URLS or self.anon_key in PLACEHOLDER_KEYS:
            return False
        return True

    @property
    def rest_url(self) -> str:
        return f"{self.url}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{self.url}/auth/v1"


class CacheSettings(BaseSettings):
    """Time-to-live windows for the in-process caches (seconds)."""

    profile_ttl: int = Field(default=300, ge=0, description="Profile cache TTL")
    services_stale: int = Field(default=600, ge=0, description="Service list staleness window")
    applications_stale: int = Field(default=300, ge=0, description="Application list staleness window")
    session_idle: int = Field(default=86400, ge=60, description="Idle portal session lifetime")

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class QuerySettings(BaseSettings):
    """Entity query layer settings."""

    services_page_size: int = Field(default=50, ge=1)
    applications_page_size: int = Field(default=25, ge=1, le=100)
    retry_attempts: int = Field(default=2, ge=0, le=5)
    retry_base_delay: float = Field(default=1.0, ge=0)
    retry_max_delay: float = Field(default=30.0, ge=0)
    enforce_status_transitions: bool = Field(
        default=False,
        description="Reject application status changes that skip the review workflow",
    )

    model_config = SettingsConfigDict(
        env_prefix="QUERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class CORSSettings(BaseSettings):
    """CORS configuration settings - read directly from .env file."""

    origins: List[str] = ["http://localhost:5173", "http://localhost:8080"]

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("origins", mode="before")
    @classmethod
    def parse_origins(cls, v):
        """Parse origins from JSON array string or comma-separated list."""
        if isinstance(v, str):
            import json
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: str = "INFO"
    enable_file_logging: bool = True
    log_dir: str = "logs"
    max_size: int = 10_485_760  # 10MB
    backup_count: int = 5
    enable_console_logging: bool = True

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def log_config(self) -> dict:
        """Get logging configuration."""
        return {
            "level": self.level,
            "enable_file_logging": self.enable_file_logging,
            "log_dir": self.log_dir,
            "max_file_size": self.max_size,
            "backup_count": self.backup_count,
            "enable_console": self.enable_console_logging,
        }


class Settings(BaseSettings):
    """Main application settings."""

    api: APISettings = APISettings()
    supabase: SupabaseSettings = SupabaseSettings()
    cache: CacheSettings = CacheSettings()
    query: QuerySettings = QuerySettings()
    cors: CORSSettings = CORSSettings()
    logging: LoggingSettings = LoggingSettings()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
