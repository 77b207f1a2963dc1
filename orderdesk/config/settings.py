"""
OrderDesk
Centralized Configuration Management

Configuration is loaded from environment variables (and an optional .env file)
using Pydantic settings, with one settings class per subsystem.
"""

from functools import lru_cache
from typing import List
from zoneinfo import ZoneInfo

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Document store collection names"""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    orders_collection: str = Field(default="orders", description="Orders collection")
    users_collection: str = Field(default="users", description="User profiles collection")
    alerts_collection: str = Field(default="notifications", description="Manual alerts collection")


class DashboardSettings(BaseSettings):
    """Dashboard metric and list configuration"""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    timezone: str = Field(default="UTC", description="Timezone used for calendar month/day boundaries")
    new_editor_days: int = Field(default=30, ge=0, description="Days an editor is flagged as new")
    busy_threshold: int = Field(default=5, ge=0, description="Open orders above which an editor is busy")
    active_threshold: int = Field(default=2, ge=0, description="Open orders above which an editor is active")
    page_size: int = Field(default=9, ge=1, description="Default order board page size")
    max_page_size: int = Field(default=100, ge=1, description="Largest accepted page size")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject unknown IANA zone names early"""
        ZoneInfo(v)
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class SecuritySettings(BaseSettings):
    """HTTP security configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        alias="CORS_ORIGINS",
        description="Allowed CORS origins",
    )


class MonitoringSettings(BaseSettings):
    """Logging and metrics configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")
    enable_metrics: bool = Field(default=True, alias="ENABLE_METRICS", description="Expose Prometheus metrics")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="orderdesk", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    store: StoreSettings = Field(default_factory=StoreSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
