"""
Storefront Analytics Engine
Centralized Configuration Management

Configuration is read from environment variables (and an optional ``.env``
file) through Pydantic settings. Threshold sections are frozen so they can be
handed to the analytics components as immutable values.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TierSettings(BaseSettings):
    """Customer loyalty tier thresholds (inclusive lower bounds, minor units)"""

    model_config = SettingsConfigDict(env_prefix="TIER_", frozen=True)

    silver: int = Field(default=3_000_000, ge=0, description="Minimum spend for Silver")
    gold: int = Field(default=8_000_000, ge=0, description="Minimum spend for Gold")
    diamond: int = Field(default=15_000_000, ge=0, description="Minimum spend for Diamond")

    @model_validator(mode="after")
    def validate_ascending(self) -> "TierSettings":
        """Thresholds must be strictly ascending"""
        if not (self.silver < self.gold < self.diamond):
            raise ValueError(
                f"Tier thresholds must ascend: silver={self.silver}, "
                f"gold={self.gold}, diamond={self.diamond}"
            )
        return self


class StockSettings(BaseSettings):
    """Inventory stock-health bucket thresholds"""

    model_config = SettingsConfigDict(env_prefix="STOCK_", frozen=True)

    critical_threshold: int = Field(default=3, ge=1, description="Below this stock a variant is Critical")
    low_threshold: int = Field(default=10, ge=1, description="Below this stock a variant is Low Stock")

    @model_validator(mode="after")
    def validate_order(self) -> "StockSettings":
        """Critical threshold cannot exceed the low-stock threshold"""
        if self.critical_threshold > self.low_threshold:
            raise ValueError(
                f"critical_threshold ({self.critical_threshold}) must not exceed "
                f"low_threshold ({self.low_threshold})"
            )
        return self


class DashboardSettings(BaseSettings):
    """Dashboard snapshot shaping"""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_", frozen=True)

    top_products_limit: int = Field(default=5, ge=1, description="Entries in the top products list")
    top_categories_limit: int = Field(default=5, ge=1, description="Entries in the top categories list")
    recent_orders_limit: int = Field(default=6, ge=0, description="Entries in the recent orders list")
    live_window_minutes: int = Field(default=60, ge=1, description="Trailing window for the live pulse")
    monthly_series_months: int = Field(default=10, ge=1, description="Months in the revenue series")
    default_period: str = Field(default="month", description="Period used when none is requested")

    @field_validator("default_period")
    @classmethod
    def validate_default_period(cls, v: str) -> str:
        """Default period must be a preset"""
        allowed = ["day", "week", "month", "year"]
        if v.lower() not in allowed:
            raise ValueError(f"default_period must be one of: {allowed}")
        return v.lower()


class StorefrontSettings(BaseSettings):
    """Storefront REST API (order/product collaborators)"""

    model_config = SettingsConfigDict(env_prefix="STOREFRONT_")

    base_url: str = Field(default="http://localhost:3000", description="Storefront API base URL")
    api_token: Optional[SecretStr] = Field(default=None, description="Bearer token for admin endpoints")
    timeout_seconds: float = Field(default=10.0, gt=0, description="Per-request timeout")
    retry_attempts: int = Field(default=3, ge=1, description="Attempts per request before giving up")
    fetch_concurrency: int = Field(default=10, ge=1, description="Concurrent detail fetches")
    orders_page_size: int = Field(default=500, ge=1, description="Orders per list page")
    products_page_size: int = Field(default=200, ge=1, description="Products per list page")
    max_pages: int = Field(default=20, ge=1, description="Page cap for list endpoints")


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")


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
    app_name: str = Field(default="shop-analytics", description="Application name")
    app_env: str = Field(default="development", description="Environment")
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    tiers: TierSettings = Field(default_factory=TierSettings)
    stock: StockSettings = Field(default_factory=StockSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    storefront: StorefrontSettings = Field(default_factory=StorefrontSettings)
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


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
