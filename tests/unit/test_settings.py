"""
Unit Tests - Configuration
"""
import pytest
from pydantic import ValidationError

from shop_analytics.config import (
    DashboardSettings,
    Settings,
    StockSettings,
    StorefrontSettings,
    TierSettings,
    get_settings,
)


class TestSettings:
    """Tests for defaults, environment overrides and validation"""

    def test_defaults(self, test_settings):
        assert test_settings.app_env == "testing"
        assert (test_settings.tiers.silver, test_settings.tiers.gold, test_settings.tiers.diamond) == (
            3_000_000,
            8_000_000,
            15_000_000,
        )
        assert (test_settings.stock.critical_threshold, test_settings.stock.low_threshold) == (3, 10)
        assert test_settings.dashboard.top_products_limit == 5
        assert test_settings.dashboard.recent_orders_limit == 6
        assert test_settings.dashboard.default_period == "month"
        assert test_settings.storefront.api_token is None
        assert not test_settings.is_production

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TIER_SILVER", "100")
        monkeypatch.setenv("STOCK_LOW_THRESHOLD", "20")
        monkeypatch.setenv("DASHBOARD_DEFAULT_PERIOD", "Week")
        monkeypatch.setenv("DASHBOARD_RECENT_ORDERS_LIMIT", "10")
        monkeypatch.setenv("STOREFRONT_API_TOKEN", "s3cret")
        monkeypatch.setenv("APP_ENV", "Production")

        settings = Settings()

        assert settings.tiers.silver == 100
        assert settings.stock.low_threshold == 20
        assert settings.dashboard.default_period == "week"
        assert settings.dashboard.recent_orders_limit == 10
        assert settings.storefront.api_token.get_secret_value() == "s3cret"
        assert "s3cret" not in repr(settings.storefront)
        assert settings.is_production

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()

    def test_threshold_sections_are_frozen(self):
        with pytest.raises(ValidationError):
            TierSettings().silver = 1

    @pytest.mark.parametrize("factory", [
        lambda: Settings(app_env="qa"),
        lambda: TierSettings(silver=10, gold=5, diamond=30),
        lambda: StockSettings(critical_threshold=20, low_threshold=10),
        lambda: StockSettings(critical_threshold=0),
        lambda: DashboardSettings(default_period="fortnight"),
        lambda: StorefrontSettings(fetch_concurrency=0),
        lambda: StorefrontSettings(timeout_seconds=0),
    ])
    def test_invalid_values_rejected(self, factory):
        with pytest.raises(ValidationError):
            factory()
