"""
Storefront Analytics Engine
Configuration Module
"""
from .settings import (
    DashboardSettings,
    Settings,
    StockSettings,
    StorefrontSettings,
    TierSettings,
    get_settings,
)

__all__ = [
    "DashboardSettings",
    "Settings",
    "StockSettings",
    "StorefrontSettings",
    "TierSettings",
    "get_settings",
]
