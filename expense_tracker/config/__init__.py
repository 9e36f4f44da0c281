"""Configuration package."""

from expense_tracker.config.settings import (
    AppSettings,
    GatewaySettings,
    SessionSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GatewaySettings",
    "SessionSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
