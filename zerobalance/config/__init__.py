"""Configuration package."""

from zerobalance.config.settings import (
    GeminiSettings,
    ResolverSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "GeminiSettings",
    "ResolverSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
