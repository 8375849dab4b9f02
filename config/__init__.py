"""Configuration helpers for Prompt Playground.

Updates: v0.2.0 - 2026-09-17 - Export support product and generation timeout defaults.
Updates: v0.1.0 - 2026-08-20 - Expose settings loader and configuration error types.
"""

from .settings import (
    DEFAULT_GENERATION_TIMEOUT_SECONDS,
    DEFAULT_LOCAL_STORE_PATH,
    DEFAULT_SUPPORT_PRODUCT_IDS,
    PlaygroundSettings,
    SettingsError,
    load_settings,
)

__all__ = [
    "DEFAULT_GENERATION_TIMEOUT_SECONDS",
    "DEFAULT_LOCAL_STORE_PATH",
    "DEFAULT_SUPPORT_PRODUCT_IDS",
    "PlaygroundSettings",
    "SettingsError",
    "load_settings",
]
