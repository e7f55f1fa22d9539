"""Configuration helpers."""

from .settings import (
    EcosystemConfig,
    SessionBackend,
    SessionConfig,
    Settings,
    get_settings,
)

__all__ = [
    "EcosystemConfig",
    "SessionBackend",
    "SessionConfig",
    "Settings",
    "get_settings",
]
