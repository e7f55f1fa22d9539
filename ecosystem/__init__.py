"""Declarative scenes, guards and global handlers on top of aiogram."""

from .bot import Ecosystem
from .config.settings import EcosystemConfig, SessionBackend, SessionConfig
from .context import UpdateContext
from .decorators import action, command, hears, on, scene, scene_enter, update, use, use_guards
from .exceptions import (
    DuplicateSceneError,
    EcosystemConfigError,
    EcosystemError,
    HandlerResolutionError,
    InvalidComponentError,
    SessionConnectionLostError,
    UnknownSceneError,
)
from .guards import GuardCursor, guard_chain
from .registry import ComponentRegistry

__all__ = [
    "ComponentRegistry",
    "DuplicateSceneError",
    "Ecosystem",
    "EcosystemConfig",
    "EcosystemConfigError",
    "EcosystemError",
    "GuardCursor",
    "HandlerResolutionError",
    "InvalidComponentError",
    "SessionBackend",
    "SessionConfig",
    "SessionConnectionLostError",
    "UnknownSceneError",
    "UpdateContext",
    "action",
    "command",
    "guard_chain",
    "hears",
    "on",
    "scene",
    "scene_enter",
    "update",
    "use",
    "use_guards",
]
