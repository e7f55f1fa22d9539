"""Errors raised while bringing the bot up or routing updates."""

from __future__ import annotations


class EcosystemError(RuntimeError):
    """Base class for every error raised by the ecosystem core."""


class EcosystemConfigError(EcosystemError):
    """Raised when the startup configuration is incomplete or malformed."""


class SessionConnectionLostError(EcosystemError):
    """Raised when the session backend cannot be reached during bring-up."""

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port
        super().__init__(f"Lost connection to the session backend at {host}:{port}.")


class DuplicateSceneError(EcosystemError):
    """Raised when two scene components share the same scene id."""

    def __init__(self, scene_id: str) -> None:
        self.scene_id = scene_id
        super().__init__(f"Scene {scene_id!r} is already registered.")


class UnknownSceneError(EcosystemError):
    """Raised when a handler tries to enter a scene that was never registered."""

    def __init__(self, scene_id: str) -> None:
        self.scene_id = scene_id
        super().__init__(f"Scene {scene_id!r} is not registered on the stage.")


class HandlerResolutionError(EcosystemError):
    """Raised when declared metadata points at a missing or non-callable method."""

    def __init__(self, owner: str, handler: str) -> None:
        self.owner = owner
        self.handler = handler
        super().__init__(f"{owner}.{handler} is not a callable handler.")


class InvalidComponentError(EcosystemError):
    """Raised when a class without component metadata is registered."""
