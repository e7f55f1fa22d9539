"""Startup configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from ecosystem.exceptions import EcosystemConfigError

SceneRegisteredHook = Callable[[str], Union[Awaitable[None], None]]

DEFAULT_REDIS_PORT = 6379


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


class SessionBackend(str, Enum):
    """Where conversation sessions are kept."""

    REDIS = "redis"
    MEMORY = "memory"


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Connection settings of the session backend."""

    backend: SessionBackend = SessionBackend.REDIS
    host: str = "localhost"
    port: int = DEFAULT_REDIS_PORT
    prefix: str = ""


@dataclass(frozen=True, slots=True)
class EcosystemConfig:
    """Everything the ecosystem needs to bring a bot up."""

    token: str
    drop_pending_updates: bool = True
    session: Optional[SessionConfig] = None
    on_scene_registered: Optional[SceneRegisteredHook] = None
    parse_mode: str = "HTML"


@dataclass(frozen=True, slots=True)
class Settings:
    """Process settings based on OS environment variables."""

    telegram_bot_token: str = ""
    drop_pending_updates: bool = True
    session_backend: SessionBackend = SessionBackend.MEMORY
    redis_host: str = "localhost"
    redis_port: int = DEFAULT_REDIS_PORT
    redis_prefix: str = ""
    log_level: str = "INFO"

    def to_ecosystem_config(
        self,
        on_scene_registered: Optional[SceneRegisteredHook] = None,
    ) -> EcosystemConfig:
        """Build the bring-up configuration from these settings."""

        session = None
        if self.session_backend is SessionBackend.REDIS:
            session = SessionConfig(
                backend=SessionBackend.REDIS,
                host=self.redis_host,
                port=self.redis_port,
                prefix=self.redis_prefix,
            )
        return EcosystemConfig(
            token=self.telegram_bot_token,
            drop_pending_updates=self.drop_pending_updates,
            session=session,
            on_scene_registered=on_scene_registered,
        )


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _build_settings() -> Settings:
    _load_env_file()

    backend = os.getenv("SESSION_BACKEND", SessionBackend.MEMORY.value).lower()
    try:
        session_backend = SessionBackend(backend)
    except ValueError as exc:
        raise EcosystemConfigError(f"Unknown SESSION_BACKEND {backend!r}.") from exc

    port = os.getenv("REDIS_PORT", str(DEFAULT_REDIS_PORT))
    try:
        redis_port = int(port)
    except ValueError as exc:
        raise EcosystemConfigError(f"REDIS_PORT must be an integer, got {port!r}.") from exc

    return Settings(
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        drop_pending_updates=_parse_bool(os.getenv("DROP_PENDING_UPDATES", "true")),
        session_backend=session_backend,
        redis_host=os.getenv("REDIS_HOST", "localhost"),
        redis_port=redis_port,
        redis_prefix=os.getenv("REDIS_PREFIX", ""),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
