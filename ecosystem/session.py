"""Session backends and their bridge to aiogram's FSM storage."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Protocol

from aiogram.fsm.state import State
from aiogram.fsm.storage.base import DEFAULT_DESTINY, BaseStorage, StateType, StorageKey
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ecosystem.config.settings import SessionBackend, SessionConfig
from ecosystem.exceptions import SessionConnectionLostError

logger = logging.getLogger(__name__)

SCENE_FIELD = "__scene__"
DATA_FIELD = "data"


class SessionStore(Protocol):
    """Key-value backend holding one JSON session document per key."""

    async def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    async def set(self, key: str, session: Mapping[str, Any]) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def close(self) -> None: ...


class MemorySessionStore:
    """In-process store; everything is lost when the process exits."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._items.get(key)
        return json.loads(value) if value is not None else None

    async def set(self, key: str, session: Mapping[str, Any]) -> None:
        self._items[key] = json.dumps(session, ensure_ascii=False)

    async def delete(self, key: str) -> None:
        self._items.pop(key, None)

    async def close(self) -> None:
        self._items.clear()


class RedisSessionStore:
    """Redis-backed store with an optional key prefix."""

    def __init__(self, client: Redis, prefix: str = "") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    async def connect(cls, config: SessionConfig) -> "RedisSessionStore":
        """Open a client and make sure the server answers."""

        client = Redis(host=config.host, port=config.port, decode_responses=True)
        try:
            await client.ping()
        except RedisError as exc:
            logger.error("Session backend %s:%s is unreachable: %s", config.host, config.port, exc)
            await client.aclose()
            raise SessionConnectionLostError(config.host, config.port) from exc
        logger.info("Connected to session backend %s:%s.", config.host, config.port)
        return cls(client, prefix=config.prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = await self._client.get(self._key(key))
        return json.loads(value) if value else None

    async def set(self, key: str, session: Mapping[str, Any]) -> None:
        await self._client.set(self._key(key), json.dumps(session, ensure_ascii=False))

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def close(self) -> None:
        await self._client.aclose()


async def open_session_store(config: Optional[SessionConfig]) -> SessionStore:
    """Return the store described by ``config``; memory when nothing is configured."""

    if config is None or config.backend is SessionBackend.MEMORY:
        return MemorySessionStore()
    return await RedisSessionStore.connect(config)


class SessionStorage(BaseStorage):
    """aiogram FSM storage keeping state and data in one session document."""

    def __init__(self, store: SessionStore) -> None:
        self.store = store

    @staticmethod
    def session_key(key: StorageKey) -> str:
        parts = [str(key.user_id), str(key.chat_id)]
        if key.thread_id:
            parts.append(str(key.thread_id))
        if key.destiny != DEFAULT_DESTINY:
            parts.append(key.destiny)
        return ":".join(parts)

    async def _load(self, key: StorageKey) -> Dict[str, Any]:
        return await self.store.get(self.session_key(key)) or {}

    async def _save(self, key: StorageKey, document: Dict[str, Any]) -> None:
        session_key = self.session_key(key)
        if document.get(SCENE_FIELD) is None and not document.get(DATA_FIELD):
            await self.store.delete(session_key)
        else:
            await self.store.set(session_key, document)

    async def set_state(self, key: StorageKey, state: StateType = None) -> None:
        document = await self._load(key)
        document[SCENE_FIELD] = state.state if isinstance(state, State) else state
        await self._save(key, document)

    async def get_state(self, key: StorageKey) -> Optional[str]:
        document = await self._load(key)
        return document.get(SCENE_FIELD)

    async def set_data(self, key: StorageKey, data: Mapping[str, Any]) -> None:
        document = await self._load(key)
        document[DATA_FIELD] = dict(data)
        await self._save(key, document)

    async def get_data(self, key: StorageKey) -> Dict[str, Any]:
        document = await self._load(key)
        return dict(document.get(DATA_FIELD) or {})

    async def close(self) -> None:
        await self.store.close()
