"""Tests for session stores and the FSM storage bridge."""

from __future__ import annotations

import json

import pytest
import pytest_mock
from aiogram.fsm.storage.base import StorageKey
from redis.exceptions import ConnectionError as RedisConnectionError

from ecosystem.config.settings import SessionBackend, SessionConfig
from ecosystem.exceptions import SessionConnectionLostError
from ecosystem.session import (
    MemorySessionStore,
    RedisSessionStore,
    SessionStorage,
    open_session_store,
)


def _key(**overrides) -> StorageKey:
    values = {"bot_id": 42, "chat_id": 100, "user_id": 200}
    values.update(overrides)
    return StorageKey(**values)


@pytest.mark.asyncio
async def test_memory_store_round_trip() -> None:
    store = MemorySessionStore()
    session = {"step": 2, "items": ["a", "b"], "nested": {"ok": True}}

    await store.set("200:100", session)
    loaded = await store.get("200:100")
    await store.delete("200:100")

    assert loaded == session
    assert loaded is not session
    assert await store.get("200:100") is None


@pytest.mark.asyncio
async def test_redis_store_serialises_with_prefix(mocker: pytest_mock.MockerFixture) -> None:
    client = mocker.Mock()
    client.set = mocker.AsyncMock(return_value=True)
    client.get = mocker.AsyncMock(return_value=json.dumps({"step": 1}))
    client.delete = mocker.AsyncMock(return_value=1)
    store = RedisSessionStore(client, prefix="bot:")

    await store.set("200:100", {"step": 1})
    loaded = await store.get("200:100")
    await store.delete("200:100")

    client.set.assert_awaited_once_with("bot:200:100", json.dumps({"step": 1}))
    client.get.assert_awaited_once_with("bot:200:100")
    client.delete.assert_awaited_once_with("bot:200:100")
    assert loaded == {"step": 1}


@pytest.mark.asyncio
async def test_redis_store_returns_none_for_missing_key(mocker: pytest_mock.MockerFixture) -> None:
    client = mocker.Mock()
    client.get = mocker.AsyncMock(return_value=None)

    assert await RedisSessionStore(client).get("absent") is None


@pytest.mark.asyncio
async def test_connect_raises_lost_connection(mocker: pytest_mock.MockerFixture) -> None:
    redis_cls = mocker.patch("ecosystem.session.Redis")
    client = redis_cls.return_value
    client.ping = mocker.AsyncMock(side_effect=RedisConnectionError("refused"))
    client.aclose = mocker.AsyncMock(return_value=None)

    with pytest.raises(SessionConnectionLostError) as excinfo:
        await RedisSessionStore.connect(SessionConfig(host="redis.test", port=6380))

    assert excinfo.value.host == "redis.test"
    assert excinfo.value.port == 6380
    redis_cls.assert_called_once_with(host="redis.test", port=6380, decode_responses=True)
    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_open_session_store_defaults_to_memory() -> None:
    assert isinstance(await open_session_store(None), MemorySessionStore)
    memory = SessionConfig(backend=SessionBackend.MEMORY)
    assert isinstance(await open_session_store(memory), MemorySessionStore)


def test_session_key_layout() -> None:
    assert SessionStorage.session_key(_key()) == "200:100"
    assert SessionStorage.session_key(_key(thread_id=7)) == "200:100:7"
    assert SessionStorage.session_key(_key(destiny="wizard")) == "200:100:wizard"


@pytest.mark.asyncio
async def test_storage_keeps_state_and_data_in_one_document() -> None:
    store = MemorySessionStore()
    storage = SessionStorage(store)
    key = _key()

    await storage.set_state(key, "home")
    await storage.set_data(key, {"name": "Ann"})

    assert await storage.get_state(key) == "home"
    assert await storage.get_data(key) == {"name": "Ann"}
    assert await store.get("200:100") == {"__scene__": "home", "data": {"name": "Ann"}}


@pytest.mark.asyncio
async def test_storage_deletes_empty_documents() -> None:
    store = MemorySessionStore()
    storage = SessionStorage(store)
    key = _key()

    await storage.set_state(key, "home")
    await storage.set_state(key, None)
    await storage.set_data(key, {})

    assert await store.get("200:100") is None
    assert await storage.get_state(key) is None
    assert await storage.get_data(key) == {}
