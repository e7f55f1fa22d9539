"""Shared factories for building synthetic Telegram updates."""

from __future__ import annotations

from datetime import datetime, timezone
from itertools import count
from typing import Any, Callable

import pytest
from aiogram.types import CallbackQuery, Chat, Message, Update, User

from ecosystem.config.settings import EcosystemConfig
from ecosystem.extra import ReplyHelper

TEST_TOKEN = "42:TEST"
CHAT_ID = 100
USER_ID = 200

_ids = count(1)


def _message(text: str | None = None, **fields: Any) -> Message:
    return Message(
        message_id=next(_ids),
        date=datetime.now(timezone.utc),
        chat=Chat(id=CHAT_ID, type="private"),
        from_user=User(id=USER_ID, is_bot=False, first_name="Tester"),
        text=text,
        **fields,
    )


@pytest.fixture
def message_update() -> Callable[..., Update]:
    def factory(text: str | None = None, **fields: Any) -> Update:
        return Update(update_id=next(_ids), message=_message(text, **fields))

    return factory


@pytest.fixture
def callback_update() -> Callable[[str], Update]:
    def factory(data: str) -> Update:
        callback = CallbackQuery(
            id=str(next(_ids)),
            from_user=User(id=USER_ID, is_bot=False, first_name="Tester"),
            chat_instance="test-chat",
            data=data,
            message=_message("menu"),
        )
        return Update(update_id=next(_ids), callback_query=callback)

    return factory


@pytest.fixture
def config() -> EcosystemConfig:
    return EcosystemConfig(token=TEST_TOKEN)


@pytest.fixture(autouse=True)
def _reset_reply_helper() -> None:
    ReplyHelper._instance = None
    yield
    ReplyHelper._instance = None
