"""Tests for bot-wide handlers declared on update components."""

from __future__ import annotations

import re

import pytest
from aiogram.dispatcher.event.bases import UNHANDLED
from aiogram.types import PhotoSize

from ecosystem import (
    ComponentRegistry,
    Ecosystem,
    GuardCursor,
    command,
    hears,
    on,
    update,
    use,
    use_guards,
)


@pytest.mark.asyncio
async def test_command_guards_run_once_each_when_forwarding(config, message_update) -> None:
    calls: list[str] = []

    async def g1(ctx, cursor: GuardCursor) -> None:
        calls.append("g1")
        await cursor.advance()

    def g2(ctx, cursor: GuardCursor) -> None:
        calls.append("g2")

    @update()
    class Start:
        @command("/start")
        @use_guards(g1, g2)
        async def start(self, ctx) -> None:
            calls.append("start")

    ecosystem = await Ecosystem.create(config, ComponentRegistry(Start))
    await ecosystem.dispatcher.feed_update(ecosystem.bot, message_update("/start"))

    assert calls == ["g1", "g2", "start"]


@pytest.mark.asyncio
async def test_global_middlewares_run_in_declared_order(config, message_update) -> None:
    calls: list[str] = []

    @update()
    class Pipeline:
        @use()
        async def outer(self, ctx, call_next):
            calls.append("outer:before")
            result = await call_next()
            calls.append("outer:after")
            return result

        @use()
        def inner(self, ctx, call_next):
            calls.append("inner")
            return call_next()

        @hears("ping")
        async def ping(self, ctx) -> str:
            calls.append("ping")
            return "pong"

    ecosystem = await Ecosystem.create(config, ComponentRegistry(Pipeline))
    result = await ecosystem.dispatcher.feed_update(ecosystem.bot, message_update("ping"))

    assert result == "pong"
    assert calls == ["outer:before", "inner", "ping", "outer:after"]


@pytest.mark.asyncio
async def test_middleware_that_does_not_continue_drops_update(config, message_update) -> None:
    calls: list[str] = []

    @update()
    class Blocker:
        @use()
        async def block(self, ctx, call_next) -> None:
            calls.append("block")

        @hears("ping")
        async def ping(self, ctx) -> None:
            calls.append("ping")

    ecosystem = await Ecosystem.create(config, ComponentRegistry(Blocker))
    await ecosystem.dispatcher.feed_update(ecosystem.bot, message_update("ping"))

    assert calls == ["block"]


@pytest.mark.asyncio
async def test_hears_exposes_regex_match(config, message_update) -> None:
    matches: list[str] = []

    @update()
    class Numbers:
        @hears([re.compile(r"(\d+) apples"), "none"])
        async def count(self, ctx) -> None:
            matches.append(ctx.match.group(0))

    ecosystem = await Ecosystem.create(config, ComponentRegistry(Numbers))
    dispatcher, bot = ecosystem.dispatcher, ecosystem.bot

    await dispatcher.feed_update(bot, message_update("I have 3 apples"))
    await dispatcher.feed_update(bot, message_update("none"))
    missed = await dispatcher.feed_update(bot, message_update("none at all"))

    assert matches == ["3 apples", "none"]
    assert missed is UNHANDLED


@pytest.mark.asyncio
async def test_event_listener_matches_message_shape(config, message_update) -> None:
    received: list[str] = []

    @update()
    class Photos:
        @on("photo")
        async def photo(self, ctx) -> None:
            received.append(ctx.message.photo[-1].file_id)

    photo = [PhotoSize(file_id="photo-1", file_unique_id="u1", width=10, height=10)]
    ecosystem = await Ecosystem.create(config, ComponentRegistry(Photos))
    dispatcher, bot = ecosystem.dispatcher, ecosystem.bot

    await dispatcher.feed_update(bot, message_update(photo=photo))
    await dispatcher.feed_update(bot, message_update("just text"))

    assert received == ["photo-1"]


@pytest.mark.asyncio
async def test_first_matching_component_wins(config, message_update) -> None:
    calls: list[str] = []

    @update()
    class First:
        @command("help")
        async def help(self, ctx) -> None:
            calls.append("first")

    @update()
    class Second:
        @command("help")
        async def help(self, ctx) -> None:
            calls.append("second")

    ecosystem = await Ecosystem.create(config, ComponentRegistry(First, Second))
    await ecosystem.dispatcher.feed_update(ecosystem.bot, message_update("/help"))

    assert calls == ["first"]


@pytest.mark.asyncio
async def test_handler_errors_reach_the_caller(config, message_update) -> None:
    @update()
    class Faulty:
        @command("fail")
        async def fail(self, ctx) -> None:
            raise ValueError("boom")

    ecosystem = await Ecosystem.create(config, ComponentRegistry(Faulty))

    with pytest.raises(ValueError, match="boom"):
        await ecosystem.dispatcher.feed_update(ecosystem.bot, message_update("/fail"))
