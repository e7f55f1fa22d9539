"""Tests for filters built from handler metadata."""

from __future__ import annotations

import re

import pytest
from aiogram.types import PhotoSize

from ecosystem.filters import HearsFilter, MessageShapeFilter, command_filter, compile_triggers


def test_string_triggers_match_exactly() -> None:
    (pattern,) = compile_triggers("a.b")

    assert pattern.search("a.b")
    assert not pattern.search("axb")
    assert not pattern.search("a.b c")


def test_trigger_types_are_validated() -> None:
    with pytest.raises(ValueError):
        compile_triggers([])
    with pytest.raises(TypeError):
        compile_triggers([42])


@pytest.mark.asyncio
async def test_hears_checks_caption_when_text_is_missing(message_update) -> None:
    photo = [PhotoSize(file_id="f", file_unique_id="u", width=1, height=1)]
    message = message_update(photo=photo, caption="order 15").message

    result = await HearsFilter(re.compile(r"order (\d+)"))(message)

    assert result["match"].group(1) == "15"


@pytest.mark.asyncio
async def test_message_shape_requires_every_field(message_update) -> None:
    photo = [PhotoSize(file_id="f", file_unique_id="u", width=1, height=1)]
    shape = MessageShapeFilter("photo", "caption")

    assert await shape(message_update(photo=photo, caption="hi").message)
    assert not await shape(message_update(photo=photo).message)


def test_message_shape_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError):
        MessageShapeFilter("selfie")


def test_command_filter_strips_leading_slash() -> None:
    assert command_filter(["/start", "help"]).commands == ("start", "help")
