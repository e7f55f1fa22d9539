"""aiogram filters built from declared handler metadata."""

from __future__ import annotations

import re
from typing import Any, Sequence

from aiogram.filters import BaseFilter, Command
from aiogram.types import CallbackQuery, Message

from ecosystem.models import Trigger, Triggers


def compile_triggers(triggers: Triggers) -> tuple[re.Pattern[str], ...]:
    """Turn strings into exact-match patterns and keep compiled patterns as is."""

    if isinstance(triggers, (str, re.Pattern)):
        items: Sequence[Trigger] = (triggers,)
    else:
        items = tuple(triggers)
    if not items:
        raise ValueError("At least one trigger is required.")

    patterns = []
    for item in items:
        if isinstance(item, re.Pattern):
            patterns.append(item)
        elif isinstance(item, str):
            patterns.append(re.compile(rf"^{re.escape(item)}$"))
        else:
            raise TypeError(f"Unsupported trigger {item!r}.")
    return tuple(patterns)


def _search(patterns: Sequence[re.Pattern[str]], value: str | None) -> bool | dict[str, Any]:
    if value is None:
        return False
    for pattern in patterns:
        match = pattern.search(value)
        if match:
            return {"match": match}
    return False


class HearsFilter(BaseFilter):
    """Matches message text (or caption) against the declared triggers."""

    def __init__(self, triggers: Triggers) -> None:
        self._patterns = compile_triggers(triggers)

    async def __call__(self, message: Message) -> bool | dict[str, Any]:
        text = message.text if message.text is not None else message.caption
        return _search(self._patterns, text)


class ActionFilter(BaseFilter):
    """Matches callback query data against an action id."""

    def __init__(self, action_id: Trigger) -> None:
        self._patterns = compile_triggers(action_id)

    async def __call__(self, callback: CallbackQuery) -> bool | dict[str, Any]:
        return _search(self._patterns, callback.data)


class MessageShapeFilter(BaseFilter):
    """Matches messages that carry every one of the given fields."""

    def __init__(self, *fields: str) -> None:
        if not fields:
            raise ValueError("At least one message field is required.")
        unknown = [name for name in fields if name not in Message.model_fields]
        if unknown:
            raise ValueError(f"Unknown message fields: {', '.join(unknown)}.")
        self.fields = fields

    async def __call__(self, message: Message) -> bool:
        return all(getattr(message, name, None) is not None for name in self.fields)


def command_filter(commands: Sequence[str]) -> Command:
    """Build a Command filter, accepting names written with a leading slash."""

    return Command(*(name.lstrip("/") for name in commands))
