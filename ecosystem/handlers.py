"""Binding of declared handler methods to aiogram callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable

from aiogram.types import TelegramObject

from ecosystem.context import UpdateContext
from ecosystem.exceptions import HandlerResolutionError
from ecosystem.guards import Middleware, call_maybe_async


def resolve_handler(instance: Any, name: str) -> Callable[..., Any]:
    """Return the bound method ``name`` of ``instance``."""

    handler = getattr(instance, name, None)
    if handler is None or not callable(handler):
        raise HandlerResolutionError(type(instance).__qualname__, name)
    return handler


@dataclass(frozen=True, slots=True)
class GuardedHandler:
    """A bound handler method together with its guard chain."""

    chain: Middleware
    handler: Callable[..., Any]

    async def __call__(self, ctx: UpdateContext) -> Any:
        return await self.chain(ctx, partial(call_maybe_async, self.handler, ctx))

    def callback(self) -> Callable[..., Any]:
        """Wrap into an aiogram handler that receives the update context."""

        async def callback(event: TelegramObject, ctx: UpdateContext, match: Any = None) -> Any:
            ctx.match = match
            return await self(ctx)

        callback.__name__ = getattr(self.handler, "__name__", callback.__name__)
        callback.__qualname__ = getattr(self.handler, "__qualname__", callback.__qualname__)
        return callback
