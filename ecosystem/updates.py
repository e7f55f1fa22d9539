"""Wiring of bot-wide handlers declared on update components."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from aiogram import BaseMiddleware, Dispatcher, Router
from aiogram.types import TelegramObject

from ecosystem.decorators import meta_of
from ecosystem.filters import HearsFilter, MessageShapeFilter, command_filter
from ecosystem.guards import call_maybe_async, guard_chain
from ecosystem.handlers import GuardedHandler, resolve_handler
from ecosystem.models import ComponentMeta, UpdateComponent

logger = logging.getLogger(__name__)


class ComponentMiddleware(BaseMiddleware):
    """Adapts a ``(ctx, call_next)`` method to an aiogram outer middleware."""

    def __init__(self, func: Callable[..., Any]) -> None:
        self._func = func

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async def call_next() -> Any:
            return await handler(event, data)

        return await call_maybe_async(self._func, data["ctx"], call_next)


class UpdateRegistrar:
    """Registers middlewares and listeners of update components on the dispatcher."""

    def __init__(self, dispatcher: Dispatcher, router: Optional[Router] = None) -> None:
        self._dispatcher = dispatcher
        self._router = router or Router(name="updates")

    @property
    def router(self) -> Router:
        return self._router

    def register(self, components: Iterable[UpdateComponent]) -> None:
        for component in components:
            instance = component.constructor()
            meta = meta_of(instance)

            for name in meta.middlewares:
                self._dispatcher.update.outer_middleware(
                    ComponentMiddleware(resolve_handler(instance, name)),
                )

            for listener in meta.hears_listeners:
                self._router.message.register(
                    self._callback(instance, listener.handler, meta),
                    HearsFilter(listener.triggers),
                )
            for listener in meta.event_listeners:
                self._router.message.register(
                    self._callback(instance, listener.handler, meta),
                    MessageShapeFilter(*listener.filters),
                )
            for listener in meta.command_listeners:
                self._router.message.register(
                    self._callback(instance, listener.handler, meta),
                    command_filter(listener.commands),
                )

            logger.info(
                "Update component %s registered: %s middlewares, %s listeners.",
                component.constructor.__qualname__,
                len(meta.middlewares),
                len(meta.hears_listeners) + len(meta.event_listeners) + len(meta.command_listeners),
            )

        self._dispatcher.include_router(self._router)

    @staticmethod
    def _callback(instance: Any, name: str, meta: ComponentMeta) -> Callable[..., Any]:
        handler = GuardedHandler(guard_chain(meta.guards_for(name)), resolve_handler(instance, name))
        return handler.callback()
