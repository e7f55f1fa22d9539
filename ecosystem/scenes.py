"""Scenes: isolated conversation steps wired into one bot-wide stage.

A scene owns an aiogram router whose message and callback observers only
match while the FSM state of the chat equals the scene id. Entering a scene
stores its id as the FSM state and runs its enter handlers; the scene stays
active until a handler enters another scene or leaves.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from aiogram import BaseMiddleware, Dispatcher, Router
from aiogram.filters import BaseFilter, StateFilter
from aiogram.fsm.context import FSMContext
from aiogram.types import TelegramObject

from ecosystem.config.settings import SceneRegisteredHook
from ecosystem.context import UpdateContext
from ecosystem.decorators import meta_of
from ecosystem.exceptions import DuplicateSceneError, EcosystemError, UnknownSceneError
from ecosystem.filters import ActionFilter, HearsFilter, MessageShapeFilter
from ecosystem.guards import Middleware, call_maybe_async, guard_chain
from ecosystem.handlers import GuardedHandler, resolve_handler
from ecosystem.models import SceneComponent, Trigger, Triggers

logger = logging.getLogger(__name__)


class Scene:
    """Named router fragment with its own enter, action, hears and event bindings."""

    def __init__(self, scene_id: str) -> None:
        self.scene_id = scene_id
        self.router = Router(name=f"scene:{scene_id}")
        self.router.message.filter(StateFilter(scene_id))
        self.router.callback_query.filter(StateFilter(scene_id))
        self._enter_handlers: list[GuardedHandler] = []

    def enter(self, chain: Middleware, handler: Callable[..., Any]) -> None:
        self._enter_handlers.append(GuardedHandler(chain, handler))

    def action(self, action_id: Trigger, chain: Middleware, handler: Callable[..., Any]) -> None:
        self.router.callback_query.register(
            GuardedHandler(chain, handler).callback(),
            ActionFilter(action_id),
        )

    def hears(self, triggers: Triggers, chain: Middleware, handler: Callable[..., Any]) -> None:
        self.router.message.register(
            GuardedHandler(chain, handler).callback(),
            HearsFilter(triggers),
        )

    def on(self, event_filter: BaseFilter, chain: Middleware, handler: Callable[..., Any]) -> None:
        self.router.message.register(GuardedHandler(chain, handler).callback(), event_filter)

    async def run_enter(self, ctx: UpdateContext) -> None:
        """Run every enter handler in the order they were bound."""

        for handler in self._enter_handlers:
            await handler(ctx)


class Stage:
    """Holds every registered scene and exposes them as one router."""

    def __init__(self) -> None:
        self.router = Router(name="stage")
        self._scenes: Dict[str, Scene] = {}
        self._installed = False

    def register(self, scene: Scene) -> None:
        if scene.scene_id in self._scenes:
            raise DuplicateSceneError(scene.scene_id)
        self._scenes[scene.scene_id] = scene
        self.router.include_router(scene.router)

    def get(self, scene_id: str) -> Scene:
        try:
            return self._scenes[scene_id]
        except KeyError as exc:
            raise UnknownSceneError(scene_id) from exc

    def __contains__(self, scene_id: object) -> bool:
        return scene_id in self._scenes

    @property
    def scene_ids(self) -> tuple[str, ...]:
        return tuple(self._scenes)

    def middleware(self) -> "StageMiddleware":
        return StageMiddleware(self)

    def setup(self, dispatcher: Dispatcher) -> None:
        """Install the stage middleware and router; allowed only once."""

        if self._installed:
            raise RuntimeError("Stage is already installed.")
        dispatcher.update.outer_middleware(self.middleware())
        dispatcher.include_router(self.router)
        self._installed = True


class SceneManager:
    """Scene transitions available to handlers as ``ctx.scene``."""

    def __init__(self, stage: Stage, ctx: UpdateContext) -> None:
        self._stage = stage
        self._ctx = ctx

    def _require_state(self) -> FSMContext:
        if self._ctx.state is None:
            raise EcosystemError("Scenes are only available for updates bound to a chat.")
        return self._ctx.state

    async def current(self) -> Optional[str]:
        """Return the id of the active scene, if any."""

        raw_state = await self._require_state().get_state()
        return raw_state if raw_state in self._stage else None

    async def enter(self, scene_id: str) -> None:
        scene = self._stage.get(scene_id)
        await self._require_state().set_state(scene_id)
        logger.debug("Chat %s entered scene %s.", self._ctx.chat.id if self._ctx.chat else None, scene_id)
        await scene.run_enter(self._ctx)

    async def leave(self) -> None:
        await self._require_state().set_state(None)


class StageMiddleware(BaseMiddleware):
    """Exposes the stage to handlers through ``ctx.scene``."""

    def __init__(self, stage: Stage) -> None:
        self._stage = stage

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        ctx: UpdateContext = data["ctx"]
        ctx.scene = SceneManager(self._stage, ctx)
        return await handler(event, data)


class SceneRegistrar:
    """Turns scene components into scenes committed to a :class:`Stage`."""

    def __init__(self, stage: Stage, on_scene_registered: Optional[SceneRegisteredHook] = None) -> None:
        self._stage = stage
        self._on_scene_registered = on_scene_registered

    async def register(self, components: Iterable[SceneComponent], dispatcher: Dispatcher) -> list[str]:
        """Register every component in order and install the stage.

        Returns the committed scene ids. A duplicate id stops the pass before
        anything from the offending component is committed.
        """

        registered: list[str] = []

        for component in components:
            if component.scene_id in registered:
                raise DuplicateSceneError(component.scene_id)

            instance = component.constructor()
            meta = meta_of(instance)
            scene = Scene(component.scene_id)

            if self._on_scene_registered is not None:
                await call_maybe_async(self._on_scene_registered, component.scene_id)

            for name in meta.scene_enter_handlers:
                scene.enter(guard_chain(meta.guards_for(name)), resolve_handler(instance, name))
            for listener in meta.action_listeners:
                scene.action(
                    listener.action_id,
                    guard_chain(meta.guards_for(listener.handler)),
                    resolve_handler(instance, listener.handler),
                )
            for listener in meta.hears_listeners:
                scene.hears(
                    listener.triggers,
                    guard_chain(meta.guards_for(listener.handler)),
                    resolve_handler(instance, listener.handler),
                )
            for listener in meta.event_listeners:
                scene.on(
                    MessageShapeFilter(*listener.filters),
                    guard_chain(meta.guards_for(listener.handler)),
                    resolve_handler(instance, listener.handler),
                )

            self._stage.register(scene)
            registered.append(component.scene_id)
            logger.info("Scene %s registered (%s).", component.scene_id, component.constructor.__qualname__)

        self._stage.setup(dispatcher)
        return registered
