"""Bot bring-up: session, context, global handlers and scenes."""

from __future__ import annotations

import logging
from contextlib import suppress
from typing import Optional

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties

from ecosystem.config.settings import EcosystemConfig
from ecosystem.context import ContextAugmenterMiddleware
from ecosystem.exceptions import EcosystemConfigError
from ecosystem.extra import ReplyHelper
from ecosystem.registry import ComponentRegistry
from ecosystem.scenes import SceneRegistrar, Stage
from ecosystem.session import SessionStorage, open_session_store
from ecosystem.updates import UpdateRegistrar

logger = logging.getLogger(__name__)


class Ecosystem:
    """A bot with every declared scene and update component wired in.

    Build it with :meth:`create`, which returns only once registration is
    complete, then call :meth:`launch` to start consuming updates.
    """

    def __init__(
        self,
        config: EcosystemConfig,
        bot: Bot,
        dispatcher: Dispatcher,
        storage: SessionStorage,
        stage: Stage,
        scene_ids: list[str],
    ) -> None:
        self.config = config
        self.bot = bot
        self.dispatcher = dispatcher
        self.storage = storage
        self.stage = stage
        self.scene_ids = scene_ids

    @classmethod
    async def create(
        cls,
        config: EcosystemConfig,
        registry: ComponentRegistry,
        *,
        reply_helper: Optional[ReplyHelper] = None,
    ) -> "Ecosystem":
        """Bring the bot up; raises before any update is consumed on failure."""

        if not config.token:
            raise EcosystemConfigError("Telegram bot token is missing.")

        bot = Bot(token=config.token, default=DefaultBotProperties(parse_mode=config.parse_mode))
        try:
            store = await open_session_store(config.session)
        except Exception:
            with suppress(Exception):
                await bot.session.close()
            raise

        storage = SessionStorage(store)
        dispatcher = Dispatcher(storage=storage)
        dispatcher.update.outer_middleware(
            ContextAugmenterMiddleware(reply_helper or ReplyHelper.get_instance()),
        )

        stage = Stage()
        try:
            UpdateRegistrar(dispatcher).register(registry.updates)
            scene_ids = await SceneRegistrar(stage, config.on_scene_registered).register(
                registry.scenes,
                dispatcher,
            )
        except Exception:
            logger.exception("Component registration failed; closing connections.")
            with suppress(Exception):
                await store.close()
            with suppress(Exception):
                await bot.session.close()
            raise

        logger.info(
            "Ecosystem ready: %s update components, %s scenes.",
            len(registry.updates),
            len(scene_ids),
        )
        return cls(config, bot, dispatcher, storage, stage, scene_ids)

    async def launch(self) -> None:
        """Start polling; runs until the dispatcher is stopped."""

        if self.config.drop_pending_updates:
            await self.bot.delete_webhook(drop_pending_updates=True)
        logger.info("Starting bot polling.")
        await self.dispatcher.start_polling(self.bot)

    async def shutdown(self) -> None:
        with suppress(Exception):
            await self.storage.close()
        with suppress(Exception):
            await self.bot.session.close()
