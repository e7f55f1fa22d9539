"""Example bot: a home scene and a scene waiting for a user id."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from ecosystem import (
    ComponentRegistry,
    Ecosystem,
    GuardCursor,
    UpdateContext,
    action,
    command,
    hears,
    scene,
    scene_enter,
    update,
    use,
    use_guards,
)
from ecosystem.config.settings import get_settings
from ecosystem.monitoring.logging import configure_logging

logger = logging.getLogger(__name__)

HOME = "home"
WAITING_CONTROL_USER_ID = "waiting-control-user-id"

BACK_KEYBOARD = InlineKeyboardMarkup(
    inline_keyboard=[[InlineKeyboardButton(text="Назад", callback_data="back")]],
)


async def private_chat_only(ctx: UpdateContext, cursor: GuardCursor) -> None:
    if ctx.chat is None or ctx.chat.type != "private":
        cursor.reject()


@update()
class Commands:
    @use()
    async def log_updates(self, ctx: UpdateContext, call_next: Any) -> Any:
        logger.info("Update %s from chat %s", ctx.update.update_id, ctx.chat.id if ctx.chat else None)
        return await call_next()

    @command("/start")
    @use_guards(private_chat_only)
    async def start(self, ctx: UpdateContext) -> None:
        await ctx.scene.enter(HOME)


@scene(HOME)
class HomeScene:
    @scene_enter()
    async def enter(self, ctx: UpdateContext) -> None:
        await ctx.ok("Главное меню. Напишите «управление», чтобы выбрать пользователя.")

    @hears(["управление", "Управление"])
    async def control(self, ctx: UpdateContext) -> None:
        await ctx.scene.enter(WAITING_CONTROL_USER_ID)


@scene(WAITING_CONTROL_USER_ID)
class WaitingControlUserIdScene:
    @scene_enter()
    async def enter(self, ctx: UpdateContext) -> None:
        await ctx.ok_and_edit("Введите <b>userId</b> для управления пользователем", reply_markup=BACK_KEYBOARD)

    @action("back")
    async def back(self, ctx: UpdateContext) -> None:
        await ctx.scene.enter(HOME)

    @hears(re.compile(r"\d"))
    async def listen_user_id(self, ctx: UpdateContext) -> None:
        user_id = ctx.message.text.strip()
        ctx.session["controlled_user_id"] = user_id
        await ctx.ok(f"Пользователь {user_id} выбран.")


async def main() -> None:
    configure_logging()
    settings = get_settings()
    registry = ComponentRegistry(Commands, HomeScene, WaitingControlUserIdScene)
    ecosystem = await Ecosystem.create(settings.to_ecosystem_config(), registry)
    try:
        await ecosystem.launch()
    finally:
        await ecosystem.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
