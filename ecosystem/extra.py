"""Reply shortcuts attached to every update context."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from aiogram.types import CallbackQuery, Message

from ecosystem.exceptions import EcosystemError

if TYPE_CHECKING:
    from ecosystem.context import UpdateContext

logger = logging.getLogger(__name__)


class ReplyHelper:
    """Process-wide helper behind ``ctx.ok`` and ``ctx.ok_and_edit``."""

    _instance: Optional["ReplyHelper"] = None

    @classmethod
    def get_instance(cls) -> "ReplyHelper":
        """Return the shared helper, creating it on first use."""

        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    async def ok(self, ctx: "UpdateContext", text: str, **kwargs: Any) -> Message:
        """Send ``text`` into the chat the update came from."""

        if ctx.chat is None:
            raise EcosystemError("Cannot reply to an update without a chat.")
        return await ctx.bot.send_message(chat_id=ctx.chat.id, text=text, **kwargs)

    async def ok_and_edit(self, ctx: "UpdateContext", text: str, **kwargs: Any) -> Any:
        """Edit the message whose inline button was pressed, or send a new one."""

        event = ctx.event
        if isinstance(event, CallbackQuery) and isinstance(event.message, Message):
            await ctx.bot.answer_callback_query(callback_query_id=event.id)
            return await ctx.bot.edit_message_text(
                text=text,
                chat_id=event.message.chat.id,
                message_id=event.message.message_id,
                **kwargs,
            )
        logger.debug("Nothing to edit for %s, sending a new message.", type(event).__name__)
        return await self.ok(ctx, text, **kwargs)
