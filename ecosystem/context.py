"""Per-update context object and the middleware that builds it."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from aiogram import BaseMiddleware, Bot
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Chat, Message, TelegramObject, Update, User

from ecosystem.extra import ReplyHelper

if TYPE_CHECKING:
    from ecosystem.scenes import SceneManager

Reply = Callable[..., Awaitable[Any]]


@dataclass(slots=True, eq=False)
class UpdateContext:
    """Everything a guard or handler needs to know about the current update."""

    update: Update
    bot: Bot
    state: Optional[FSMContext] = None
    chat: Optional[Chat] = None
    from_user: Optional[User] = None
    session: Dict[str, Any] = field(default_factory=dict)
    scene: Optional["SceneManager"] = None
    match: Any = None
    ok: Optional[Reply] = None
    ok_and_edit: Optional[Reply] = None

    @property
    def event(self) -> TelegramObject:
        return self.update.event

    @property
    def message(self) -> Optional[Message]:
        """Incoming message, or the message an inline button belongs to."""

        event = self.event
        if isinstance(event, Message):
            return event
        if isinstance(event, CallbackQuery) and isinstance(event.message, Message):
            return event.message
        return None

    @property
    def callback_query(self) -> Optional[CallbackQuery]:
        event = self.event
        return event if isinstance(event, CallbackQuery) else None


class ContextAugmenterMiddleware(BaseMiddleware):
    """Builds the :class:`UpdateContext` and stores the session after handling.

    ``ctx.ok`` and ``ctx.ok_and_edit`` are bound to the context only. Replying
    never continues the pipeline; the rest of the chain runs once this
    middleware awaits ``handler``.
    """

    def __init__(self, helper: ReplyHelper) -> None:
        self._helper = helper

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        state: Optional[FSMContext] = data.get("state")
        session = await state.get_data() if state is not None else {}

        ctx = UpdateContext(
            update=event,
            bot=data["bot"],
            state=state,
            chat=data.get("event_chat"),
            from_user=data.get("event_from_user"),
            session=dict(session),
        )
        ctx.ok = partial(self._helper.ok, ctx)
        ctx.ok_and_edit = partial(self._helper.ok_and_edit, ctx)
        data["ctx"] = ctx

        result = await handler(event, data)

        if state is not None:
            await state.set_data(ctx.session)
        return result
