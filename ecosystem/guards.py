"""Guard chain execution.

Every handler may declare an ordered list of guards. A guard is called as
``guard(ctx, cursor)`` and may be a plain function or a coroutine function.
The chain walks the list through a :class:`GuardCursor`:

* a guard that awaits ``cursor.advance()`` runs the next guard right away,
  so it can wrap the rest of the chain;
* a guard that simply returns lets the chain move on to the next guard;
* a guard that calls ``cursor.reject()`` stops the chain and the handler is
  skipped for this update.

The cursor never hands out the same guard twice, so each guard runs at most
once per update and the wrapped handler runs exactly once after the last one.
Exceptions raised by guards are not caught here.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Generator, Sequence

from ecosystem.models import Guard

logger = logging.getLogger(__name__)

CallNext = Callable[[], Awaitable[Any]]
Middleware = Callable[[Any, CallNext], Awaitable[Any]]


async def call_maybe_async(func: Callable[..., Any], *args: Any) -> Any:
    """Call ``func`` and await the result when it is awaitable."""

    result = func(*args)
    if inspect.isawaitable(result):
        return await result
    return result


class _Forward:
    """Awaitable returned by :meth:`GuardCursor.advance`.

    The next guard runs only when this is awaited, so a call that is never
    awaited leaves no pending coroutine behind.
    """

    __slots__ = ("_cursor",)

    def __init__(self, cursor: "GuardCursor") -> None:
        self._cursor = cursor

    def __await__(self) -> Generator[Any, None, None]:
        return self._cursor._run_next().__await__()


class GuardCursor:
    """Index-based position inside one handler's guard list."""

    __slots__ = ("_guards", "_ctx", "_position", "_rejected")

    def __init__(self, guards: Sequence[Guard], ctx: Any) -> None:
        self._guards = guards
        self._ctx = ctx
        self._position = 0
        self._rejected = False

    @property
    def position(self) -> int:
        return self._position

    @property
    def rejected(self) -> bool:
        return self._rejected

    @property
    def exhausted(self) -> bool:
        return self._position >= len(self._guards)

    def advance(self) -> Awaitable[None]:
        """Run the next guard that has not run yet, if any.

        Takes effect only when awaited. From a synchronous guard the call is a
        no-op and the chain runs the next guard after that guard returns.
        """

        return _Forward(self)

    async def _run_next(self) -> None:
        if self._rejected or self.exhausted:
            return
        guard = self._guards[self._position]
        self._position += 1
        await call_maybe_async(guard, self._ctx, self)

    def reject(self) -> None:
        """Stop the chain; the guarded handler will not run."""

        self._rejected = True


def guard_chain(guards: Sequence[Guard]) -> Middleware:
    """Build a middleware that runs ``guards`` in order before ``call_next``."""

    chain = tuple(guards)

    async def middleware(ctx: Any, call_next: CallNext) -> Any:
        cursor = GuardCursor(chain, ctx)
        while not cursor.exhausted and not cursor.rejected:
            await cursor._run_next()
        if cursor.rejected:
            logger.debug("Guard chain rejected the update after %s of %s guards.", cursor.position, len(chain))
            return None
        return await call_next()

    return middleware
