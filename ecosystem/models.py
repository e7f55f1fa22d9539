"""Declarative metadata consumed by the registrars."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence, Union

Trigger = Union[str, re.Pattern[str]]
Triggers = Union[Trigger, Sequence[Trigger]]

# guard(ctx, cursor); may be sync or return an awaitable, the result is ignored.
Guard = Callable[[Any, Any], Any]


@dataclass(frozen=True, slots=True)
class ActionHandler:
    """Inline keyboard callback bound to a scene method."""

    action_id: Trigger
    handler: str


@dataclass(frozen=True, slots=True)
class HearsHandler:
    """Text pattern listener."""

    triggers: Triggers
    handler: str


@dataclass(frozen=True, slots=True)
class EventHandler:
    """Listener for messages carrying every one of the given fields."""

    filters: tuple[str, ...]
    handler: str


@dataclass(frozen=True, slots=True)
class CommandHandler:
    """Slash command listener, only available on update components."""

    commands: tuple[str, ...]
    handler: str


@dataclass(slots=True)
class ComponentMeta:
    """Materialised roles declared on one handler-bearing class."""

    scene_enter_handlers: list[str] = field(default_factory=list)
    action_listeners: list[ActionHandler] = field(default_factory=list)
    hears_listeners: list[HearsHandler] = field(default_factory=list)
    event_listeners: list[EventHandler] = field(default_factory=list)
    command_listeners: list[CommandHandler] = field(default_factory=list)
    middlewares: list[str] = field(default_factory=list)
    guards: dict[str, list[Guard]] = field(default_factory=dict)

    def guards_for(self, handler: str) -> list[Guard]:
        """Return the ordered guards of ``handler`` or an empty list."""

        return list(self.guards.get(handler, ()))


@dataclass(frozen=True, slots=True)
class SceneComponent:
    """A class declared as a scene under a unique id."""

    scene_id: str
    constructor: type


@dataclass(frozen=True, slots=True)
class UpdateComponent:
    """A class holding bot-wide handlers and middlewares."""

    constructor: type


Component = Union[SceneComponent, UpdateComponent]
