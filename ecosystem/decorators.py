"""Decorators that attach routing roles to handler classes and methods.

Method decorators only tag the function. The class decorators :func:`scene`
and :func:`update` collect those tags, in declaration order, into a
:class:`~ecosystem.models.ComponentMeta` stored on the class.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar, Union

from ecosystem.exceptions import InvalidComponentError
from ecosystem.models import (
    ActionHandler,
    CommandHandler,
    Component,
    ComponentMeta,
    EventHandler,
    Guard,
    HearsHandler,
    SceneComponent,
    Trigger,
    Triggers,
    UpdateComponent,
)

ROLES_ATTR = "__ecosystem_roles__"
META_ATTR = "__ecosystem_meta__"
COMPONENT_ATTR = "__ecosystem_component__"

ENTER = "enter"
ACTION = "action"
HEARS = "hears"
ON = "on"
COMMAND = "command"
USE = "use"
GUARDS = "guards"

SCENE_ROLES = frozenset({ENTER, ACTION, HEARS, ON, GUARDS})
UPDATE_ROLES = frozenset({HEARS, ON, COMMAND, USE, GUARDS})

F = TypeVar("F", bound=Callable[..., Any])
C = TypeVar("C", bound=type)


def _mark(role: str, payload: Any = None) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        func.__dict__.setdefault(ROLES_ATTR, []).append((role, payload))
        return func

    return decorator


def scene_enter() -> Callable[[F], F]:
    """Run the method when the scene is entered."""

    return _mark(ENTER)


def action(action_id: Trigger) -> Callable[[F], F]:
    """Run the method when an inline button with ``action_id`` is pressed."""

    return _mark(ACTION, action_id)


def hears(triggers: Triggers) -> Callable[[F], F]:
    return _mark(HEARS, triggers)


def on(*filters: str) -> Callable[[F], F]:
    """Run the method for messages that carry every field in ``filters``."""

    if not filters:
        raise ValueError("on() needs at least one message field name.")
    return _mark(ON, tuple(filters))


def command(*commands: str) -> Callable[[F], F]:
    if not commands:
        raise ValueError("command() needs at least one command name.")
    return _mark(COMMAND, tuple(commands))


def use() -> Callable[[F], F]:
    """Install the method as a bot-wide ``(ctx, call_next)`` middleware."""

    return _mark(USE)


def use_guards(*guards: Union[Guard, Iterable[Guard]]) -> Callable[[F], F]:
    """Attach guards that run, in order, before the method."""

    flat: list[Guard] = []
    for item in guards:
        if isinstance(item, (list, tuple)):
            flat.extend(item)
        else:
            flat.append(item)
    for guard in flat:
        if not callable(guard):
            raise TypeError(f"Guard {guard!r} is not callable.")
    return _mark(GUARDS, flat)


def _members(cls: type) -> dict[str, Any]:
    members: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        members.update(vars(klass))
    return members


def _collect(cls: type, allowed: frozenset[str]) -> ComponentMeta:
    meta = ComponentMeta()
    for name, attr in _members(cls).items():
        roles = getattr(attr, ROLES_ATTR, None)
        if not roles:
            continue
        # decorators apply bottom-up, read them back in source order
        for role, payload in reversed(roles):
            if role not in allowed:
                raise InvalidComponentError(
                    f"{cls.__qualname__}.{name}: role {role!r} is not supported here.",
                )
            if role == ENTER:
                meta.scene_enter_handlers.append(name)
            elif role == ACTION:
                meta.action_listeners.append(ActionHandler(action_id=payload, handler=name))
            elif role == HEARS:
                meta.hears_listeners.append(HearsHandler(triggers=payload, handler=name))
            elif role == ON:
                meta.event_listeners.append(EventHandler(filters=payload, handler=name))
            elif role == COMMAND:
                meta.command_listeners.append(CommandHandler(commands=payload, handler=name))
            elif role == USE:
                meta.middlewares.append(name)
            elif role == GUARDS:
                meta.guards.setdefault(name, []).extend(payload)
    return meta


def scene(scene_id: str) -> Callable[[C], C]:
    """Declare the class as the scene ``scene_id``."""

    if not scene_id:
        raise InvalidComponentError("Scene id must be a non-empty string.")

    def decorator(cls: C) -> C:
        setattr(cls, META_ATTR, _collect(cls, SCENE_ROLES))
        setattr(cls, COMPONENT_ATTR, SceneComponent(scene_id=scene_id, constructor=cls))
        return cls

    return decorator


def update() -> Callable[[C], C]:
    """Declare the class as a holder of bot-wide handlers."""

    def decorator(cls: C) -> C:
        setattr(cls, META_ATTR, _collect(cls, UPDATE_ROLES))
        setattr(cls, COMPONENT_ATTR, UpdateComponent(constructor=cls))
        return cls

    return decorator


def component_of(cls: type) -> Component:
    component = cls.__dict__.get(COMPONENT_ATTR)
    if component is None:
        raise InvalidComponentError(f"{cls!r} is not decorated with @scene or @update.")
    return component


def meta_of(target: Any) -> ComponentMeta:
    """Return the metadata of a component class or of one of its instances."""

    cls = target if isinstance(target, type) else type(target)
    meta = cls.__dict__.get(META_ATTR)
    if meta is None:
        raise InvalidComponentError(f"{cls!r} is not decorated with @scene or @update.")
    return meta
