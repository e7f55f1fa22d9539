"""Collection of the components declared before startup."""

from __future__ import annotations

from ecosystem.decorators import component_of
from ecosystem.models import SceneComponent, UpdateComponent


class ComponentRegistry:
    """Keeps scene and update components in the order they were included."""

    def __init__(self, *classes: type) -> None:
        self._scenes: list[SceneComponent] = []
        self._updates: list[UpdateComponent] = []
        self.include(*classes)

    def include(self, *classes: type) -> "ComponentRegistry":
        """Add decorated classes; including the same class twice is a no-op."""

        for cls in classes:
            component = component_of(cls)
            if isinstance(component, SceneComponent):
                if component not in self._scenes:
                    self._scenes.append(component)
            elif component not in self._updates:
                self._updates.append(component)
        return self

    @property
    def scenes(self) -> tuple[SceneComponent, ...]:
        return tuple(self._scenes)

    @property
    def updates(self) -> tuple[UpdateComponent, ...]:
        return tuple(self._updates)

    def __len__(self) -> int:
        return len(self._scenes) + len(self._updates)
