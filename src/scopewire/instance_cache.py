from __future__ import annotations

from typing import Any, Final

NOT_FOUND: Final = object()
"""Sentinel returned by ``InstanceCache.resolve`` on a miss (``None`` is a valid instance)."""


class InstanceCache:
    """Hold the singleton instances constructed by one injector node.

    A cache belongs to exactly one injector and is never shared, which is what
    keeps sibling scopes isolated from each other.
    """

    def __init__(self) -> None:
        self._instances: dict[type[Any], Any] = {}

    @property
    def instance_count(self) -> int:
        return len(self._instances)

    def resolve(self, type_: type[Any]) -> Any:
        return self._instances.get(type_, NOT_FOUND)

    def update(self, type_: type[Any], instance: Any) -> None:
        self._instances[type_] = instance

    def remove(self, type_: type[Any]) -> None:
        self._instances.pop(type_, None)

    def clear(self) -> None:
        self._instances.clear()

    def __contains__(self, type_: object) -> bool:
        return type_ in self._instances
