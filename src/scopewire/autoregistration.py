from __future__ import annotations

import inspect
import types
from dataclasses import dataclass
from datetime import date, time, timedelta
from decimal import Decimal
from pathlib import PurePath
from typing import Any, TypeGuard
from uuid import UUID

VALUE_TYPES: tuple[type[Any], ...] = (PurePath, date, time, timedelta, UUID, Decimal)
"""Value types (and subclasses such as ``datetime`` or ``Path``) that carry data, not behavior."""


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true for real classes, excluding parametrized aliases like ``list[int]``."""
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def _is_interface(candidate: type[Any]) -> bool:
    return inspect.isabstract(candidate) or bool(getattr(candidate, "_is_protocol", False))


@dataclass(frozen=True, slots=True)
class AutoConstructionPolicy:
    """Decide which unregistered classes an injector may construct on demand.

    Builtins, interfaces (abstract classes and protocols), metaclasses and
    value types are never built implicitly; register them or seed an instance
    with ``Injector.register_instance`` instead.
    """

    value_types: tuple[type[Any], ...] = VALUE_TYPES

    def is_eligible(self, candidate: object) -> TypeGuard[type[Any]]:
        if not is_runtime_class(candidate) or candidate.__module__ == "builtins":
            return False
        if _is_interface(candidate) or issubclass(candidate, type):
            return False
        return not issubclass(candidate, self.value_types)
