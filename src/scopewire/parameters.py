from __future__ import annotations

import inspect
import types
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin, get_type_hints

from scopewire.exceptions import ScopeWireDependencyExtractionError

_UNION_ORIGINS: tuple[Any, ...] = (Union, types.UnionType)
_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True, slots=True)
class ParameterSlot:
    """One named constructor parameter."""

    index: int
    name: str
    declared_type: Any | None
    """Annotation with ``Annotated`` and ``None`` members stripped, or ``None`` if unusable."""
    is_optional: bool
    """True when the annotation admits ``None`` (``X | None``)."""
    has_default: bool
    default: Any
    keyword_only: bool


class ParameterInspector:
    """Read the constructor parameter slots of classes.

    Slots are the named parameters of ``__init__`` in declaration order,
    excluding ``self``, ``*args`` and ``**kwargs``. Results are cached per class.
    """

    def __init__(self) -> None:
        self._cache: dict[type[Any], tuple[ParameterSlot, ...]] = {}

    def get_slots(self, type_: type[Any]) -> tuple[ParameterSlot, ...]:
        cached = self._cache.get(type_)
        if cached is not None:
            return cached

        slots = self._inspect(type_)
        self._cache[type_] = slots
        return slots

    def arity(self, type_: type[Any]) -> int:
        return len(self.get_slots(type_))

    def _inspect(self, type_: type[Any]) -> tuple[ParameterSlot, ...]:
        init_func = getattr(type_, "__init__", None)
        if init_func is None or init_func is object.__init__:
            return ()

        try:
            signature = inspect.signature(init_func)
        except (TypeError, ValueError):
            return ()

        try:
            hints = get_type_hints(init_func, include_extras=True)
        except (NameError, TypeError) as e:
            raise ScopeWireDependencyExtractionError(type_, e) from e

        parameters = [
            parameter
            for parameter in list(signature.parameters.values())[1:]
            if parameter.kind not in _SKIPPED_KINDS
        ]
        slots = []
        for index, parameter in enumerate(parameters):
            annotation = hints.get(parameter.name, parameter.annotation)
            declared_type, is_optional = _normalize_annotation(annotation)
            slots.append(
                ParameterSlot(
                    index=index,
                    name=parameter.name,
                    declared_type=declared_type,
                    is_optional=is_optional,
                    has_default=parameter.default is not inspect.Parameter.empty,
                    default=parameter.default,
                    keyword_only=parameter.kind is inspect.Parameter.KEYWORD_ONLY,
                ),
            )
        return tuple(slots)


def _normalize_annotation(annotation: Any) -> tuple[Any | None, bool]:
    if annotation is inspect.Parameter.empty or isinstance(annotation, str):
        return None, False

    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]

    if get_origin(annotation) in _UNION_ORIGINS:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        is_optional = len(members) < len(get_args(annotation))
        if len(members) == 1:
            inner, _ = _normalize_annotation(members[0])
            return inner, is_optional
        return None, is_optional

    return annotation, False
