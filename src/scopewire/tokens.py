from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, TypeAlias, Union


class Token:
    """Name a logical dependency independently of a concrete type.

    Two ``Token`` objects never compare equal, even with the same description,
    so a module can publish a token that no other module can collide with by
    accident. Plain strings are accepted wherever a token is expected.

    Examples:
        .. code-block:: python

            CACHE = Token("cache")

            injector.register(RedisCache, InjectionConfiguration(tokens=[CACHE]))
            cache = injector.get(CACHE)

    """

    __slots__ = ("description",)

    def __init__(self, description: str = "") -> None:
        self.description = description

    def __repr__(self) -> str:
        return f"Token({self.description!r})"


StringOrToken: TypeAlias = Union[str, Token]
"""A key used to resolve a type indirectly."""


def is_token(value: object) -> bool:
    return isinstance(value, (str, Token))


class InjectionType(str, Enum):
    """Caching policy declared for a type."""

    SINGLETON = "singleton"
    """One instance per injector node, cached on first resolution."""

    MULTIPLE = "multiple"
    """A fresh instance on every resolution; the instance cache is never written."""


class BindingKind(str, Enum):
    """How a constructor parameter slot is satisfied."""

    TYPE = "type"
    TOKEN = "token"
    FACTORY = "factory"
    LAZY = "lazy"
    OPTIONAL = "optional"
    STRATEGY = "strategy"


@dataclass(frozen=True, slots=True)
class TypeToken:
    """Record that ``owner`` can be resolved through ``token``."""

    token: StringOrToken
    owner: type[Any]
    injection_type: InjectionType = InjectionType.SINGLETON


@dataclass(frozen=True, slots=True)
class TypeBinding:
    """Resolve the slot as ``target`` instead of its declared annotation."""

    kind: ClassVar[BindingKind] = BindingKind.TYPE

    owner: type[Any]
    index: int
    target: type[Any]


@dataclass(frozen=True, slots=True)
class TokenBinding:
    """Resolve the slot through the type currently mapped to ``token``."""

    kind: ClassVar[BindingKind] = BindingKind.TOKEN

    owner: type[Any]
    index: int
    token: StringOrToken


@dataclass(frozen=True, slots=True)
class FactoryBinding:
    """Inject an ``AutoFactory`` for ``factory_target``."""

    kind: ClassVar[BindingKind] = BindingKind.FACTORY

    owner: type[Any]
    index: int
    factory_target: type[Any]


@dataclass(frozen=True, slots=True)
class LazyBinding:
    """Inject a ``LazyInstance`` for ``lazy_target``."""

    kind: ClassVar[BindingKind] = BindingKind.LAZY

    owner: type[Any]
    index: int
    lazy_target: type[Any]


@dataclass(frozen=True, slots=True)
class OptionalBinding:
    """Inject ``None`` when the slot's type is not registered.

    ``target`` defaults to the parameter's declared annotation.
    """

    kind: ClassVar[BindingKind] = BindingKind.OPTIONAL

    owner: type[Any]
    index: int
    target: type[Any] | None = None


@dataclass(frozen=True, slots=True)
class StrategyBinding:
    """Inject the list of every contributor to ``strategy``."""

    kind: ClassVar[BindingKind] = BindingKind.STRATEGY

    owner: type[Any]
    index: int
    strategy: StringOrToken


ParameterBinding: TypeAlias = Union[
    TypeBinding,
    TokenBinding,
    FactoryBinding,
    LazyBinding,
    OptionalBinding,
    StrategyBinding,
]
"""Metadata attached to one constructor parameter slot."""

Metadata: TypeAlias = Union[TypeToken, ParameterBinding]
"""Any record accepted by ``TokenCache.register``."""
