from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from scopewire.tokens import InjectionType, StringOrToken


@dataclass
class InjectionConfiguration:
    """Describe how a registered type participates in resolution.

    Args:
        tokens: Tokens the type can be resolved by.
        strategy: Strategy key the type contributes to. Every contributor of a
            key is injected together as a list.
        injection_type: ``SINGLETON`` caches per injector node, ``MULTIPLE``
            builds a new instance on every resolution. ``None`` keeps the
            previously registered value (``SINGLETON`` for a new type).

    """

    tokens: list[StringOrToken] = field(default_factory=list)
    strategy: StringOrToken | None = None
    injection_type: InjectionType | None = None

    def merge(self, other: InjectionConfiguration) -> InjectionConfiguration:
        """Return a configuration with ``other`` applied on top of this one.

        Tokens are unioned in registration order; ``strategy`` and
        ``injection_type`` are replaced only when ``other`` sets them.
        """
        tokens = list(self.tokens)
        tokens.extend(token for token in other.tokens if token not in tokens)
        return InjectionConfiguration(
            tokens=tokens,
            strategy=other.strategy if other.strategy is not None else self.strategy,
            injection_type=(
                other.injection_type if other.injection_type is not None else self.injection_type
            ),
        )

    @property
    def is_multiple(self) -> bool:
        return self.injection_type is InjectionType.MULTIPLE


class RegistrationTable:
    """Map the types registered on one injector node to their configuration.

    Registering a type again merges the new configuration into the stored one.
    The token collision policy is enforced by the owning injector because it
    spans the whole ancestor chain.
    """

    def __init__(self) -> None:
        self._registrations: dict[type[Any], InjectionConfiguration] = {}

    def register(
        self,
        type_: type[Any],
        config: InjectionConfiguration | None = None,
    ) -> InjectionConfiguration:
        incoming = config if config is not None else InjectionConfiguration()
        existing = self._registrations.get(type_)
        base = existing if existing is not None else InjectionConfiguration()
        merged = base.merge(incoming)
        self._registrations[type_] = merged
        return merged

    def get(self, type_: type[Any]) -> InjectionConfiguration | None:
        return self._registrations.get(type_)

    def get_registrations(self) -> dict[type[Any], InjectionConfiguration]:
        return dict(self._registrations)

    def clear(self) -> None:
        self._registrations.clear()

    def __contains__(self, type_: object) -> bool:
        return type_ in self._registrations

    def __len__(self) -> int:
        return len(self._registrations)
