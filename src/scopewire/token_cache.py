from __future__ import annotations

from typing import Any

from scopewire.tokens import (
    BindingKind,
    Metadata,
    ParameterBinding,
    StrategyBinding,
    StringOrToken,
    TypeToken,
)


class TokenCache:
    """Store token registrations and parameter bindings.

    The cache is a pure indexed store: it answers lookups and never resolves
    anything. Four logical tables are kept in sync by ``register``:

    * type to the tokens it is registered under,
    * token to the types registered under it (insertion order),
    * owner type and slot index to the parameter binding for that slot,
    * strategy key to its contributors and to its consumers.

    A slot holds at most one binding; registering another binding for the same
    ``(owner, index)`` replaces it.
    """

    def __init__(self) -> None:
        self._tokens_by_type: dict[type[Any], list[TypeToken]] = {}
        self._types_by_token: dict[StringOrToken, list[type[Any]]] = {}
        self._bindings_by_owner: dict[type[Any], dict[int, ParameterBinding]] = {}
        self._strategy_contributors: dict[StringOrToken, list[type[Any]]] = {}
        self._strategy_consumers: dict[StringOrToken, list[type[Any]]] = {}

    def register(self, metadata: Metadata) -> None:
        """Record a type-level token or a parameter binding.

        Args:
            metadata: A ``TypeToken`` or any parameter binding record.

        """
        if isinstance(metadata, TypeToken):
            self._register_type_token(metadata)
            return

        slots = self._bindings_by_owner.setdefault(metadata.owner, {})
        slots[metadata.index] = metadata
        if isinstance(metadata, StrategyBinding):
            consumers = self._strategy_consumers.setdefault(metadata.strategy, [])
            if metadata.owner not in consumers:
                consumers.append(metadata.owner)

    def register_strategy(self, strategy: StringOrToken, contributor: type[Any]) -> None:
        contributors = self._strategy_contributors.setdefault(strategy, [])
        if contributor not in contributors:
            contributors.append(contributor)

    def _register_type_token(self, metadata: TypeToken) -> None:
        tokens = self._tokens_by_type.setdefault(metadata.owner, [])
        tokens[:] = [existing for existing in tokens if existing.token != metadata.token]
        tokens.append(metadata)

        types = self._types_by_token.setdefault(metadata.token, [])
        if metadata.owner in types:
            types.remove(metadata.owner)
        types.append(metadata.owner)

    def get_bindings(
        self,
        owner: type[Any],
        kind: BindingKind | None = None,
    ) -> list[ParameterBinding]:
        """Return the bindings recorded for ``owner`` ordered by slot index.

        Slots without a binding (of ``kind``, when given) are absent.
        """
        slots = self._bindings_by_owner.get(owner, {})
        return [
            slots[index] for index in sorted(slots) if kind is None or slots[index].kind is kind
        ]

    def get_inject_tokens(self, owner: type[Any]) -> list[ParameterBinding]:
        return self.get_bindings(owner, BindingKind.TOKEN)

    def get_factory_tokens(self, owner: type[Any]) -> list[ParameterBinding]:
        return self.get_bindings(owner, BindingKind.FACTORY)

    def get_lazy_tokens(self, owner: type[Any]) -> list[ParameterBinding]:
        return self.get_bindings(owner, BindingKind.LAZY)

    def get_optional_tokens(self, owner: type[Any]) -> list[ParameterBinding]:
        return self.get_bindings(owner, BindingKind.OPTIONAL)

    def get_strategy_tokens(self, owner: type[Any]) -> list[ParameterBinding]:
        return self.get_bindings(owner, BindingKind.STRATEGY)

    def get_tokens_for_type(self, type_: type[Any]) -> list[TypeToken]:
        return list(self._tokens_by_type.get(type_, []))

    def get_types_for_token(self, token: StringOrToken) -> list[type[Any]]:
        return list(self._types_by_token.get(token, []))

    def get_type_for_token(self, token: StringOrToken) -> type[Any] | None:
        """Return the most recently registered type for ``token``."""
        types = self._types_by_token.get(token)
        return types[-1] if types else None

    def get_strategy_contributors(self, strategy: StringOrToken) -> list[type[Any]]:
        return list(self._strategy_contributors.get(strategy, []))

    def get_strategy_consumers(self, strategy: StringOrToken) -> list[type[Any]]:
        return list(self._strategy_consumers.get(strategy, []))

    def clear(self) -> None:
        self._tokens_by_type.clear()
        self._types_by_token.clear()
        self._bindings_by_owner.clear()
        self._strategy_contributors.clear()
        self._strategy_consumers.clear()
