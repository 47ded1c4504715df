from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias, cast

from scopewire.configuration import InjectorConfiguration
from scopewire.exceptions import ScopeWireInjectorNotSetError
from scopewire.injector import Injector
from scopewire.registrations import InjectionConfiguration

_RegistrationMethod: TypeAlias = Literal[
    "register",
    "register_instance",
    "register_param_for_type_injection",
    "register_param_for_token_injection",
    "register_param_for_factory_injection",
    "register_param_for_lazy_injection",
    "register_param_for_optional_injection",
    "register_param_for_strategy_injection",
]


@dataclass(frozen=True, slots=True)
class _RegistrationOperation:
    """Injector registration call replayed by InjectorContext."""

    method_name: _RegistrationMethod
    args: tuple[Any, ...]

    def apply(self, injector: Injector) -> None:
        registration_method = cast("Callable[..., Any]", getattr(injector, self.method_name))
        registration_method(*self.args)


class InjectorContext:
    """Hold the process-wide root injector behind an explicit lifecycle.

    The root is bound once at startup with ``initialize`` (or ``set_current``)
    and released only by ``reset``, so tests can isolate state between cases.
    Registrations made before a root is bound are recorded and replayed when
    one is bound; later registrations are recorded and applied immediately.
    Resolution always requires a bound root.
    """

    def __init__(self) -> None:
        self._injector: Injector | None = None
        self._operations: list[_RegistrationOperation] = []

    def initialize(self, configuration: InjectorConfiguration | None = None) -> Injector:
        """Create and bind a root injector unless one is already bound.

        Returns:
            The bound root injector.

        """
        if self._injector is None:
            self.set_current(Injector(configuration, name="root"))
        return self.get_current()

    def set_current(self, injector: Injector) -> None:
        """Bind ``injector`` and replay all recorded registrations on it."""
        self._injector = injector
        for operation in self._operations:
            operation.apply(injector)

    def get_current(self) -> Injector:
        """Return the bound root injector.

        Raises:
            ScopeWireInjectorNotSetError: If no injector has been bound yet.

        """
        if self._injector is None:
            msg = (
                "Injector is not set for injector_context. "
                "Call injector_context.initialize() before using injector_context."
            )
            raise ScopeWireInjectorNotSetError(msg)
        return self._injector

    def reset(self) -> None:
        """Destroy the bound root and forget every recorded registration."""
        if self._injector is not None and not self._injector.is_destroyed():
            self._injector.destroy()
        self._injector = None
        self._operations.clear()

    def _record(self, method_name: _RegistrationMethod, *args: Any) -> None:
        operation = _RegistrationOperation(method_name=method_name, args=args)
        self._operations.append(operation)
        if self._injector is not None:
            operation.apply(self._injector)

    def register(self, type_: type[Any], config: InjectionConfiguration | None = None) -> None:
        self._record("register", type_, config)

    def register_instance(
        self,
        type_: type[Any],
        instance: Any,
        config: InjectionConfiguration | None = None,
    ) -> None:
        self._record("register_instance", type_, instance, config)

    def register_param_for_type_injection(
        self,
        target: type[Any],
        owner: type[Any],
        index: int,
    ) -> None:
        self._record("register_param_for_type_injection", target, owner, index)

    def register_param_for_token_injection(
        self,
        token: Any,
        owner: type[Any],
        index: int,
    ) -> None:
        self._record("register_param_for_token_injection", token, owner, index)

    def register_param_for_factory_injection(
        self,
        target: type[Any],
        owner: type[Any],
        index: int,
    ) -> None:
        self._record("register_param_for_factory_injection", target, owner, index)

    def register_param_for_lazy_injection(
        self,
        target: type[Any],
        owner: type[Any],
        index: int,
    ) -> None:
        self._record("register_param_for_lazy_injection", target, owner, index)

    def register_param_for_optional_injection(
        self,
        owner: type[Any],
        index: int,
        target: type[Any] | None = None,
    ) -> None:
        self._record("register_param_for_optional_injection", owner, index, target)

    def register_param_for_strategy_injection(
        self,
        strategy: Any,
        owner: type[Any],
        index: int,
    ) -> None:
        self._record("register_param_for_strategy_injection", strategy, owner, index)

    def get(self, type_or_token: Any) -> Any:
        return self.get_current().get(type_or_token)

    def get_optional(self, type_or_token: Any) -> Any | None:
        return self.get_current().get_optional(type_or_token)

    def get_strategies(self, strategy: Any) -> list[Any]:
        return self.get_current().get_strategies(strategy)

    def create_scope(self, name: str | None = None) -> Injector:
        return self.get_current().create_scope(name)


injector_context = InjectorContext()
"""The process-wide ``InjectorContext``."""
