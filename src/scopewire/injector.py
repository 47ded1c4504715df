from __future__ import annotations

import logging
import threading
import time
import uuid
import weakref
from collections import deque
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar, overload

from typing_extensions import Self

from scopewire.autoregistration import AutoConstructionPolicy
from scopewire.configuration import (
    ConstructionOptions,
    ExternalResolutionStrategy,
    InjectorConfiguration,
)
from scopewire.exceptions import (
    ScopeWireCircularDependencyError,
    ScopeWireDuplicateTokenError,
    ScopeWireInjectorDestroyedError,
    ScopeWireMaxDepthExceededError,
    ScopeWireMissingRegistrationError,
    ScopeWireNotRegisteredError,
    ScopeWireUnregisteredTokenError,
)
from scopewire.handles import AutoFactory, LazyInstance
from scopewire.instance_cache import NOT_FOUND, InstanceCache
from scopewire.metrics import MetricsProvider
from scopewire.parameters import ParameterInspector, ParameterSlot
from scopewire.registrations import InjectionConfiguration, RegistrationTable
from scopewire.token_cache import TokenCache
from scopewire.tokens import (
    FactoryBinding,
    InjectionType,
    LazyBinding,
    OptionalBinding,
    ParameterBinding,
    StrategyBinding,
    StringOrToken,
    TokenBinding,
    TypeBinding,
    TypeToken,
    is_token,
)
from scopewire.validators import RegistrationValidator

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegisteredType:
    """A registered type together with what each of its constructor slots needs."""

    provide: type[Any]
    deps: list[Any]


class Injector:
    """Register types and resolve fully wired instances of them.

    Injectors form a tree. The root is created directly; scopes are created
    with ``create_scope`` and own their instance cache, registrations, token
    cache and metrics. Lookups that miss locally (registrations, token
    mappings, parameter bindings, strategy contributors) fall back to the
    parent chain, while constructed instances always stay in the node that
    built them. Instances seeded with ``register_instance`` on an ancestor are
    shared with descendants that do not register the type themselves.

    Unregistered concrete classes are constructed on demand unless the
    configuration disables ``auto_register``.

    Examples:
        .. code-block:: python

            injector = Injector()
            injector.register(SqlRepository, InjectionConfiguration(tokens=["repository"]))

            request_scope = injector.create_scope("request")
            service = request_scope.get(Service)

    """

    def __init__(
        self,
        configuration: InjectorConfiguration | None = None,
        *,
        name: str | None = None,
        parent: Injector | None = None,
    ) -> None:
        self.id: str = uuid.uuid4().hex
        self.name = name
        self.configuration = configuration if configuration is not None else InjectorConfiguration()
        self.cache = InstanceCache()
        self.token_cache = TokenCache()
        self.metrics = MetricsProvider(enabled=self.configuration.track_metrics)
        self.children: dict[str, Injector] = {}

        self._parent: weakref.ref[Injector] | None = weakref.ref(parent) if parent else None
        self._registrations = RegistrationTable()
        self._seeded: set[type[Any]] = set()
        self._destroyed = False
        self._lock = threading.RLock()
        self._validator = RegistrationValidator()

        if parent is not None:
            self.parameter_inspector = parent.parameter_inspector
            self._auto_construction_policy = parent._auto_construction_policy
        else:
            self.parameter_inspector = ParameterInspector()
            self._auto_construction_policy = AutoConstructionPolicy()

    @property
    def parent(self) -> Injector | None:
        return self._parent() if self._parent is not None else None

    def __repr__(self) -> str:
        label = f"{self.name!r}, " if self.name else ""
        return f"Injector({label}id={self.id!r})"

    # region Registration
    def register(self, type_: type[Any], config: InjectionConfiguration | None = None) -> Self:
        """Register a type, or merge new configuration into an existing registration.

        Args:
            type_: The class to register.
            config: Tokens, strategy key and injection type for the class.

        Returns:
            This injector, for chaining.

        Raises:
            ScopeWireInjectorDestroyedError: If the injector has been destroyed.
            ScopeWireInvalidRegistrationError: If ``type_`` is not a class or a
                token is invalid.
            ScopeWireDuplicateTokenError: If ``allow_duplicate_tokens`` is off
                and a token already belongs to another type.

        """
        self._ensure_active()
        self._validator.validate_constructable(type_)
        config = config if config is not None else InjectionConfiguration()
        for token in config.tokens:
            self._validator.validate_token(token)
        if config.strategy is not None:
            self._validator.validate_token(config.strategy)

        with self._lock:
            if not self.configuration.allow_duplicate_tokens:
                for token in config.tokens:
                    existing = self._type_for_token(token)
                    if existing is not None and existing is not type_:
                        raise ScopeWireDuplicateTokenError(token, existing, type_)

            merged = self._registrations.register(type_, config)
            if merged.is_multiple:
                self.cache.remove(type_)
                self._seeded.discard(type_)
            injection_type = merged.injection_type or InjectionType.SINGLETON
            for token in config.tokens:
                self.token_cache.register(TypeToken(token, type_, injection_type))
            if config.strategy is not None:
                self.token_cache.register_strategy(config.strategy, type_)

        logger.debug("Registered %s on %r", type_.__qualname__, self)
        return self

    def register_instance(
        self,
        type_: type[Any],
        instance: Any,
        config: InjectionConfiguration | None = None,
    ) -> Self:
        """Register ``type_`` and seed the instance cache with ``instance``.

        The instance is returned for ``type_`` without construction, here and
        in every descendant scope that does not register ``type_`` itself.
        """
        self.register(type_, config)
        with self._lock:
            self.cache.update(type_, instance)
            self._seeded.add(type_)
        return self

    def register_param_for_type_injection(
        self,
        target: type[Any],
        owner: type[Any],
        index: int,
    ) -> Self:
        """Resolve slot ``index`` of ``owner`` as ``target`` instead of its annotation."""
        self._validator.validate_slot(owner, index)
        self._validator.validate_constructable(target)
        return self._register_binding(TypeBinding(owner, index, target))

    def register_param_for_token_injection(
        self,
        token: StringOrToken,
        owner: type[Any],
        index: int,
    ) -> Self:
        """Resolve slot ``index`` of ``owner`` through the type mapped to ``token``."""
        self._validator.validate_slot(owner, index)
        self._validator.validate_token(token)
        return self._register_binding(TokenBinding(owner, index, token))

    def register_param_for_factory_injection(
        self,
        target: type[Any],
        owner: type[Any],
        index: int,
    ) -> Self:
        """Inject an ``AutoFactory`` of ``target`` into slot ``index`` of ``owner``."""
        self._validator.validate_slot(owner, index)
        self._validator.validate_constructable(target)
        return self._register_binding(FactoryBinding(owner, index, target))

    def register_param_for_lazy_injection(
        self,
        target: type[Any],
        owner: type[Any],
        index: int,
    ) -> Self:
        """Inject a ``LazyInstance`` of ``target`` into slot ``index`` of ``owner``."""
        self._validator.validate_slot(owner, index)
        self._validator.validate_constructable(target)
        return self._register_binding(LazyBinding(owner, index, target))

    def register_param_for_optional_injection(
        self,
        owner: type[Any],
        index: int,
        target: type[Any] | None = None,
    ) -> Self:
        """Inject ``None`` into slot ``index`` of ``owner`` when its type is not registered.

        ``target`` defaults to the parameter's annotation.
        """
        self._validator.validate_slot(owner, index)
        if target is not None:
            self._validator.validate_constructable(target)
        return self._register_binding(OptionalBinding(owner, index, target))

    def register_param_for_strategy_injection(
        self,
        strategy: StringOrToken,
        owner: type[Any],
        index: int,
    ) -> Self:
        """Inject every instance contributed to ``strategy`` into slot ``index`` of ``owner``."""
        self._validator.validate_slot(owner, index)
        self._validator.validate_token(strategy)
        return self._register_binding(StrategyBinding(owner, index, strategy))

    def _register_binding(self, binding: ParameterBinding) -> Self:
        self._ensure_active()
        with self._lock:
            self.token_cache.register(binding)
        return self

    # endregion Registration

    # region Resolution
    @overload
    def get(
        self,
        type_or_token: type[T],
        ancestry: Sequence[type[Any]] | None = None,
        options: ConstructionOptions | None = None,
    ) -> T: ...

    @overload
    def get(
        self,
        type_or_token: StringOrToken,
        ancestry: Sequence[type[Any]] | None = None,
        options: ConstructionOptions | None = None,
    ) -> Any: ...

    def get(
        self,
        type_or_token: Any,
        ancestry: Sequence[type[Any]] | None = None,
        options: ConstructionOptions | None = None,
    ) -> Any:
        """Resolve an instance of a type, or of the type mapped to a token.

        Args:
            type_or_token: A class, a string token or a ``Token``.
            ancestry: Types currently under construction. Leave empty for a
                top-level request.
            options: Explicit constructor arguments and cache behavior.

        Returns:
            The cached instance when one exists, otherwise a newly constructed
            one.

        Raises:
            ScopeWireInjectorDestroyedError: If the injector has been destroyed.
            ScopeWireMaxDepthExceededError: If the ancestry reached
                ``max_tree_depth``.
            ScopeWireCircularDependencyError: If the type is already under
                construction.
            ScopeWireUnregisteredTokenError: If no type is mapped to the token.
            ScopeWireMissingRegistrationError: If the type or one of its
                required constructor slots cannot be satisfied.
            ScopeWireDependencyExtractionError: If the constructor annotations
                of a type being built cannot be evaluated.

        """
        self._ensure_active()
        return self._resolve(self._type_for_key(type_or_token), list(ancestry or ()), options)

    def get_optional(self, type_or_token: Any) -> Any | None:
        """Resolve a registered type or token, or return ``None`` if nothing is registered."""
        self._ensure_active()
        return self._get_optional(type_or_token, [])

    def get_factory(self, type_: type[T]) -> AutoFactory[T]:
        """Return a factory that builds a new, uncached ``type_`` on every call."""
        self._ensure_active()
        return AutoFactory(self, type_)

    def get_lazy(self, type_: type[T]) -> LazyInstance[T]:
        """Return a handle that resolves ``type_`` on first access to its ``value``."""
        self._ensure_active()
        return LazyInstance(self, type_)

    def get_strategies(self, strategy: StringOrToken) -> list[Any]:
        """Resolve every contributor to ``strategy`` in registration order.

        Contributors registered on ancestors come before those registered on
        this injector.
        """
        self._ensure_active()
        return self._get_strategies(strategy, [])

    def _type_for_key(self, type_or_token: Any) -> Any:
        if not is_token(type_or_token):
            return type_or_token
        type_ = self._type_for_token(type_or_token)
        if type_ is None:
            raise ScopeWireUnregisteredTokenError(type_or_token)
        return type_

    def _resolve(
        self,
        type_: Any,
        ancestry: list[type[Any]],
        options: ConstructionOptions | None,
    ) -> Any:
        max_depth = self.configuration.max_tree_depth
        if len(ancestry) >= max_depth:
            raise ScopeWireMaxDepthExceededError(type_, ancestry, max_depth)
        if type_ in ancestry:
            cycle = [*ancestry[ancestry.index(type_) :], type_]
            raise ScopeWireCircularDependencyError(type_, cycle)

        external = self.configuration.external_resolution_strategy
        if external is not None:
            return self._resolve_external(external, type_, ancestry, options)

        fresh = options is not None and options.fresh
        if not fresh:
            cached = self._lookup_instance(type_)
            if cached is not NOT_FOUND:
                self._record_metrics(type_, ancestry, None)
                return cached

        config = self._find_registration(type_)
        if config is None and not (
            self.configuration.auto_register and self._auto_construction_policy.is_eligible(type_)
        ):
            raise ScopeWireMissingRegistrationError(type_, reason="type is not registered")

        args, kwargs = self._resolve_arguments(type_, [*ancestry, type_], options)
        started = time.perf_counter()
        instance = type_(*args, **kwargs)
        cost_ms = (time.perf_counter() - started) * 1000

        if not fresh and not (config is not None and config.is_multiple):
            with self._lock:
                self.cache.update(type_, instance)

        self._record_metrics(type_, ancestry, cost_ms)
        logger.debug("Constructed %s in %.3f ms on %r", type_.__qualname__, cost_ms, self)
        return instance

    def _resolve_external(
        self,
        strategy: ExternalResolutionStrategy,
        type_: Any,
        ancestry: list[type[Any]],
        options: ConstructionOptions | None,
    ) -> Any:
        syncing = strategy.cache_syncing and not (options is not None and options.fresh)
        if syncing:
            cached = self.cache.resolve(type_)
            if cached is not NOT_FOUND:
                self._record_metrics(type_, ancestry, None)
                return cached

        locals_ = dict(options.params) if options is not None else None
        started = time.perf_counter()
        instance = strategy.resolver(type_, self, locals_)
        cost_ms = (time.perf_counter() - started) * 1000

        if syncing:
            with self._lock:
                self.cache.update(type_, instance)
        self._record_metrics(type_, ancestry, cost_ms)
        return instance

    def _resolve_arguments(
        self,
        owner: type[Any],
        ancestry: list[type[Any]],
        options: ConstructionOptions | None,
    ) -> tuple[list[Any], dict[str, Any]]:
        explicit = options.params if options is not None else {}
        bindings = self._collect_bindings(owner)
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for slot in self.parameter_inspector.get_slots(owner):
            if slot.index in explicit:
                value = explicit[slot.index]
            else:
                value = self._resolve_slot(owner, slot, bindings.get(slot.index), ancestry)
            if slot.keyword_only:
                kwargs[slot.name] = value
            else:
                args.append(value)
        return args, kwargs

    def _resolve_slot(
        self,
        owner: type[Any],
        slot: ParameterSlot,
        binding: ParameterBinding | None,
        ancestry: list[type[Any]],
    ) -> Any:
        if isinstance(binding, FactoryBinding):
            return AutoFactory(self, binding.factory_target)
        if isinstance(binding, LazyBinding):
            return LazyInstance(self, binding.lazy_target)
        if isinstance(binding, StrategyBinding):
            return self._get_strategies(binding.strategy, ancestry)
        if isinstance(binding, OptionalBinding):
            target = binding.target if binding.target is not None else slot.declared_type
            return self._get_optional(target, ancestry) if target is not None else None
        if binding is None and slot.is_optional:
            declared = slot.declared_type
            return self._get_optional(declared, ancestry) if declared is not None else None

        try:
            if isinstance(binding, TokenBinding):
                return self._resolve(self._type_for_key(binding.token), ancestry, None)
            if isinstance(binding, TypeBinding):
                return self._resolve(binding.target, ancestry, None)
            if slot.declared_type is None:
                raise ScopeWireMissingRegistrationError(
                    slot.name,
                    owner,
                    slot.index,
                    reason="parameter has no usable type annotation",
                )
            return self._resolve(slot.declared_type, ancestry, None)
        except ScopeWireNotRegisteredError as exc:
            if slot.is_optional:
                return None
            if slot.has_default:
                return slot.default
            if isinstance(exc, ScopeWireMissingRegistrationError) and exc.owner is None:
                raise ScopeWireMissingRegistrationError(
                    exc.key,
                    owner,
                    slot.index,
                    reason=exc.reason,
                ) from exc
            raise

    def _get_optional(self, type_or_token: Any, ancestry: list[type[Any]]) -> Any | None:
        if is_token(type_or_token):
            type_ = self._type_for_token(type_or_token)
            if type_ is None:
                return None
        else:
            type_ = type_or_token
            if self._find_registration(type_) is None:
                return None
        try:
            return self._resolve(type_, ancestry, None)
        except ScopeWireNotRegisteredError:
            return None

    def _get_strategies(self, strategy: StringOrToken, ancestry: list[type[Any]]) -> list[Any]:
        contributors: list[type[Any]] = []
        for node in reversed(list(self._chain())):
            for contributor in node.token_cache.get_strategy_contributors(strategy):
                if contributor not in contributors:
                    contributors.append(contributor)
        return [self._resolve(contributor, ancestry, None) for contributor in contributors]

    def _record_metrics(
        self,
        type_: Any,
        ancestry: list[type[Any]],
        cost_ms: float | None,
    ) -> None:
        if not self.metrics.enabled:
            return
        with self._lock:
            self.metrics.update(
                type_,
                ancestry[0] if ancestry else type_,
                cost_ms,
                dependency_count=self.parameter_inspector.arity(type_),
            )

    # endregion Resolution

    # region Hierarchy lookups
    def _chain(self) -> Iterator[Injector]:
        node: Injector | None = self
        while node is not None:
            yield node
            node = node.parent

    def _find_registration(self, type_: Any) -> InjectionConfiguration | None:
        for node in self._chain():
            config = node._registrations.get(type_)
            if config is not None:
                return config
        return None

    def _type_for_token(self, token: StringOrToken) -> type[Any] | None:
        for node in self._chain():
            type_ = node.token_cache.get_type_for_token(token)
            if type_ is not None:
                return type_
        return None

    def _collect_bindings(self, owner: type[Any]) -> dict[int, ParameterBinding]:
        bindings: dict[int, ParameterBinding] = {}
        for node in reversed(list(self._chain())):
            for binding in node.token_cache.get_bindings(owner):
                bindings[binding.index] = binding
        return bindings

    def _lookup_instance(self, type_: Any) -> Any:
        cached = self.cache.resolve(type_)
        if cached is not NOT_FOUND or type_ in self._registrations:
            return cached
        for node in self._chain():
            if node is self:
                continue
            if type_ in node._registrations:
                return node.cache.resolve(type_) if type_ in node._seeded else NOT_FOUND
        return NOT_FOUND

    # endregion Hierarchy lookups

    # region Introspection
    def get_registrations(self) -> dict[type[Any], InjectionConfiguration]:
        return self._registrations.get_registrations()

    def get_registered_types(self) -> list[type[Any]]:
        return list(self._registrations.get_registrations())

    def get_registered_types_with_dependencies(self) -> list[RegisteredType]:
        """Describe what each registered type needs, slot by slot.

        A slot is described by its binding payload (target type, token or
        strategy key) or, without a binding, by its declared annotation.
        """
        described = []
        for type_ in self.get_registered_types():
            bindings = self._collect_bindings(type_)
            deps = [
                _describe_slot(slot, bindings.get(slot.index))
                for slot in self.parameter_inspector.get_slots(type_)
            ]
            described.append(RegisteredType(provide=type_, deps=deps))
        return described

    def is_root(self) -> bool:
        return self._parent is None

    def is_scoped(self) -> bool:
        return self._parent is not None

    def is_destroyed(self) -> bool:
        return self._destroyed

    # endregion Introspection

    # region Scopes and lifecycle
    def create_scope(self, name: str | None = None) -> Injector:
        """Create a child injector sharing this injector's configuration.

        Args:
            name: Optional label. Names may repeat within the tree.

        """
        self._ensure_active()
        child = Injector(self.configuration, name=name, parent=self)
        with self._lock:
            self.children[child.id] = child
        logger.debug("Created scope %r under %r", child, self)
        return child

    def get_scope(self, name_or_id: str) -> Injector | None:
        """Find an injector in this subtree by id, or else by name.

        The subtree is searched breadth first, starting with this injector.
        """
        nodes: list[Injector] = []
        queue: deque[Injector] = deque([self])
        while queue:
            node = queue.popleft()
            nodes.append(node)
            queue.extend(node.children.values())

        for node in nodes:
            if node.id == name_or_id:
                return node
        for node in nodes:
            if node.name is not None and node.name == name_or_id:
                return node
        return None

    def destroy(self, parent: Injector | None = None) -> None:
        """Destroy this injector and every descendant.

        Children are destroyed first, then caches are cleared and the node is
        detached from its parent. Destroyed injectors reject every further
        registration and resolution.

        Args:
            parent: Set by a parent that is destroying its subtree. The parent
                clears its own ``children`` mapping, so the child does not
                detach itself.

        """
        if self._destroyed:
            return

        for child in list(self.children.values()):
            child.destroy(self)

        with self._lock:
            self.children.clear()
            self._clear_state()
            self._destroyed = True

        owner = self.parent
        if parent is None and owner is not None:
            with owner._lock:
                owner.children.pop(self.id, None)
        logger.debug("Destroyed %r", self)

    def reset(self) -> None:
        """Clear registrations, caches and metrics of this injector.

        Children are left untouched and the injector stays usable.
        """
        self._ensure_active()
        with self._lock:
            self._clear_state()

    def _clear_state(self) -> None:
        self.cache.clear()
        self._registrations.clear()
        self.token_cache.clear()
        self.metrics.clear()
        self._seeded.clear()

    def _ensure_active(self) -> None:
        if self._destroyed:
            raise ScopeWireInjectorDestroyedError(self.id, self.name)

    # endregion Scopes and lifecycle


def _describe_slot(slot: ParameterSlot, binding: ParameterBinding | None) -> Any:
    if isinstance(binding, (TypeBinding, OptionalBinding)) and binding.target is not None:
        return binding.target
    if isinstance(binding, TokenBinding):
        return binding.token
    if isinstance(binding, FactoryBinding):
        return binding.factory_target
    if isinstance(binding, LazyBinding):
        return binding.lazy_target
    if isinstance(binding, StrategyBinding):
        return binding.strategy
    return slot.declared_type
