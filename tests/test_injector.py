"""Tests for the resolution engine of a single injector."""

import abc
from dataclasses import dataclass
from typing import Any

import pytest

from scopewire import (
    ConstructionOptions,
    ExternalResolutionStrategy,
    InjectionConfiguration,
    InjectionType,
    Injector,
    InjectorConfiguration,
    RegisteredType,
    ScopeWireCircularDependencyError,
    ScopeWireDuplicateTokenError,
    ScopeWireInvalidRegistrationError,
    ScopeWireMaxDepthExceededError,
    ScopeWireMissingRegistrationError,
    ScopeWireUnregisteredTokenError,
    Token,
)


class Clock:
    pass


class Repository:
    def __init__(self, clock: Clock) -> None:
        self.clock = clock


class Service:
    def __init__(self, repository: Repository, clock: Clock) -> None:
        self.repository = repository
        self.clock = clock


class Logger(abc.ABC):
    @abc.abstractmethod
    def log(self, message: str) -> None: ...


class ConsoleLogger(Logger):
    def log(self, message: str) -> None:
        pass


class FileLogger(Logger):
    def log(self, message: str) -> None:
        pass


class LoggingService:
    def __init__(self, logger: Logger) -> None:
        self.logger = logger


class Greeter:
    def __init__(self, clock: Clock, greeting: str = "hello", *, punctuation: str = "!") -> None:
        self.clock = clock
        self.greeting = greeting
        self.punctuation = punctuation


class NeedsName:
    def __init__(self, name: str) -> None:
        self.name = name


class Untyped:
    def __init__(self, dependency) -> None:  # noqa: ANN001
        self.dependency = dependency


class MaybeLogger:
    def __init__(self, logger: Logger | None) -> None:
        self.logger = logger


class MaybeClock:
    def __init__(self, clock: Clock | None) -> None:
        self.clock = clock


class KeywordOnly:
    def __init__(self, *, clock: Clock) -> None:
        self.clock = clock


class CycleA:
    def __init__(self, b: "CycleB") -> None:
        self.b = b


class CycleB:
    def __init__(self, a: CycleA) -> None:
        self.a = a


class SelfDependent:
    def __init__(self, other: "SelfDependent") -> None:
        self.other = other


class Level5:
    pass


class Level4:
    def __init__(self, child: Level5) -> None:
        self.child = child


class Level3:
    def __init__(self, child: Level4) -> None:
        self.child = child


class Level2:
    def __init__(self, child: Level3) -> None:
        self.child = child


class Level1:
    def __init__(self, child: Level2) -> None:
        self.child = child


@dataclass
class Settings:
    url: str = "sqlite://"


@dataclass
class Database:
    settings: Settings


class TestSingletonAndMultiple:
    def test_resolves_type_without_dependencies(self, injector: Injector) -> None:
        clock = injector.get(Clock)

        assert isinstance(clock, Clock)

    def test_second_get_returns_cached_instance(self, injector: Injector) -> None:
        assert injector.get(Clock) is injector.get(Clock)
        assert injector.cache.instance_count == 1

    def test_multiple_returns_fresh_instances(self, injector: Injector) -> None:
        injector.register(Clock, InjectionConfiguration(injection_type=InjectionType.MULTIPLE))

        first = injector.get(Clock)
        second = injector.get(Clock)

        assert first is not second
        assert Clock not in injector.cache

    def test_latest_injection_type_wins(self, injector: Injector) -> None:
        injector.register(Clock, InjectionConfiguration(injection_type=InjectionType.MULTIPLE))
        injector.register(Clock, InjectionConfiguration(injection_type=InjectionType.SINGLETON))

        assert injector.get(Clock) is injector.get(Clock)

    def test_switching_cached_type_to_multiple_drops_cached_instance(
        self,
        injector: Injector,
    ) -> None:
        first = injector.get(Clock)

        injector.register(Clock, InjectionConfiguration(injection_type=InjectionType.MULTIPLE))

        assert injector.get(Clock) is not first
        assert injector.get(Clock) is not injector.get(Clock)

    def test_reregistration_without_injection_type_keeps_previous(self, injector: Injector) -> None:
        injector.register(Clock, InjectionConfiguration(injection_type=InjectionType.MULTIPLE))
        injector.register(Clock, InjectionConfiguration(tokens=["clock"]))

        assert injector.get(Clock) is not injector.get(Clock)


class TestAnnotationWiring:
    def test_dependencies_are_wired_by_annotation(self, injector: Injector) -> None:
        service = injector.get(Service)

        assert isinstance(service.repository, Repository)
        assert service.repository.clock is service.clock

    def test_dataclass_fields_are_wired(self, injector: Injector) -> None:
        database = injector.get(Database)

        assert database.settings.url == "sqlite://"

    def test_default_used_for_unresolvable_builtin(self, injector: Injector) -> None:
        greeter = injector.get(Greeter)

        assert greeter.greeting == "hello"
        assert greeter.punctuation == "!"

    def test_keyword_only_parameters_are_resolved(self, injector: Injector) -> None:
        instance = injector.get(KeywordOnly)

        assert instance.clock is injector.get(Clock)

    def test_missing_builtin_without_default_raises(self, injector: Injector) -> None:
        with pytest.raises(ScopeWireMissingRegistrationError) as exc_info:
            injector.get(NeedsName)

        assert exc_info.value.key is str
        assert exc_info.value.owner is NeedsName
        assert exc_info.value.index == 0

    def test_unannotated_parameter_raises(self, injector: Injector) -> None:
        with pytest.raises(ScopeWireMissingRegistrationError) as exc_info:
            injector.get(Untyped)

        assert exc_info.value.owner is Untyped
        assert "annotation" in str(exc_info.value)

    def test_abstract_type_requires_registration(self, injector: Injector) -> None:
        with pytest.raises(ScopeWireMissingRegistrationError) as exc_info:
            injector.get(LoggingService)

        assert exc_info.value.key is Logger

    def test_optional_annotation_resolves_to_none(self, injector: Injector) -> None:
        assert injector.get(MaybeLogger).logger is None

    def test_optional_annotation_ignores_earlier_auto_construction(
        self,
        injector: Injector,
    ) -> None:
        first = injector.get(MaybeClock).clock
        injector.get(Clock)
        second = injector.get(MaybeClock, options=ConstructionOptions(fresh=True)).clock

        assert first is None
        assert second is None

    def test_optional_annotation_uses_registered_type(self, injector: Injector) -> None:
        injector.register(Clock)

        assert injector.get(MaybeClock).clock is injector.get(Clock)

    def test_registered_instance_satisfies_builtin_slot(self, injector: Injector) -> None:
        injector.register_instance(str, "scopewire")

        assert injector.get(NeedsName).name == "scopewire"


class TestTokens:
    def test_get_by_token_returns_latest_registration(self, injector: Injector) -> None:
        injector.register(ConsoleLogger, InjectionConfiguration(tokens=["logger"]))
        injector.register(FileLogger, InjectionConfiguration(tokens=["logger"]))

        assert isinstance(injector.get("logger"), FileLogger)
        assert injector.token_cache.get_types_for_token("logger") == [ConsoleLogger, FileLogger]

    def test_symbol_tokens_compare_by_identity(self, injector: Injector) -> None:
        first = Token("logger")
        second = Token("logger")
        injector.register(ConsoleLogger, InjectionConfiguration(tokens=[first]))
        injector.register(FileLogger, InjectionConfiguration(tokens=[second]))

        assert isinstance(injector.get(first), ConsoleLogger)
        assert isinstance(injector.get(second), FileLogger)

    def test_token_resolution_shares_singleton_with_type(self, injector: Injector) -> None:
        injector.register(ConsoleLogger, InjectionConfiguration(tokens=["logger"]))

        assert injector.get("logger") is injector.get(ConsoleLogger)

    def test_unregistered_token_raises(self, injector: Injector) -> None:
        with pytest.raises(ScopeWireUnregisteredTokenError) as exc_info:
            injector.get("missing")

        assert exc_info.value.token == "missing"

    def test_get_optional_ignores_earlier_auto_construction(self, injector: Injector) -> None:
        before = injector.get_optional(Clock)
        injector.get(Clock)
        after = injector.get_optional(Clock)

        assert before is None
        assert after is None

    def test_get_optional_returns_registered_instance(self, injector: Injector) -> None:
        injector.register(Clock)
        clock = injector.get(Clock)

        assert injector.get_optional(Clock) is clock

    def test_get_optional_unregistered_token_returns_none(self, injector: Injector) -> None:
        assert injector.get_optional("missing") is None

    def test_token_binding_takes_precedence_over_annotation(self, injector: Injector) -> None:
        injector.register(FileLogger, InjectionConfiguration(tokens=["file"]))
        injector.register_param_for_token_injection("file", LoggingService, 0)

        assert isinstance(injector.get(LoggingService).logger, FileLogger)

    def test_latest_binding_for_a_slot_wins(self, injector: Injector) -> None:
        injector.register(FileLogger, InjectionConfiguration(tokens=["file"]))
        injector.register_param_for_token_injection("file", LoggingService, 0)
        injector.register_param_for_type_injection(ConsoleLogger, LoggingService, 0)

        assert isinstance(injector.get(LoggingService).logger, ConsoleLogger)

    def test_duplicate_tokens_rejected_when_disallowed(self) -> None:
        injector = Injector(InjectorConfiguration(allow_duplicate_tokens=False))
        injector.register(ConsoleLogger, InjectionConfiguration(tokens=["logger"]))

        with pytest.raises(ScopeWireDuplicateTokenError) as exc_info:
            injector.register(FileLogger, InjectionConfiguration(tokens=["logger"]))

        assert exc_info.value.existing is ConsoleLogger
        assert exc_info.value.new is FileLogger

    def test_same_type_may_reclaim_its_token(self) -> None:
        injector = Injector(InjectorConfiguration(allow_duplicate_tokens=False))
        injector.register(ConsoleLogger, InjectionConfiguration(tokens=["logger"]))
        injector.register(ConsoleLogger, InjectionConfiguration(tokens=["logger"]))

        assert injector.token_cache.get_types_for_token("logger") == [ConsoleLogger]

    def test_reregistration_merges_tokens(self, injector: Injector) -> None:
        injector.register(ConsoleLogger, InjectionConfiguration(tokens=["a"]))
        injector.register(ConsoleLogger, InjectionConfiguration(tokens=["b", "a"]))

        assert injector.get_registrations()[ConsoleLogger].tokens == ["a", "b"]


class TestConstructionOptions:
    def test_explicit_params_win_over_bindings(self, injector: Injector) -> None:
        clock = Clock()

        repository = injector.get(Repository, options=ConstructionOptions(params={0: clock}))

        assert repository.clock is clock

    def test_cached_instance_is_returned_without_fresh(self, injector: Injector) -> None:
        cached = injector.get(Repository)

        assert injector.get(Repository, options=ConstructionOptions(params={0: Clock()})) is cached

    def test_fresh_bypasses_cache(self, injector: Injector) -> None:
        cached = injector.get(Repository)

        fresh = injector.get(Repository, options=ConstructionOptions(fresh=True))

        assert fresh is not cached
        assert injector.get(Repository) is cached


class TestCyclesAndDepth:
    def test_circular_dependency_reports_path(self, injector: Injector) -> None:
        with pytest.raises(ScopeWireCircularDependencyError) as exc_info:
            injector.get(CycleA)

        assert exc_info.value.path == [CycleA, CycleB, CycleA]
        assert "CycleA -> CycleB -> CycleA" in str(exc_info.value)

    def test_self_dependency_is_circular(self, injector: Injector) -> None:
        with pytest.raises(ScopeWireCircularDependencyError) as exc_info:
            injector.get(SelfDependent)

        assert exc_info.value.path == [SelfDependent, SelfDependent]

    def test_cycle_detected_before_depth_limit(self) -> None:
        injector = Injector(InjectorConfiguration(max_tree_depth=3))

        with pytest.raises(ScopeWireCircularDependencyError):
            injector.get(CycleA)

    def test_explicit_ancestry_participates_in_cycle_check(self, injector: Injector) -> None:
        with pytest.raises(ScopeWireCircularDependencyError):
            injector.get(Clock, ancestry=[Clock])

    def test_chain_within_depth_limit_resolves(self) -> None:
        injector = Injector(InjectorConfiguration(max_tree_depth=5))

        assert isinstance(injector.get(Level1).child.child.child.child, Level5)

    def test_chain_beyond_depth_limit_fails(self) -> None:
        injector = Injector(InjectorConfiguration(max_tree_depth=4))

        with pytest.raises(ScopeWireMaxDepthExceededError) as exc_info:
            injector.get(Level1)

        assert exc_info.value.key is Level5
        assert exc_info.value.max_depth == 4


class TestStrictMode:
    def test_unregistered_type_raises(self, strict_injector: Injector) -> None:
        with pytest.raises(ScopeWireMissingRegistrationError) as exc_info:
            strict_injector.get(Clock)

        assert exc_info.value.key is Clock
        assert exc_info.value.owner is None

    def test_registered_types_resolve(self, strict_injector: Injector) -> None:
        strict_injector.register(Clock).register(Repository)

        assert isinstance(strict_injector.get(Repository).clock, Clock)

    def test_get_optional_unregistered_returns_none(self, strict_injector: Injector) -> None:
        assert strict_injector.get_optional(Clock) is None


class TestRegistrationValidation:
    def test_non_class_registration_raises(self, injector: Injector) -> None:
        with pytest.raises(ScopeWireInvalidRegistrationError):
            injector.register(lambda: None)  # type: ignore[arg-type]

    def test_negative_slot_index_raises(self, injector: Injector) -> None:
        with pytest.raises(ScopeWireInvalidRegistrationError):
            injector.register_param_for_token_injection("clock", Repository, -1)

    def test_invalid_token_raises(self, injector: Injector) -> None:
        with pytest.raises(ScopeWireInvalidRegistrationError):
            injector.register(Clock, InjectionConfiguration(tokens=[42]))  # type: ignore[list-item]


class TestExternalResolution:
    def test_resolver_replaces_construction(self) -> None:
        calls: list[tuple[Any, Injector, Any]] = []

        def resolver(type_: Any, injector: Injector, locals_: Any) -> Any:
            calls.append((type_, injector, locals_))
            return object.__new__(type_)

        strategy = ExternalResolutionStrategy(resolver)
        injector = Injector(InjectorConfiguration(external_resolution_strategy=strategy))

        first = injector.get(Service)
        second = injector.get(Service)

        assert first is not second
        assert calls == [(Service, injector, None), (Service, injector, None)]
        assert injector.cache.instance_count == 0

    def test_cache_syncing_stores_results(self) -> None:
        strategy = ExternalResolutionStrategy(
            resolver=lambda type_, _injector, _locals: type_(),
            cache_syncing=True,
        )
        injector = Injector(InjectorConfiguration(external_resolution_strategy=strategy))

        assert injector.get(Clock) is injector.get(Clock)
        assert Clock in injector.cache

    def test_resolver_receives_explicit_params(self) -> None:
        received: list[Any] = []

        def resolver(type_: Any, _injector: Injector, locals_: Any) -> Any:
            received.append(locals_)
            return type_()

        strategy = ExternalResolutionStrategy(resolver)
        injector = Injector(InjectorConfiguration(external_resolution_strategy=strategy))
        injector.get(Clock, options=ConstructionOptions(params={0: "value"}))

        assert received == [{0: "value"}]


class TestIntrospection:
    def test_registered_types_in_registration_order(self, injector: Injector) -> None:
        injector.register(Repository).register(Clock)

        assert injector.get_registered_types() == [Repository, Clock]

    def test_registered_types_with_dependencies(self, injector: Injector) -> None:
        injector.register(Service).register(LoggingService)
        injector.register_param_for_token_injection("logger", LoggingService, 0)

        assert injector.get_registered_types_with_dependencies() == [
            RegisteredType(provide=Service, deps=[Repository, Clock]),
            RegisteredType(provide=LoggingService, deps=["logger"]),
        ]

    def test_root_flags(self, injector: Injector) -> None:
        assert injector.is_root()
        assert not injector.is_scoped()
        assert not injector.is_destroyed()
