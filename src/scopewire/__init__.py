from scopewire.configuration import (
    ConstructionOptions,
    ExternalResolutionStrategy,
    InjectorConfiguration,
)
from scopewire.exceptions import (
    ScopeWireCircularDependencyError,
    ScopeWireDependencyExtractionError,
    ScopeWireDuplicateTokenError,
    ScopeWireError,
    ScopeWireInjectorDestroyedError,
    ScopeWireInjectorNotSetError,
    ScopeWireInvalidRegistrationError,
    ScopeWireMaxDepthExceededError,
    ScopeWireMissingRegistrationError,
    ScopeWireNotRegisteredError,
    ScopeWireUnregisteredTokenError,
)
from scopewire.handles import AutoFactory, LazyInstance
from scopewire.injector import Injector, RegisteredType
from scopewire.injector_context import InjectorContext, injector_context
from scopewire.metrics import MetricRecord
from scopewire.registrations import InjectionConfiguration
from scopewire.tokens import BindingKind, InjectionType, Token

__all__ = [
    "AutoFactory",
    "BindingKind",
    "ConstructionOptions",
    "ExternalResolutionStrategy",
    "InjectionConfiguration",
    "InjectionType",
    "Injector",
    "InjectorConfiguration",
    "InjectorContext",
    "LazyInstance",
    "MetricRecord",
    "RegisteredType",
    "ScopeWireCircularDependencyError",
    "ScopeWireDependencyExtractionError",
    "ScopeWireDuplicateTokenError",
    "ScopeWireError",
    "ScopeWireInjectorDestroyedError",
    "ScopeWireInjectorNotSetError",
    "ScopeWireInvalidRegistrationError",
    "ScopeWireMaxDepthExceededError",
    "ScopeWireMissingRegistrationError",
    "ScopeWireNotRegisteredError",
    "ScopeWireUnregisteredTokenError",
    "Token",
    "injector_context",
]
