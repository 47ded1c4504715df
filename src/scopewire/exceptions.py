from __future__ import annotations

from collections.abc import Sequence
from typing import Any


def _describe(key: Any) -> str:
    return getattr(key, "__qualname__", None) or repr(key)


class ScopeWireError(Exception):
    """Represent a base class for all ScopeWire-specific failures.

    Catch this type when you want to handle any ScopeWire error path without
    matching each concrete exception class individually.
    """


class ScopeWireInvalidRegistrationError(ScopeWireError):
    """Signal invalid registration arguments.

    Raised by ``Injector.register`` and the ``register_param_for_*`` methods
    when the registered object is not a class, a slot index is negative, or a
    token is neither a string nor a ``Token``.
    """


class ScopeWireInjectorDestroyedError(ScopeWireError):
    """Signal an operation on an injector that has already been destroyed."""

    def __init__(self, injector_id: str, name: str | None = None) -> None:
        self.injector_id = injector_id
        self.name = name
        label = f"'{name}' ({injector_id})" if name else f"'{injector_id}'"
        super().__init__(f"Injector {label} has been destroyed and cannot be used.")


class ScopeWireMaxDepthExceededError(ScopeWireError):
    """Signal that the resolution ancestry reached ``max_tree_depth``.

    Either the dependency chain is genuinely deeper than the configured limit
    or a cycle was not detected earlier.
    """

    def __init__(self, key: Any, ancestry: Sequence[Any], max_depth: int) -> None:
        self.key = key
        self.ancestry = list(ancestry)
        self.max_depth = max_depth
        super().__init__(
            f"Maximum resolution depth of {max_depth} exceeded while resolving "
            f"{_describe(key)}.",
        )


class ScopeWireCircularDependencyError(ScopeWireError):
    """Signal that a type requests its own construction, directly or transitively."""

    def __init__(self, key: Any, path: Sequence[Any]) -> None:
        self.key = key
        self.path = list(path)
        chain = " -> ".join(_describe(item) for item in self.path)
        super().__init__(f"Circular dependency detected: {chain}")


class ScopeWireNotRegisteredError(ScopeWireError):
    """Base class for lookups that found nothing to resolve.

    The optional binding kind and ``Injector.get_optional`` catch this type and
    substitute ``None``.
    """


class ScopeWireUnregisteredTokenError(ScopeWireNotRegisteredError):
    """Signal that no type is registered against a token."""

    def __init__(self, token: Any) -> None:
        self.token = token
        super().__init__(f"No type is registered for token {token!r}.")


class ScopeWireMissingRegistrationError(ScopeWireNotRegisteredError):
    """Signal that a required dependency cannot be satisfied.

    ``owner`` and ``index`` identify the constructor slot that failed when the
    error comes from argument resolution; both are ``None`` for a top-level
    request.
    """

    def __init__(
        self,
        key: Any,
        owner: Any | None = None,
        index: int | None = None,
        reason: str | None = None,
    ) -> None:
        self.key = key
        self.owner = owner
        self.index = index
        self.reason = reason
        msg = f"Cannot resolve {_describe(key)}"
        if owner is not None:
            msg += f" for parameter {index} of {_describe(owner)}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg + ".")


class ScopeWireDependencyExtractionError(ScopeWireError):
    """Signal that the constructor annotations of a type cannot be evaluated.

    Usually a forward reference names a type that does not exist in the
    module of the class, or an annotation is not a valid type expression.
    """

    def __init__(self, key: Any, error: Exception) -> None:
        self.key = key
        self.error = error
        super().__init__(
            f"Cannot read the constructor annotations of {_describe(key)}: {error}",
        )


class ScopeWireDuplicateTokenError(ScopeWireError):
    """Signal that a token is already owned by another type.

    Raised only when the injector configuration sets
    ``allow_duplicate_tokens=False``.
    """

    def __init__(self, token: Any, existing: Any, new: Any) -> None:
        self.token = token
        self.existing = existing
        self.new = new
        super().__init__(
            f"Token {token!r} is already registered for {_describe(existing)}; "
            f"cannot register it for {_describe(new)}.",
        )


class ScopeWireInjectorNotSetError(ScopeWireError):
    """Signal use of ``injector_context`` before it has been initialized.

    Typical fix is calling ``injector_context.initialize()`` during application
    startup before resolution calls.
    """
