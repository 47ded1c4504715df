from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from scopewire.injector import Injector

DEFAULT_MAX_TREE_DEPTH = 128
"""Default resolution depth guard. Kept well below the interpreter recursion limit."""

ExternalResolver = Callable[[Any, "Injector", Any], Any]
"""``resolver(type, injector, locals)`` returning an instance."""


@dataclass(frozen=True)
class ExternalResolutionStrategy:
    """Replace default construction with a user supplied resolver.

    Args:
        resolver: Called as ``resolver(type, injector, locals)`` where
            ``locals`` are the explicit construction parameters, if any.
        cache_syncing: Store resolver results in the injector's instance cache
            and serve later requests from it. Disabled by default.

    """

    resolver: ExternalResolver
    cache_syncing: bool = False


@dataclass
class InjectorConfiguration:
    """Configure the resolution engine of an injector tree.

    Child scopes share their parent's configuration object, so a change made
    on the root is visible to every scope.

    Args:
        max_tree_depth: Resolution fails once the ancestry of the type being
            built reaches this length.
        allow_duplicate_tokens: Allow several types to be registered under one
            token. When ``False`` a second owner raises
            ``ScopeWireDuplicateTokenError``.
        track_metrics: Record per-type resolution metrics.
        external_resolution_strategy: Optional resolver that replaces default
            construction.
        auto_register: Construct unregistered concrete classes on demand. Set
            to ``False`` for strict mode where every type must be registered.

    Examples:
        .. code-block:: python

            injector = Injector(InjectorConfiguration(track_metrics=True))

            strict_injector = Injector(
                InjectorConfiguration(
                    allow_duplicate_tokens=False,
                    auto_register=False,
                ),
            )

    """

    max_tree_depth: int = DEFAULT_MAX_TREE_DEPTH
    allow_duplicate_tokens: bool = True
    track_metrics: bool = False
    external_resolution_strategy: ExternalResolutionStrategy | None = None
    auto_register: bool = True


@dataclass(frozen=True)
class ConstructionOptions:
    """Per-call construction options.

    Args:
        params: Explicit argument values keyed by constructor slot index. An
            explicit value wins over every binding for that slot.
        fresh: Skip the instance cache for both lookup and storage.

    """

    params: Mapping[int, Any] = field(default_factory=dict)
    fresh: bool = False
