from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from scopewire.configuration import ConstructionOptions

if TYPE_CHECKING:
    from scopewire.injector import Injector

T = TypeVar("T")

_UNSET: Any = object()


class AutoFactory(Generic[T]):
    """Build new instances of a type on demand.

    Every ``create`` call constructs a fresh instance that is not cached.
    Positional arguments fill constructor slots by index and keyword arguments
    fill them by parameter name; remaining slots are resolved by the injector
    that produced the factory.

    Examples:
        .. code-block:: python

            class Report:
                def __init__(self, clock: Clock, title: str) -> None: ...


            factory = injector.get_factory(Report)
            report = factory.create(title="Weekly")

    """

    def __init__(self, injector: Injector, target: type[T]) -> None:
        self.injector = injector
        self.target = target

    def create(self, *args: Any, **kwargs: Any) -> T:
        slots = self.injector.parameter_inspector.get_slots(self.target)
        if len(args) > len(slots):
            msg = (
                f"{self.target.__qualname__} takes {len(slots)} constructor arguments, "
                f"{len(args)} given."
            )
            raise TypeError(msg)

        params: dict[int, Any] = dict(enumerate(args))
        indexes = {slot.name: slot.index for slot in slots}
        for name, value in kwargs.items():
            if name not in indexes:
                msg = f"{self.target.__qualname__} has no constructor parameter named {name!r}."
                raise TypeError(msg)
            params[indexes[name]] = value

        options = ConstructionOptions(params=params, fresh=True)
        return self.injector.get(self.target, options=options)

    def __call__(self, *args: Any, **kwargs: Any) -> T:
        return self.create(*args, **kwargs)

    def __repr__(self) -> str:
        return f"AutoFactory({self.target.__qualname__})"


class LazyInstance(Generic[T]):
    """Resolve a type on first access to ``value`` and keep the result."""

    def __init__(self, injector: Injector, target: type[T]) -> None:
        self.injector = injector
        self.target = target
        self._value: Any = _UNSET

    @property
    def value(self) -> T:
        if self._value is _UNSET:
            self._value = self.injector.get(self.target)
        return self._value

    @property
    def has_value(self) -> bool:
        return self._value is not _UNSET

    def __repr__(self) -> str:
        state = "resolved" if self.has_value else "pending"
        return f"LazyInstance({self.target.__qualname__}, {state})"
