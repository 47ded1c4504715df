from __future__ import annotations

from collections.abc import Iterator

import pytest

from scopewire.configuration import InjectorConfiguration
from scopewire.injector import Injector
from scopewire.injector_context import InjectorContext, injector_context


@pytest.fixture()
def scopewire_configuration() -> InjectorConfiguration:
    """Configuration used by ``scopewire_injector``.

    Override this fixture in a test suite to change depth limits, token policy
    or metrics tracking for every test that uses the plugin injector.

    Returns:
        A default ``InjectorConfiguration``.

    """
    return InjectorConfiguration()


@pytest.fixture()
def scopewire_injector(scopewire_configuration: InjectorConfiguration) -> Iterator[Injector]:
    """Provide a fresh root injector and destroy it after the test.

    The fixture is function-scoped, so registrations and cached instances are
    isolated between tests.

    Yields:
        A new root ``Injector``.

    """
    injector = Injector(scopewire_configuration)
    yield injector
    if not injector.is_destroyed():
        injector.destroy()


@pytest.fixture()
def scopewire_context(scopewire_injector: Injector) -> Iterator[InjectorContext]:
    """Bind ``scopewire_injector`` to the process-wide ``injector_context``.

    The context is reset at teardown so recorded registrations do not leak
    into other tests.

    Yields:
        The global ``injector_context``.

    """
    injector_context.reset()
    injector_context.set_current(scopewire_injector)
    yield injector_context
    injector_context.reset()
