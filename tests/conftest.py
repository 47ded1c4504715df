"""Shared pytest fixtures for scopewire tests."""

import pytest

from scopewire.configuration import InjectorConfiguration
from scopewire.injector import Injector
from scopewire.parameters import ParameterInspector
from scopewire.token_cache import TokenCache


@pytest.fixture()
def injector() -> Injector:
    """Default root injector with auto-registration enabled."""
    return Injector()


@pytest.fixture()
def strict_injector() -> Injector:
    """Root injector that only resolves registered types."""
    return Injector(InjectorConfiguration(auto_register=False))


@pytest.fixture()
def metrics_injector() -> Injector:
    """Root injector with metrics tracking enabled."""
    return Injector(InjectorConfiguration(track_metrics=True))


@pytest.fixture()
def token_cache() -> TokenCache:
    return TokenCache()


@pytest.fixture()
def parameter_inspector() -> ParameterInspector:
    return ParameterInspector()
