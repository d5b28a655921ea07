"""Shared pytest fixtures for katana tests."""

import pytest

from katana.injector import Injector
from katana.lifecycle import Lifecycle
from katana.providers import ProviderDependenciesExtractor, ProviderReturnTypeExtractor


@pytest.fixture()
def injector() -> Injector:
    """Empty injector with the default NEW lifecycle."""
    return Injector()


@pytest.fixture()
def injector_singleton() -> Injector:
    """Empty injector registering singletons unless told otherwise."""
    return Injector(default_lifecycle=Lifecycle.SINGLETON)


@pytest.fixture()
def dependencies_extractor() -> ProviderDependenciesExtractor:
    """ProviderDependenciesExtractor instance."""
    return ProviderDependenciesExtractor()


@pytest.fixture()
def return_type_extractor() -> ProviderReturnTypeExtractor:
    """ProviderReturnTypeExtractor instance."""
    return ProviderReturnTypeExtractor()
