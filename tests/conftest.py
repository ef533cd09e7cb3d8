"""Shared pytest fixtures for lazywire tests."""

import pytest

from lazywire import Container, Lifetime


@pytest.fixture()
def container() -> Container:
    """Default container with auto-registration enabled."""
    return Container()


@pytest.fixture()
def container_no_autoregister() -> Container:
    """Container that only resolves explicit registrations."""
    return Container(autoregister_concrete_types=False)


@pytest.fixture()
def container_singleton() -> Container:
    """Container with lifetime singleton as default."""
    return Container(Lifetime.SINGLETON)
