"""Shared pytest fixtures for servicelife tests."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from servicelife.app import build_container, create_app
from servicelife.container import Container
from servicelife.container_context import container_context
from servicelife.settings import AppSettings


@pytest.fixture()
def container() -> Container:
    """Empty container."""
    return Container()


@pytest.fixture()
def settings() -> AppSettings:
    """Settings isolated from the environment."""
    return AppSettings(app_name="Test lifetimes", debug=False)


@pytest.fixture()
def app_container(settings: AppSettings) -> Container:
    """Container with every application registration."""
    return build_container(settings)


@pytest.fixture()
def client(settings: AppSettings) -> Iterator[TestClient]:
    """Client for a freshly composed application."""
    app = create_app(settings)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def _reset_container_context() -> Iterator[None]:
    yield
    container_context.reset()
