"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

from typing import Generator

import pytest

from tagproxy.core.registry import set_gateway
from tagproxy.core.upstream_transport import clear_upstream_transports
from tagproxy.database import create_database, reset_database_instance
from tagproxy.credentials import CredentialStore
from tagproxy.testing import FakeUpstream, ProxyHarness
from tagproxy.testing.proxy_harness import IN_MEMORY_DATABASE


@pytest.fixture(autouse=True)
def _clear_transports() -> Generator[None, None, None]:
    """Drop fake upstream transports registered by a test."""
    yield
    clear_upstream_transports()


@pytest.fixture(autouse=True)
def _reset_globals() -> Generator[None, None, None]:
    """Forget the process-wide gateway and database after each test."""
    yield
    set_gateway(None)
    reset_database_instance()


@pytest.fixture
def store() -> Generator[CredentialStore, None, None]:
    """Credential store backed by an in-memory SQLite database."""
    database = create_database(dict(IN_MEMORY_DATABASE))
    yield CredentialStore(database)
    database.close()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def harness(upstream: FakeUpstream) -> Generator[ProxyHarness, None, None]:
    """Proxy app wired to the fake upstream, with one usable credential."""
    with ProxyHarness(upstream=upstream) as proxy:
        proxy.add_credential("tok-primary", name="primary")
        yield proxy
