"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from grocery_catalog.config import settings
from grocery_catalog.database import connection


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


@pytest.fixture(autouse=True)
def _reset_connection_cache() -> Iterator[None]:
    """Start and end every test without a cached database connection."""
    connection._connection = None
    yield
    connection._connection = None


@pytest.fixture()
def mongo_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Populate the MongoDB settings with harmless test values."""
    monkeypatch.setattr(settings, "mongodb_uri", "mongodb://localhost:27017")
    monkeypatch.setattr(settings, "db_name", "grocery_test")
    monkeypatch.setattr(settings, "collection_name", "groceries")


@pytest.fixture()
def empty_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear every required setting."""
    monkeypatch.setattr(settings, "mongodb_uri", "")
    monkeypatch.setattr(settings, "db_name", "")
    monkeypatch.setattr(settings, "collection_name", "")
