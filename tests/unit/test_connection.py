"""Unit tests for the MongoDB connection provider.

``MongoClient`` is replaced with a MagicMock whose databases and
collections are keyed by name, so no server is needed.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import InvalidURI, OperationFailure, ServerSelectionTimeoutError

from grocery_catalog.database import connection
from grocery_catalog.database.connection import (
    CARTS_COLLECTION,
    GROCERIES_COLLECTION,
    ORDERS_COLLECTION,
    DatabaseConnection,
    close_database,
    connect_to_database,
    get_collections,
    open_client,
)
from grocery_catalog.database.models import Cart, Order, ProductWithEmbedding
from grocery_catalog.errors import ConfigurationError, DatabaseConnectionError

_MONGO_CLIENT = "grocery_catalog.database.connection.MongoClient"


# ── Helpers ────────────────────────────────────────────────────────────


def _named(name: str) -> MagicMock:
    mock = MagicMock()
    mock.name = name
    return mock


def _make_client() -> MagicMock:
    """A fake client where ``client[db][coll]`` returns stable, named mocks."""
    client = MagicMock()
    databases: dict[str, MagicMock] = {}

    def get_database(db_name: str) -> MagicMock:
        if db_name not in databases:
            db = _named(db_name)
            collections: dict[str, MagicMock] = {}
            db.__getitem__.side_effect = lambda c: collections.setdefault(c, _named(c))
            databases[db_name] = db
        return databases[db_name]

    client.__getitem__.side_effect = get_database
    return client


# ── open_client ────────────────────────────────────────────────────────


class TestOpenClient:
    def test_pings_server(self) -> None:
        client = _make_client()
        with patch(_MONGO_CLIENT, return_value=client) as mongo_cls:
            assert open_client("mongodb://localhost", app_name="app", timeout_ms=50) is client
        mongo_cls.assert_called_once_with(
            "mongodb://localhost", appname="app", serverSelectionTimeoutMS=50
        )
        client.admin.command.assert_called_once_with("ping")

    def test_unreachable_server_raises_and_closes(self) -> None:
        client = _make_client()
        client.admin.command.side_effect = ServerSelectionTimeoutError("timed out")
        with patch(_MONGO_CLIENT, return_value=client):
            with pytest.raises(DatabaseConnectionError, match="timed out"):
                open_client("mongodb://localhost")
        client.close.assert_called_once()

    def test_auth_failure_raises_connection_error(self) -> None:
        client = _make_client()
        client.admin.command.side_effect = OperationFailure("Authentication failed")
        with patch(_MONGO_CLIENT, return_value=client):
            with pytest.raises(DatabaseConnectionError):
                open_client("mongodb://localhost")

    def test_invalid_uri_is_a_configuration_error(self) -> None:
        with patch(_MONGO_CLIENT, side_effect=InvalidURI("bad scheme")):
            with pytest.raises(ConfigurationError, match="MONGODB_URI"):
                open_client("http://not-mongo")


# ── connect_to_database ────────────────────────────────────────────────


class TestConnectToDatabase:
    def test_returns_three_named_typed_handles(self) -> None:
        with patch(_MONGO_CLIENT, return_value=_make_client()):
            conn = connect_to_database("mongodb://localhost", "grocery")

        cols = conn.collections
        assert (cols.groceries.name, cols.carts.name, cols.orders.name) == (
            GROCERIES_COLLECTION,
            CARTS_COLLECTION,
            ORDERS_COLLECTION,
        )
        assert len({id(cols.groceries.raw), id(cols.carts.raw), id(cols.orders.raw)}) == 3
        assert cols.groceries.model is ProductWithEmbedding
        assert cols.carts.model is Cart
        assert cols.orders.model is Order
        assert conn.db_name == "grocery"

    def test_all_handles_share_one_database(self) -> None:
        client = _make_client()
        with patch(_MONGO_CLIENT, return_value=client):
            conn = connect_to_database("mongodb://localhost", "grocery")
        db = client["grocery"]
        assert conn.collections.groceries.raw is db["groceries"]
        assert conn.collections.carts.raw is db["carts"]
        assert conn.collections.orders.raw is db["orders"]

    def test_defaults_come_from_settings(self, mongo_settings: None) -> None:
        with patch(_MONGO_CLIENT, return_value=_make_client()) as mongo_cls:
            conn = connect_to_database()
        assert mongo_cls.call_args.args[0] == "mongodb://localhost:27017"
        assert conn.db_name == "grocery_test"

    @pytest.mark.parametrize(
        ("uri", "db_name", "missing"),
        [("", "grocery", "MONGODB_URI"), ("mongodb://localhost", "", "DB_NAME")],
    )
    def test_missing_configuration_fails_before_connecting(
        self, empty_settings: None, uri: str, db_name: str, missing: str
    ) -> None:
        with patch(_MONGO_CLIENT) as mongo_cls:
            with pytest.raises(ConfigurationError, match=missing):
                connect_to_database(uri, db_name)
        mongo_cls.assert_not_called()

    def test_connection_error_propagates_without_caching(self) -> None:
        client = _make_client()
        client.admin.command.side_effect = ServerSelectionTimeoutError("down")
        with patch(_MONGO_CLIENT, return_value=client):
            with pytest.raises(DatabaseConnectionError):
                connect_to_database("mongodb://localhost", "grocery")
        assert connection._connection is None

    def test_second_call_reuses_cached_connection(self) -> None:
        with patch(_MONGO_CLIENT, return_value=_make_client()) as mongo_cls:
            first = connect_to_database("mongodb://localhost", "grocery")
            second = connect_to_database("mongodb://localhost", "grocery")
        assert first is second
        assert first.client is second.client
        mongo_cls.assert_called_once()

    def test_new_target_closes_previous_connection(self) -> None:
        old_client, new_client = _make_client(), _make_client()
        with patch(_MONGO_CLIENT, side_effect=[old_client, new_client]):
            first = connect_to_database("mongodb://localhost", "grocery")
            second = connect_to_database("mongodb://localhost", "grocery_staging")
        assert first is not second
        assert first.closed
        old_client.close.assert_called_once()
        assert second.db_name == "grocery_staging"

    def test_reconnects_after_close(self) -> None:
        with patch(_MONGO_CLIENT, side_effect=[_make_client(), _make_client()]) as mongo_cls:
            first = connect_to_database("mongodb://localhost", "grocery")
            first.close()
            second = connect_to_database("mongodb://localhost", "grocery")
        assert first is not second
        assert mongo_cls.call_count == 2


# ── cache helpers & lifecycle ──────────────────────────────────────────


class TestLifecycle:
    def test_get_collections_requires_connection(self) -> None:
        with pytest.raises(DatabaseConnectionError, match="connect_to_database"):
            get_collections()

    def test_get_collections_returns_cached_handles(self) -> None:
        with patch(_MONGO_CLIENT, return_value=_make_client()):
            conn = connect_to_database("mongodb://localhost", "grocery")
        assert get_collections() is conn.collections

    def test_close_database_clears_cache(self) -> None:
        client = _make_client()
        with patch(_MONGO_CLIENT, return_value=client):
            connect_to_database("mongodb://localhost", "grocery")
        close_database()
        client.close.assert_called_once()
        with pytest.raises(DatabaseConnectionError):
            get_collections()

    def test_close_database_without_connection_is_noop(self) -> None:
        close_database()

    def test_close_is_idempotent(self) -> None:
        client = _make_client()
        conn = DatabaseConnection(client, "grocery", uri="mongodb://localhost")
        conn.close()
        conn.close()
        client.close.assert_called_once()

    def test_context_manager_releases_client(self) -> None:
        client = _make_client()
        with patch(_MONGO_CLIENT, return_value=client):
            with connect_to_database("mongodb://localhost", "grocery") as conn:
                assert not conn.closed
        assert conn.closed
        client.close.assert_called_once()
        assert connection._connection is None

    def test_health_check(self) -> None:
        client = _make_client()
        conn = DatabaseConnection(client, "grocery", uri="mongodb://localhost")
        assert conn.health_check() is True
        client.admin.command.side_effect = ServerSelectionTimeoutError("down")
        assert conn.health_check() is False
