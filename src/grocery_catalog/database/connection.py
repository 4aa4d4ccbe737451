"""MongoDB connection provider.

:func:`connect_to_database` opens one client, selects the configured
database and returns a :class:`DatabaseConnection` carrying typed handles
to the ``groceries``, ``carts`` and ``orders`` collections.

The connection is cached for the process.  Calling
:func:`connect_to_database` again with the same target returns the cached
connection; asking for a different target closes the cached one first.
Nothing here is thread-safe; connect once at startup and close the
connection (or call :func:`close_database`) at shutdown.

Usage::

    from grocery_catalog.database import connect_to_database

    with connect_to_database() as conn:
        for product in conn.collections.groceries.find({"category": "Dairy"}):
            print(product.name)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.errors import PyMongoError

from grocery_catalog.config import settings
from grocery_catalog.database.collections import TypedCollection
from grocery_catalog.database.models import Cart, Order, ProductWithEmbedding
from grocery_catalog.errors import ConfigurationError, DatabaseConnectionError

logger = logging.getLogger(__name__)

GROCERIES_COLLECTION = "groceries"
CARTS_COLLECTION = "carts"
ORDERS_COLLECTION = "orders"


def open_client(
    uri: str,
    *,
    app_name: str | None = None,
    timeout_ms: int | None = None,
) -> MongoClient:
    """Create a :class:`MongoClient` and verify the server answers a ping.

    Raises
    ------
    ConfigurationError
        If *uri* is not a valid MongoDB connection string.
    DatabaseConnectionError
        If the server is unreachable or rejects the credentials.  The
        client is closed before raising.
    """
    try:
        client: MongoClient = MongoClient(
            uri,
            appname=app_name or settings.mongodb_app_name,
            serverSelectionTimeoutMS=timeout_ms or settings.mongodb_timeout_ms,
        )
    except PyMongoConfigurationError as exc:
        raise ConfigurationError("Invalid MONGODB_URI", exc) from exc

    try:
        client.admin.command("ping")
    except PyMongoError as exc:
        client.close()
        raise DatabaseConnectionError("Could not connect to MongoDB", exc) from exc
    return client


@dataclass(frozen=True)
class Collections:
    """The three typed collection handles, all in the same database."""

    groceries: TypedCollection[ProductWithEmbedding]
    carts: TypedCollection[Cart]
    orders: TypedCollection[Order]


class DatabaseConnection:
    """A live client plus the typed collection handles built on it.

    Parameters
    ----------
    client:
        Connected :class:`MongoClient`.  Owned by this object; released by
        :meth:`close`.
    db_name:
        Name of the database the collections live in.
    uri:
        Connection string the client was built from, used to tell whether
        a later :func:`connect_to_database` call targets the same store.
    """

    def __init__(self, client: MongoClient, db_name: str, *, uri: str) -> None:
        self.client = client
        self.database: Database = client[db_name]
        self.collections = Collections(
            groceries=TypedCollection(self.database[GROCERIES_COLLECTION], ProductWithEmbedding),
            carts=TypedCollection(self.database[CARTS_COLLECTION], Cart),
            orders=TypedCollection(self.database[ORDERS_COLLECTION], Order),
        )
        self._target = (uri, db_name)
        self._closed = False

    @property
    def db_name(self) -> str:
        return self.database.name

    @property
    def closed(self) -> bool:
        return self._closed

    def targets(self, uri: str, db_name: str) -> bool:
        """Return ``True`` when this connection was opened for *uri* / *db_name*."""
        return self._target == (uri, db_name)

    def health_check(self) -> bool:
        """Return ``True`` when the server answers a ping."""
        try:
            self.client.admin.command("ping")
            return True
        except PyMongoError:
            logger.warning("MongoDB health-check failed", exc_info=True)
            return False

    def close(self) -> None:
        """Release the client.  Safe to call more than once."""
        global _connection

        if self._closed:
            return
        self.client.close()
        self._closed = True
        if _connection is self:
            _connection = None
        logger.info("MongoDB connection to %r closed", self.db_name)

    def __enter__(self) -> DatabaseConnection:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


# Process-wide cache; see module docstring.
_connection: DatabaseConnection | None = None


def connect_to_database(uri: str | None = None, db_name: str | None = None) -> DatabaseConnection:
    """Connect to MongoDB and return typed handles to the catalog collections.

    Parameters
    ----------
    uri:
        Connection string.  Defaults to ``MONGODB_URI``.
    db_name:
        Database to select.  Defaults to ``DB_NAME``.

    Returns
    -------
    DatabaseConnection
        The cached connection when one is already open for the same
        target, otherwise a new one (which becomes the cached one).

    Raises
    ------
    ConfigurationError
        If the connection string or database name is missing.
    DatabaseConnectionError
        If the server cannot be reached.  Not retried.
    """
    global _connection

    uri = uri or settings.mongodb_uri
    db_name = db_name or settings.db_name
    missing = [name for name, value in (("MONGODB_URI", uri), ("DB_NAME", db_name)) if not value]
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

    if _connection is not None and not _connection.closed:
        if _connection.targets(uri, db_name):
            logger.debug("Reusing open MongoDB connection to %r", db_name)
            return _connection
        logger.warning(
            "Closing MongoDB connection to %r before connecting to %r",
            _connection.db_name,
            db_name,
        )
        _connection.close()

    client = open_client(uri)
    _connection = DatabaseConnection(client, db_name, uri=uri)
    logger.info("Connected to MongoDB database %r", db_name)
    return _connection


def get_collections() -> Collections:
    """Return the collection handles of the cached connection.

    Raises
    ------
    DatabaseConnectionError
        If :func:`connect_to_database` has not been called (or the
        connection was closed).
    """
    if _connection is None or _connection.closed:
        raise DatabaseConnectionError("Not connected; call connect_to_database() first")
    return _connection.collections


def close_database() -> None:
    """Close the cached connection, if any."""
    if _connection is not None:
        _connection.close()
