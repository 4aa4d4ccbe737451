"""
Database — MongoDB connection provider and typed collection handles.

Public surface
--------------
- :func:`connect_to_database` — open (or reuse) the process connection.
- :class:`DatabaseConnection` — client plus :class:`Collections`.
- :class:`TypedCollection` — model-aware wrapper around a pymongo collection.
- :class:`Product`, :class:`ProductWithEmbedding`, :class:`Cart`,
  :class:`Order` — document models.
"""

from grocery_catalog.database.collections import TypedCollection
from grocery_catalog.database.connection import (
    CARTS_COLLECTION,
    GROCERIES_COLLECTION,
    ORDERS_COLLECTION,
    Collections,
    DatabaseConnection,
    close_database,
    connect_to_database,
    get_collections,
    open_client,
)
from grocery_catalog.database.models import (
    Cart,
    Order,
    Product,
    ProductRecord,
    ProductWithEmbedding,
)

__all__ = [
    "CARTS_COLLECTION",
    "GROCERIES_COLLECTION",
    "ORDERS_COLLECTION",
    "Cart",
    "Collections",
    "DatabaseConnection",
    "Order",
    "Product",
    "ProductRecord",
    "ProductWithEmbedding",
    "TypedCollection",
    "close_database",
    "connect_to_database",
    "get_collections",
    "open_client",
]
