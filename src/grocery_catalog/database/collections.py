"""Typed handles over pymongo collections."""

from __future__ import annotations

import logging
from typing import Any, Generic, Mapping, TypeVar

from bson import ObjectId
from bson.errors import BSONError
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from grocery_catalog.database.models import StoredModel
from grocery_catalog.errors import InsertionError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=StoredModel)

# Raised by insert_one: server and driver errors, plus client-side BSON
# encoding failures (unencodable values, integers wider than 64 bits).
WRITE_ERRORS = (PyMongoError, BSONError, OverflowError)


class TypedCollection(Generic[ModelT]):
    """A pymongo collection that reads and writes one model type.

    Parameters
    ----------
    collection:
        The underlying pymongo collection.
    model:
        Model class documents are validated into on read.
    """

    def __init__(self, collection: Collection, model: type[ModelT]) -> None:
        self._collection = collection
        self._model = model

    @property
    def name(self) -> str:
        return self._collection.name

    @property
    def model(self) -> type[ModelT]:
        return self._model

    @property
    def raw(self) -> Collection:
        """The wrapped pymongo collection, for queries this class doesn't cover."""
        return self._collection

    # -- writes ---------------------------------------------------------------

    def insert_one(self, item: ModelT) -> ObjectId:
        """Insert *item* as a new document and return its ``_id``.

        Always a plain insert; inserting the same item twice stores two
        documents.
        """
        try:
            result = self._collection.insert_one(item.to_document())
        except WRITE_ERRORS as exc:
            raise InsertionError(f"Insert into {self.name!r} failed", exc) from exc
        logger.debug("Inserted %s into %s", result.inserted_id, self.name)
        return result.inserted_id

    # -- reads ----------------------------------------------------------------

    def find(self, filter: Mapping[str, Any] | None = None, *, limit: int = 0) -> list[ModelT]:
        """Return every document matching *filter* (``limit=0`` means no limit)."""
        cursor = self._collection.find(dict(filter or {}), limit=limit)
        return [self._model.model_validate(doc) for doc in cursor]

    def find_one(self, filter: Mapping[str, Any] | None = None) -> ModelT | None:
        doc = self._collection.find_one(dict(filter or {}))
        return self._model.model_validate(doc) if doc is not None else None

    def count(self, filter: Mapping[str, Any] | None = None) -> int:
        return self._collection.count_documents(dict(filter or {}))

    def __repr__(self) -> str:
        return f"{type(self).__name__}[{self._model.__name__}]({self.name!r})"
