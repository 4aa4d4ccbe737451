"""Domain models for the documents stored in the catalog database.

Carts and orders embed full :class:`Product` copies rather than
referencing product ids, so a product edited later does not change
historical carts or orders.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from bson import ObjectId
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ModelWrapValidatorHandler,
    PrivateAttr,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    StrictStr,
    model_serializer,
    model_validator,
)

# Ids travel as strings inside the models.  An id that arrived as an
# ObjectId goes back out as one; any other id is written unchanged.
PyObjectId = Annotated[str, BeforeValidator(str)]


class StoredModel(BaseModel):
    """Base for every persisted entity.

    Attributes
    ----------
    id:
        Store-assigned identifier (``_id``).  ``None`` until inserted, in
        which case it is left out of the document so MongoDB assigns one.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: PyObjectId | None = Field(default=None, alias="_id")

    _object_id: bool = PrivateAttr(default=False)

    @model_validator(mode="wrap")
    @classmethod
    def _remember_id_type(
        cls, data: Any, handler: ModelWrapValidatorHandler[StoredModel]
    ) -> StoredModel:
        if isinstance(data, StoredModel):
            return handler(data)
        raw_id = data.get("_id", data.get("id")) if isinstance(data, dict) else None
        model = handler(data)
        model._object_id = isinstance(raw_id, ObjectId)
        return model

    @model_serializer(mode="wrap")
    def _serialize_id(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> dict[str, Any]:
        data = handler(self)
        for_bson = bool(info.context and info.context.get("bson"))
        for key in ("_id", "id"):
            if key not in data:
                continue
            if data[key] is None:
                del data[key]
            elif for_bson and self._object_id:
                data[key] = ObjectId(data[key])
        return data

    def to_document(self) -> dict[str, Any]:
        """Return the BSON-ready document for this model.

        Nested models are converted the same way, so embedded product
        copies keep the id type they were read with.
        """
        return self.model_dump(by_alias=True, context={"bson": True})


class Product(StoredModel):
    """A catalog entry.

    Text fields are ``None`` when the source record lacked them; lenient
    ingestion stores such records as-is.
    """

    name: str | None = None
    description: str | None = None
    category: str | None = None


class ProductWithEmbedding(Product):
    """A catalog entry enriched with its embedding vector.

    The vector length is whatever the embedding model produces; it is not
    checked against the vector index.
    """

    embedding: list[float] = Field(default_factory=list)


class Cart(StoredModel):
    """A user's shopping cart."""

    user_id: str = Field(alias="userId")
    items: list[Product] = Field(default_factory=list)


class Order(StoredModel):
    """A placed order."""

    user_id: str = Field(alias="userId")
    items: list[Product] = Field(default_factory=list)
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ProductRecord(BaseModel):
    """Schema of one entry in the source file, used by strict validation.

    Unknown keys are ignored.  In the default lenient mode entries are not
    validated against this model at all.
    """

    model_config = ConfigDict(extra="ignore")

    name: StrictStr
    description: StrictStr
    category: StrictStr
