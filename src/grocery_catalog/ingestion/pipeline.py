"""Product ingestion — embed every catalog record and insert it into MongoDB.

The job is a single linear pass over the source file:

    load → (validate) → for each record: build text → embed → insert

Records are handled one at a time, in file order, with one embedding
request per record.  The first error aborts the run; records already
inserted stay inserted.  Documents are always inserted, never upserted,
so running the job twice on the same file stores every product twice.

Run
---
    grocery-ingest products.json
    python -m grocery_catalog.ingestion.pipeline products.json --strict
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from grocery_catalog.config import settings
from grocery_catalog.database.collections import WRITE_ERRORS
from grocery_catalog.database.connection import open_client
from grocery_catalog.errors import CatalogError, EmbeddingServiceError, InsertionError
from grocery_catalog.ingestion.embedder import embed_text, get_embedding_function
from grocery_catalog.ingestion.loader import load_products, validate_products

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings
    from pymongo.collection import Collection

logger = logging.getLogger(__name__)


@dataclass
class IngestionReport:
    """Outcome of a run that did not raise.

    Attributes
    ----------
    source:
        Path of the source file.
    total:
        Number of records in the source file.
    inserted:
        Number of documents inserted.
    inserted_ids:
        ``_id`` of each inserted document, in file order.
    cancelled:
        ``True`` when the run stopped early on a cancellation request.
    """

    source: str
    total: int
    inserted: int = 0
    inserted_ids: list[Any] = field(default_factory=list)
    cancelled: bool = False


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def build_embedding_text(record: Mapping[str, Any]) -> str:
    """Return the text embedded for *record*: ``"{name}. {category}. {description}"``.

    The format is fixed; changing it changes every vector and breaks
    similarity against documents already in the index.
    """
    return (
        f"{_as_text(record.get('name'))}. "
        f"{_as_text(record.get('category'))}. "
        f"{_as_text(record.get('description'))}"
    )


def build_document(record: Mapping[str, Any], embedding: list[float]) -> dict[str, Any]:
    """Return the document stored for *record*: its source fields plus ``embedding``."""
    return {
        "name": record.get("name"),
        "description": record.get("description"),
        "category": record.get("category"),
        "embedding": embedding,
    }


def vectorize_and_store(
    records: Sequence[Mapping[str, Any]],
    collection: Collection,
    embeddings: Embeddings,
    *,
    report: IngestionReport,
    cancel_event: threading.Event | None = None,
) -> IngestionReport:
    """Embed and insert *records* one by one, updating *report* as it goes.

    Raises
    ------
    EmbeddingServiceError
        When the embedding request for a record fails.
    InsertionError
        When MongoDB rejects a document.
    """
    total = len(records)
    for index, record in enumerate(records):
        if cancel_event is not None and cancel_event.is_set():
            logger.warning("Cancelled after %d of %d products", report.inserted, total)
            report.cancelled = True
            break

        name = record.get("name")
        logger.info("Processing: %s", name)

        try:
            embedding = embed_text(embeddings, build_embedding_text(record))
        except EmbeddingServiceError as exc:
            raise EmbeddingServiceError(
                f"Embedding failed for product {index + 1} of {total} ({name!r})",
                exc.original_error or exc,
                record_index=index,
                product_name=name,
            ) from exc

        try:
            result = collection.insert_one(build_document(record, embedding))
        except WRITE_ERRORS as exc:
            raise InsertionError(
                f"Insert failed for product {index + 1} of {total} ({name!r})",
                exc,
                record_index=index,
            ) from exc

        report.inserted += 1
        report.inserted_ids.append(result.inserted_id)
    return report


def run(
    source_path: str | Path | None = None,
    *,
    collection: Collection | None = None,
    collection_name: str | None = None,
    embeddings: Embeddings | None = None,
    cancel_event: threading.Event | None = None,
    strict: bool | None = None,
) -> IngestionReport:
    """Load *source_path*, embed every product and insert it.

    Parameters
    ----------
    source_path:
        JSON file holding an array of products.  Defaults to ``SOURCE_FILE``.
    collection:
        Target collection.  When omitted, a dedicated client is opened
        from ``MONGODB_URI`` / ``DB_NAME`` and the collection named by
        *collection_name* (default ``COLLECTION_NAME``) is used; that
        client is closed before this function returns or raises.
    embeddings:
        Embedding model.  Defaults to :func:`get_embedding_function`.
    cancel_event:
        When set, the run stops before the next record.
    strict:
        Validate every record before embedding anything.  Defaults to
        ``STRICT_VALIDATION``.

    Raises
    ------
    CatalogError
        Any failure; see :mod:`grocery_catalog.errors`.  Nothing is retried.
    """
    source = Path(source_path or settings.source_file)
    strict = settings.strict_validation if strict is None else strict

    if collection is None:
        uri, db_name = settings.require("mongodb_uri", "db_name")
        collection_name = collection_name or settings.require("collection_name")[0]

    client = None
    try:
        records = load_products(source)
        if strict:
            validate_products(records)
        logger.info("Loaded %d products from %s", len(records), source)

        if embeddings is None:
            embeddings = get_embedding_function()
        if collection is None:
            client = open_client(uri)
            collection = client[db_name][collection_name]

        report = IngestionReport(source=str(source), total=len(records))
        try:
            vectorize_and_store(
                records, collection, embeddings, report=report, cancel_event=cancel_event
            )
        except CatalogError:
            logger.error(
                "Stopped after inserting %d of %d products", report.inserted, report.total
            )
            raise
    finally:
        if client is not None:
            client.close()

    if not report.cancelled:
        logger.info(
            "✅ All %d products vectorized and stored in %r", report.inserted, collection.name
        )
    return report


# ──────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for ``grocery-ingest``.  Returns the process exit code."""
    parser = argparse.ArgumentParser(description="Embed products and store them in MongoDB")
    parser.add_argument(
        "source",
        nargs="?",
        default=None,
        help=f"JSON file with an array of products (default: {settings.source_file})",
    )
    parser.add_argument(
        "--collection",
        default=None,
        help="Target collection (default: COLLECTION_NAME)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Reject the whole file if any product lacks name/description/category",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cancel_event = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: cancel_event.set())

    try:
        run(
            args.source,
            collection_name=args.collection,
            cancel_event=cancel_event,
            strict=args.strict,
        )
    except CatalogError as exc:
        logger.error("❌ Error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
