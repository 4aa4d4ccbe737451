"""Embedding model selection and single-text embedding requests.

Supports two providers:

1. **Vertex AI** (default) — ``text-embedding-005`` through
   ``langchain-google-vertexai``.  Credentials come from the usual
   Google application-default mechanism.
2. **HuggingFace** — a local sentence-transformer through
   ``langchain-huggingface``, useful for offline runs.  Vectors from the
   two providers are not interchangeable; a collection should only ever
   hold vectors from one model.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from grocery_catalog.config import settings
from grocery_catalog.errors import ConfigurationError, EmbeddingServiceError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "vertexai": "text-embedding-005",
    "huggingface": "sentence-transformers/all-MiniLM-L6-v2",
}


def get_embedding_function(provider: str | None = None, model: str | None = None) -> Embeddings:
    """Return the configured LangChain embedding model.

    Parameters
    ----------
    provider:
        ``"vertexai"`` or ``"huggingface"``.  Defaults to ``EMBEDDING_PROVIDER``.
    model:
        Model identifier.  Defaults to ``EMBEDDING_MODEL``, or the
        provider's default when that is empty.

    Raises
    ------
    ConfigurationError
        If *provider* is not supported.
    EmbeddingServiceError
        If the provider client cannot be created (missing package,
        missing Google credentials, model download failure).
    """
    provider = (provider or settings.embedding_provider).lower()
    if provider not in DEFAULT_MODELS:
        raise ConfigurationError(
            f"Unsupported EMBEDDING_PROVIDER={provider!r}; "
            f"expected one of {sorted(DEFAULT_MODELS)}"
        )
    model = model or settings.embedding_model or DEFAULT_MODELS[provider]
    logger.info("Using %s embeddings: %s", provider, model)

    try:
        if provider == "vertexai":
            from langchain_google_vertexai import VertexAIEmbeddings

            return VertexAIEmbeddings(model_name=model)

        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=model)
    except Exception as exc:
        raise EmbeddingServiceError(f"Could not initialise {provider} embeddings", exc) from exc


def embed_text(embeddings: Embeddings, text: str) -> list[float]:
    """Request exactly one embedding for *text*.

    Raises
    ------
    EmbeddingServiceError
        If the provider call fails or does not return exactly one vector.
    """
    try:
        vectors = embeddings.embed_documents([text])
    except Exception as exc:
        raise EmbeddingServiceError("Embedding request failed", exc) from exc

    if len(vectors) != 1:
        raise EmbeddingServiceError(f"Expected 1 embedding, got {len(vectors)}")
    return [float(x) for x in vectors[0]]
