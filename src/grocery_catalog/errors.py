"""Error hierarchy for the catalog connection layer and ingestion job.

Every failure the package raises is a :class:`CatalogError`, so callers
(the CLI, application code) can catch one type and still inspect the
concrete kind.  The underlying library exception, when there is one, is
kept on ``original_error`` and chained with ``raise ... from``.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base exception for all catalog errors."""

    def __init__(self, message: str, original_error: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error is not None:
            return f"{self.message}: {self.original_error}"
        return self.message


class ConfigurationError(CatalogError):
    """Raised when required settings are missing or invalid."""


class DatabaseConnectionError(CatalogError):
    """Raised when the document store cannot be reached or authenticated."""


class InputError(CatalogError):
    """Raised when the source file is missing, unreadable, or malformed."""


class EmbeddingServiceError(CatalogError):
    """Raised when the embedding model fails for a record."""

    def __init__(
        self,
        message: str,
        original_error: BaseException | None = None,
        *,
        record_index: int | None = None,
        product_name: str | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.record_index = record_index
        self.product_name = product_name


class InsertionError(CatalogError):
    """Raised when the store rejects a write."""

    def __init__(
        self,
        message: str,
        original_error: BaseException | None = None,
        *,
        record_index: int | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.record_index = record_index
