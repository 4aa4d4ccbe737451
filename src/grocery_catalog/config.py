"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from grocery_catalog.errors import ConfigurationError


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # MongoDB
    mongodb_uri: str = Field(default="", description="MongoDB connection string (required)")
    db_name: str = Field(default="", description="Target database name (required)")
    collection_name: str = Field(
        default="",
        description="Collection the ingestion job writes to (required for ingestion)",
    )
    mongodb_app_name: str = "devrel.googlecloud.agent"
    mongodb_timeout_ms: int = 10_000

    # Embedding
    embedding_provider: str = Field(
        default="vertexai",
        description="Embedding backend: 'vertexai' or 'huggingface'",
    )
    embedding_model: str = Field(
        default="",
        description="Embedding model id; empty selects the provider's default",
    )

    # Ingestion
    source_file: str = "products.json"
    strict_validation: bool = False

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def require(self, *fields: str) -> tuple[str, ...]:
        """Return the values of *fields*, failing fast on any that are empty.

        Raises
        ------
        ConfigurationError
            Naming every missing field by its environment variable.
        """
        missing = [name.upper() for name in fields if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}. "
                "Set them in the environment or in a .env file."
            )
        return tuple(getattr(self, name) for name in fields)


# Singleton — import `settings` wherever needed.
settings = Settings()
