"""Document store factory for creating different implementations.

Centralizes creation of concrete ``DocumentStore`` backends so callers don't
depend on implementation details. New stores can be added without changing
call sites.
"""

from enum import Enum
from typing import Any, Dict

import structlog

from .base import DocumentStore
from .memory import InMemoryDocumentStore
from .pgvector import PgVectorDocumentStore

logger = structlog.get_logger("vector_store.factory")


class DocumentStoreType(Enum):
    """Supported document store types."""
    PGVECTOR = "pgvector"
    MEMORY = "memory"


class DocumentStoreFactory:
    """Factory for creating document store instances."""

    @staticmethod
    def create(store_type: DocumentStoreType, config: Dict[str, Any]) -> DocumentStore:
        """Create a document store instance.

        Parameters
        - store_type: A ``DocumentStoreType`` enum value
        - config: Backend-specific parameters (e.g., DSN for pgvector)
        """
        if store_type == DocumentStoreType.PGVECTOR:
            dsn = config.get("dsn")
            if not dsn:
                raise ValueError("PgVector requires 'dsn' in config")

            return PgVectorDocumentStore(
                dsn=dsn,
                pool_size=config.get("pool_size", 10),
                command_timeout=config.get("command_timeout", 60),
                vector_dimension=config.get("vector_dimension"),
            )

        elif store_type == DocumentStoreType.MEMORY:
            return InMemoryDocumentStore(config.get("documents"))

        else:
            raise ValueError(f"Unsupported document store type: {store_type}")

    @staticmethod
    def create_from_config(config: Dict[str, Any]) -> DocumentStore:
        """Create a document store from a configuration dictionary.

        Expects a ``type`` key and any implementation-specific fields.
        """
        store_type_str = config.get("type", "pgvector")

        try:
            store_type = DocumentStoreType(store_type_str)
        except ValueError:
            raise ValueError(f"Unsupported document store type: {store_type_str}")

        return DocumentStoreFactory.create(store_type, config)


def create_document_store_from_env(env_config: Dict[str, str]) -> DocumentStore:
    """Create a document store from environment configuration.

    Parameters
    - env_config: A flat mapping of environment variable names to values

    Returns
    - A ``DocumentStore`` configured to talk to the backing datastore
    """
    backend = env_config.get("ML_VECTOR_BACKEND", "pgvector")

    if backend == "pgvector":
        config = {
            "type": "pgvector",
            "dsn": env_config.get("ML_VECTOR_DB_DSN"),
            "pool_size": int(env_config.get("ML_VECTOR_POOL_SIZE", "10")),
            "command_timeout": int(env_config.get("ML_VECTOR_COMMAND_TIMEOUT", "60")),
            "vector_dimension": int(env_config.get("ML_VECTOR_DIMENSION", "384")),
        }

        if not config["dsn"]:
            raise ValueError("ML_VECTOR_DB_DSN environment variable is required")

    elif backend == "memory":
        config = {"type": "memory"}

    else:
        raise ValueError(f"Unsupported vector backend: {backend}")

    logger.info("Creating document store", backend=backend)
    return DocumentStoreFactory.create_from_config(config)
