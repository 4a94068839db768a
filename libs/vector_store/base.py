"""Base document store interface.

Defines the contract the search service depends on, independent of the
backing implementation (PgVector, in-memory, ...). A document store plays
two roles for the retrieval core:

- Vector store: ``similarity_query`` ranks stored embeddings against a query
  vector and returns rows above a similarity threshold.
- Document corpus: ``list_documents`` returns every stored document, most
  recent first, for wholesale sparse scanning.

All methods are asynchronous to support high-throughput services. The core
only reads from a store; ingestion is handled elsewhere.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, field_validator


class DocumentRecord(BaseModel):
    """A stored document as seen by the retrieval core."""

    id: str
    title: str
    content: str
    created_at: Optional[datetime] = None
    embedding: Optional[List[float]] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        # Backends use integer or UUID keys; the core treats ids as opaque strings.
        return str(value)


class DocumentMatch(BaseModel):
    """A row returned by ``similarity_query``."""

    document: DocumentRecord
    similarity: float


class DocumentStore(ABC):
    """Abstract base class for document stores.

    Implementations should return similarity rows sorted by descending
    similarity and corpus listings ordered by recency (newest first).
    """

    @abstractmethod
    async def similarity_query(
        self,
        embedding: Sequence[float],
        threshold: float,
        count: int
    ) -> List[DocumentMatch]:
        """Rank stored documents against ``embedding``.

        Returns
        - At most ``count`` matches whose similarity exceeds ``threshold``,
          sorted by descending similarity
        """
        pass

    @abstractmethod
    async def list_documents(self) -> List[DocumentRecord]:
        """List every stored document, newest first."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the document store is healthy."""
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None


class DocumentStoreError(Exception):
    """Base exception for document store operations."""
    pass


class DocumentStoreConnectionError(DocumentStoreError):
    """Connection error to the document store."""
    pass


class DocumentStoreQueryError(DocumentStoreError):
    """Query error in the document store."""
    pass
