"""In-memory implementation of the document store.

Keeps documents in a Python list and ranks them by brute-force cosine
similarity with numpy. Intended for local development, demos and tests; it
mirrors the semantics of the PgVector backend (strict ``> threshold``,
newest-first listing).
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

import numpy as np
import structlog

from .base import DocumentMatch, DocumentRecord, DocumentStore, DocumentStoreQueryError

logger = structlog.get_logger("vector_store.memory")


class InMemoryDocumentStore(DocumentStore):
    """Document store backed by process memory."""

    def __init__(self, documents: Optional[Iterable[DocumentRecord]] = None):
        self._documents: List[DocumentRecord] = []
        if documents:
            self.add_documents(documents)

    def add_documents(self, documents: Iterable[DocumentRecord]) -> int:
        """Add or replace documents by id. Returns the number stored."""
        stored = 0
        for document in documents:
            if document.created_at is None:
                document = document.model_copy(update={"created_at": datetime.now(timezone.utc)})
            self._documents = [d for d in self._documents if d.id != document.id]
            self._documents.append(document)
            stored += 1
        logger.debug("Stored documents in memory", count=stored, total=len(self._documents))
        return stored

    async def similarity_query(
        self,
        embedding: Sequence[float],
        threshold: float,
        count: int
    ) -> List[DocumentMatch]:
        """Rank documents by cosine similarity to ``embedding``."""
        query = np.asarray(list(embedding), dtype=np.float32)
        matches: List[DocumentMatch] = []

        for document in self._documents:
            if document.embedding is None:
                continue
            vector = np.asarray(document.embedding, dtype=np.float32)
            if vector.shape != query.shape:
                raise DocumentStoreQueryError(
                    f"Expected vector dimension {vector.shape[0]}, got {query.shape[0]}"
                )
            similarity = self._cosine_similarity(query, vector)
            if similarity > threshold:
                matches.append(DocumentMatch(document=document, similarity=similarity))

        matches.sort(key=lambda match: match.similarity, reverse=True)
        return matches[:max(count, 0)]

    async def list_documents(self) -> List[DocumentRecord]:
        """List every document, newest first."""
        return sorted(
            self._documents,
            key=lambda document: document.created_at.timestamp() if document.created_at else 0.0,
            reverse=True
        )

    async def health_check(self) -> bool:
        """The in-memory store is always available."""
        return True

    @staticmethod
    def _cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
        denom = float(np.linalg.norm(a) * np.linalg.norm(b)) or 1.0
        return float(np.dot(a, b)) / denom
