"""PgVector implementation of the document store.

Documents live in a PostgreSQL ``documents`` table with a pgvector
``embedding`` column. Cosine distance is computed using the ``<=>`` operator
and converted to a ``similarity`` score (``1 - distance``) so rows can be
compared against the caller's threshold.

Connection management
- A shared asyncpg pool is created on demand and reused across calls
- Queries are funneled through ``_execute_query`` for uniform error handling
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence

import asyncpg
import numpy as np
import structlog
from asyncpg import Connection, Pool
from pgvector.asyncpg import register_vector

from .base import (
    DocumentMatch,
    DocumentRecord,
    DocumentStore,
    DocumentStoreConnectionError,
    DocumentStoreQueryError,
)

logger = structlog.get_logger("vector_store.pgvector")


SIMILARITY_QUERY = """
    SELECT id, title, content, created_at,
           1 - (embedding <=> $1) AS similarity
    FROM documents
    WHERE embedding IS NOT NULL
      AND 1 - (embedding <=> $1) > $2
    ORDER BY embedding <=> $1
    LIMIT $3
"""

LIST_QUERY = """
    SELECT id, title, content, created_at
    FROM documents
    ORDER BY created_at DESC
"""


def _row_to_record(row: Mapping[str, Any]) -> DocumentRecord:
    # title and content are nullable in the documents table
    return DocumentRecord(
        id=row["id"],
        title=row["title"] or "",
        content=row["content"] or "",
        created_at=row["created_at"],
    )


class PgVectorDocumentStore(DocumentStore):
    """PgVector implementation of the document store."""

    def __init__(
        self,
        dsn: str,
        pool_size: int = 10,
        command_timeout: int = 60,
        vector_dimension: Optional[int] = None,
    ):
        """Configure a PgVector-backed document store.

        Parameters
        - dsn: PostgreSQL DSN including database and credentials
        - pool_size: Max size of asyncpg connection pool
        - command_timeout: Seconds to allow per DB command
        - vector_dimension: Expected dimensionality of query vectors
        """
        self.dsn = dsn
        self.pool_size = pool_size
        self.command_timeout = command_timeout
        self.vector_dimension = vector_dimension
        self._pool: Optional[Pool] = None

    async def _init_connection(self, conn: Connection) -> None:
        """Register pgvector codec for asyncpg connections."""
        await register_vector(conn)

    async def _get_pool(self) -> Pool:
        """Get or create connection pool.

        Lazily initializes an asyncpg pool so callers don't pay startup cost
        unless/until they make a call that requires the database.
        """
        if self._pool is None:
            try:
                self._pool = await asyncpg.create_pool(
                    self.dsn,
                    min_size=1,
                    max_size=self.pool_size,
                    command_timeout=self.command_timeout,
                    init=self._init_connection,
                )
                logger.info("Created PgVector connection pool", pool_size=self.pool_size)
            except Exception as e:
                logger.error("Failed to create PgVector connection pool", error=str(e))
                raise DocumentStoreConnectionError(f"Failed to create connection pool: {e}") from e

        return self._pool

    async def _execute_query(
        self,
        query: str,
        *args: Any,
        fetch: bool = False,
        fetch_one: bool = False
    ) -> Any:
        """Execute a query with error handling.

        The ``fetch``/``fetch_one`` flags control how results are retrieved.
        Query failures are wrapped in ``DocumentStoreQueryError``.
        """
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                if fetch_one:
                    return await conn.fetchrow(query, *args)
                if fetch:
                    return await conn.fetch(query, *args)
                return await conn.execute(query, *args)
        except Exception as e:
            logger.error("Query execution failed", error=str(e))
            raise DocumentStoreQueryError(f"Query failed: {e}") from e

    async def similarity_query(
        self,
        embedding: Sequence[float],
        threshold: float,
        count: int
    ) -> List[DocumentMatch]:
        """Rank documents by cosine similarity to ``embedding``."""
        vector_array = self._ensure_vector_dimension(embedding)
        rows = await self._execute_query(
            SIMILARITY_QUERY,
            vector_array,
            threshold,
            count,
            fetch=True
        )

        matches = [
            DocumentMatch(
                document=_row_to_record(row),
                similarity=float(row["similarity"]),
            )
            for row in rows
        ]

        logger.info(
            "Vector similarity query completed",
            query_vector_dim=len(vector_array),
            threshold=threshold,
            count=count,
            results_count=len(matches)
        )
        return matches

    async def list_documents(self) -> List[DocumentRecord]:
        """List every document, newest first."""
        rows = await self._execute_query(LIST_QUERY, fetch=True)
        documents = [_row_to_record(row) for row in rows]
        logger.debug("Listed documents", count=len(documents))
        return documents

    async def health_check(self) -> bool:
        """Check if the document store is healthy."""
        try:
            await self._execute_query("SELECT 1", fetch_one=True)
            return True
        except Exception as e:
            logger.error("Health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Closed PgVector connection pool")

    def _ensure_vector_dimension(self, vector: Iterable[float]) -> np.ndarray:
        """Ensure a vector matches the expected dimensionality."""
        array = np.asarray(list(vector), dtype=np.float32)
        if array.ndim != 1:
            raise DocumentStoreQueryError("Vector must be one-dimensional")

        if self.vector_dimension is not None and array.shape[0] != self.vector_dimension:
            raise DocumentStoreQueryError(
                f"Expected vector dimension {self.vector_dimension}, "
                f"got {array.shape[0]}"
            )
        return array
