"""Vector store - chunk persistence and nearest-neighbour search."""

import logging
from collections.abc import Sequence

import numpy as np
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docrag.db.models import ChunkRecord, DocumentRecord
from docrag.errors import StorageError
from docrag.models.docs import RetrievalHit

logger = logging.getLogger(__name__)


class VectorStore:
    """Stores chunks with embeddings and answers top-k queries.

    Writes are added to the caller's session and are not committed here;
    the caller owns the transaction boundary.
    """

    def __init__(self, session: AsyncSession, dimension: int) -> None:
        """Initialize store.

        Args:
            session: Async database session (request scoped)
            dimension: Required embedding length for every stored vector
        """
        self._session = session
        self.dimension = dimension

    def _check_dimension(self, embedding: Sequence[float]) -> None:
        if len(embedding) != self.dimension:
            raise StorageError(
                f"embedding has {len(embedding)} dimensions, store requires {self.dimension}"
            )

    async def _require_document(self, document_id: int) -> None:
        if await self._session.get(DocumentRecord, document_id) is None:
            raise StorageError(f"document {document_id} does not exist")

    async def insert_chunk(
        self,
        document_id: int,
        content: str,
        embedding: Sequence[float],
        *,
        ordinal: int = 0,
    ) -> int:
        """Insert a single chunk and return its id.

        Raises:
            StorageError: If the document is missing, the dimension is wrong,
                or the write fails
        """
        ids = await self.insert_chunks(document_id, [(ordinal, content, embedding)])
        return ids[0]

    async def insert_chunks(
        self,
        document_id: int,
        items: Sequence[tuple[int, str, Sequence[float]]],
    ) -> list[int]:
        """Insert ``(ordinal, content, embedding)`` rows for one document.

        Returns:
            Chunk ids in the order of ``items``
        """
        for _, _, embedding in items:
            self._check_dimension(embedding)

        try:
            await self._require_document(document_id)

            records = [
                ChunkRecord(
                    document_id=document_id,
                    ordinal=ordinal,
                    content=content,
                    embedding=list(embedding),
                )
                for ordinal, content, embedding in items
            ]
            self._session.add_all(records)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise StorageError(f"failed to insert chunks for document {document_id}: {e}") from e

        return [record.id for record in records]

    async def nearest_neighbors(self, query_vector: Sequence[float], k: int) -> list[RetrievalHit]:
        """Return up to ``k`` chunks closest to ``query_vector`` by L2 distance.

        Results are ordered by ascending distance, ties broken by ascending
        chunk id. An empty store yields an empty list.
        """
        self._check_dimension(query_vector)
        if k <= 0:
            return []

        try:
            if self._session.get_bind().dialect.name == "postgresql":
                return await self._nearest_neighbors_pgvector(query_vector, k)
            return await self._nearest_neighbors_scan(query_vector, k)
        except SQLAlchemyError as e:
            raise StorageError(f"nearest-neighbour query failed: {e}") from e

    async def _nearest_neighbors_pgvector(
        self, query_vector: Sequence[float], k: int
    ) -> list[RetrievalHit]:
        distance = ChunkRecord.embedding.l2_distance(list(query_vector)).label("distance")
        stmt = (
            select(ChunkRecord.id, ChunkRecord.document_id, ChunkRecord.content, distance)
            .order_by(distance, ChunkRecord.id)
            .limit(k)
        )
        result = await self._session.execute(stmt)

        return [
            RetrievalHit(
                chunk_id=row.id,
                document_id=row.document_id,
                content=row.content,
                distance=float(row.distance),
            )
            for row in result
        ]

    async def _nearest_neighbors_scan(
        self, query_vector: Sequence[float], k: int
    ) -> list[RetrievalHit]:
        """Exact scan for dialects without a vector distance operator."""
        stmt = select(
            ChunkRecord.id, ChunkRecord.document_id, ChunkRecord.content, ChunkRecord.embedding
        )
        rows = list((await self._session.execute(stmt)).all())
        if not rows:
            return []

        matrix = np.array([np.asarray(row.embedding, dtype=np.float64) for row in rows])
        query = np.asarray(query_vector, dtype=np.float64)
        distances = np.linalg.norm(matrix - query, axis=1)

        ranked = sorted(zip(distances.tolist(), rows), key=lambda pair: (pair[0], pair[1].id))

        return [
            RetrievalHit(
                chunk_id=row.id,
                document_id=row.document_id,
                content=row.content,
                distance=dist,
            )
            for dist, row in ranked[:k]
        ]

    async def count_chunks(self, document_id: int | None = None) -> int:
        """Count chunks, optionally for a single document."""
        stmt = select(func.count(ChunkRecord.id))
        if document_id is not None:
            stmt = stmt.where(ChunkRecord.document_id == document_id)

        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"chunk count failed: {e}") from e
        return int(result.scalar_one())

    async def delete_chunks_for_document(self, document_id: int) -> int:
        """Delete every chunk of a document; idempotent.

        Returns:
            Number of rows removed (zero is fine)
        """
        try:
            result = await self._session.execute(
                delete(ChunkRecord).where(ChunkRecord.document_id == document_id)
            )
        except SQLAlchemyError as e:
            raise StorageError(f"failed to delete chunks for document {document_id}: {e}") from e

        removed = result.rowcount or 0
        logger.debug(f"Deleted {removed} chunks for document {document_id}")
        return removed
