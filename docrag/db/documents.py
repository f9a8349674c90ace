"""Document repository - metadata CRUD with cascading chunk deletion."""

import logging

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docrag.db.models import ChunkRecord, DocumentRecord
from docrag.db.vector_store import VectorStore
from docrag.errors import NotFoundError, StorageError
from docrag.models.docs import Chunk, Document

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_NAME = "Untitled Document"


def _summary_query() -> Select:
    """Documents joined with their chunk counts."""
    return (
        select(DocumentRecord, func.count(ChunkRecord.id).label("chunk_count"))
        .outerjoin(ChunkRecord, ChunkRecord.document_id == DocumentRecord.id)
        .group_by(DocumentRecord.id)
    )


def _to_document(record: DocumentRecord, chunk_count: int) -> Document:
    return Document(
        id=record.id,
        name=record.name,
        created_at=record.created_at,
        # Aggregates come back as int, Decimal or str depending on driver
        chunk_count=int(chunk_count),
    )


class DocumentRepository:
    """Document CRUD over an async session.

    ``create`` only flushes so that it can share the caller's transaction;
    ``delete`` is a complete unit and commits or rolls back itself.
    """

    def __init__(
        self,
        session: AsyncSession,
        chunks: VectorStore,
        *,
        default_name: str = DEFAULT_DOCUMENT_NAME,
    ) -> None:
        self._session = session
        self._chunks = chunks
        self._default_name = default_name

    async def create(self, name: str | None = None) -> Document:
        """Create a document row; blank names fall back to the placeholder."""
        record = DocumentRecord(name=(name or "").strip() or self._default_name)
        self._session.add(record)

        try:
            await self._session.flush()
        except SQLAlchemyError as e:
            raise StorageError(f"failed to create document: {e}") from e

        return _to_document(record, 0)

    async def get(self, document_id: int) -> Document:
        """Get a document with its chunk count.

        Raises:
            NotFoundError: If no such document exists
        """
        try:
            result = await self._session.execute(
                _summary_query().where(DocumentRecord.id == document_id)
            )
        except SQLAlchemyError as e:
            raise StorageError(f"failed to load document {document_id}: {e}") from e

        row = result.one_or_none()
        if row is None:
            raise NotFoundError("document", document_id)
        return _to_document(row[0], row[1])

    async def list_all(self) -> list[Document]:
        """List documents, newest first."""
        stmt = _summary_query().order_by(DocumentRecord.created_at.desc(), DocumentRecord.id.desc())

        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"failed to list documents: {e}") from e

        return [_to_document(record, count) for record, count in result.all()]

    async def get_chunks(self, document_id: int) -> list[Chunk]:
        """Chunks of a document ordered by ordinal.

        Raises:
            NotFoundError: If no such document exists
        """
        try:
            if await self._session.get(DocumentRecord, document_id) is None:
                raise NotFoundError("document", document_id)

            result = await self._session.execute(
                select(ChunkRecord)
                .where(ChunkRecord.document_id == document_id)
                .order_by(ChunkRecord.ordinal, ChunkRecord.id)
            )
        except SQLAlchemyError as e:
            raise StorageError(f"failed to load chunks for document {document_id}: {e}") from e

        return [
            Chunk(
                id=record.id,
                document_id=record.document_id,
                ordinal=record.ordinal,
                content=record.content,
                embedding=[float(value) for value in record.embedding],
            )
            for record in result.scalars().all()
        ]

    async def delete(self, document_id: int) -> Document:
        """Delete a document and all its chunks as one transaction.

        Returns:
            The deleted document as it was before deletion

        Raises:
            NotFoundError: If no such document exists
            StorageError: If either delete fails; nothing is removed
        """
        document = await self.get(document_id)

        try:
            removed = await self._chunks.delete_chunks_for_document(document_id)
            await self._session.execute(
                delete(DocumentRecord).where(DocumentRecord.id == document_id)
            )
            await self._session.commit()
        except (SQLAlchemyError, StorageError) as e:
            await self._session.rollback()
            if isinstance(e, StorageError):
                raise
            raise StorageError(f"failed to delete document {document_id}: {e}") from e

        logger.info(f"Deleted document {document_id} ({removed} chunks)")
        return document
