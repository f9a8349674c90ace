"""Document ingestion - chunk, embed and persist one document atomically."""

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docrag.config import Settings
from docrag.db.documents import DEFAULT_DOCUMENT_NAME, DocumentRepository
from docrag.db.vector_store import VectorStore
from docrag.docs.batch import EmbeddingOutcome, IngestFailurePolicy, embed_batch
from docrag.docs.chunker import chunk_text
from docrag.errors import DocRagError, OperationTimeoutError, StorageError, ValidationError
from docrag.llm.embeddings import EmbeddingProvider
from docrag.models.docs import IngestResult
from docrag.utils.metrics import ingest_chunks_total, ingest_documents_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionConfig:
    """Configuration for the ingestion pipeline."""

    max_chunk_chars: int = 500
    embedding_dim: int = 1536
    embed_concurrency: int = 4
    failure_policy: IngestFailurePolicy = IngestFailurePolicy.ABORT
    default_document_name: str = DEFAULT_DOCUMENT_NAME
    timeout_seconds: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestionConfig":
        """Build ingestion config from application settings."""
        return cls(
            max_chunk_chars=settings.chunk_max_chars,
            embedding_dim=settings.embedding_dim,
            embed_concurrency=settings.embed_concurrency,
            failure_policy=IngestFailurePolicy(settings.ingest_failure_policy),
            default_document_name=settings.default_document_name,
            timeout_seconds=settings.ingest_timeout_seconds,
        )


class IngestionPipeline:
    """Chunker -> EmbeddingProvider -> VectorStore for one document.

    All embeddings are computed before the first write; the document row and
    its chunks are then written in a single transaction. Under the ``ABORT``
    policy any failure leaves neither the document nor any chunk behind.
    """

    def __init__(self, embedder: EmbeddingProvider, config: IngestionConfig) -> None:
        self._embedder = embedder
        self.config = config

    async def ingest(
        self,
        name: str,
        text: str,
        *,
        session: AsyncSession,
        timeout: float | None = None,
    ) -> IngestResult:
        """Ingest a document.

        Args:
            name: Document display name
            text: Raw document text
            session: Async database session; committed on success
            timeout: Deadline in seconds for the whole call
                (defaults to the configured one)

        Returns:
            IngestResult with document id, persisted chunk count and the
            ordinals that failed under ``BEST_EFFORT``

        Raises:
            ValidationError: Empty name or text, or text with no sentences
            ProviderError: Embedding failed (see failure policy)
            StorageError: Persistence failed; nothing was committed
            OperationTimeoutError: Deadline exceeded; nothing was committed
        """
        if not name or not name.strip():
            raise ValidationError("name", "must not be empty")
        if not text or not text.strip():
            raise ValidationError("text", "must not be empty")

        chunks = chunk_text(text, self.config.max_chunk_chars)
        if not chunks:
            raise ValidationError("text", "contains no sentence ending in '.', '!' or '?'")

        deadline = timeout if timeout is not None else self.config.timeout_seconds

        try:
            result = await asyncio.wait_for(self._run(name, chunks, session), timeout=deadline)
        except TimeoutError as e:
            await session.rollback()
            ingest_documents_total.labels(outcome="timeout").inc()
            raise OperationTimeoutError(f"ingestion exceeded {deadline}s deadline") from e
        except DocRagError:
            ingest_documents_total.labels(outcome="failed").inc()
            raise

        ingest_documents_total.labels(outcome="partial" if result.failed_ordinals else "success").inc()
        ingest_chunks_total.inc(result.chunk_count)
        logger.info(
            f"Ingested document {result.document_id}: {result.chunk_count}/{len(chunks)} chunks"
        )
        return result

    async def _run(self, name: str, chunks: list[str], session: AsyncSession) -> IngestResult:
        outcomes = await embed_batch(
            self._embedder,
            chunks,
            concurrency=self.config.embed_concurrency,
            policy=self.config.failure_policy,
        )

        succeeded = [outcome for outcome in outcomes if outcome.ok]
        failed = [outcome for outcome in outcomes if outcome.error is not None]

        if failed and (self.config.failure_policy is IngestFailurePolicy.ABORT or not succeeded):
            logger.warning(
                f"Aborting ingestion of '{name}': {len(failed)} of {len(chunks)} chunks failed"
            )
            first_error = failed[0].error
            assert first_error is not None
            raise first_error

        document_id = await self._persist(name, succeeded, session)

        return IngestResult(
            document_id=document_id,
            chunk_count=len(succeeded),
            failed_ordinals=[outcome.ordinal for outcome in failed],
        )

    async def _persist(
        self, name: str, outcomes: list[EmbeddingOutcome], session: AsyncSession
    ) -> int:
        """Write the document and its chunks, committing once."""
        store = VectorStore(session, self.config.embedding_dim)
        documents = DocumentRepository(
            session, store, default_name=self.config.default_document_name
        )

        try:
            document = await documents.create(name)
            await store.insert_chunks(
                document.id,
                [(outcome.ordinal, outcome.text, outcome.vector or []) for outcome in outcomes],
            )
            await session.commit()
        except StorageError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            raise StorageError(f"failed to commit document '{name}': {e}") from e

        return document.id
