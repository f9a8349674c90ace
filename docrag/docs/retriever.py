"""Retrieval engine - embed the question, fetch top-k chunks, generate an answer."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from docrag.config import Settings
from docrag.db.vector_store import VectorStore
from docrag.errors import DocRagError, OperationTimeoutError, ValidationError
from docrag.llm.client import ChatProvider
from docrag.llm.embeddings import EmbeddingProvider
from docrag.models.docs import Answer, RetrievalHit
from docrag.utils.metrics import queries_total, retrieval_hits

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Answer the question using only the following context. "
    "If the context does not contain the answer, say that no information is available."
)
CONTEXT_SEPARATOR = "\n---\n"
NO_ANSWER = "No answer generated."


def build_context(hits: Sequence[RetrievalHit]) -> str:
    """Join chunk contents in ranking order with a visible separator."""
    return CONTEXT_SEPARATOR.join(hit.content for hit in hits)


def build_user_prompt(context: str, question: str) -> str:
    """User message carrying the context block and the question."""
    return f"Context:\n{context}\n\nQuestion: {question}"


@dataclass(frozen=True)
class RetrievalConfig:
    """Configuration for the retrieval engine."""

    top_k: int = 5
    snippet_chars: int = 100
    embedding_dim: int = 1536
    timeout_seconds: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetrievalConfig":
        """Build retrieval config from application settings."""
        return cls(
            top_k=settings.retrieval_top_k,
            snippet_chars=settings.snippet_chars,
            embedding_dim=settings.embedding_dim,
            timeout_seconds=settings.query_timeout_seconds,
        )


class RetrievalEngine:
    """Question answering over stored chunks."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        chat: ChatProvider,
        config: RetrievalConfig,
    ) -> None:
        self._embedder = embedder
        self._chat = chat
        self.config = config

    async def retrieve(
        self, question: str, *, session: AsyncSession, k: int | None = None
    ) -> list[RetrievalHit]:
        """Embed the question and return the nearest chunks.

        Raises:
            ValidationError: Empty question
            ProviderError: Question embedding failed
            StorageError: Query failed
        """
        if not question or not question.strip():
            raise ValidationError("question", "must not be empty")

        vector = await self._embedder.embed(question)
        store = VectorStore(session, self.config.embedding_dim)
        hits = await store.nearest_neighbors(vector, k if k is not None else self.config.top_k)
        retrieval_hits.observe(len(hits))
        return hits

    async def answer(
        self,
        question: str,
        *,
        session: AsyncSession,
        timeout: float | None = None,
    ) -> Answer:
        """Answer a question from the stored documents.

        Either a complete Answer is returned or an error is raised. An empty
        store is not an error: the model is asked with an empty context.

        Args:
            question: Natural-language question
            session: Async database session (read only)
            timeout: Deadline in seconds for the whole call
                (defaults to the configured one)

        Returns:
            Answer with the generated text and a preview of each chunk used

        Raises:
            ValidationError: Empty question
            ProviderError: Embedding or generation failed
            StorageError: Query failed
            OperationTimeoutError: Deadline exceeded
        """
        if not question or not question.strip():
            raise ValidationError("question", "must not be empty")

        deadline = timeout if timeout is not None else self.config.timeout_seconds

        try:
            result = await asyncio.wait_for(self._answer(question, session), timeout=deadline)
        except TimeoutError as e:
            queries_total.labels(outcome="timeout").inc()
            raise OperationTimeoutError(f"query exceeded {deadline}s deadline") from e
        except DocRagError:
            queries_total.labels(outcome="failed").inc()
            raise

        queries_total.labels(outcome="success").inc()
        return result

    async def _answer(self, question: str, session: AsyncSession) -> Answer:
        hits = await self.retrieve(question, session=session)

        context = build_context(hits)
        if not hits:
            logger.info("No chunks stored; asking without context")

        reply = await self._chat.complete(SYSTEM_PROMPT, build_user_prompt(context, question))
        if not reply.strip():
            logger.warning("Chat provider returned an empty answer")
            reply = NO_ANSWER

        logger.info(f"Answered question with {len(hits)} context chunks")

        return Answer(
            answer=reply,
            context_snippets=[hit.content[: self.config.snippet_chars] for hit in hits],
            hits=hits,
        )
