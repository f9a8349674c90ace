"""Bounded-concurrency embedding of a chunk batch."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from docrag.errors import ProviderError
from docrag.llm.embeddings import EmbeddingProvider

logger = logging.getLogger(__name__)


class IngestFailurePolicy(str, Enum):
    """What a failed chunk embedding means for the whole document."""

    ABORT = "abort"
    BEST_EFFORT = "best_effort"


@dataclass
class EmbeddingOutcome:
    """Per-chunk result of a batch embedding run."""

    ordinal: int
    text: str
    vector: list[float] | None = None
    error: ProviderError | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.vector is not None


async def embed_batch(
    provider: EmbeddingProvider,
    texts: Sequence[str],
    *,
    concurrency: int = 4,
    policy: IngestFailurePolicy = IngestFailurePolicy.ABORT,
) -> list[EmbeddingOutcome]:
    """Embed ``texts`` with at most ``concurrency`` calls in flight.

    Provider failures are captured per chunk rather than raised. Under
    ``ABORT`` the first failure stops new calls from starting; chunks that
    never ran are marked ``skipped``. Cancelling the caller cancels every
    in-flight call.

    Returns:
        One outcome per input, indexed by ordinal
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    semaphore = asyncio.Semaphore(concurrency)
    abort = asyncio.Event()
    outcomes = [EmbeddingOutcome(ordinal=i, text=text) for i, text in enumerate(texts)]

    async def worker(outcome: EmbeddingOutcome) -> None:
        async with semaphore:
            if abort.is_set():
                outcome.skipped = True
                return

            try:
                outcome.vector = await provider.embed(outcome.text)
            except ProviderError as e:
                outcome.error = e
                logger.warning(f"Embedding failed for chunk {outcome.ordinal}: {e.code}")
                if policy is IngestFailurePolicy.ABORT:
                    abort.set()

    await asyncio.gather(*(worker(outcome) for outcome in outcomes))
    return outcomes
