"""Models package - re-exports for convenience."""

from docrag.models.docs import (
    Answer,
    Chunk,
    ChunkPreview,
    Document,
    IngestRequest,
    IngestResult,
    QueryRequest,
    RetrievalHit,
)

__all__ = [
    "Answer",
    "Chunk",
    "ChunkPreview",
    "Document",
    "IngestRequest",
    "IngestResult",
    "QueryRequest",
    "RetrievalHit",
]
