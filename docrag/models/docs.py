"""Document domain models.

These are the only shapes that leave the storage layer; ORM rows never do.
Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising to camelCase, accepting either case on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Document(CamelModel):
    """Document metadata with its chunk count."""

    id: int
    name: str
    created_at: datetime
    chunk_count: int = 0


class Chunk(CamelModel):
    """Stored chunk with its embedding."""

    id: int
    document_id: int
    ordinal: int  # 0-based position within the document
    content: str
    embedding: list[float]


class ChunkPreview(CamelModel):
    """Chunk without its embedding, for listing."""

    id: int
    ordinal: int
    content: str


class RetrievalHit(CamelModel):
    """Chunk returned by a nearest-neighbour query."""

    chunk_id: int
    document_id: int
    content: str
    distance: float


class IngestRequest(CamelModel):
    """Ingestion input. Also accepts the legacy ``fileName``/``content`` keys."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=500,
        validation_alias=AliasChoices("name", "fileName"),
        description="Document display name",
    )
    text: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("text", "content"),
        description="Raw document text",
    )


class IngestResult(CamelModel):
    """Outcome of ingesting one document."""

    document_id: int
    chunk_count: int
    failed_ordinals: list[int] = Field(default_factory=list)


class QueryRequest(CamelModel):
    """Question input."""

    question: str = Field(..., min_length=1, max_length=4000)


class Answer(CamelModel):
    """Generated answer with provenance previews."""

    answer: str
    context_snippets: list[str]
    hits: list[RetrievalHit] = Field(default_factory=list, exclude=True)
