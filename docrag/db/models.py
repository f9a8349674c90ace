"""SQLAlchemy ORM models for documents and their embedded chunks."""

from datetime import UTC, datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Timestamp default for new rows."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class DocumentRecord(Base):
    """Document table - immutable once created, deleted wholesale."""

    __tablename__ = "documents"
    __table_args__ = (Index("idx_documents_created", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    chunks: Mapped[list["ChunkRecord"]] = relationship(
        "ChunkRecord",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ChunkRecord(Base):
    """Chunk table - text excerpt plus pgvector embedding."""

    __tablename__ = "chunks"
    __table_args__ = (Index("idx_chunks_document_ordinal", "document_id", "ordinal"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Dimension is enforced by VectorStore so one schema serves any embedding model
    embedding: Mapped[list[float]] = mapped_column(Vector(), nullable=False)

    # Relationships
    document: Mapped["DocumentRecord"] = relationship("DocumentRecord", back_populates="chunks")
