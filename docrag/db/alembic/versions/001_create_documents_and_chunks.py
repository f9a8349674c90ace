"""Create documents and chunks tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the pgvector extension (PostgreSQL only) and:
- documents (id, name, created_at)
- chunks (id, document_id -> documents ON DELETE CASCADE, ordinal, content, embedding)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from pgvector.sqlalchemy import Vector

# revision identifiers
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create document and chunk tables."""
    if op.get_bind().dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("idx_documents_created", "documents", ["created_at"])

    op.create_table(
        "chunks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("document_id", sa.Integer(), nullable=False),
        sa.Column("ordinal", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("embedding", Vector(), nullable=False),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_chunks_document_ordinal", "chunks", ["document_id", "ordinal"])


def downgrade() -> None:
    """Drop chunk and document tables."""
    op.drop_index("idx_chunks_document_ordinal", table_name="chunks")
    op.drop_table("chunks")

    op.drop_index("idx_documents_created", table_name="documents")
    op.drop_table("documents")
