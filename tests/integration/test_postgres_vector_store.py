"""PostgreSQL + pgvector integration tests.

These tests require a real PostgreSQL database with the pgvector extension.
Run with: DATABASE_URL=postgresql://... pytest -m postgres
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from docrag.db.documents import DocumentRepository
from docrag.db.vector_store import VectorStore
from tests.fakes import TEST_DIM, unit_vector


@pytest.mark.postgres
@pytest.mark.asyncio
async def test_pgvector_nearest_neighbors_order_and_ties(postgres_engine: AsyncEngine) -> None:
    """Test that the l2_distance query orders by distance, then chunk id."""
    async with AsyncSession(postgres_engine, expire_on_commit=False) as session:
        store = VectorStore(session, TEST_DIM)
        document = await DocumentRepository(session, store).create("pg")
        far = await store.insert_chunk(document.id, "Far.", unit_vector(TEST_DIM, 0, 4.0))
        tie_a = await store.insert_chunk(document.id, "Tie A.", unit_vector(TEST_DIM, 0, 2.0))
        tie_b = await store.insert_chunk(document.id, "Tie B.", unit_vector(TEST_DIM, 0, 2.0))
        await session.commit()

        hits = await store.nearest_neighbors(unit_vector(TEST_DIM, 0, 1.0), 2)

        assert [hit.chunk_id for hit in hits] == [tie_a, tie_b]
        assert hits[0].distance == pytest.approx(1.0)
        assert far not in [hit.chunk_id for hit in hits]


@pytest.mark.postgres
@pytest.mark.asyncio
async def test_pgvector_delete_cascades(postgres_engine: AsyncEngine) -> None:
    async with AsyncSession(postgres_engine, expire_on_commit=False) as session:
        store = VectorStore(session, TEST_DIM)
        documents = DocumentRepository(session, store)
        document = await documents.create("pg")
        await store.insert_chunks(
            document.id, [(i, f"Chunk {i}.", unit_vector(TEST_DIM, i)) for i in range(3)]
        )
        await session.commit()

        deleted = await documents.delete(document.id)

        assert deleted.chunk_count == 3
        assert await store.count_chunks() == 0
