"""FastAPI dependency providers.

Pipelines are built once at application start and kept on ``app.state``;
storage objects are built per request around the request's session.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from docrag.config import Settings
from docrag.db.documents import DocumentRepository
from docrag.db.engine import get_session
from docrag.db.vector_store import VectorStore
from docrag.docs.ingest import IngestionPipeline
from docrag.docs.retriever import RetrievalEngine


def get_app_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return request.app.state.settings


def get_ingestion_pipeline(request: Request) -> IngestionPipeline:
    """Process-wide ingestion pipeline."""
    return request.app.state.ingestion_pipeline


def get_retrieval_engine(request: Request) -> RetrievalEngine:
    """Process-wide retrieval engine."""
    return request.app.state.retrieval_engine


def get_document_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> DocumentRepository:
    """Request-scoped document repository."""
    return DocumentRepository(
        session,
        VectorStore(session, settings.embedding_dim),
        default_name=settings.default_document_name,
    )
