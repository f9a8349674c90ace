"""Ingestion endpoint - POST /ingest."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from docrag.api.dependencies import get_ingestion_pipeline
from docrag.db.engine import get_session
from docrag.docs.ingest import IngestionPipeline
from docrag.models.docs import IngestRequest, IngestResult

router = APIRouter(prefix="/ingest", tags=["ingest"])
logger = logging.getLogger(__name__)


@router.post("", response_model=IngestResult, status_code=status.HTTP_201_CREATED)
async def ingest_document(
    request: IngestRequest,
    pipeline: Annotated[IngestionPipeline, Depends(get_ingestion_pipeline)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> IngestResult:
    """Chunk, embed and store a document.

    Args:
        request: Document name and raw text
        pipeline: Ingestion pipeline
        session: Database session

    Returns:
        Document id and number of chunks stored
    """
    logger.info(f"[POST /ingest] name={request.name!r}, chars={len(request.text)}")
    return await pipeline.ingest(request.name, request.text, session=session)
