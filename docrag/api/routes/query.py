"""Query endpoint - POST /query."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docrag.api.dependencies import get_retrieval_engine
from docrag.db.engine import get_session
from docrag.docs.retriever import RetrievalEngine
from docrag.models.docs import Answer, QueryRequest

router = APIRouter(prefix="/query", tags=["query"])
logger = logging.getLogger(__name__)


@router.post("", response_model=Answer)
async def query_documents(
    request: QueryRequest,
    engine: Annotated[RetrievalEngine, Depends(get_retrieval_engine)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> Answer:
    """Answer a question from the ingested documents.

    Returns:
        Generated answer and a short preview of each context chunk used
    """
    logger.info(f"[POST /query] chars={len(request.question)}")
    return await engine.answer(request.question, session=session)
