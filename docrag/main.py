"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docrag.api.errors import add_error_handlers
from docrag.api.routes.documents import router as documents_router
from docrag.api.routes.health import router as health_router
from docrag.api.routes.ingest import router as ingest_router
from docrag.api.routes.metrics import router as metrics_router
from docrag.api.routes.query import router as query_router
from docrag.config import Settings, get_settings
from docrag.db.engine import create_async_engine_from_settings, create_session_factory
from docrag.docs.ingest import IngestionConfig, IngestionPipeline
from docrag.docs.retriever import RetrievalConfig, RetrievalEngine
from docrag.llm.client import build_chat_provider
from docrag.llm.embeddings import build_embedding_provider
from docrag.llm.openai_support import create_openai_client
from docrag.utils.logging import StructuredProviderLogger, configure_logging
from docrag.utils.metrics import PrometheusProviderMetrics

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the engine, providers and pipelines once per process."""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    engine = create_async_engine_from_settings(settings)
    openai_client = create_openai_client(settings)

    metrics = PrometheusProviderMetrics()
    provider_logger = StructuredProviderLogger()
    embedder = build_embedding_provider(
        settings, openai_client, metrics=metrics, provider_logger=provider_logger
    )
    chat = build_chat_provider(
        settings, openai_client, metrics=metrics, provider_logger=provider_logger
    )

    app.state.session_factory = create_session_factory(engine)
    app.state.provider_mode = "openai" if openai_client is not None else "offline"
    app.state.ingestion_pipeline = IngestionPipeline(
        embedder, IngestionConfig.from_settings(settings)
    )
    app.state.retrieval_engine = RetrievalEngine(
        embedder, chat, RetrievalConfig.from_settings(settings)
    )
    logger.info(f"DocRAG API started (providers={app.state.provider_mode})")

    try:
        yield
    finally:
        if openai_client is not None:
            await openai_client.close()
        await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(title="DocRAG API", version=API_VERSION, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        allow_credentials=True,
    )
    add_error_handlers(app)

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(ingest_router)
    app.include_router(query_router)
    app.include_router(documents_router)

    @app.get("/")
    async def root() -> dict[str, object]:
        """Root endpoint."""
        return {
            "message": "DocRAG API",
            "version": API_VERSION,
            "endpoints": {
                "ingest": "/ingest",
                "query": "/query",
                "documents": "/documents",
            },
        }

    return app


app = create_app()
