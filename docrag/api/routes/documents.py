"""Document management endpoints - list, get, chunks, delete."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from docrag.api.dependencies import get_document_repository
from docrag.db.documents import DocumentRepository
from docrag.models.docs import CamelModel, ChunkPreview, Document

router = APIRouter(prefix="/documents", tags=["documents"])

DocumentId = Annotated[int, Path(ge=1, description="Document id")]


class DocumentListResponse(CamelModel):
    """Response for GET /documents."""

    documents: list[Document]


class ChunkListResponse(CamelModel):
    """Response for GET /documents/{id}/chunks."""

    chunks: list[ChunkPreview]


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    documents: Annotated[DocumentRepository, Depends(get_document_repository)],
) -> DocumentListResponse:
    """List all documents, newest first, with chunk counts."""
    return DocumentListResponse(documents=await documents.list_all())


@router.get("/{document_id}", response_model=Document)
async def get_document(
    document_id: DocumentId,
    documents: Annotated[DocumentRepository, Depends(get_document_repository)],
) -> Document:
    """Get one document with its chunk count."""
    return await documents.get(document_id)


@router.get("/{document_id}/chunks", response_model=ChunkListResponse)
async def get_document_chunks(
    document_id: DocumentId,
    documents: Annotated[DocumentRepository, Depends(get_document_repository)],
) -> ChunkListResponse:
    """List a document's chunks in document order (embeddings omitted)."""
    chunks = await documents.get_chunks(document_id)
    return ChunkListResponse(
        chunks=[
            ChunkPreview(id=chunk.id, ordinal=chunk.ordinal, content=chunk.content)
            for chunk in chunks
        ]
    )


@router.delete("/{document_id}", response_model=Document)
async def delete_document(
    document_id: DocumentId,
    documents: Annotated[DocumentRepository, Depends(get_document_repository)],
) -> Document:
    """Delete a document and all of its chunks."""
    return await documents.delete(document_id)
