"""Document router: list, ingest, upload and delete documents."""

import asyncio

from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from server.models.requests import IngestRequest
from server.models.responses import IngestResponse
from shared.extraction.TextExtractor import extract_text
from shared.helper.errors import ValidationError
from shared.models.document import ChunkMetadata, CommitResult, DocumentChunk

document_router = APIRouter(prefix="/api")


def _to_ingest_response(result: CommitResult) -> JSONResponse:
    response = IngestResponse(
        success=True,
        document_id=result.document_id,
        stored_chunks=result.stored_chunks,
        dropped_chunks=result.dropped_chunks,
    )
    return JSONResponse(content=response.model_dump(by_alias=True))


@document_router.get("/documents", tags=["Documents"])
async def handle_list_documents(request: Request) -> JSONResponse:
    """List all documents, newest first."""
    documents = await request.app.state.vector_store.do_list_documents()
    return JSONResponse(content=[document.model_dump(mode="json") for document in documents])


@document_router.post("/ingest", tags=["Documents"])
async def handle_ingest(request: Request, body: IngestRequest) -> JSONResponse:
    """Persist a document with chunks that the caller already embedded.

    Chunks without a valid embedding are dropped and listed in the response;
    the document itself is still created.

    Args:
        request (Request): The incoming FastAPI request (carries app state).
        body (IngestRequest): Document id, name, type and chunk list.

    Returns:
        JSONResponse: Success flag with stored and dropped chunk counts.
    """
    request.app.state.logging.info(
        "Received ingestion request for document: %s (%s), chunks: %s",
        body.name, body.id, len(body.chunks) if body.chunks is not None else None,
    )

    chunks = None
    if body.chunks is not None:
        chunks = []
        for chunk in body.chunks:
            metadata = chunk.metadata or {"source": body.name or ""}
            try:
                chunk_metadata = ChunkMetadata.model_validate(metadata)
            except PydanticValidationError as exc:
                raise ValidationError(f"Chunk '{chunk.id}' has invalid metadata: {exc}") from exc
            chunks.append(
                DocumentChunk(id=chunk.id or "", text=chunk.text, metadata=chunk_metadata, embedding=chunk.embedding)
            )

    result = await request.app.state.vector_store.do_commit(
        document_id=body.id,
        name=body.name,
        type=body.type or "",
        chunks=chunks,
    )
    return _to_ingest_response(result)


@document_router.post("/documents/upload", tags=["Documents"])
async def handle_upload(request: Request, file: UploadFile = File(...)) -> JSONResponse:
    """Extract, chunk, embed and store an uploaded PDF, DOCX or TXT file."""
    data = await file.read()
    text, mime_type = await asyncio.to_thread(extract_text, data, file.filename or "", file.content_type)
    result = await request.app.state.ingestion_service.do_ingest_text(
        text=text,
        name=file.filename or "upload",
        type=mime_type,
    )
    return _to_ingest_response(result)


@document_router.delete("/documents/{document_id}", tags=["Documents"])
async def handle_delete_document(request: Request, document_id: str) -> JSONResponse:
    """Delete a document and all of its chunks."""
    deleted = await request.app.state.vector_store.do_delete_document(document_id)
    if not deleted:
        return JSONResponse(status_code=404, content={"error": f"Document '{document_id}' not found."})
    return JSONResponse(content={"success": True})
