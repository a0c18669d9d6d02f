"""Query router: similarity search and grounded question answering."""

import math

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from server.models.requests import AskRequest, SearchRequest
from server.models.responses import AskResponse, SearchHitResponse, SourceChunk

query_router = APIRouter(prefix="/api")


@query_router.post("/search", tags=["Query"])
async def handle_search(request: Request, body: SearchRequest) -> JSONResponse:
    """Rank stored chunks against a query embedding (brute force).

    Returns:
        JSONResponse: Hits by descending score.
    """
    top_k = body.top_k if body.top_k is not None else request.app.state.search_default_top_k
    hits = await request.app.state.vector_store.do_search(body.query_embedding, top_k)
    content = [
        SearchHitResponse(
            id=hit.chunk.id,
            document_id=hit.chunk.document_id,
            text=hit.chunk.text,
            metadata=hit.chunk.metadata,
            score=None if math.isnan(hit.score) else hit.score,
        ).model_dump(by_alias=True)
        for hit in hits
    ]
    return JSONResponse(content=content)


@query_router.post("/ask", tags=["Query"])
async def handle_ask(request: Request, body: AskRequest) -> JSONResponse:
    """Answer a question from the stored policy documents.

    Args:
        request (Request): The incoming FastAPI request (carries app state).
        body (AskRequest): The question and the prior conversation turns.

    Returns:
        JSONResponse: {"answer": "...", "sources": [...]}
    """
    result = await request.app.state.retrieval_service.do_ask(body.question, body.history)
    response = AskResponse(
        answer=result.answer,
        sources=[SourceChunk.from_chunk(chunk) for chunk in result.sources],
    )
    return JSONResponse(content=response.model_dump(by_alias=True))
