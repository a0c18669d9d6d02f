"""Provider router: direct access to the embedding and chat providers."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from server.models.requests import ChatRequest, EmbedRequest

provider_router = APIRouter(prefix="/api")


@provider_router.post("/embed", tags=["Providers"])
async def handle_embed(request: Request, body: EmbedRequest) -> JSONResponse:
    """Embed a text with the configured embedding provider.

    Returns:
        JSONResponse: {"embedding": [...]} with a unit-length vector.
    """
    embedding = await request.app.state.embed_client.do_embed_text(body.text)
    return JSONResponse(content={"embedding": embedding})


@provider_router.post("/chat", tags=["Providers"])
async def handle_chat(request: Request, body: ChatRequest) -> JSONResponse:
    """Forward a message list and a system instruction to the chat provider.

    Returns:
        JSONResponse: {"text": "..."} with the raw completion.
    """
    messages = [message.model_dump() for message in body.messages]
    text = await request.app.state.llm_client.do_chat(messages, system_instruction=body.system_instruction)
    return JSONResponse(content={"text": text})
