"""FastAPI application entry point for the policy RAG assistant."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from server.api.routes import include_routes
from services.ingestion.IngestionService import IngestionService
from services.retrieval.RetrievalService import RetrievalService
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.vector.VectorStoreManager import VectorStoreManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

load_dotenv()
logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build, boot and wire all clients; close them on shutdown."""
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    embed_client = EmbedClientManager(helper_config=app.state.helper_config).get_client()
    llm_client = LLMClientManager(helper_config=app.state.helper_config).get_client()
    vector_store = VectorStoreManager(helper_config=app.state.helper_config).get_client()

    logging.info("Booting all clients...")
    for client in [vector_store, embed_client, llm_client]:
        await client.boot()
    logging.info("All clients booted successfully.", color="green")

    app.state.embed_client = embed_client
    app.state.llm_client = llm_client
    app.state.vector_store = vector_store
    app.state.search_default_top_k = int(app.state.helper_config.get_number_val("SEARCH_DEFAULT_TOP_K", default=5))

    app.state.ingestion_service = IngestionService(
        helper_config=app.state.helper_config,
        embed_client=embed_client,
        vector_store=vector_store,
    )
    app.state.retrieval_service = RetrievalService(
        helper_config=app.state.helper_config,
        embed_client=embed_client,
        vector_store=vector_store,
        llm_client=llm_client,
    )

    # while the app is running...
    yield

    logging.info("Shutting down, closing all clients...")
    for client in [vector_store, embed_client, llm_client]:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="policy_rag_assistant",
    description=(
        "Retrieval-augmented question answering over company policy documents. "
        "Documents are chunked, embedded and stored in a vector store; "
        "questions are answered by POST /api/ask from the most similar passages."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

include_routes(app)


# Server Start
if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "3001"))
    logging.info("Starting policy RAG API v%s on port %d...", app_version, port)
    uvicorn.run(app, host="0.0.0.0", port=port)
