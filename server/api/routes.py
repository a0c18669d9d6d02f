"""Router and error handler registration, shared by the app and the tests."""

import os

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from server.api.errors import register_error_handlers
from server.api.routers.DocumentRouter import document_router
from server.api.routers.ProviderRouter import provider_router
from server.api.routers.QueryRouter import query_router


def include_routes(app: FastAPI) -> None:
    """Attach routers, the health endpoint and error handlers to an app instance."""
    register_error_handlers(app)
    app.include_router(provider_router)
    app.include_router(document_router)
    app.include_router(query_router)

    @app.get("/healthz", tags=["Health"])
    async def handle_healthcheck() -> JSONResponse:
        await app.state.vector_store.do_healthcheck()
        return JSONResponse(content={"status": "ok", "version": os.getenv("APP_VERSION", "unknown")})
