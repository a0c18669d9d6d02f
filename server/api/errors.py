"""Maps pipeline errors to HTTP responses with a {"error": "..."} body."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.helper.errors import (
    ConfigurationError,
    ExtractionFailedError,
    PersistenceError,
    ProviderError,
    RAGError,
    UnsupportedFormatError,
    ValidationError,
)

_STATUS_CODES: dict[type[RAGError], int] = {
    ValidationError: 400,
    UnsupportedFormatError: 415,
    ExtractionFailedError: 422,
    ProviderError: 502,
    PersistenceError: 500,
    ConfigurationError: 500,
}


async def handle_rag_error(request: Request, exc: RAGError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in _STATUS_CODES.items() if isinstance(exc, error_type)),
        500,
    )
    request.app.state.logging.error("%s %s failed (%d): %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors like any other ValidationError."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in exc.errors()
    )
    request.app.state.logging.warning("%s %s rejected: %s", request.method, request.url.path, details)
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {details}"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RAGError, handle_rag_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
