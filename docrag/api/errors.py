"""Maps service exceptions to stable JSON error responses.

HTTP status mapping:
  ValidationError          -> 400 Bad Request
  RequestValidationError   -> 422 Unprocessable Entity
  NotFoundError            -> 404 Not Found
  ProviderError            -> 502 Bad Gateway
  OperationTimeoutError    -> 504 Gateway Timeout
  StorageError             -> 500 Internal Server Error

Provider and storage details are logged, never returned.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from docrag.errors import (
    DocRagError,
    NotFoundError,
    OperationTimeoutError,
    ProviderError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def error_body(code: str, message: str) -> dict[str, dict[str, str]]:
    return {"error": {"code": code, "message": message}}


def add_error_handlers(app: FastAPI) -> None:
    """Register all service exception handlers on the app."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = sorted({".".join(str(loc) for loc in err["loc"]) for err in exc.errors()})
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(
                ValidationError.code, f"Invalid or missing field(s): {', '.join(fields)}"
            ),
        )

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(exc.code, exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=error_body(exc.code, exc.message),
        )

    @app.exception_handler(ProviderError)
    async def provider_handler(request: Request, exc: ProviderError) -> JSONResponse:
        logger.error(f"[{request.method} {request.url.path}] provider failure: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=error_body(exc.code, "Upstream model provider call failed"),
        )

    @app.exception_handler(OperationTimeoutError)
    async def timeout_handler(request: Request, exc: OperationTimeoutError) -> JSONResponse:
        logger.error(f"[{request.method} {request.url.path}] {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            content=error_body(exc.code, "Operation timed out"),
        )

    @app.exception_handler(StorageError)
    async def storage_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"[{request.method} {request.url.path}] storage failure: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(exc.code, "Storage operation failed"),
        )

    @app.exception_handler(DocRagError)
    async def fallback_handler(request: Request, exc: DocRagError) -> JSONResponse:
        logger.error(f"[{request.method} {request.url.path}] {exc.code}: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(exc.code, "internal error"),
        )
