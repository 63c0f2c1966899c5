"""Global error handler: consistent JSON error responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bomber.errors import BomberError, ConcurrencyConflict

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions with consistent JSON format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle validation errors with consistent JSON format."""
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": jsonable_errors(exc)},
        )

    @app.exception_handler(BomberError)
    async def domain_exception_handler(request: Request, exc: BomberError) -> JSONResponse:
        """Map domain errors to their HTTP status."""
        headers = None
        if isinstance(exc, ConcurrencyConflict):
            headers = {"Retry-After": str(exc.retry_after)}
            logger.warning("concurrency_conflict", path=request.url.path, error=exc.detail)
        else:
            logger.info("domain_error", path=request.url.path, error_type=type(exc).__name__, error=exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error": type(exc).__name__},
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions: always return JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Pydantic error dicts may carry the raw exception in ``ctx``; stringify it."""
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors
